"""
Production Day Core

Database-backed planning actions for a production day: creating the day,
splitting ordered demand into batches, and consolidating ingredient needs.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models import InventoryItem, Order, Product, ProductionBatch, ProductionDay
from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..state_machines import transition
from ._batch_planner import aggregate_product_demand, plan_batches
from ._consolidation import consolidate_ingredients
from .types import ConsolidationResult, ProductBatchPlan, RecipeLine

logger = logging.getLogger(__name__)


def get_production_day(day_id: int) -> ProductionDay:
    day = db.session.get(ProductionDay, day_id)
    if not day:
        raise NotFoundError('ProductionDay', day_id)
    return day


def create_production_day(production_date: date, delivery_date: Optional[date] = None,
                          notes: Optional[str] = None) -> ProductionDay:
    if production_date is None:
        raise ValidationError("production_date is required", field='production_date')
    if delivery_date is not None and delivery_date < production_date:
        raise ValidationError("delivery_date cannot be before production_date", field='delivery_date')
    if ProductionDay.query.filter_by(production_date=production_date).first():
        raise ConflictError(f"A production day already exists for {production_date.isoformat()}",
                            {'production_date': production_date.isoformat()})

    day = ProductionDay(production_date=production_date, delivery_date=delivery_date,
                        notes=notes, status='draft')
    db.session.add(day)
    db.session.commit()
    logger.info(f"Created production day {day.id} for {production_date.isoformat()}")
    return day


def list_production_days(status: Optional[str] = None) -> List[ProductionDay]:
    query = ProductionDay.query
    if status:
        query = query.filter_by(status=status)
    return query.order_by(ProductionDay.production_date.desc()).all()


def _active_orders(day: ProductionDay) -> List[Order]:
    return [order for order in day.orders if order.status != 'cancelled']


def preview_day_batches(day_id: int) -> List[ProductBatchPlan]:
    """Batch split the day's orders would produce, without persisting it."""
    day = get_production_day(day_id)
    order_items = [item for order in _active_orders(day) for item in order.items]
    plans = []
    for product_id, total_units in aggregate_product_demand(order_items).items():
        product = db.session.get(Product, product_id)
        if product is None:
            continue
        plans.append(ProductBatchPlan(
            product_id=product.id,
            product_name=product.name,
            total_units=total_units,
            batch_size_units=product.batch_size_units,
            batches=plan_batches(total_units, product.batch_size_units),
        ))
    return plans


def calculate_and_create_batches(day_id: int) -> List[ProductionBatch]:
    """Replace the day's pending batches with a fresh split of its orders.

    Running it twice without order changes yields the same batches.
    """
    day = get_production_day(day_id)
    if day.status != 'draft':
        raise ConflictError(f"Batches can only be calculated while the day is draft (status {day.status})",
                            {'production_day_id': day.id, 'status': day.status})
    started = [batch for batch in day.batches if batch.status != 'pending']
    if started:
        raise ConflictError("Production has already started for this day",
                            {'production_day_id': day.id, 'started_batch_ids': [b.id for b in started]})

    plans = preview_day_batches(day_id)
    try:
        # delete-orphan cascade removes the previous pending batches
        day.batches.clear()
        db.session.flush()

        created = []
        for plan in plans:
            for number, units in enumerate(plan.batches, start=1):
                created.append(ProductionBatch(
                    product_id=plan.product_id,
                    batch_number=number,
                    total_units_in_batch=units,
                    status='pending',
                ))
        day.batches.extend(created)
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error creating batches for production day {day_id}: {e}")
        db.session.rollback()
        raise

    logger.info(f"Production day {day.id}: created {len(created)} batches for {len(plans)} products")
    return created


def _recipe_lines_for(product: Product) -> List[RecipeLine]:
    return [
        RecipeLine(
            item_id=line.inventory_item.id,
            item_name=line.inventory_item.name,
            usage_unit=line.inventory_item.unit_usage,
            quantity_per_unit=line.quantity,
            unit=line.unit,
        )
        for line in product.recipes
        if line.inventory_item is not None
    ]


def consolidate_day_ingredients(day_id: int) -> ConsolidationResult:
    day = get_production_day(day_id)
    recipes_by_product = {}
    for batch in day.batches:
        if batch.product_id not in recipes_by_product:
            recipes_by_product[batch.product_id] = _recipe_lines_for(batch.product)

    item_ids = {line.item_id for lines in recipes_by_product.values() for line in lines}
    stock_by_item = {}
    if item_ids:
        for item in InventoryItem.query.filter(InventoryItem.id.in_(item_ids)).all():
            stock_by_item[item.id] = item.current_stock

    return consolidate_ingredients(day.batches, recipes_by_product, stock_by_item)


def _move_day(day_id: int, target: str) -> ProductionDay:
    day = get_production_day(day_id)
    previous = transition(day, target)
    db.session.commit()
    logger.info(f"Production day {day.id}: {previous} -> {target}")
    return day


def publish_production_day(day_id: int) -> ProductionDay:
    day = get_production_day(day_id)
    if not day.batches:
        raise ConflictError("Cannot publish a production day without batches", {'production_day_id': day.id})
    return _move_day(day_id, 'published')


def close_production_day(day_id: int) -> ProductionDay:
    return _move_day(day_id, 'closed')
