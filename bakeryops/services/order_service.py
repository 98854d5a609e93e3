"""Client orders: creation with price snapshots, lifecycle and planning assignment."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem, Product, ProductionDay
from .client_service import get_client
from .exceptions import ConflictError, NotFoundError, ValidationError
from .price_list_service import resolve_client_price
from .state_machines import order_is_deletable, transition

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = ('pending', 'planned')


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError('Order', order_id)
    return order


def _next_order_number() -> int:
    current = db.session.query(func.max(Order.order_number)).scalar()
    return (current or 0) + 1


def _item_rows(client, items: List[Dict[str, Any]]) -> List[OrderItem]:
    if not items:
        raise ValidationError("An order needs at least one item", field='items')

    rows = []
    for entry in items:
        product_id = entry.get('product_id')
        product = db.session.get(Product, product_id) if product_id is not None else None
        if product is None:
            raise NotFoundError('Product', product_id)
        if not product.is_active:
            raise ValidationError(f"{product.name} is not active", field='product_id',
                                  details={'product_id': product_id})
        try:
            quantity = int(entry.get('quantity'))
        except (TypeError, ValueError):
            raise ValidationError("quantity must be a whole number", field='quantity')
        if quantity <= 0:
            raise ValidationError("quantity must be greater than zero", field='quantity')

        price = entry.get('unit_price_snapshot')
        if price is None:
            price = resolve_client_price(client, product_id)
        if price is None:
            raise ValidationError(f"No price available for {product.name}; provide unit_price_snapshot",
                                  field='unit_price_snapshot', details={'product_id': product_id})
        try:
            price = float(price)
        except (TypeError, ValueError):
            raise ValidationError("unit_price_snapshot must be a number", field='unit_price_snapshot')
        if price < 0:
            raise ValidationError("unit_price_snapshot cannot be negative", field='unit_price_snapshot')
        rows.append(OrderItem(product_id=product_id, quantity=quantity, unit_price_snapshot=price))
    return rows


def create_order(client_id: int, delivery_date: date, items: List[Dict[str, Any]],
                 notes: Optional[str] = None) -> Order:
    client = get_client(client_id)
    if not client.is_active:
        raise ValidationError(f"Client {client.name} is inactive", field='client_id')
    if delivery_date is None:
        raise ValidationError("delivery_date is required", field='delivery_date')

    order = Order(
        order_number=_next_order_number(),
        client_id=client.id,
        delivery_date=delivery_date,
        status='pending',
        internal_notes=notes,
    )
    order.items = _item_rows(client, items)
    order.recalculate_total()
    db.session.add(order)
    db.session.commit()
    logger.info(f"Created order #{order.order_number} for client {client.id}: total {order.total_amount:.2f}")
    return order


def _discard_stale_batches(day: Optional[ProductionDay]) -> None:
    """Drop a draft day's calculated batches after its order set changed.

    Publishing needs batches, so the day has to be recalculated first.
    """
    if day is None or day.status != 'draft' or not day.batches:
        return
    logger.info(f"Production day {day.id}: orders changed, discarding {len(day.batches)} calculated batches")
    day.batches.clear()


def update_order(order_id: int, items: Optional[List[Dict[str, Any]]] = None,
                 delivery_date: Optional[date] = None, notes: Optional[str] = None) -> Order:
    order = get_order(order_id)
    if order.status not in EDITABLE_STATUSES:
        raise ConflictError(f"Order #{order.order_number} can no longer be edited (status {order.status})",
                            {'order_id': order.id, 'status': order.status})
    if items is not None:
        day = order.production_day
        if day is not None and day.status != 'draft':
            raise ConflictError(
                f"Order #{order.order_number} is on a {day.status} production day; its items are fixed",
                {'order_id': order.id, 'production_day_id': day.id, 'status': day.status},
            )
        rows = _item_rows(order.client, items)
        order.items.clear()
        db.session.flush()
        order.items.extend(rows)
        order.recalculate_total()
        _discard_stale_batches(day)
    if delivery_date is not None:
        order.delivery_date = delivery_date
    if notes is not None:
        order.internal_notes = notes
    db.session.commit()
    logger.info(f"Updated order #{order.order_number}")
    return order


def update_order_status(order_id: int, status: str) -> Order:
    order = get_order(order_id)
    previous = transition(order, status)
    if status == 'cancelled':
        _discard_stale_batches(order.production_day)
        order.production_day_id = None
    db.session.commit()
    logger.info(f"Order #{order.order_number}: {previous} -> {status}")
    return order


def cancel_order(order_id: int) -> Order:
    return update_order_status(order_id, 'cancelled')


def assign_orders_to_production_day(order_ids: List[int], production_day_id: int) -> List[Order]:
    """Plan several orders on a draft day; either every order is assigned or none is."""
    day = db.session.get(ProductionDay, production_day_id)
    if not day:
        raise NotFoundError('ProductionDay', production_day_id)
    if day.status != 'draft':
        raise ConflictError("Orders can only be assigned to a draft production day",
                            {'production_day_id': day.id, 'status': day.status})

    orders = [get_order(order_id) for order_id in order_ids]
    for order in orders:
        if order.status not in ('pending', 'planned'):
            raise ConflictError(f"Order #{order.order_number} cannot be planned (status {order.status})",
                                {'order_id': order.id, 'status': order.status})
        current_day = order.production_day
        if current_day is not None and current_day.id != day.id and current_day.status != 'draft':
            raise ConflictError(f"Order #{order.order_number} is already on a {current_day.status} production day",
                                {'order_id': order.id, 'production_day_id': current_day.id})

    for order in orders:
        if order.status == 'pending':
            transition(order, 'planned')
        if order.production_day_id != day.id:
            _discard_stale_batches(order.production_day)
            _discard_stale_batches(day)
            order.production_day = day
    db.session.commit()
    logger.info(f"Assigned orders {[order.order_number for order in orders]} to production day {day.id}")
    return orders


def assign_order_to_production_day(order_id: int, production_day_id: int) -> Order:
    return assign_orders_to_production_day([order_id], production_day_id)[0]


def delete_order(order_id: int) -> None:
    order = get_order(order_id)
    if not order_is_deletable(order):
        raise ConflictError(f"Only pending orders can be deleted (status {order.status})",
                            {'order_id': order.id, 'status': order.status})
    db.session.delete(order)
    db.session.commit()
    logger.info(f"Deleted order #{order.order_number}")


def list_pending_orders() -> List[Order]:
    """Pending orders not yet assigned to a production day."""
    return (Order.query.filter_by(status='pending', production_day_id=None)
            .order_by(Order.delivery_date, Order.order_number).all())


def list_orders(status: Optional[str] = None, delivery_date: Optional[date] = None,
                client_id: Optional[int] = None) -> List[Order]:
    query = Order.query
    if status:
        query = query.filter_by(status=status)
    if delivery_date:
        query = query.filter_by(delivery_date=delivery_date)
    if client_id:
        query = query.filter_by(client_id=client_id)
    return query.order_by(Order.delivery_date.desc(), Order.order_number.desc()).all()
