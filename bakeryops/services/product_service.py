"""Products with their recipe, variants and production phases."""

import logging
from typing import Any, Dict, List, Optional

from ..extensions import db
from ..models import (
    BatchPhaseExecution,
    InventoryItem,
    PhaseTrigger,
    Product,
    ProductionPhase,
    ProductRecipe,
    ProductVariant,
    VariantIngredient,
)
from ..models.product import TRIGGER_TYPES
from . import costing_engine
from .exceptions import ConflictError, NotFoundError, ValidationError
from .unit_conversion import ConversionEngine, normalize_unit

logger = logging.getLogger(__name__)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product', product_id)
    return product


def _positive_int(value, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number", field=field)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than zero", field=field)
    return number


def _ingredient_lines(lines: List[Dict[str, Any]], model):
    """Validate ``{'inventory_item_id', 'quantity', 'unit'}`` dicts into rows of ``model``."""
    rows = []
    seen = set()
    for line in lines or []:
        item_id = line.get('inventory_item_id')
        item = db.session.get(InventoryItem, item_id) if item_id is not None else None
        if item is None:
            raise NotFoundError('InventoryItem', item_id)
        if item_id in seen:
            raise ValidationError(f"{item.name} appears more than once", field='inventory_item_id',
                                  details={'inventory_item_id': item_id})
        seen.add(item_id)
        try:
            quantity = float(line.get('quantity'))
        except (TypeError, ValueError):
            raise ValidationError("quantity must be a number", field='quantity')
        if quantity <= 0:
            raise ValidationError("quantity must be greater than zero", field='quantity')

        unit = normalize_unit(line.get('unit')) or item.unit_usage
        if not ConversionEngine.is_known_unit(unit):
            raise ValidationError(f"Unknown unit {line.get('unit')!r}", field='unit')
        if not (ConversionEngine.are_compatible(unit, item.unit_usage)
                or ConversionEngine.are_compatible(unit, item.unit_purchase)):
            logger.warning(f"Recipe unit {unit} does not convert for {item.name}; line will not be costed")
        rows.append(model(inventory_item_id=item_id, quantity=quantity, unit=unit))
    return rows


def _phase_rows(phases: List[Dict[str, Any]]) -> List[ProductionPhase]:
    rows = []
    orders = set()
    for index, phase in enumerate(phases or [], start=1):
        name = (phase.get('name') or '').strip()
        if not name:
            raise ValidationError("Phase name is required", field='phases')
        sequence_order = _positive_int(phase.get('sequence_order', index), 'sequence_order')
        if sequence_order in orders:
            raise ValidationError(f"Duplicate phase sequence {sequence_order}", field='sequence_order')
        orders.add(sequence_order)

        duration = phase.get('estimated_duration_minutes')
        if duration is not None:
            try:
                duration = int(duration)
            except (TypeError, ValueError):
                raise ValidationError("estimated_duration_minutes must be a whole number",
                                      field='estimated_duration_minutes')
            if duration < 0:
                raise ValidationError("Phase duration cannot be negative", field='estimated_duration_minutes')

        row = ProductionPhase(name=name, sequence_order=sequence_order, estimated_duration_minutes=duration)
        row.triggers = _trigger_rows(phase.get('triggers'))
        rows.append(row)
    return sorted(rows, key=lambda p: p.sequence_order)


def _trigger_rows(triggers: Optional[List[Dict[str, Any]]]) -> List[PhaseTrigger]:
    rows = []
    for trigger in triggers or []:
        try:
            seconds = int(trigger.get('trigger_time_seconds', 0))
        except (TypeError, ValueError):
            raise ValidationError("trigger_time_seconds must be a whole number", field='trigger_time_seconds')
        if seconds < 0:
            raise ValidationError("trigger_time_seconds cannot be negative", field='trigger_time_seconds')
        trigger_type = trigger.get('trigger_type', 'info')
        if trigger_type not in TRIGGER_TYPES:
            raise ValidationError(f"Unknown trigger type {trigger_type!r}", field='trigger_type',
                                  details={'allowed': list(TRIGGER_TYPES)})
        text = (trigger.get('instruction_text') or '').strip()
        if not text:
            raise ValidationError("Trigger instruction is required", field='instruction_text')
        rows.append(PhaseTrigger(trigger_time_seconds=seconds, trigger_type=trigger_type, instruction_text=text))
    return sorted(rows, key=lambda t: t.trigger_time_seconds)


def _variant_rows(variants: List[Dict[str, Any]]) -> List[ProductVariant]:
    rows = []
    names = set()
    for variant in variants or []:
        name = (variant.get('name') or '').strip()
        if not name:
            raise ValidationError("Variant name is required", field='variants')
        if name in names:
            raise ValidationError(f"Duplicate variant {name!r}", field='variants')
        names.add(name)
        row = ProductVariant(name=name, is_active=variant.get('is_active', True))
        row.extra_ingredients = _ingredient_lines(variant.get('extra_ingredients'), VariantIngredient)
        rows.append(row)
    return rows


def _apply_children(product: Product, data: Dict[str, Any]) -> None:
    if 'recipes' in data:
        product.recipes.clear()
        db.session.flush()
        product.recipes.extend(_ingredient_lines(data['recipes'], ProductRecipe))
    if 'phases' in data:
        phase_ids = [phase.id for phase in product.phases if phase.id is not None]
        if phase_ids and BatchPhaseExecution.query.filter(BatchPhaseExecution.phase_id.in_(phase_ids)).count():
            raise ConflictError("Phases already executed in production cannot be replaced",
                                {'product_id': product.id})
        product.phases.clear()
        db.session.flush()
        product.phases.extend(_phase_rows(data['phases']))
    if 'variants' in data:
        product.variants.clear()
        db.session.flush()
        product.variants.extend(_variant_rows(data['variants']))
        product.has_variants = bool(product.variants)


def create_product(data: Dict[str, Any]) -> Product:
    name = (data.get('name') or '').strip()
    if not name:
        raise ValidationError("Product name is required", field='name')
    if Product.query.filter_by(name=name).first():
        raise ConflictError(f"A product named {name!r} already exists", {'field': 'name'})

    product = Product(
        name=name,
        description=data.get('description'),
        batch_size_units=_positive_int(data.get('batch_size_units'), 'batch_size_units'),
        is_active=data.get('is_active', True),
    )
    try:
        db.session.add(product)
        _apply_children(product, data)
        db.session.commit()
    except (ValidationError, NotFoundError, ConflictError):
        db.session.rollback()
        raise
    logger.info(f"Created product {product.id} ({product.name})")
    return product


def update_product(product_id: int, data: Dict[str, Any]) -> Product:
    product = get_product(product_id)
    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError("Product name is required", field='name')
        if Product.query.filter(Product.name == name, Product.id != product.id).first():
            raise ConflictError(f"A product named {name!r} already exists", {'field': 'name'})
        product.name = name
    if 'description' in data:
        product.description = data['description']
    if 'batch_size_units' in data:
        product.batch_size_units = _positive_int(data['batch_size_units'], 'batch_size_units')
    try:
        _apply_children(product, data)
        db.session.commit()
    except (ValidationError, NotFoundError, ConflictError):
        db.session.rollback()
        raise
    logger.info(f"Updated product {product.id}")
    return product


def set_product_active(product_id: int, is_active: bool) -> Product:
    product = get_product(product_id)
    product.is_active = bool(is_active)
    db.session.commit()
    logger.info(f"Product {product.id} {'activated' if product.is_active else 'deactivated'}")
    return product


def list_products(search: Optional[str] = None, include_inactive: bool = False) -> List[Product]:
    query = Product.query
    if not include_inactive:
        query = query.filter_by(is_active=True)
    if search:
        query = query.filter(Product.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Product.name).all()


def phase_triggers(phase_id: int) -> List[PhaseTrigger]:
    return (PhaseTrigger.query.filter_by(phase_id=phase_id)
            .order_by(PhaseTrigger.trigger_time_seconds, PhaseTrigger.id).all())


def product_costing(product: Product) -> Dict[str, Any]:
    """Base recipe cost, cost per unit and the cost of each variant."""
    breakdown = costing_engine.product_cost_breakdown(product)
    variants = []
    for variant in product.variants:
        extra_lines = costing_engine.variant_extra_lines(variant)
        variants.append({
            'variant_id': variant.id,
            'name': variant.name,
            'extra_cost': costing_engine.recipe_cost(extra_lines),
            'cost_per_unit': costing_engine.variant_cost(breakdown.cost_per_unit, extra_lines),
        })
    data = breakdown.to_dict()
    data['product_id'] = product.id
    data['variants'] = variants
    return data
