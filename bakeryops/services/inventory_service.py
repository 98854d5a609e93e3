"""Inventory items, categories and compound compositions."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..extensions import db
from ..models import (
    InventoryCategory,
    InventoryItem,
    ItemComposition,
    ProductRecipe,
    VariantIngredient,
)
from .exceptions import (
    CompositionCycleError,
    ConflictError,
    NotFoundError,
    ReferencedItemError,
    ValidationError,
)
from .unit_conversion import ConversionEngine, normalize_unit

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    ('Harinas', '#d4a373'),
    ('Lácteos', '#a8dadc'),
    ('Azúcares', '#f1faee'),
    ('Grasas', '#e9c46a'),
    ('Levaduras', '#84a59d'),
    ('Rellenos', '#e76f51'),
    ('Empaques', '#adb5bd'),
)

_ITEM_FIELDS = (
    'name', 'category_id', 'unit_purchase', 'unit_usage', 'cost_per_purchase_unit',
    'quantity_per_purchase_unit', 'min_stock_threshold', 'is_active',
)


def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if not item:
        raise NotFoundError('InventoryItem', item_id)
    return item


def _clean_item_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    cleaned = {key: data[key] for key in _ITEM_FIELDS if key in data}

    if not partial or 'name' in cleaned:
        name = (cleaned.get('name') or '').strip()
        if not name:
            raise ValidationError("Item name is required", field='name')
        cleaned['name'] = name

    for unit_field in ('unit_purchase', 'unit_usage'):
        if unit_field in cleaned:
            unit = normalize_unit(cleaned[unit_field])
            if not ConversionEngine.is_known_unit(unit):
                raise ValidationError(f"Unknown unit {cleaned[unit_field]!r}", field=unit_field)
            cleaned[unit_field] = unit

    for number_field in ('cost_per_purchase_unit', 'quantity_per_purchase_unit', 'min_stock_threshold'):
        if number_field in cleaned:
            try:
                cleaned[number_field] = float(cleaned[number_field])
            except (TypeError, ValueError):
                raise ValidationError(f"{number_field} must be a number", field=number_field)

    if cleaned.get('cost_per_purchase_unit', 0) < 0:
        raise ValidationError("Cost cannot be negative", field='cost_per_purchase_unit')
    if 'quantity_per_purchase_unit' in cleaned and cleaned['quantity_per_purchase_unit'] <= 0:
        raise ValidationError("Quantity per purchase unit must be greater than zero",
                              field='quantity_per_purchase_unit')
    if cleaned.get('min_stock_threshold', 0) < 0:
        raise ValidationError("Minimum stock cannot be negative", field='min_stock_threshold')

    if cleaned.get('category_id') is not None and not db.session.get(InventoryCategory, cleaned['category_id']):
        raise NotFoundError('InventoryCategory', cleaned['category_id'])
    return cleaned


def _apply_pack_size(cleaned: Dict[str, Any], item: Optional[InventoryItem] = None) -> None:
    """Fix the pack size of convertible unit pairs to their conversion factor."""
    purchase_unit = cleaned.get('unit_purchase', item.unit_purchase if item else 'kg')
    usage_unit = cleaned.get('unit_usage', item.unit_usage if item else 'g')
    if not ConversionEngine.are_compatible(purchase_unit, usage_unit):
        return
    derived = ConversionEngine.convert(1, purchase_unit, usage_unit)
    supplied = cleaned.get('quantity_per_purchase_unit')
    if supplied is not None and abs(supplied - derived) > 1e-9 * max(derived, 1.0):
        raise ValidationError(
            f"One {purchase_unit} always holds {derived:g} {usage_unit}",
            field='quantity_per_purchase_unit',
        )
    cleaned['quantity_per_purchase_unit'] = derived


def create_inventory_item(data: Dict[str, Any]) -> InventoryItem:
    """Create an item with zero stock; stock only enters through movements."""
    cleaned = _clean_item_data(data)
    _apply_pack_size(cleaned)
    if InventoryItem.query.filter_by(name=cleaned['name']).first():
        raise ConflictError(f"An item named {cleaned['name']!r} already exists", {'field': 'name'})

    item = InventoryItem(current_stock=0.0, **cleaned)
    db.session.add(item)
    db.session.commit()
    logger.info(f"Created inventory item {item.id} ({item.name})")
    return item


def update_inventory_item(item_id: int, data: Dict[str, Any]) -> InventoryItem:
    item = get_item(item_id)
    cleaned = _clean_item_data(data, partial=True)
    if {'unit_purchase', 'unit_usage', 'quantity_per_purchase_unit'} & cleaned.keys():
        _apply_pack_size(cleaned, item)
    if 'name' in cleaned:
        clash = InventoryItem.query.filter(InventoryItem.name == cleaned['name'],
                                           InventoryItem.id != item.id).first()
        if clash:
            raise ConflictError(f"An item named {cleaned['name']!r} already exists", {'field': 'name'})
    for key, value in cleaned.items():
        setattr(item, key, value)
    db.session.commit()
    logger.info(f"Updated inventory item {item.id}: {sorted(cleaned)}")
    return item


def list_inventory_items(category_id: Optional[int] = None, search: Optional[str] = None,
                         include_inactive: bool = False) -> List[InventoryItem]:
    query = InventoryItem.query
    if not include_inactive:
        query = query.filter_by(is_active=True)
    if category_id:
        query = query.filter_by(category_id=category_id)
    if search:
        query = query.filter(InventoryItem.name.ilike(f"%{search.strip()}%"))
    return query.order_by(InventoryItem.name).all()


def list_low_stock_items() -> List[InventoryItem]:
    return (
        InventoryItem.query
        .filter(InventoryItem.is_active.is_(True))
        .filter(InventoryItem.current_stock < InventoryItem.min_stock_threshold)
        .order_by(InventoryItem.name)
        .all()
    )


def stock_status(item: InventoryItem) -> str:
    stock = float(item.current_stock or 0.0)
    threshold = float(item.min_stock_threshold or 0.0)
    if stock <= 0:
        return 'out'
    if stock < threshold * 0.5:
        return 'critical'
    if stock < threshold:
        return 'low'
    return 'ok'


def item_references(item_id: int) -> Dict[str, int]:
    references = {
        'product_recipes': ProductRecipe.query.filter_by(inventory_item_id=item_id).count(),
        'variant_ingredients': VariantIngredient.query.filter_by(inventory_item_id=item_id).count(),
        'compositions': ItemComposition.query.filter_by(ingredient_item_id=item_id).count(),
    }
    return {key: count for key, count in references.items() if count}


def delete_inventory_item(item_id: int) -> None:
    item = get_item(item_id)
    references = item_references(item_id)
    if references:
        raise ReferencedItemError(item_id, references)
    db.session.delete(item)
    db.session.commit()
    logger.info(f"Deleted inventory item {item_id}")


def _composition_graph() -> Dict[int, List[int]]:
    graph: Dict[int, List[int]] = {}
    for parent_id, ingredient_id in db.session.query(ItemComposition.parent_item_id,
                                                     ItemComposition.ingredient_item_id):
        graph.setdefault(parent_id, []).append(ingredient_id)
    return graph


def find_composition_cycle(parent_id: int, ingredient_ids: Iterable[int]) -> Optional[List[int]]:
    """Return the path back to ``parent_id`` if the new lines would close a loop."""
    graph = _composition_graph()
    graph[parent_id] = list(ingredient_ids)

    visited = set()
    stack = [(ingredient_id, [parent_id, ingredient_id]) for ingredient_id in graph[parent_id]]
    while stack:
        node, path = stack.pop()
        if node == parent_id:
            return path
        if node in visited:
            continue
        visited.add(node)
        for child in graph.get(node, []):
            stack.append((child, path + [child]))
    return None


def set_item_compositions(parent_id: int, lines: List[Dict[str, Any]]) -> InventoryItem:
    """Replace the ordered composition of a compound item.

    Each line is ``{'ingredient_item_id': int, 'quantity_needed': float}``
    expressed per usage unit of the parent.
    """
    parent = get_item(parent_id)

    ingredient_ids = []
    cleaned = []
    for position, line in enumerate(lines):
        ingredient_id = line.get('ingredient_item_id')
        if ingredient_id == parent_id:
            raise CompositionCycleError(parent_id, [parent_id, parent_id])
        get_item(ingredient_id)
        if ingredient_id in ingredient_ids:
            raise ValidationError("Each ingredient may appear once in a composition",
                                  field='ingredient_item_id', details={'ingredient_item_id': ingredient_id})
        try:
            quantity = float(line.get('quantity_needed'))
        except (TypeError, ValueError):
            raise ValidationError("quantity_needed must be a number", field='quantity_needed')
        if quantity <= 0:
            raise ValidationError("quantity_needed must be greater than zero", field='quantity_needed')
        ingredient_ids.append(ingredient_id)
        cleaned.append(ItemComposition(ingredient_item_id=ingredient_id, quantity_needed=quantity,
                                       position=position))

    cycle = find_composition_cycle(parent_id, ingredient_ids)
    if cycle:
        raise CompositionCycleError(parent_id, cycle)

    parent.compositions.clear()
    db.session.flush()
    parent.compositions.extend(cleaned)
    parent.is_compound = bool(cleaned)
    db.session.commit()
    logger.info(f"Set {len(cleaned)} composition lines on item {parent_id}")
    return parent


def list_categories() -> List[InventoryCategory]:
    return InventoryCategory.query.order_by(InventoryCategory.name).all()


def create_category(name: str, color: Optional[str] = None, description: Optional[str] = None) -> InventoryCategory:
    name = (name or '').strip()
    if not name:
        raise ValidationError("Category name is required", field='name')
    if InventoryCategory.query.filter_by(name=name).first():
        raise ConflictError(f"Category {name!r} already exists", {'field': 'name'})
    category = InventoryCategory(name=name, color=color, description=description)
    db.session.add(category)
    db.session.commit()
    return category


def seed_default_categories() -> int:
    created = 0
    for name, color in DEFAULT_CATEGORIES:
        if not InventoryCategory.query.filter_by(name=name).first():
            db.session.add(InventoryCategory(name=name, color=color))
            created += 1
    db.session.commit()
    return created
