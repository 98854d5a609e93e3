import logging
from typing import Any, Dict, List, Optional

from ..extensions import db
from ..models import Client, PriceList, PriceListItem, Product
from . import costing_engine
from .exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def get_price_list(price_list_id: int) -> PriceList:
    price_list = db.session.get(PriceList, price_list_id)
    if not price_list:
        raise NotFoundError('PriceList', price_list_id)
    return price_list


def _item_rows(items: List[Dict[str, Any]]) -> List[PriceListItem]:
    rows = []
    seen = set()
    for entry in items or []:
        product_id = entry.get('product_id')
        if product_id is None or not db.session.get(Product, product_id):
            raise NotFoundError('Product', product_id)
        if product_id in seen:
            raise ValidationError("A product may appear once per price list", field='product_id',
                                  details={'product_id': product_id})
        seen.add(product_id)
        try:
            price = float(entry.get('price'))
        except (TypeError, ValueError):
            raise ValidationError("price must be a number", field='price')
        if price < 0:
            raise ValidationError("price cannot be negative", field='price')
        rows.append(PriceListItem(product_id=product_id, price=price))
    return rows


def create_price_list(name: str, description: Optional[str] = None,
                      items: Optional[List[Dict[str, Any]]] = None) -> PriceList:
    name = (name or '').strip()
    if not name:
        raise ValidationError("Price list name is required", field='name')
    if PriceList.query.filter_by(name=name).first():
        raise ConflictError(f"A price list named {name!r} already exists", {'field': 'name'})

    price_list = PriceList(name=name, description=description, is_active=True)
    price_list.items = _item_rows(items)
    db.session.add(price_list)
    db.session.commit()
    logger.info(f"Created price list {price_list.id} ({name}) with {len(price_list.items)} items")
    return price_list


def replace_price_list_items(price_list_id: int, items: List[Dict[str, Any]]) -> PriceList:
    price_list = get_price_list(price_list_id)
    rows = _item_rows(items)
    price_list.items.clear()
    db.session.flush()
    price_list.items.extend(rows)
    db.session.commit()
    logger.info(f"Replaced items of price list {price_list.id}: {len(rows)} products")
    return price_list


def toggle_price_list(price_list_id: int) -> PriceList:
    price_list = get_price_list(price_list_id)
    price_list.is_active = not price_list.is_active
    db.session.commit()
    return price_list


def delete_price_list(price_list_id: int) -> None:
    price_list = get_price_list(price_list_id)
    if price_list.clients:
        raise ConflictError("Price list is assigned to clients",
                            {'price_list_id': price_list.id, 'client_ids': [c.id for c in price_list.clients]})
    db.session.delete(price_list)
    db.session.commit()
    logger.info(f"Deleted price list {price_list_id}")


def list_price_lists(include_inactive: bool = True) -> List[PriceList]:
    query = PriceList.query
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(PriceList.name).all()


def get_product_price_in_list(price_list_id: int, product_id: int) -> Optional[float]:
    entry = PriceListItem.query.filter_by(price_list_id=price_list_id, product_id=product_id).first()
    return entry.price if entry else None


def resolve_client_price(client: Client, product_id: int) -> Optional[float]:
    """Price from the client's active list, or None for the general pricing path."""
    if client is None or client.price_list is None or not client.price_list.is_active:
        return None
    return get_product_price_in_list(client.price_list_id, product_id)


def price_list_margins(price_list: PriceList) -> List[Dict[str, Any]]:
    rows = []
    for entry in price_list.items:
        cost = costing_engine.product_cost_breakdown(entry.product).cost_per_unit
        rows.append({
            'product_id': entry.product_id,
            'product_name': entry.product.name,
            'price': entry.price,
            'cost_per_unit': cost,
            'margin_percent': costing_engine.margin(entry.price, cost),
        })
    return rows
