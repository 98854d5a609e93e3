import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models import InventoryItem, StockMovement
from ...models.inventory import MOVE_TYPES
from ..exceptions import NotFoundError, RejectedNegativeStock, ValidationError

logger = logging.getLogger(__name__)


def _locked_item(item_id: int) -> InventoryItem:
    """Load the item with a row lock so concurrent movements serialize on it."""
    item = (
        db.session.query(InventoryItem)
        .filter(InventoryItem.id == item_id)
        .with_for_update()
        .one_or_none()
    )
    if item is None:
        raise NotFoundError('InventoryItem', item_id)
    return item


def validate_movement(qty_change: float, move_type: str) -> float:
    if move_type not in MOVE_TYPES:
        raise ValidationError(f"Unknown movement type {move_type!r}", field='move_type',
                              details={'allowed': list(MOVE_TYPES)})
    try:
        qty_change = float(qty_change)
    except (TypeError, ValueError):
        raise ValidationError("qty_change must be a number", field='qty_change')
    if qty_change == 0:
        raise ValidationError("qty_change cannot be zero", field='qty_change')
    return qty_change


def post_movement(item: InventoryItem, qty_change: float, move_type: str,
                  notes: Optional[str] = None, created_by: Optional[str] = None) -> StockMovement:
    """Append a movement and update the cached stock inside the open transaction.

    The caller owns the transaction and must already hold the item lock.
    """
    current = float(item.current_stock or 0.0)
    new_stock = current + qty_change
    if new_stock < 0:
        logger.warning(f"Rejected movement on item {item.id}: stock {current} change {qty_change}")
        raise RejectedNegativeStock(item.id, current, qty_change)

    movement = StockMovement(
        item_id=item.id,
        qty_change=qty_change,
        move_type=move_type,
        stock_after=new_stock,
        notes=notes,
        created_by=created_by,
    )
    item.current_stock = new_stock
    db.session.add(movement)
    return movement


def apply_stock_movement(
    item_id: int,
    qty_change: float,
    move_type: str,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> StockMovement:
    """
    Canonical entry point for ALL stock changes.

    Inserts the ledger row and updates ``InventoryItem.current_stock`` in one
    transaction. A movement that would take stock below zero raises
    RejectedNegativeStock and leaves both untouched.
    """
    qty_change = validate_movement(qty_change, move_type)
    logger.info(f"STOCK MOVEMENT: item_id={item_id}, qty_change={qty_change}, move_type={move_type}")

    try:
        item = _locked_item(item_id)
        movement = post_movement(item, qty_change, move_type, notes, created_by)
        db.session.commit()
    except (RejectedNegativeStock, NotFoundError):
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        logger.error(f"Error applying stock movement to item {item_id}: {e}")
        db.session.rollback()
        raise

    return movement
