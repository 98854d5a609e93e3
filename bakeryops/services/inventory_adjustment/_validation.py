import logging

from sqlalchemy import func

from ...extensions import db
from ...models import InventoryItem, StockMovement

logger = logging.getLogger(__name__)

TOLERANCE = 0.001


def ledger_stock(item_id):
    """Stock derived from the movement ledger alone."""
    total = (
        db.session.query(func.coalesce(func.sum(StockMovement.qty_change), 0.0))
        .filter(StockMovement.item_id == item_id)
        .scalar()
    )
    return float(total or 0.0)


def validate_stock_ledger_sync(item_id):
    """Validate that the cached stock matches the ledger total.

    Returns ``(is_valid, error_message, cached_stock, ledger_total)``.
    """
    item = db.session.get(InventoryItem, item_id)
    if not item:
        return False, "Item not found", 0, 0

    cached = float(item.current_stock or 0.0)
    derived = ledger_stock(item_id)

    if abs(cached - derived) >= TOLERANCE:
        logger.error(f"STOCK LEDGER MISMATCH for item {item_id} ({item.name}):")
        logger.error(f"  Cached stock: {cached}")
        logger.error(f"  Ledger total: {derived}")
        error_msg = f"Ledger sync error: stock={cached}, ledger_total={derived}, diff={abs(cached - derived)}"
        return False, error_msg, cached, derived

    return True, None, cached, derived


def find_ledger_mismatches():
    results = []
    for item in InventoryItem.query.order_by(InventoryItem.id).all():
        is_valid, error, cached, derived = validate_stock_ledger_sync(item.id)
        if not is_valid:
            results.append({'item_id': item.id, 'name': item.name, 'cached': cached,
                            'ledger_total': derived, 'error': error})
    return results
