"""
Inventory Adjustment Service - Canonical Entry Point

Single source of truth for stock changes. Every change goes through
apply_stock_movement (or produce_compound_stock for compound mixes), which
writes the ledger row and the cached stock in one transaction.
"""

from ._compound_ops import produce_compound_stock
from ._core import apply_stock_movement, validate_movement
from ._validation import find_ledger_mismatches, ledger_stock, validate_stock_ledger_sync
from ...models.inventory import MOVE_TYPES

__all__ = [
    'apply_stock_movement',
    'produce_compound_stock',
    'ledger_stock',
    'validate_stock_ledger_sync',
    'find_ledger_mismatches',
    'validate_movement',
    'MOVE_TYPES',
]


def get_supported_operations():
    """Return list of all supported movement types"""
    return list(MOVE_TYPES)
