from .commercial import Client, Order, OrderItem, PriceList, PriceListItem
from .inventory import InventoryCategory, InventoryItem, ItemComposition, StockMovement
from .product import (
    PhaseTrigger,
    Product,
    ProductionPhase,
    ProductRecipe,
    ProductVariant,
    VariantIngredient,
)
from .production import BatchPhaseExecution, BatchTriggerLog, ProductionBatch, ProductionDay

__all__ = [
    'InventoryCategory',
    'InventoryItem',
    'ItemComposition',
    'StockMovement',
    'Product',
    'ProductRecipe',
    'ProductVariant',
    'VariantIngredient',
    'ProductionPhase',
    'PhaseTrigger',
    'PriceList',
    'PriceListItem',
    'Client',
    'Order',
    'OrderItem',
    'ProductionDay',
    'ProductionBatch',
    'BatchPhaseExecution',
    'BatchTriggerLog',
]
