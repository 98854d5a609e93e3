"""
Production Planning Service Package

Turns a production day's orders into batches and ingredient requirements:
- Batch splitting by product batch size
- Demand aggregation across orders
- Ingredient consolidation against current stock
- Production day lifecycle (draft → published → closed)
"""

from ._batch_planner import aggregate_product_demand, batch_count, plan_batches
from ._consolidation import consolidate_ingredients
from ._core import (
    calculate_and_create_batches,
    close_production_day,
    consolidate_day_ingredients,
    create_production_day,
    get_production_day,
    list_production_days,
    preview_day_batches,
    publish_production_day,
)
from .types import (
    BatchDemand,
    ConsolidatedIngredient,
    ConsolidationResult,
    ProductBatchPlan,
    RecipeLine,
)

# Main public interface
__all__ = [
    'plan_batches',
    'batch_count',
    'aggregate_product_demand',
    'consolidate_ingredients',
    'create_production_day',
    'get_production_day',
    'list_production_days',
    'preview_day_batches',
    'calculate_and_create_batches',
    'consolidate_day_ingredients',
    'publish_production_day',
    'close_production_day',
    'BatchDemand',
    'RecipeLine',
    'ConsolidatedIngredient',
    'ConsolidationResult',
    'ProductBatchPlan',
]
