"""Ingredient consolidation across the batches of a production day."""

import logging
from typing import Dict, Iterable, List, Mapping

from ..unit_conversion import ConversionEngine
from .types import ConsolidatedIngredient, ConsolidationResult, RecipeLine

logger = logging.getLogger(__name__)


def _batch_fields(batch):
    if isinstance(batch, tuple):
        return batch[0], batch[1]
    return batch.product_id, getattr(batch, 'total_units', None) or getattr(batch, 'total_units_in_batch', 0)


def _quantity_in_usage_unit(line: RecipeLine):
    if not line.unit or line.unit == line.usage_unit:
        return float(line.quantity_per_unit)
    return ConversionEngine.try_convert(float(line.quantity_per_unit), line.unit, line.usage_unit)


def consolidate_ingredients(
    batches: Iterable,
    recipes_by_product: Mapping[int, List[RecipeLine]],
    stock_by_item: Mapping[int, float],
) -> ConsolidationResult:
    """Merge recipe needs of all batches into one record per inventory item.

    Needs are keyed by item id only, so products sharing an ingredient
    accumulate into the same record. Output keeps first-appearance order.
    """
    result = ConsolidationResult()
    by_item: Dict[int, ConsolidatedIngredient] = {}
    warned = set()

    for batch in batches:
        product_id, units = _batch_fields(batch)
        for line in recipes_by_product.get(product_id, []):
            per_unit = _quantity_in_usage_unit(line)
            if per_unit is None:
                key = (product_id, line.item_id)
                if key not in warned:
                    warned.add(key)
                    message = (f"Skipped {line.item_name}: recipe unit {line.unit!r} "
                               f"does not convert to {line.usage_unit!r} (product {product_id})")
                    logger.warning(message)
                    result.warnings.append(message)
                continue

            record = by_item.get(line.item_id)
            if record is None:
                record = ConsolidatedIngredient(
                    item_id=line.item_id,
                    item_name=line.item_name,
                    unit=line.usage_unit,
                )
                by_item[line.item_id] = record
                result.ingredients.append(record)
            record.total_needed += per_unit * units

    for record in result.ingredients:
        record.compare_with_stock(stock_by_item.get(record.item_id, 0.0))

    return result
