"""Recipe, product and variant costing.

Synopsis:
Price recipe lines from inventory purchase data, sum them into recipe and
variant costs, and spread a recipe over the product's batch size.

Glossary:
- Purchase unit: Unit the item is bought and priced in (``cost_per_purchase_unit``).
- Usage unit: Unit the kitchen measures the item in.
- Pack size: Usage units contained in one purchase unit
  (``quantity_per_purchase_unit``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import IncompatibleUnitsError
from .unit_conversion import ConversionEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngredientLine:
    quantity: float
    unit: Optional[str]
    cost_per_purchase_unit: float
    purchase_unit: str
    quantity_per_purchase_unit: float = 1.0
    usage_unit: Optional[str] = None
    item_id: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def from_item(cls, item: Any, quantity: float, unit: Optional[str]) -> "IngredientLine":
        """Build a line from an ``InventoryItem``-like object."""
        return cls(
            quantity=float(quantity or 0.0),
            unit=unit,
            cost_per_purchase_unit=float(getattr(item, "cost_per_purchase_unit", 0.0) or 0.0),
            purchase_unit=getattr(item, "unit_purchase", None),
            quantity_per_purchase_unit=float(getattr(item, "quantity_per_purchase_unit", 1.0) or 0.0),
            usage_unit=getattr(item, "unit_usage", None),
            item_id=getattr(item, "id", None),
            name=getattr(item, "name", None),
        )


@dataclass
class LineCost:
    item_id: Optional[int]
    name: Optional[str]
    quantity: float
    unit: Optional[str]
    cost: Optional[float]

    @property
    def skipped(self) -> bool:
        return self.cost is None


@dataclass
class CostBreakdown:
    """Line-by-line cost of a per-unit recipe and of one full batch."""

    lines: List[LineCost] = field(default_factory=list)
    unit_recipe_cost: float = 0.0
    batch_size_units: int = 1
    batch_total_cost: float = 0.0
    cost_per_unit: float = 0.0

    @property
    def skipped_lines(self) -> List[LineCost]:
        return [line for line in self.lines if line.skipped]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unit_recipe_cost": self.unit_recipe_cost,
            "batch_size_units": self.batch_size_units,
            "batch_total_cost": self.batch_total_cost,
            "cost_per_unit": self.cost_per_unit,
            "lines": [
                {
                    "item_id": line.item_id,
                    "name": line.name,
                    "quantity": line.quantity,
                    "unit": line.unit,
                    "cost": line.cost,
                }
                for line in self.lines
            ],
            "skipped_item_ids": [line.item_id for line in self.skipped_lines],
        }


def _pack_size(value: float) -> float:
    value = float(value or 0.0)
    return value if value > 0 else 1.0


def usage_units_per_purchase_unit(purchase_unit: str, usage_unit: Optional[str],
                                  stored_pack_size: float) -> float:
    """Pack size of an item, in usage units per purchase unit.

    Convertible unit pairs (kg bought, g used) fix the pack size through
    their conversion factor; the stored value only applies to packages
    such as a 44 kg "bulto" measured in grams.
    """
    if usage_unit and ConversionEngine.are_compatible(purchase_unit, usage_unit):
        return ConversionEngine.convert(1, purchase_unit, usage_unit)
    return _pack_size(stored_pack_size)


def line_cost(line: IngredientLine) -> float:
    """Cost of a single recipe line.

    A line in the usage unit is priced per usage unit (purchase cost over
    pack size). A line in, or convertible to, the purchase unit is converted
    into purchase units. Any other unit is converted to the usage unit first.
    Raises IncompatibleUnitsError when none of these apply.
    """
    usage_unit = line.usage_unit or line.purchase_unit
    unit = line.unit or usage_unit
    quantity = float(line.quantity)
    cost = float(line.cost_per_purchase_unit)
    pack = usage_units_per_purchase_unit(line.purchase_unit, usage_unit, line.quantity_per_purchase_unit)

    if unit == usage_unit:
        return quantity * cost / pack

    if ConversionEngine.are_compatible(unit, line.purchase_unit):
        return ConversionEngine.convert(quantity, unit, line.purchase_unit) * cost

    quantity_in_usage_unit = ConversionEngine.convert(quantity, unit, usage_unit)
    return quantity_in_usage_unit * cost / pack


def try_line_cost(line: IngredientLine) -> Optional[float]:
    try:
        return line_cost(line)
    except IncompatibleUnitsError:
        logger.warning(
            "Skipping unconvertible recipe line for costing: item_id=%s unit=%s purchase_unit=%s",
            line.item_id,
            line.unit,
            line.purchase_unit,
        )
        return None


def recipe_cost(lines: Iterable[IngredientLine]) -> float:
    """Sum of line costs; unconvertible lines contribute nothing."""
    total = 0.0
    for line in lines:
        cost = try_line_cost(line)
        if cost is not None:
            total += cost
    return total


def variant_cost(base_cost: float, extra_lines: Iterable[IngredientLine]) -> float:
    return float(base_cost) + recipe_cost(extra_lines)


def cost_per_product_unit(total_recipe_cost: float, batch_size_units: int) -> float:
    return float(total_recipe_cost) / max(int(batch_size_units or 0), 1)


def batch_cost(cost_per_unit: float, units: int) -> float:
    return float(cost_per_unit) * int(units)


def margin(price: float, cost: float) -> float:
    """Markup over cost as a percentage."""
    price = float(price or 0.0)
    cost = float(cost or 0.0)
    if cost > 0:
        return (price - cost) / cost * 100
    return 0.0


def breakdown(lines: Iterable[IngredientLine], batch_size_units: int = 1) -> CostBreakdown:
    """Cost per-unit recipe lines and scale them to one batch."""
    result = CostBreakdown(batch_size_units=max(int(batch_size_units or 0), 1))
    for line in lines:
        cost = try_line_cost(line)
        result.lines.append(LineCost(line.item_id, line.name, line.quantity, line.unit, cost))
        if cost is not None:
            result.unit_recipe_cost += cost
    result.batch_total_cost = batch_cost(result.unit_recipe_cost, result.batch_size_units)
    result.cost_per_unit = cost_per_product_unit(result.batch_total_cost, result.batch_size_units)
    return result


def product_recipe_lines(product: Any) -> List[IngredientLine]:
    return [
        IngredientLine.from_item(recipe.inventory_item, recipe.quantity, recipe.unit)
        for recipe in product.recipes
        if recipe.inventory_item is not None
    ]


def variant_extra_lines(variant: Any) -> List[IngredientLine]:
    return [
        IngredientLine.from_item(extra.inventory_item, extra.quantity, extra.unit)
        for extra in variant.extra_ingredients
        if extra.inventory_item is not None
    ]


def product_cost_breakdown(product: Any) -> CostBreakdown:
    """Cost a persisted ``Product`` from its recipe lines."""
    return breakdown(product_recipe_lines(product), product.batch_size_units)
