"""
Production Planning Types

Core data structures for batch planning and ingredient consolidation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class BatchDemand:
    """Units of one product to be produced in one batch."""
    product_id: int
    total_units: int


@dataclass(frozen=True)
class RecipeLine:
    """One recipe line as seen by the consolidator.

    ``quantity_per_unit`` is expressed in ``unit``; when ``unit`` is empty it
    is already in the item's ``usage_unit``.
    """
    item_id: int
    item_name: str
    usage_unit: str
    quantity_per_unit: float
    unit: Optional[str] = None


@dataclass
class ConsolidatedIngredient:
    """Total need of one inventory item across a set of batches"""
    item_id: int
    item_name: str
    unit: str
    total_needed: float = 0.0
    current_stock: float = 0.0
    missing: float = 0.0
    has_enough: bool = True

    def compare_with_stock(self, current_stock) -> None:
        self.current_stock = float(current_stock or 0.0)
        self.missing = max(0.0, self.total_needed - self.current_stock)
        self.has_enough = self.current_stock >= self.total_needed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'item_id': self.item_id,
            'item_name': self.item_name,
            'unit': self.unit,
            'total_needed': self.total_needed,
            'current_stock': self.current_stock,
            'missing': self.missing,
            'has_enough': self.has_enough,
        }


@dataclass
class ConsolidationResult:
    """List-like consolidation output plus the lines that could not be used."""
    ingredients: List[ConsolidatedIngredient] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[ConsolidatedIngredient]:
        return iter(self.ingredients)

    def __len__(self) -> int:
        return len(self.ingredients)

    def __getitem__(self, index):
        return self.ingredients[index]

    @property
    def shortages(self) -> List[ConsolidatedIngredient]:
        return [ingredient for ingredient in self.ingredients if not ingredient.has_enough]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ingredients': [ingredient.to_dict() for ingredient in self.ingredients],
            'warnings': list(self.warnings),
            'shortage_count': len(self.shortages),
        }


@dataclass
class ProductBatchPlan:
    """Batch split for one product of a production day"""
    product_id: int
    product_name: str
    total_units: int
    batch_size_units: int
    batches: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'total_units': self.total_units,
            'batch_size_units': self.batch_size_units,
            'batches': list(self.batches),
            'batch_count': len(self.batches),
        }
