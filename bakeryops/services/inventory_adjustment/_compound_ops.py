"""Production of compound mixes (doughs, fillings) from their composition."""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models import StockMovement
from ..exceptions import BakeryOpsError, ValidationError
from ._core import _locked_item, post_movement

logger = logging.getLogger(__name__)


def produce_compound_stock(compound_item_id: int, quantity_produced: float,
                           notes: Optional[str] = None, created_by: Optional[str] = None) -> List[StockMovement]:
    """Consume the composition and credit the compound item, all or nothing.

    Returns the movements posted: one ``production_usage`` per composition
    line followed by the ``adjustment`` crediting the compound.
    """
    try:
        quantity_produced = float(quantity_produced)
    except (TypeError, ValueError):
        raise ValidationError("quantity_produced must be a number", field='quantity_produced')
    if quantity_produced <= 0:
        raise ValidationError("quantity_produced must be greater than zero", field='quantity_produced')

    logger.info(f"COMPOUND PRODUCTION: item_id={compound_item_id}, quantity={quantity_produced}")

    try:
        compound = _locked_item(compound_item_id)
        if not compound.is_compound or not compound.compositions:
            raise ValidationError(f"{compound.name} has no composition to produce from",
                                  field='compound_item_id')

        label = notes or f"Produced {quantity_produced:g} {compound.unit_usage} of {compound.name}"
        movements = []
        # Lock ingredients in id order so concurrent productions cannot deadlock
        for line in sorted(compound.compositions, key=lambda c: c.ingredient_item_id):
            ingredient = _locked_item(line.ingredient_item_id)
            movements.append(post_movement(
                ingredient,
                -line.quantity_needed * quantity_produced,
                'production_usage',
                label,
                created_by,
            ))
        movements.append(post_movement(compound, quantity_produced, 'adjustment', label, created_by))
        db.session.commit()
    except BakeryOpsError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        logger.error(f"Error producing compound item {compound_item_id}: {e}")
        db.session.rollback()
        raise

    return movements
