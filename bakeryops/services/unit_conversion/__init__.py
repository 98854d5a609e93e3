"""
Unit Conversion Service Package

Converts quantities between kitchen units and prices ingredients per unit.
"""

from .unit_conversion import (
    ALL_UNITS,
    ConversionEngine,
    PIECE_UNITS,
    VOLUME_UNITS,
    WEIGHT_UNITS,
    are_compatible,
    convert,
    normalize_unit,
    try_convert,
    unit_cost,
)

__all__ = [
    'ConversionEngine',
    'ALL_UNITS',
    'WEIGHT_UNITS',
    'VOLUME_UNITS',
    'PIECE_UNITS',
    'are_compatible',
    'convert',
    'normalize_unit',
    'try_convert',
    'unit_cost',
]
