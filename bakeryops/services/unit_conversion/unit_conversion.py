import logging
from decimal import Decimal, ROUND_HALF_UP

from ..exceptions import IncompatibleUnitsError

logger = logging.getLogger(__name__)

WEIGHT_UNITS = ('kg', 'g', 'mg')
VOLUME_UNITS = ('L', 'ml')
PIECE_UNITS = ('pz', 'bulto', 'caja', 'saco')
ALL_UNITS = WEIGHT_UNITS + VOLUME_UNITS + PIECE_UNITS

# Multipliers to the dimension base: kg for weight, L for volume.
CONVERSION_FACTORS = {
    'kg': 1.0,
    'g': 0.001,
    'mg': 0.000001,
    'L': 1.0,
    'ml': 0.001,
    'pz': 1.0,
    'bulto': 1.0,
    'caja': 1.0,
    'saco': 1.0,
}

UNIT_LABELS = {
    'kg': ('Kilogramos (kg)', 'weight'),
    'g': ('Gramos (g)', 'weight'),
    'mg': ('Miligramos (mg)', 'weight'),
    'L': ('Litros (L)', 'volume'),
    'ml': ('Mililitros (ml)', 'volume'),
    'pz': ('Piezas (pz)', 'piece'),
    'bulto': ('Bulto', 'package'),
    'caja': ('Caja', 'package'),
    'saco': ('Saco', 'package'),
}

_ALIASES = {
    'l': 'L',
    'lt': 'L',
    'kgs': 'kg',
    'gr': 'g',
    'pza': 'pz',
    'pieza': 'pz',
}


def normalize_unit(unit):
    """Return the canonical spelling of ``unit`` or None when it is unknown."""
    if unit is None:
        return None
    raw = str(unit).strip()
    if raw in CONVERSION_FACTORS:
        return raw
    return _ALIASES.get(raw.lower(), raw.lower() if raw.lower() in CONVERSION_FACTORS else None)


def _dimension(unit):
    if unit in WEIGHT_UNITS:
        return 'weight'
    if unit in VOLUME_UNITS:
        return 'volume'
    # each piece unit is its own group
    return f'piece:{unit}'


class ConversionEngine:
    """Fixed-factor conversion between kitchen units.

    Weight and volume units convert within their own group through the group
    base. Piece and package units never convert to each other.
    """

    @staticmethod
    def round_value(value, decimals=3):
        """Round value with protection against floating point precision issues"""
        if value is None:
            return None
        decimal_value = Decimal(str(value))
        rounded_decimal = decimal_value.quantize(Decimal('0.' + '0' * decimals), rounding=ROUND_HALF_UP)
        return float(rounded_decimal)

    @staticmethod
    def is_known_unit(unit):
        return normalize_unit(unit) is not None

    @staticmethod
    def are_compatible(unit_a, unit_b):
        a = normalize_unit(unit_a)
        b = normalize_unit(unit_b)
        if a is None or b is None:
            return False
        return _dimension(a) == _dimension(b)

    @staticmethod
    def convert(quantity, from_unit, to_unit):
        """Convert ``quantity`` between compatible units.

        Raises IncompatibleUnitsError for unknown units or different groups.
        """
        src = normalize_unit(from_unit)
        dst = normalize_unit(to_unit)
        if src is None or dst is None or _dimension(src) != _dimension(dst):
            raise IncompatibleUnitsError(str(from_unit), str(to_unit))
        quantity = float(quantity)
        if src == dst:
            return quantity
        base_amount = quantity * CONVERSION_FACTORS[src]
        return base_amount / CONVERSION_FACTORS[dst]

    @staticmethod
    def try_convert(quantity, from_unit, to_unit):
        """Nullable form of :meth:`convert` for callers that skip bad lines."""
        try:
            return ConversionEngine.convert(quantity, from_unit, to_unit)
        except IncompatibleUnitsError:
            logger.debug("No conversion from %s to %s", from_unit, to_unit)
            return None

    @staticmethod
    def unit_cost(purchase_cost, purchase_unit, target_unit):
        """Cost of one ``target_unit`` when one ``purchase_unit`` costs ``purchase_cost``."""
        targets_per_purchase_unit = ConversionEngine.convert(1, purchase_unit, target_unit)
        return float(purchase_cost) / targets_per_purchase_unit

    @staticmethod
    def compatible_units(unit):
        canonical = normalize_unit(unit)
        if canonical in WEIGHT_UNITS:
            return list(WEIGHT_UNITS)
        if canonical in VOLUME_UNITS:
            return list(VOLUME_UNITS)
        return [canonical] if canonical else []

    @staticmethod
    def format_quantity(quantity, unit):
        rounded = ConversionEngine.round_value(quantity)
        text = f"{rounded:f}".rstrip('0').rstrip('.')
        return f"{text} {unit}"

    @staticmethod
    def unit_catalog():
        return [
            {'value': unit, 'label': UNIT_LABELS[unit][0], 'group': UNIT_LABELS[unit][1]}
            for unit in ALL_UNITS
        ]


are_compatible = ConversionEngine.are_compatible
convert = ConversionEngine.convert
try_convert = ConversionEngine.try_convert
unit_cost = ConversionEngine.unit_cost
