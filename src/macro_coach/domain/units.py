"""Portion unit vocabulary and conversions."""

from macro_coach.domain.rounding import round2

CANONICAL_UNITS = (
    "count",
    "slice",
    "cup",
    "oz_fl",
    "oz",
    "g",
    "ml",
    "tbsp",
    "tsp",
    "serving",
    "packet",
    "bottle",
    "pint",
    "can",
    "other",
)

_UNIT_ALIASES = {
    "c": "cup",
    "cup": "cup",
    "cups": "cup",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "tbsp": "tbsp",
    "tbsps": "tbsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tsp": "tsp",
    "tsps": "tsp",
    "ounce": "oz",
    "ounces": "oz",
    "oz": "oz",
    "oz_fl": "oz_fl",
    "fl oz": "oz_fl",
    "floz": "oz_fl",
    "fl_oz": "oz_fl",
    "fluid ounce": "oz_fl",
    "fluid ounces": "oz_fl",
    "g": "g",
    "gram": "g",
    "grams": "g",
    "ml": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "serving": "serving",
    "servings": "serving",
    "packet": "packet",
    "packets": "packet",
    "piece": "count",
    "pieces": "count",
    "count": "count",
    "slice": "slice",
    "slices": "slice",
    "bottle": "bottle",
    "bottles": "bottle",
    "pint": "pint",
    "pints": "pint",
    "can": "can",
    "cans": "can",
    "other": "other",
}

# Units treated as interchangeable when scaling a reference portion.
_EQUIVALENT_UNITS = (
    frozenset({"count", "piece"}),
    frozenset({"packet", "serving"}),
    frozenset({"oz", "oz_fl"}),
)

_ML_PER_UNIT = {
    "ml": 1.0,
    "oz_fl": 29.5735,
    "cup": 240.0,
    "pint": 473.176,
}


def normalize_unit(raw: str | None) -> str | None:
    """Map a free-form unit token onto the canonical unit set.

    Returns None for empty input and "other" for anything unrecognised.
    Canonical values map to themselves.
    """
    if raw is None:
        return None
    token = " ".join(raw.strip().lower().replace(".", "").split())
    if not token:
        return None
    return _UNIT_ALIASES.get(token, "other")


def units_match(first: str, second: str) -> bool:
    if first == second:
        return True
    return any(first in group and second in group for group in _EQUIVALENT_UNITS)


def convert_to_ml(value: float | None, unit: str | None) -> float | None:
    """Convert a liquid portion to millilitres when the unit allows it."""
    if value is None or unit is None:
        return None
    factor = _ML_PER_UNIT.get(unit)
    if factor is None:
        return None
    return round2(value * factor)
