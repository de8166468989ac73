"""Heuristic parsing of free-text meal descriptions."""

import re
from datetime import datetime

from macro_coach.domain.macros import estimate_nutrition
from macro_coach.domain.meals import (
    LOGGABLE_MEAL_TYPES,
    MEAL_TYPES,
    AlcoholInfo,
    MealItemFlags,
    MealItemQuantity,
    MealParseAudit,
    MealParseResult,
    StructuredMealItem,
    compute_totals,
    infer_confidence,
)
from macro_coach.domain.units import convert_to_ml, normalize_unit

_MEAL_WORD = r"(?:breakfast|lunch|dinner|snack)"
_TIME_WORD = r"(?:today|tonight|this\s+morning|this\s+afternoon|this\s+evening|earlier)"

# Applied in order; each strips conversational lead-in from the front.
_PREFIX_PATTERNS = (
    re.compile(r"^[^:\d]+:\s*"),
    re.compile(
        rf"^(?:for\s+|at\s+|during\s+|my\s+)?{_MEAL_WORD}(?:\s+{_TIME_WORD})?"
        r"\s*(?:was|is|=|,)?\s*",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:i\s+(?:had|ate|drank|was\s+eating|just\s+had|just\s+ate))\s*",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:today\s+)?(?:i\s+)?(?:just\s+|also\s+)?(?:consumed|enjoyed|grabbed)\s*",
        re.IGNORECASE,
    ),
)

_SEGMENT_SPLIT = re.compile(
    r"\s*(?:,|;|\+|&|\band\b|\bwith\b|\bplus\b)\s*", re.IGNORECASE
)
_SEGMENT_TRIM = re.compile(r"^(?:and|with|plus)\s+|[.!?]+$", re.IGNORECASE)

_QUANTITY_PATTERN = re.compile(
    r"(\d+\s*/\s*\d+|\d+(?:\.\d+)?)\s*"
    r"(cups?|c|tablespoons?|tbsps?|teaspoons?|tsps?|fl\.?\s?oz|oz_fl|ounces?|oz"
    r"|grams?|g|ml|servings?|packets?|pieces?|slices?|bottles?|pints?|cans?)\b",
    re.IGNORECASE,
)
_LEADING_QUANTITY_PATTERN = re.compile(r"^(\d+\s*/\s*\d+|\d+(?:\.\d+)?)\b")

_SIZE_WORDS = {
    "small": "small",
    "tiny": "small",
    "mini": "small",
    "medium": "medium",
    "regular": "medium",
    "large": "large",
    "big": "large",
    "huge": "large",
}
_SIZE_PATTERN = re.compile(r"\b(" + "|".join(_SIZE_WORDS) + r")\b", re.IGNORECASE)
_LEADING_FILLER = re.compile(r"^(?:(?:a|an|some|the|of|my)\s+)+", re.IGNORECASE)
_LEADING_NUMBER = re.compile(r"^[0-9./\s]+")

_LIQUID_PATTERN = re.compile(
    r"\b(?:beer|lager|ale|ipa|stout|wine|juice|milk|coffee|soda|water|smoothie"
    r"|latte|tea|kombucha|shake)\b",
    re.IGNORECASE,
)
_ALCOHOL_PATTERN = re.compile(
    r"\b(?:beer|lager|ale|ipa|stout|wine|cider|whiskey|vodka|tequila|cocktail)\b",
    re.IGNORECASE,
)
_TYPICAL_ABV = (
    (re.compile(r"\bwine\b", re.IGNORECASE), 12.0),
    (re.compile(r"\b(?:whiskey|vodka|tequila)\b", re.IGNORECASE), 40.0),
    (re.compile(r"\b(?:beer|lager|ale|ipa|stout|cider)\b", re.IGNORECASE), 5.0),
)

_MEAL_TYPE_KEYWORDS = (
    ("breakfast", re.compile(r"\b(?:breakfast|brunch)\b", re.IGNORECASE)),
    ("lunch", re.compile(r"\blunch\b", re.IGNORECASE)),
    ("dinner", re.compile(r"\b(?:dinner|supper)\b", re.IGNORECASE)),
    ("snack", re.compile(r"\bsnack\b", re.IGNORECASE)),
)


def strip_conversational_prefixes(text: str) -> str:
    cleaned = text.strip()
    for pattern in _PREFIX_PATTERNS:
        cleaned = pattern.sub("", cleaned, count=1).strip()
    return cleaned


def segment_meal_text(text: str) -> list[str]:
    """Split a description into one segment per food or drink."""
    cleaned = strip_conversational_prefixes(text)
    segments = []
    for part in _SEGMENT_SPLIT.split(cleaned):
        part = _SEGMENT_TRIM.sub("", part.strip()).strip()
        if part:
            segments.append(part)
    return segments


def parse_quantity_value(raw: str) -> float:
    """Parse "2", "1.5" or "1/2"; anything unparseable counts as one."""
    if "/" in raw:
        numerator, _, denominator = raw.partition("/")
        try:
            value = float(numerator.strip()) / float(denominator.strip())
        except (ValueError, ZeroDivisionError):
            return 1.0
        return value
    try:
        return float(raw.strip())
    except ValueError:
        return 1.0


def is_liquid(text: str) -> bool:
    return bool(_LIQUID_PATTERN.search(text))


def extract_quantity(text: str) -> MealItemQuantity | None:
    match = _QUANTITY_PATTERN.search(text)
    if match:
        unit = normalize_unit(match.group(2))
        if unit == "oz" and is_liquid(text):
            unit = "oz_fl"
        return MealItemQuantity(
            value=parse_quantity_value(match.group(1)),
            unit=unit,
            display=match.group(0).strip(),
        )
    match = _LEADING_QUANTITY_PATTERN.search(text.strip())
    if match:
        return MealItemQuantity(
            value=parse_quantity_value(match.group(1)),
            unit=None,
            display=match.group(0).strip(),
        )
    return None


def detect_size_hint(text: str) -> str | None:
    match = _SIZE_PATTERN.search(text)
    if not match:
        return None
    return _SIZE_WORDS[match.group(1).lower()]


def derive_item_name(segment: str, quantity: MealItemQuantity | None) -> str:
    """Reduce a segment to the food name, dropping portion and size words."""
    name = segment
    if quantity is not None and quantity.display:
        name = name.replace(quantity.display, " ", 1)
    name = _SIZE_PATTERN.sub(" ", name)
    name = " ".join(name.split())
    name = _LEADING_FILLER.sub("", name)
    name = _LEADING_NUMBER.sub("", name)
    name = _LEADING_FILLER.sub("", name).strip()
    return name or segment.strip()


def detect_alcohol(text: str, quantity: MealItemQuantity | None) -> AlcoholInfo | None:
    if not _ALCOHOL_PATTERN.search(text):
        return None
    abv = next((pct for pattern, pct in _TYPICAL_ABV if pattern.search(text)), None)
    volume = convert_to_ml(quantity.value, quantity.unit) if quantity else None
    return AlcoholInfo(is_alcohol=True, abv_pct=abv, volume_ml=volume)


def infer_meal_type(text: str, now: datetime | None = None) -> str:
    """Meal type from explicit keywords, else from the hour of ``now``.

    ``now`` is read as wall-clock time; it defaults to the server local clock.
    """
    for meal_type, pattern in _MEAL_TYPE_KEYWORDS:
        if pattern.search(text):
            return meal_type
    hour = (now or datetime.now()).hour
    if hour < 11:
        return "breakfast"
    if hour < 15:
        return "lunch"
    if hour < 20:
        return "dinner"
    return "snack"


def normalize_meal_type(
    value: str | None, text: str = "", now: datetime | None = None
) -> str:
    if value:
        lowered = value.strip().lower()
        if lowered in MEAL_TYPES:
            return lowered
    return infer_meal_type(text, now)


def loggable_meal_type(
    value: str | None, text: str = "", now: datetime | None = None
) -> str:
    """Like ``normalize_meal_type`` but never "drink" or "unknown"."""
    meal_type = normalize_meal_type(value, text, now)
    if meal_type in LOGGABLE_MEAL_TYPES:
        return meal_type
    return infer_meal_type(text, now)


def build_heuristic_item(segment: str) -> StructuredMealItem:
    quantity = extract_quantity(segment)
    return StructuredMealItem(
        raw_text=segment,
        name=derive_item_name(segment, quantity),
        quantity=quantity or MealItemQuantity(),
        size_hint=detect_size_hint(segment),
        alcohol=detect_alcohol(segment, quantity),
        nutrition_estimate=estimate_nutrition(segment, quantity),
        flags=MealItemFlags(
            needs_lookup=True,
            needs_portion=quantity is None or quantity.value is None,
        ),
        confidence="medium",
    )


def heuristic_parse(
    text: str,
    meal_type_hint: str | None = None,
    now: datetime | None = None,
) -> MealParseResult:
    """Parse a meal description without any remote help."""
    cleaned = text.strip()
    segments = segment_meal_text(cleaned)
    if not segments and cleaned:
        segments = [cleaned]
    items = tuple(build_heuristic_item(segment) for segment in segments)
    meal_type = normalize_meal_type(meal_type_hint, cleaned, now)
    return MealParseResult(
        meal_type=meal_type,
        items=items,
        confidence=infer_confidence(items),
        audit=MealParseAudit(input_text=text, source="heuristic"),
        totals=compute_totals(items),
    )
