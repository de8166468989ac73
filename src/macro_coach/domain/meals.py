"""Domain models for structured meal parsing."""

from dataclasses import dataclass, field

from macro_coach.domain.rounding import round2

PARSER_VERSION = "meal-parser/1.2"

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack", "drink", "unknown")
LOGGABLE_MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
CONFIDENCE_LEVELS = ("low", "medium", "high")
SIZE_HINTS = ("small", "medium", "large")
NUTRITION_SOURCES = ("usda", "brand", "heuristic", "user", "llm")
LOOKUP_STATUSES = ("pending", "matched", "ambiguous")

_NUTRIENT_FIELDS = ("calories_kcal", "protein_g", "carbs_g", "fat_g", "fiber_g")


@dataclass(frozen=True)
class NutritionEstimate:
    """Nutrient estimate for an item or a whole meal."""

    calories_kcal: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    fiber_g: float | None = None
    source: str | None = None
    confidence: float | None = None


@dataclass(frozen=True)
class MealItemQuantity:
    """Portion as stated by the user, with a canonical unit when known."""

    value: float | None = None
    unit: str | None = None
    display: str | None = None

    def __post_init__(self) -> None:
        if self.value is not None and self.value < 0:
            raise ValueError("quantity value must not be negative")


@dataclass(frozen=True)
class AlcoholInfo:
    is_alcohol: bool
    abv_pct: float | None = None
    volume_ml: float | None = None


@dataclass(frozen=True)
class LookupCandidate:
    provider: str
    id: str
    name: str


@dataclass(frozen=True)
class MealItemLookup:
    status: str = "pending"
    candidates: tuple[LookupCandidate, ...] = ()


@dataclass(frozen=True)
class MealItemFlags:
    needs_lookup: bool = False
    needs_portion: bool = False


@dataclass(frozen=True)
class StructuredMealItem:
    """One food or drink extracted from a meal description."""

    raw_text: str
    name: str
    quantity: MealItemQuantity = field(default_factory=MealItemQuantity)
    brand: str | None = None
    preparation: tuple[str, ...] = ()
    size_hint: str | None = None
    alcohol: AlcoholInfo | None = None
    nutrition_estimate: NutritionEstimate | None = None
    lookup: MealItemLookup = field(default_factory=MealItemLookup)
    flags: MealItemFlags = field(default_factory=MealItemFlags)
    confidence: str = "medium"

    def __post_init__(self) -> None:
        if not self.raw_text.strip():
            raise ValueError("raw_text must not be empty")
        if not self.name.strip():
            raise ValueError("name must not be empty")


@dataclass(frozen=True)
class MealParseAudit:
    input_text: str
    source: str
    version: str = PARSER_VERSION
    message_id: str | None = None
    parsed_by: str | None = None


@dataclass(frozen=True)
class MealParseResult:
    """Structured result of parsing a free-text meal description."""

    meal_type: str
    items: tuple[StructuredMealItem, ...]
    confidence: str
    audit: MealParseAudit
    context_note: str | None = None
    totals: NutritionEstimate | None = None


def has_nutrients(estimate: NutritionEstimate | None) -> bool:
    return estimate is not None and any(
        getattr(estimate, name) is not None for name in _NUTRIENT_FIELDS
    )


def merge_nutrition_estimates(
    existing: NutritionEstimate | None,
    incoming: NutritionEstimate | None,
) -> NutritionEstimate | None:
    """Overlay incoming values on an existing estimate, field by field.

    A field is taken from ``incoming`` only when it is present there, so
    known values are never erased by a partial update.
    """
    if incoming is None:
        return existing
    if existing is None:
        return incoming
    values: dict[str, object] = {}
    for name in (*_NUTRIENT_FIELDS, "source", "confidence"):
        new_value = getattr(incoming, name)
        values[name] = new_value if new_value is not None else getattr(existing, name)
    return NutritionEstimate(**values)


def compute_totals(
    items: tuple[StructuredMealItem, ...] | list[StructuredMealItem],
) -> NutritionEstimate | None:
    """Sum item estimates per nutrient.

    A nutrient with no contributing item stays None; when every nutrient
    is None the meal has no totals at all.
    """
    sums: dict[str, float | None] = dict.fromkeys(_NUTRIENT_FIELDS)
    sources: list[str] = []
    confidences: list[float] = []
    for item in items:
        estimate = item.nutrition_estimate
        if estimate is None:
            continue
        for name in _NUTRIENT_FIELDS:
            value = getattr(estimate, name)
            if value is None:
                continue
            current = sums[name]
            sums[name] = value if current is None else current + value
        if estimate.source:
            sources.append(estimate.source)
        if estimate.confidence is not None:
            confidences.append(estimate.confidence)

    if all(value is None for value in sums.values()):
        return None
    return NutritionEstimate(
        **{
            name: round2(value) if value is not None else None
            for name, value in sums.items()
        },
        source=sources[0] if sources else None,
        confidence=(
            round2(sum(confidences) / len(confidences)) if confidences else None
        ),
    )


def infer_confidence(
    items: tuple[StructuredMealItem, ...] | list[StructuredMealItem],
) -> str:
    """Overall confidence for a parse that did not state one."""
    if any(item.flags.needs_lookup for item in items):
        return "medium"
    return "high"
