"""Validation models for JSON returned by the language model."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

ConfidenceLevel = Literal["low", "medium", "high"]
NutritionSource = Literal["usda", "brand", "heuristic", "user", "llm"]


class NutritionPayload(BaseModel):
    calories_kcal: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    fiber_g: float | None = None
    source: str | None = None
    confidence: float | None = None


class QuantityPayload(BaseModel):
    value: float | None = None
    unit: str | None = None
    display: str | None = None


class AlcoholPayload(BaseModel):
    is_alcohol: bool
    abv_pct: float | None = None
    volume_ml: float | None = None


class LookupCandidatePayload(BaseModel):
    provider: str
    id: str
    name: str


class LookupPayload(BaseModel):
    status: Literal["pending", "matched", "ambiguous"] = "pending"
    candidates: list[LookupCandidatePayload] = Field(default_factory=list)


class FlagsPayload(BaseModel):
    needs_lookup: bool | None = None
    needs_portion: bool | None = None


class MealItemPayload(BaseModel):
    """Single item in a structured meal extraction."""

    raw_text: str = Field(min_length=1)
    name: str = Field(min_length=1)
    brand: str | None = None
    preparation: list[str] = Field(default_factory=list)
    quantity: QuantityPayload = Field(default_factory=QuantityPayload)
    size_hint: Literal["small", "medium", "large"] | None = None
    alcohol: AlcoholPayload | None = None
    nutrition_estimate: NutritionPayload | None = None
    lookup: LookupPayload | None = None
    flags: FlagsPayload | None = None
    confidence: ConfidenceLevel | None = None


class AuditPayload(BaseModel):
    message_id: str | None = None
    parsed_by: str | None = None
    version: str | None = None


class MealParsePayload(BaseModel):
    """Structured meal extraction; ``mealType`` is accepted as an alias."""

    model_config = ConfigDict(populate_by_name=True)

    meal_type: str | None = None
    meal_type_alias: str | None = Field(default=None, alias="mealType")
    context_note: str | None = None
    items: list[MealItemPayload] = Field(min_length=1)
    totals: NutritionPayload | None = None
    confidence: ConfidenceLevel | None = None
    audit: AuditPayload | None = None

    @property
    def resolved_meal_type(self) -> str | None:
        return self.meal_type or self.meal_type_alias


class EnrichedNutritionPayload(NutritionPayload):
    source: NutritionSource | None = None


class EnrichedItemPayload(BaseModel):
    index: int = Field(ge=0)
    nutrition_estimate: EnrichedNutritionPayload


class EnrichmentPayload(BaseModel):
    """Batch nutrition lookup keyed by item index."""

    items: list[EnrichedItemPayload]


@dataclass(frozen=True)
class SchemaResult:
    """Outcome of validating a payload; ``value`` is set only when ``ok``."""

    ok: bool
    value: BaseModel | None = None
    error: str | None = None


def validate_payload(model: type[BaseModel], raw: object) -> SchemaResult:
    try:
        return SchemaResult(ok=True, value=model.model_validate(raw))
    except ValidationError as exc:
        return SchemaResult(ok=False, error=str(exc))


def validate_meal_parse(raw: object) -> SchemaResult:
    return validate_payload(MealParsePayload, raw)


def validate_enrichment(raw: object) -> SchemaResult:
    return validate_payload(EnrichmentPayload, raw)
