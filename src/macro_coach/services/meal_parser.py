"""Meal parsing with a language model first and heuristics as fallback."""

import logging
from dataclasses import dataclass
from datetime import datetime

from macro_coach.domain.meal_text import heuristic_parse, normalize_meal_type
from macro_coach.domain.meals import (
    NUTRITION_SOURCES,
    PARSER_VERSION,
    AlcoholInfo,
    LookupCandidate,
    MealItemFlags,
    MealItemLookup,
    MealItemQuantity,
    MealParseAudit,
    MealParseResult,
    NutritionEstimate,
    StructuredMealItem,
    compute_totals,
    has_nutrients,
    infer_confidence,
)
from macro_coach.domain.schemas import (
    MealItemPayload,
    MealParsePayload,
    NutritionPayload,
    validate_meal_parse,
)
from macro_coach.domain.units import normalize_unit
from macro_coach.services.language_model import LanguageModelClient, ModelOptions

_logger = logging.getLogger(__name__)

MEAL_PARSER_INSTRUCTIONS = (
    "You turn short, casual meal descriptions into structured data. "
    "Split the description into individual foods and drinks, keep the exact "
    "substring each item came from, and extract measurable quantities whenever "
    "they are stated. "
    "Respond with a single JSON object only, no commentary. "
    "Top-level keys: meal_type (breakfast, lunch, dinner, snack, drink or unknown), "
    "context_note, confidence (low, medium or high), items. "
    "Each item has raw_text, name, brand, preparation (list of strings), "
    "quantity {value, unit, display}, size_hint (small, medium, large or null), "
    "alcohol {is_alcohol, abv_pct, volume_ml} or null, "
    "nutrition_estimate {calories_kcal, protein_g, carbs_g, fat_g, fiber_g, source, "
    "confidence}, lookup {status, candidates}, flags {needs_lookup, needs_portion} "
    "and confidence. "
    "Use null for anything you do not know, including nutrition values."
)


@dataclass(frozen=True)
class MealParseOutcome:
    result: MealParseResult
    source: str


@dataclass
class MealParserService:
    """Parse meal text into structured items.

    The model is optional. Without one, or whenever its reply cannot be
    used, the heuristic parser answers instead.
    """

    client: LanguageModelClient | None
    options: ModelOptions

    async def parse_meal(
        self,
        text: str,
        meal_type_hint: str | None = None,
        now: datetime | None = None,
    ) -> MealParseOutcome:
        if self.client is None:
            return self._heuristic(text, meal_type_hint, now)

        try:
            raw = await self.client.complete_json(
                model=self.options.model,
                reasoning_effort=self.options.reasoning_effort,
                store=self.options.store,
                instructions=MEAL_PARSER_INSTRUCTIONS,
                user_input=text,
            )
        except Exception:
            _logger.warning(
                "Meal parse request failed, using heuristics", exc_info=True
            )
            return self._heuristic(text, meal_type_hint, now)

        validated = validate_meal_parse(raw)
        if not validated.ok:
            _logger.warning("Meal parse response rejected: %s", validated.error)
            return self._heuristic(text, meal_type_hint, now)

        try:
            result = self._to_result(validated.value, text, meal_type_hint, now)
        except ValueError:
            _logger.warning(
                "Meal parse response could not be normalized", exc_info=True
            )
            return self._heuristic(text, meal_type_hint, now)
        return MealParseOutcome(result=result, source="llm")

    def _heuristic(
        self, text: str, meal_type_hint: str | None, now: datetime | None
    ) -> MealParseOutcome:
        return MealParseOutcome(
            result=heuristic_parse(text, meal_type_hint, now), source="heuristic"
        )

    def _to_result(
        self,
        payload: MealParsePayload,
        text: str,
        meal_type_hint: str | None,
        now: datetime | None,
    ) -> MealParseResult:
        items = tuple(_normalize_item(item) for item in payload.items)
        audit = payload.audit
        return MealParseResult(
            meal_type=normalize_meal_type(
                meal_type_hint or payload.resolved_meal_type, text, now
            ),
            items=items,
            confidence=payload.confidence or infer_confidence(items),
            audit=MealParseAudit(
                input_text=text,
                source="llm",
                version=(audit.version if audit and audit.version else PARSER_VERSION),
                message_id=audit.message_id if audit else None,
                parsed_by=(
                    audit.parsed_by
                    if audit and audit.parsed_by
                    else self.options.model
                ),
            ),
            context_note=payload.context_note,
            totals=normalize_nutrition(payload.totals) or compute_totals(items),
        )


def normalize_nutrition(payload: NutritionPayload | None) -> NutritionEstimate | None:
    """Model nutrition as an estimate; None when it carries no numbers."""
    if payload is None:
        return None
    estimate = NutritionEstimate(
        calories_kcal=payload.calories_kcal,
        protein_g=payload.protein_g,
        carbs_g=payload.carbs_g,
        fat_g=payload.fat_g,
        fiber_g=payload.fiber_g,
        source=payload.source if payload.source in NUTRITION_SOURCES else "llm",
        confidence=payload.confidence,
    )
    return estimate if has_nutrients(estimate) else None


def _normalize_item(item: MealItemPayload) -> StructuredMealItem:
    value = item.quantity.value
    if value is not None and value < 0:
        value = None
    lookup = item.lookup
    flags = item.flags
    return StructuredMealItem(
        raw_text=item.raw_text,
        name=item.name,
        brand=item.brand,
        preparation=tuple(item.preparation),
        quantity=MealItemQuantity(
            value=value,
            unit=normalize_unit(item.quantity.unit),
            display=item.quantity.display,
        ),
        size_hint=item.size_hint,
        alcohol=(
            AlcoholInfo(
                is_alcohol=item.alcohol.is_alcohol,
                abv_pct=item.alcohol.abv_pct,
                volume_ml=item.alcohol.volume_ml,
            )
            if item.alcohol
            else None
        ),
        nutrition_estimate=normalize_nutrition(item.nutrition_estimate),
        lookup=(
            MealItemLookup(
                status=lookup.status,
                candidates=tuple(
                    LookupCandidate(
                        provider=candidate.provider,
                        id=candidate.id,
                        name=candidate.name,
                    )
                    for candidate in lookup.candidates
                ),
            )
            if lookup
            else MealItemLookup()
        ),
        flags=MealItemFlags(
            needs_lookup=bool(flags and flags.needs_lookup),
            needs_portion=bool(flags and flags.needs_portion),
        ),
        confidence=item.confidence or "medium",
    )
