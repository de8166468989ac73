"""Nutrition enrichment for parsed meal items."""

import json
import logging
from dataclasses import dataclass, replace

from macro_coach.domain.macros import estimate_nutrition
from macro_coach.domain.meals import (
    NutritionEstimate,
    StructuredMealItem,
    merge_nutrition_estimates,
)
from macro_coach.domain.rounding import round2
from macro_coach.domain.schemas import EnrichmentPayload, validate_enrichment
from macro_coach.services.language_model import LanguageModelClient, ModelOptions

_logger = logging.getLogger(__name__)

ENRICHMENT_INSTRUCTIONS = (
    "You are a nutrition database specialist with working knowledge of USDA food "
    "composition data. You receive a JSON object with meal_type, input_text and items, "
    "each item carrying index, raw_text, name and quantity. Estimate nutrition for "
    "every item at the stated portion; when the portion is missing assume a typical "
    "single serving. Respond with JSON only, shaped as "
    '{"items": [{"index": 0, "nutrition_estimate": {"calories_kcal": 0, '
    '"protein_g": 0, "carbs_g": 0, "fat_g": 0, "fiber_g": 0, "confidence": 0.0, '
    '"source": "llm"}}]}. '
    "Confidence is between 0 and 1. Use null for values you cannot estimate."
)


@dataclass(frozen=True)
class EnrichmentContext:
    meal_type: str | None = None
    input_text: str = ""


@dataclass(frozen=True)
class EnrichmentOutcome:
    items: tuple[StructuredMealItem, ...]
    confidence: str
    source: str


@dataclass
class NutritionEnrichmentService:
    """Fill in nutrition estimates for items that lack them.

    Remote results are merged field by field. Any failure of the batch
    call replaces the whole batch with heuristic estimates.
    """

    client: LanguageModelClient | None
    options: ModelOptions

    async def enrich(
        self,
        items: tuple[StructuredMealItem, ...] | list[StructuredMealItem],
        context: EnrichmentContext | None = None,
    ) -> EnrichmentOutcome:
        items = tuple(items)
        context = context or EnrichmentContext()
        if self.client is None:
            return _heuristic_outcome(items)
        if all(_has_looked_up_estimate(item) for item in items):
            return EnrichmentOutcome(items=items, confidence="high", source="usda")

        pending = tuple(_without_heuristic_estimate(item) for item in items)
        try:
            raw = await self.client.complete_json(
                model=self.options.model,
                reasoning_effort=self.options.reasoning_effort,
                store=self.options.store,
                instructions=ENRICHMENT_INSTRUCTIONS,
                user_input=_build_request(pending, context),
            )
        except Exception:
            _logger.warning(
                "Nutrition enrichment request failed, using heuristics", exc_info=True
            )
            return _heuristic_outcome(items)

        validated = validate_enrichment(raw)
        if not validated.ok:
            _logger.warning(
                "Nutrition enrichment response rejected: %s", validated.error
            )
            return _heuristic_outcome(items)

        merged = _merge_by_index(pending, validated.value)
        return EnrichmentOutcome(
            items=tuple(_with_heuristic_estimate(item) for item in merged),
            confidence="high",
            source="llm",
        )


def _build_request(
    items: tuple[StructuredMealItem, ...], context: EnrichmentContext
) -> str:
    return json.dumps(
        {
            "meal_type": context.meal_type or "unknown",
            "input_text": context.input_text,
            "items": [
                {
                    "index": index,
                    "raw_text": item.raw_text,
                    "name": item.name,
                    "quantity": {
                        "value": item.quantity.value,
                        "unit": item.quantity.unit,
                        "display": item.quantity.display,
                    },
                }
                for index, item in enumerate(items)
            ],
        }
    )


def _coerce(value: float | None) -> float | None:
    return round2(value) if value is not None else None


def _merge_by_index(
    items: tuple[StructuredMealItem, ...], payload: EnrichmentPayload
) -> list[StructuredMealItem]:
    enriched = list(items)
    for entry in payload.items:
        if entry.index >= len(enriched):
            continue
        estimate = entry.nutrition_estimate
        incoming = NutritionEstimate(
            calories_kcal=_coerce(estimate.calories_kcal),
            protein_g=_coerce(estimate.protein_g),
            carbs_g=_coerce(estimate.carbs_g),
            fat_g=_coerce(estimate.fat_g),
            fiber_g=_coerce(estimate.fiber_g),
            source=estimate.source or "llm",
            confidence=_coerce(estimate.confidence),
        )
        target = enriched[entry.index]
        enriched[entry.index] = replace(
            target,
            nutrition_estimate=merge_nutrition_estimates(
                target.nutrition_estimate, incoming
            ),
        )
    return enriched


def _has_looked_up_estimate(item: StructuredMealItem) -> bool:
    estimate = item.nutrition_estimate
    return estimate is not None and estimate.source != "heuristic"


def _without_heuristic_estimate(item: StructuredMealItem) -> StructuredMealItem:
    """Heuristic guesses are replaced wholesale by remote values."""
    if _has_looked_up_estimate(item):
        return item
    return replace(item, nutrition_estimate=None)


def _with_heuristic_estimate(item: StructuredMealItem) -> StructuredMealItem:
    if item.nutrition_estimate is not None:
        return item
    estimate = estimate_nutrition(item.name, item.quantity)
    return replace(item, nutrition_estimate=estimate)


def _heuristic_outcome(items: tuple[StructuredMealItem, ...]) -> EnrichmentOutcome:
    return EnrichmentOutcome(
        items=tuple(_with_heuristic_estimate(item) for item in items),
        confidence="low",
        source="heuristic",
    )
