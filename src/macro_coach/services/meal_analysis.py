"""Parse, enrich and match meal text in one pass."""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from macro_coach.domain.macros import macros_for_items
from macro_coach.domain.meal_text import loggable_meal_type
from macro_coach.domain.meals import StructuredMealItem
from macro_coach.domain.records import MealDraft
from macro_coach.services.enrichment import (
    EnrichmentContext,
    NutritionEnrichmentService,
)
from macro_coach.services.food_match import FoodMatchService
from macro_coach.services.meal_parser import MealParserService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyzedMeal:
    meal_type: str
    items: tuple[StructuredMealItem, ...]
    confidence: str
    parse_source: str
    nutrition_source: str
    context_note: str | None = None


@dataclass
class MealAnalysisService:
    """Run the parse, enrichment and optional food-database steps in order."""

    meal_parser: MealParserService
    enrichment: NutritionEnrichmentService
    food_matcher: FoodMatchService | None = None

    async def analyze(
        self,
        text: str,
        meal_type_hint: str | None = None,
        now: datetime | None = None,
    ) -> AnalyzedMeal:
        parsed = await self.meal_parser.parse_meal(text, meal_type_hint, now)
        enriched = await self.enrichment.enrich(
            parsed.result.items,
            EnrichmentContext(meal_type=parsed.result.meal_type, input_text=text),
        )
        items = enriched.items
        if self.food_matcher is not None:
            items = await self.food_matcher.match_items(items)
        _logger.info(
            "Meal parsed via %s, nutrition via %s (%s items)",
            parsed.source,
            enriched.source,
            len(items),
        )
        return AnalyzedMeal(
            meal_type=loggable_meal_type(parsed.result.meal_type, text, now),
            items=items,
            confidence=enriched.confidence,
            parse_source=parsed.source,
            nutrition_source=enriched.source,
            context_note=parsed.result.context_note,
        )

    async def draft_meal(
        self,
        text: str,
        meal_type_hint: str | None = None,
        now: datetime | None = None,
    ) -> MealDraft:
        """Turn meal text into a whole-meal draft awaiting confirmation."""
        now = now or datetime.now().astimezone()
        analyzed = await self.analyze(text, meal_type_hint, now)
        return MealDraft(
            id=str(uuid4()),
            created_at=now,
            original_text=text,
            confidence=analyzed.confidence,
            source=analyzed.nutrition_source,
            meal_type=analyzed.meal_type,
            items=analyzed.items,
            macros=macros_for_items(analyzed.items),
            notes=analyzed.context_note,
        )
