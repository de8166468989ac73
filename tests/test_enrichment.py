"""Tests for nutrition enrichment."""

import asyncio
import json
from dataclasses import replace

from macro_coach.domain.macros import estimate_nutrition
from macro_coach.domain.meals import NutritionEstimate, StructuredMealItem
from macro_coach.services.enrichment import (
    EnrichmentContext,
    NutritionEnrichmentService,
)
from macro_coach.services.language_model import ModelOptions
from macro_coach.services.meal_analysis import MealAnalysisService
from macro_coach.services.meal_parser import MealParserService
from tests.conftest import FakeLanguageModel

BANANA = StructuredMealItem(raw_text="a banana", name="banana")
TOAST = StructuredMealItem(
    raw_text="toast",
    name="toast",
    nutrition_estimate=NutritionEstimate(
        calories_kcal=80, fiber_g=1, source="usda", confidence=0.8
    ),
)
STEW = StructuredMealItem(raw_text="mystery stew", name="mystery stew")


def test_enrich_without_client_uses_heuristics(options: ModelOptions) -> None:
    service = NutritionEnrichmentService(None, options)

    outcome = asyncio.run(service.enrich([BANANA, TOAST]))

    assert outcome.source == "heuristic"
    assert outcome.confidence == "low"
    assert outcome.items[0].nutrition_estimate.source == "heuristic"
    assert outcome.items[1] == TOAST


def test_enrich_skips_request_when_items_have_estimates(
    options: ModelOptions,
) -> None:
    client = FakeLanguageModel()
    service = NutritionEnrichmentService(client, options)

    outcome = asyncio.run(service.enrich((TOAST,)))

    assert (outcome.confidence, outcome.source) == ("high", "usda")
    assert client.calls == []


def test_enrich_merges_results_by_index(options: ModelOptions) -> None:
    client = FakeLanguageModel(
        json_responses=[
            {
                "items": [
                    {
                        "index": 0,
                        "nutrition_estimate": {
                            "calories_kcal": 105,
                            "protein_g": 1.333,
                            "source": "usda",
                            "confidence": 0.9,
                        },
                    },
                    {"index": 1, "nutrition_estimate": {"calories_kcal": 90}},
                    {"index": 7, "nutrition_estimate": {"calories_kcal": 1}},
                ]
            }
        ]
    )
    service = NutritionEnrichmentService(client, options)

    outcome = asyncio.run(
        service.enrich(
            (BANANA, TOAST, STEW),
            EnrichmentContext(meal_type="breakfast", input_text="banana and toast"),
        )
    )

    banana, toast, stew = (item.nutrition_estimate for item in outcome.items)
    assert (outcome.confidence, outcome.source) == ("high", "llm")
    assert banana.calories_kcal == 105
    assert banana.protein_g == 1.33
    assert banana.source == "usda"
    assert toast.calories_kcal == 90
    assert toast.fiber_g == 1
    assert toast.source == "llm"
    assert stew.source == "heuristic"
    assert stew.calories_kcal == 200


def test_enrich_sends_items_with_indexes(options: ModelOptions) -> None:
    client = FakeLanguageModel(json_responses=[{"items": []}])
    service = NutritionEnrichmentService(client, options)

    asyncio.run(
        service.enrich((BANANA,), EnrichmentContext(input_text="a banana"))
    )

    request = json.loads(client.calls[0]["user_input"])
    assert request["meal_type"] == "unknown"
    assert request["input_text"] == "a banana"
    assert request["items"][0]["index"] == 0
    assert request["items"][0]["name"] == "banana"


def test_enrich_falls_back_when_request_fails(options: ModelOptions) -> None:
    client = FakeLanguageModel(json_responses=[RuntimeError("rate limited")])
    service = NutritionEnrichmentService(client, options)

    outcome = asyncio.run(service.enrich((BANANA, TOAST)))

    assert (outcome.confidence, outcome.source) == ("low", "heuristic")
    assert outcome.items[0].nutrition_estimate.calories_kcal == 105
    assert outcome.items[1] == TOAST


def test_enrich_falls_back_on_rejected_payload(options: ModelOptions) -> None:
    client = FakeLanguageModel(
        json_responses=[{"items": [{"index": -1, "nutrition_estimate": {}}]}]
    )
    service = NutritionEnrichmentService(client, options)

    outcome = asyncio.run(service.enrich((BANANA,)))

    assert outcome.source == "heuristic"


def test_enrich_requests_items_with_heuristic_estimates(
    options: ModelOptions,
) -> None:
    guessed = replace(BANANA, nutrition_estimate=estimate_nutrition("banana", None))
    client = FakeLanguageModel(
        json_responses=[
            {
                "items": [
                    {
                        "index": 0,
                        "nutrition_estimate": {"calories_kcal": 110, "fat_g": 0.4},
                    }
                ]
            }
        ]
    )
    service = NutritionEnrichmentService(client, options)

    outcome = asyncio.run(service.enrich((guessed, TOAST)))

    banana = outcome.items[0].nutrition_estimate
    assert len(client.calls) == 1
    assert (outcome.confidence, outcome.source) == ("high", "llm")
    assert banana.calories_kcal == 110
    assert banana.protein_g is None
    assert banana.source == "llm"
    assert outcome.items[1] == TOAST


def test_heuristic_parse_fallback_is_labelled_heuristic(
    options: ModelOptions,
) -> None:
    client = FakeLanguageModel(json_responses=[RuntimeError("down")])
    analysis = MealAnalysisService(
        meal_parser=MealParserService(client, options),
        enrichment=NutritionEnrichmentService(client, options),
    )

    analyzed = asyncio.run(analysis.analyze("I ate a banana and toast"))

    assert analyzed.parse_source == "heuristic"
    assert (analyzed.nutrition_source, analyzed.confidence) == ("heuristic", "low")
    assert [item.nutrition_estimate.source for item in analyzed.items] == [
        "heuristic",
        "heuristic",
    ]
    assert [call["kind"] for call in client.calls] == ["json", "json"]
