"""Tests for heuristic macro estimation."""

import pytest

from macro_coach.domain.macros import (
    HEURISTIC_CONFIDENCE,
    UNKNOWN_FOOD_MACROS,
    ZERO_MACROS,
    MacroBreakdown,
    compute_multiplier,
    estimate_item_macros,
    estimate_nutrition,
    find_food_entry,
    macros_for_items,
    macros_from_estimate,
    sum_macros,
)
from macro_coach.domain.meals import (
    MealItemQuantity,
    NutritionEstimate,
    StructuredMealItem,
)


def test_find_food_entry_prefers_specific_keywords() -> None:
    cottage = find_food_entry("Cottage cheese bowl")
    cheddar = find_food_entry("cheddar cheese")

    assert cottage is not None
    assert cottage.unit == "cup"
    assert cheddar is not None
    assert cheddar.unit == "slice"
    assert find_food_entry("mystery stew") is None


def test_compute_multiplier_with_matching_unit() -> None:
    entry = find_food_entry("lager")
    quantity = MealItemQuantity(value=16, unit="oz_fl")

    assert compute_multiplier(quantity, entry) == pytest.approx(16 / 12)


def test_compute_multiplier_uses_raw_value_for_mismatched_unit() -> None:
    entry = find_food_entry("pretzel")
    quantity = MealItemQuantity(value=16, unit="oz")

    assert compute_multiplier(quantity, entry) == 16


def test_compute_multiplier_defaults_to_one() -> None:
    entry = find_food_entry("rice")

    assert compute_multiplier(None, entry) == 1.0
    assert compute_multiplier(MealItemQuantity(display="large"), entry) == 1.0
    assert compute_multiplier(MealItemQuantity(value=0, unit="cup"), entry) == 0


def test_estimate_item_macros_scales_reference_portion() -> None:
    macros = estimate_item_macros("16oz lager", MealItemQuantity(16, "oz_fl"))

    assert macros == MacroBreakdown(calories=200.0, protein=2.67, fat=0.0, carbs=17.33)


def test_estimate_item_macros_unknown_food() -> None:
    assert estimate_item_macros("mystery stew") == UNKNOWN_FOOD_MACROS


def test_estimate_nutrition_is_tagged_heuristic() -> None:
    estimate = estimate_nutrition("2 eggs", MealItemQuantity(value=2))

    assert estimate.calories_kcal == 140
    assert estimate.protein_g == 12
    assert estimate.source == "heuristic"
    assert estimate.confidence == HEURISTIC_CONFIDENCE


def test_macros_from_estimate_fills_missing_fields_with_zero() -> None:
    assert macros_from_estimate(None) == ZERO_MACROS
    assert macros_from_estimate(NutritionEstimate(calories_kcal=100)) == MacroBreakdown(
        calories=100, protein=0, fat=0, carbs=0
    )


def test_sum_macros_rounds_to_two_decimals() -> None:
    total = sum_macros(
        [
            MacroBreakdown(calories=0.1, protein=0.2, fat=0, carbs=0),
            MacroBreakdown(calories=0.2, protein=0.1, fat=0, carbs=0),
        ]
    )

    assert total.calories == 0.3
    assert total.protein == 0.3


def test_macros_for_items_ignores_items_without_estimate() -> None:
    items = [
        StructuredMealItem(
            raw_text="toast",
            name="toast",
            nutrition_estimate=NutritionEstimate(calories_kcal=80, protein_g=3),
        ),
        StructuredMealItem(raw_text="tea", name="tea"),
    ]

    assert macros_for_items(items) == MacroBreakdown(
        calories=80, protein=3, fat=0, carbs=0
    )
