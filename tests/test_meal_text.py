"""Tests for heuristic meal text parsing."""

from datetime import datetime

from macro_coach.domain.meal_text import (
    detect_alcohol,
    extract_quantity,
    heuristic_parse,
    infer_meal_type,
    loggable_meal_type,
    normalize_meal_type,
    parse_quantity_value,
    segment_meal_text,
    strip_conversational_prefixes,
)
from macro_coach.domain.meals import AlcoholInfo, MealItemQuantity


def test_heuristic_parse_pretzel_and_lager() -> None:
    result = heuristic_parse(
        "for dinner tonight, I had a large soft pretzel and a 16oz lager"
    )

    assert result.meal_type == "dinner"
    assert result.audit.source == "heuristic"
    assert result.confidence == "medium"
    pretzel, lager = result.items

    assert pretzel.raw_text == "a large soft pretzel"
    assert pretzel.name == "soft pretzel"
    assert pretzel.size_hint == "large"
    assert pretzel.quantity.value is None
    assert pretzel.flags.needs_portion
    assert pretzel.alcohol is None
    assert pretzel.nutrition_estimate.calories_kcal == 300

    assert lager.name == "lager"
    assert lager.quantity == MealItemQuantity(value=16.0, unit="oz_fl", display="16oz")
    assert not lager.flags.needs_portion
    assert lager.alcohol == AlcoholInfo(is_alcohol=True, abv_pct=5.0, volume_ml=473.18)
    assert lager.nutrition_estimate.calories_kcal == 200

    assert result.totals is not None
    assert result.totals.calories_kcal == 500


def test_heuristic_parse_fractional_quantity() -> None:
    result = heuristic_parse("1/2 cup rice", meal_type_hint="lunch")

    (rice,) = result.items
    assert result.meal_type == "lunch"
    assert rice.name == "rice"
    assert rice.quantity.value == 0.5
    assert rice.quantity.unit == "cup"
    assert rice.nutrition_estimate.calories_kcal == 102.5


def test_segment_meal_text_splits_on_connectors() -> None:
    assert segment_meal_text("I ate 2 eggs with toast, coffee & juice.") == [
        "2 eggs",
        "toast",
        "coffee",
        "juice",
    ]


def test_strip_conversational_prefixes() -> None:
    assert strip_conversational_prefixes("Breakfast: oatmeal") == "oatmeal"
    assert strip_conversational_prefixes("I just had a banana") == "a banana"
    assert strip_conversational_prefixes("lunch was a salad") == "a salad"


def test_parse_quantity_value() -> None:
    assert parse_quantity_value("1/2") == 0.5
    assert parse_quantity_value("1.5") == 1.5
    assert parse_quantity_value("1/0") == 1.0
    assert parse_quantity_value("abc") == 1.0


def test_extract_quantity_units() -> None:
    steak = extract_quantity("16 oz steak")
    juice = extract_quantity("12 fl oz juice")
    eggs = extract_quantity("2 eggs")

    assert steak is not None
    assert steak.unit == "oz"
    assert juice is not None
    assert juice.unit == "oz_fl"
    assert eggs == MealItemQuantity(value=2.0, unit=None, display="2")
    assert extract_quantity("a banana") is None


def test_detect_alcohol_without_volume() -> None:
    assert detect_alcohol("glass of wine", None) == AlcoholInfo(
        is_alcohol=True, abv_pct=12.0, volume_ml=None
    )
    assert detect_alcohol("sparkling water", None) is None


def test_infer_meal_type_from_hour() -> None:
    assert infer_meal_type("", datetime(2024, 5, 15, 8)) == "breakfast"
    assert infer_meal_type("", datetime(2024, 5, 15, 13)) == "lunch"
    assert infer_meal_type("", datetime(2024, 5, 15, 18)) == "dinner"
    assert infer_meal_type("", datetime(2024, 5, 15, 22)) == "snack"
    assert infer_meal_type("late supper", datetime(2024, 5, 15, 8)) == "dinner"


def test_meal_type_normalization() -> None:
    noon = datetime(2024, 5, 15, 13)

    assert normalize_meal_type(" Drink ", "", noon) == "drink"
    assert normalize_meal_type("elevenses", "", noon) == "lunch"
    assert loggable_meal_type("drink", "", noon) == "lunch"
    assert loggable_meal_type("snack", "", noon) == "snack"
