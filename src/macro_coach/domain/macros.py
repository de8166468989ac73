"""Keyword-based macro estimation for common foods."""

from dataclasses import dataclass

from macro_coach.domain.meals import (
    MealItemQuantity,
    NutritionEstimate,
    StructuredMealItem,
)
from macro_coach.domain.rounding import round2
from macro_coach.domain.units import units_match

HEURISTIC_CONFIDENCE = 0.4


@dataclass(frozen=True)
class MacroBreakdown:
    """Calories and macronutrients in kcal and grams."""

    calories: float
    protein: float
    fat: float
    carbs: float


ZERO_MACROS = MacroBreakdown(calories=0, protein=0, fat=0, carbs=0)
UNKNOWN_FOOD_MACROS = MacroBreakdown(calories=200, protein=7, fat=8, carbs=26)


@dataclass(frozen=True)
class FoodMacroEntry:
    """Reference macros for ``amount`` of ``unit`` of a known food."""

    keywords: tuple[str, ...]
    unit: str
    amount: float
    macros: MacroBreakdown


def _entry(  # noqa: PLR0913
    keywords: tuple[str, ...], unit: str, amount: float, calories, protein, fat, carbs
) -> FoodMacroEntry:
    return FoodMacroEntry(
        keywords=keywords,
        unit=unit,
        amount=amount,
        macros=MacroBreakdown(calories=calories, protein=protein, fat=fat, carbs=carbs),
    )


# First keyword hit wins, so more specific foods come first.
FOOD_MACRO_TABLE: tuple[FoodMacroEntry, ...] = (
    _entry(("blueberries", "blueberry"), "cup", 1, 85, 1, 0.5, 21),
    _entry(("strawberries", "strawberry"), "cup", 1, 50, 1, 0.5, 12),
    _entry(("banana",), "piece", 1, 105, 1.3, 0.4, 27),
    _entry(("pineapple",), "cup", 1, 82, 0.9, 0.2, 22),
    _entry(("apple",), "piece", 1, 95, 0.5, 0.3, 25),
    _entry(("pretzel",), "serving", 1, 300, 7, 3, 60),
    _entry(("lager", "beer"), "oz_fl", 12, 150, 2, 0, 13),
    _entry(("wine",), "oz_fl", 5, 125, 0.1, 0, 4),
    _entry(("cottage cheese",), "cup", 1, 206, 28, 9, 6),
    _entry(("cheese",), "slice", 1, 110, 7, 9, 0.4),
    _entry(("eggs", "egg"), "piece", 1, 70, 6, 5, 1),
    _entry(("toast", "bread"), "slice", 1, 80, 3, 1, 15),
    _entry(("muffin",), "piece", 1, 380, 6, 16, 53),
    _entry(("oatmeal", "oats"), "cup", 1, 150, 5, 3, 27),
    _entry(("yogurt", "yoghurt"), "cup", 1, 150, 12, 4, 17),
    _entry(("protein shake", "whey"), "serving", 1, 120, 24, 1.5, 3),
    _entry(("milk",), "cup", 1, 120, 8, 5, 12),
    _entry(("pizza",), "slice", 1, 285, 12, 10, 36),
    _entry(("burger",), "serving", 1, 540, 34, 27, 40),
    _entry(("sandwich",), "serving", 1, 350, 18, 12, 40),
    _entry(("chicken",), "oz", 4, 187, 35, 4, 0),
    _entry(("salmon",), "oz", 4, 233, 25, 14, 0),
    _entry(("steak", "beef"), "oz", 4, 280, 26, 19, 0),
    _entry(("rice",), "cup", 1, 205, 4.3, 0.4, 45),
    _entry(("pasta", "spaghetti", "noodles"), "cup", 1, 220, 8, 1.3, 43),
    _entry(("fries",), "serving", 1, 365, 4, 17, 48),
    _entry(("potato",), "piece", 1, 160, 4, 0.2, 37),
    _entry(("avocado",), "piece", 1, 240, 3, 22, 13),
    _entry(("almonds", "peanuts", "walnuts"), "oz", 1, 165, 6, 14, 6),
    _entry(("salad",), "serving", 1, 150, 5, 10, 10),
    _entry(("coffee",), "cup", 1, 5, 0.3, 0, 0),
)


def find_food_entry(text: str) -> FoodMacroEntry | None:
    lowered = text.lower()
    for entry in FOOD_MACRO_TABLE:
        if any(keyword in lowered for keyword in entry.keywords):
            return entry
    return None


def compute_multiplier(
    quantity: MealItemQuantity | None, entry: FoodMacroEntry | None
) -> float:
    """Scale factor applied to the reference macros.

    With a compatible unit the stated value is divided by the reference
    amount. Otherwise the raw value is used as a count of reference
    portions, so "16 oz" of a food listed per serving scales by 16.
    """
    if quantity is None or quantity.value is None:
        return 1.0
    if entry is not None and quantity.unit and units_match(quantity.unit, entry.unit):
        return quantity.value / entry.amount
    return quantity.value


def estimate_item_macros(
    text: str, quantity: MealItemQuantity | None = None
) -> MacroBreakdown:
    entry = find_food_entry(text)
    base = entry.macros if entry else UNKNOWN_FOOD_MACROS
    multiplier = compute_multiplier(quantity, entry)
    return MacroBreakdown(
        calories=round2(base.calories * multiplier),
        protein=round2(base.protein * multiplier),
        fat=round2(base.fat * multiplier),
        carbs=round2(base.carbs * multiplier),
    )


def estimate_nutrition(
    text: str, quantity: MealItemQuantity | None = None
) -> NutritionEstimate:
    macros = estimate_item_macros(text, quantity)
    return NutritionEstimate(
        calories_kcal=macros.calories,
        protein_g=macros.protein,
        carbs_g=macros.carbs,
        fat_g=macros.fat,
        source="heuristic",
        confidence=HEURISTIC_CONFIDENCE,
    )


def macros_from_estimate(estimate: NutritionEstimate | None) -> MacroBreakdown:
    if estimate is None:
        return ZERO_MACROS
    return MacroBreakdown(
        calories=estimate.calories_kcal or 0,
        protein=estimate.protein_g or 0,
        fat=estimate.fat_g or 0,
        carbs=estimate.carbs_g or 0,
    )


def sum_macros(breakdowns) -> MacroBreakdown:
    calories = protein = fat = carbs = 0.0
    for breakdown in breakdowns:
        calories += breakdown.calories
        protein += breakdown.protein
        fat += breakdown.fat
        carbs += breakdown.carbs
    return MacroBreakdown(
        calories=round2(calories),
        protein=round2(protein),
        fat=round2(fat),
        carbs=round2(carbs),
    )


def macros_for_items(
    items: tuple[StructuredMealItem, ...] | list[StructuredMealItem],
) -> MacroBreakdown:
    return sum_macros(macros_from_estimate(item.nutrition_estimate) for item in items)
