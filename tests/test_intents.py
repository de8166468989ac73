"""Tests for intent detection."""

import pytest

from macro_coach.domain.intents import CoachIntent, detect_intent


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Can you estimate calories in a bagel?", "unknown"),
        ("What has more protein, tofu or eggs?", "unknown"),
        ("I ate two eggs", "logMeal"),
        ("ran 5k this morning", "logWorkout"),
        ("Did 20 pushups", "logWorkout"),
        ("what's the plan", "askPlan"),
        ("how is my protein looking?", "askNutritionSummary"),
        ("how's my progress this week", "askProgress"),
        ("hello coach", "smallTalk"),
        ("blue skies", "unknown"),
    ],
)
def test_detect_intent(message: str, expected: str) -> None:
    assert detect_intent(message).type == expected


def test_logging_intents_keep_original_text() -> None:
    assert detect_intent("Had a Sandwich") == CoachIntent(
        type="logMeal", text="Had a Sandwich"
    )


def test_meal_keywords_need_word_boundaries() -> None:
    assert detect_intent("The weather is great").type == "statusUpdate"


@pytest.mark.parametrize(
    ("message", "mood"),
    [
        ("feeling exhausted", "tired"),
        ("legs are sore", "sore"),
        ("I feel energized", "energized"),
    ],
)
def test_status_updates_carry_mood(message: str, mood: str) -> None:
    intent = detect_intent(message)

    assert intent.type == "statusUpdate"
    assert intent.mood == mood


def test_estimate_questions_are_not_meal_logs() -> None:
    assert detect_intent("let's estimate calories").type == "unknown"
