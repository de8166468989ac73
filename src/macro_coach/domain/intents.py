"""Keyword-based intent detection for coach messages."""

import re
from dataclasses import dataclass

INTENT_TYPES = (
    "logMeal",
    "logWorkout",
    "statusUpdate",
    "askPlan",
    "askNutritionSummary",
    "askProgress",
    "smallTalk",
    "unknown",
)


@dataclass(frozen=True)
class CoachIntent:
    """Detected intent.

    ``text`` is set for logging intents and ``mood`` for status updates.
    """

    type: str
    text: str | None = None
    mood: str | None = None


_NUTRITION_QUESTION_PHRASES = (
    "estimate",
    "how many calories",
    "nutrition info",
    "nutritional value",
)

_MEAL_KEYWORDS = (
    "ate",
    "eating",
    "breakfast",
    "lunch",
    "dinner",
    "snack",
    "had",
    "having",
    "slice",
    "pizza",
    "apple",
    "cheese",
    "bread",
    "egg",
    "eggs",
    "cottage",
    "muffin",
    "meal",
    "food",
    "drink",
    "coffee",
    "smoothie",
    "salad",
    "sandwich",
    "burger",
    "chicken",
    "beef",
    "pasta",
    "rice",
)
_WORKOUT_KEYWORDS = (
    "ran",
    "run",
    "walk",
    "walked",
    "yoga",
    "lifted",
    "workout",
    "ride",
    "cycled",
    "swam",
    "pushup",
    "push-ups",
    "pushups",
    "squat",
    "lunges",
    "mobility",
    "plank",
)


def _word_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(keyword) for keyword in keywords)
    return re.compile(rf"\b(?:{alternatives})\b")


_MEAL_PATTERN = _word_pattern(_MEAL_KEYWORDS)
_WORKOUT_PATTERN = _word_pattern(_WORKOUT_KEYWORDS)
_GREETING_PATTERN = _word_pattern(("hi", "hello", "thanks"))

_MOODS = (
    ("tired", ("tired", "exhausted")),
    ("sore", ("sore",)),
    ("energized", ("energized", "great")),
)
_PLAN_KEYWORDS = ("plan", "today", "workout plan")
_NUTRITION_KEYWORDS = ("protein", "macros", "calories", "nutrition", "eat")
_PROGRESS_KEYWORDS = ("progress", "week", "adherence", "how am i doing")


def _is_nutrition_question(lowered: str) -> bool:
    if any(phrase in lowered for phrase in _NUTRITION_QUESTION_PHRASES):
        return True
    return "what" in lowered and ("protein" in lowered or "calories" in lowered)


def detect_intent(message: str) -> CoachIntent:
    """Classify a message into exactly one intent, first match wins."""
    lowered = message.lower()

    if _is_nutrition_question(lowered):
        return CoachIntent(type="unknown")
    if _MEAL_PATTERN.search(lowered):
        return CoachIntent(type="logMeal", text=message)
    if _WORKOUT_PATTERN.search(lowered):
        return CoachIntent(type="logWorkout", text=message)
    for mood, keywords in _MOODS:
        if any(keyword in lowered for keyword in keywords):
            return CoachIntent(type="statusUpdate", mood=mood)
    if any(keyword in lowered for keyword in _PLAN_KEYWORDS):
        return CoachIntent(type="askPlan")
    if any(keyword in lowered for keyword in _NUTRITION_KEYWORDS) and "how" in lowered:
        return CoachIntent(type="askNutritionSummary")
    if any(keyword in lowered for keyword in _PROGRESS_KEYWORDS):
        return CoachIntent(type="askProgress")
    if _GREETING_PATTERN.search(lowered):
        return CoachIntent(type="smallTalk")
    return CoachIntent(type="unknown")
