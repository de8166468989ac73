"""Workout extraction from free text."""

import re
from dataclasses import dataclass

from macro_coach.domain.rounding import round_half_up

DEFAULT_WORKOUT_MINUTES = 20
# Minutes per mile or km when only a distance is given.
MINUTES_PER_DISTANCE_UNIT = 12

# Regex fragments matched at the start of a word, so "run" also covers "running".
_TYPE_KEYWORDS = (
    ("run", "Run"),
    (r"ran\b", "Run"),
    ("jog", "Run"),
    ("walk", "Walk"),
    ("hike", "Hike"),
    ("hiking", "Hike"),
    ("yoga", "Yoga"),
    ("lift", "Strength"),
    ("weights", "Strength"),
    ("strength", "Strength"),
    ("pushup", "Strength"),
    ("push-?ups?", "Strength"),
    ("squat", "Strength"),
    ("lunges", "Strength"),
    ("plank", "Core"),
    ("bike", "Ride"),
    ("biking", "Ride"),
    ("ride", "Ride"),
    (r"rode\b", "Ride"),
    ("cycl", "Ride"),
    ("swim", "Swim"),
    (r"swam\b", "Swim"),
    (r"row(?:s|ed|ing)?\b", "Row"),
    ("mobility", "Mobility"),
    ("pilates", "Pilates"),
    ("hiit", "HIIT"),
)
_INTENSITY_KEYWORDS = (
    ("easy", "easy"),
    ("light", "easy"),
    ("chill", "easy"),
    ("moderate", "moderate"),
    ("steady", "moderate"),
    ("normal", "moderate"),
    ("hard", "hard"),
    ("intense", "hard"),
    ("spicy", "hard"),
)

_MINUTES_PATTERN = re.compile(r"(\d{1,3})\s?(?:min|mins|minute|minutes)\b")
_HOURS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s?(?:h|hr|hrs|hour|hours)\b")
_DISTANCE_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)\s?(?:mile|miles|mi|km|kilometers|kilometres)\b"
)


@dataclass(frozen=True)
class ParsedWorkout:
    type: str
    minutes: int
    intensity: str
    description: str
    status: str = "completed"
    distance: float | None = None


def _match_type(lowered: str) -> str:
    for keyword, workout_type in _TYPE_KEYWORDS:
        if re.search(r"\b" + keyword, lowered):
            return workout_type
    return "Activity"


def _match_intensity(lowered: str) -> str | None:
    for keyword, intensity in _INTENSITY_KEYWORDS:
        if re.search(r"\b" + keyword + r"\b", lowered):
            return intensity
    return None


def infer_intensity(workout_type: str, minutes: int) -> str:
    if workout_type in ("Yoga", "Walk") or minutes <= 20:
        return "easy"
    if minutes >= 50:
        return "hard"
    return "moderate"


def parse_workout(text: str) -> ParsedWorkout:
    """Extract a completed workout; missing details get defaults."""
    lowered = text.lower()
    distance_match = _DISTANCE_PATTERN.search(lowered)
    distance = float(distance_match.group(1)) if distance_match else None

    minutes = 0
    minutes_match = _MINUTES_PATTERN.search(lowered)
    hours_match = _HOURS_PATTERN.search(lowered)
    if minutes_match:
        minutes = int(minutes_match.group(1))
    elif hours_match:
        minutes = round_half_up(float(hours_match.group(1)) * 60)
    elif distance is not None:
        minutes = round_half_up(distance * MINUTES_PER_DISTANCE_UNIT)
    if minutes <= 0:
        minutes = DEFAULT_WORKOUT_MINUTES

    workout_type = _match_type(lowered)
    return ParsedWorkout(
        type=workout_type,
        minutes=minutes,
        intensity=_match_intensity(lowered) or infer_intensity(workout_type, minutes),
        description=text.strip(),
        distance=distance,
    )
