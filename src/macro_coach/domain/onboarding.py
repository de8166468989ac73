"""Onboarding questions and answer parsing."""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from macro_coach.domain.records import UserProfile
from macro_coach.domain.rounding import round_half_up

CLOSING_PROMPT = (
    "Now, tell me about your energy, meals, or movement today and I'll help you "
    "chart the next step."
)
COMPLETION_ACKNOWLEDGEMENT = "Perfect! That gives me everything I need to get started."
RESTART_MESSAGE = (
    "Let me start over with a fresh approach. Tell me a little about yourself!"
)

CM_PER_INCH = 2.54
CM_PER_FOOT = 30.48
KG_PER_POUND = 0.453592


@dataclass(frozen=True)
class OnboardingStep:
    """One onboarding question.

    ``field`` names a ``UserProfile`` attribute, ``custom_field`` a key that
    only lives in ``onboarding_data``. Steps with neither are not stored.
    """

    id: int
    section: str
    question: str
    type: str = "text"
    field: str | None = None
    custom_field: str | None = None
    options: tuple[str, ...] = ()
    required: bool = False
    skip_condition: Callable[[Mapping[str, object]], bool] | None = None

    @property
    def data_key(self) -> str | None:
        return self.field or self.custom_field


def _learning_as_we_go(data: Mapping[str, object]) -> bool:
    return data.get("onboarding_depth") == "learn"


ONBOARDING_STEPS = (
    OnboardingStep(
        id=1,
        section="welcome",
        question=(
            "Welcome! I’ll ask a few quick questions so I can tailor everything "
            "for you."
        ),
    ),
    OnboardingStep(
        id=2,
        section="basics",
        question="What first name should I use when I cheer you on?",
        field="first_name",
        required=True,
    ),
    OnboardingStep(
        id=3, section="basics", question="Great! And your last name?", field="last_name"
    ),
    OnboardingStep(
        id=4,
        section="basics",
        question="How old are you?",
        field="age",
        type="number",
        required=True,
    ),
    OnboardingStep(
        id=5,
        section="basics",
        question="How tall are you? (feet and inches)",
        field="height_cm",
        required=True,
    ),
    OnboardingStep(
        id=6,
        section="basics",
        question="What do you currently weigh? (pounds)",
        field="weight_kg",
        required=True,
    ),
    OnboardingStep(
        id=7,
        section="basics",
        question="How do you describe your gender?",
        field="gender",
        type="select",
        options=("female", "male", "non-binary", "prefer not to say", "other"),
    ),
    OnboardingStep(
        id=8,
        section="goals",
        question="What’s the main goal you want us to focus on first?",
        field="goals",
        type="select",
        options=(
            "weight loss",
            "muscle gain",
            "eating healthier",
            "overall health",
            "performance",
            "not sure yet",
        ),
        required=True,
    ),
    OnboardingStep(
        id=9,
        section="flow",
        question=(
            "Want to dive into a few more questions now, or should I learn as we go?"
        ),
        custom_field="onboarding_depth",
        type="select",
        options=("Let’s answer a few more now", "Learn as we go"),
        required=True,
    ),
    OnboardingStep(
        id=10,
        section="health",
        question="Any injuries or health considerations I should keep in mind?",
        custom_field="health_conditions",
        type="multi-line",
        skip_condition=_learning_as_we_go,
    ),
    OnboardingStep(
        id=11,
        section="habits",
        question=(
            "How many days a week do you currently exercise, and what do you "
            "usually do?"
        ),
        custom_field="current_exercise",
        type="multi-line",
        skip_condition=_learning_as_we_go,
    ),
    OnboardingStep(
        id=12,
        section="habits",
        question="Walk me through a typical day of eating (meals and snacks).",
        custom_field="typical_eating",
        type="multi-line",
        skip_condition=_learning_as_we_go,
    ),
    OnboardingStep(
        id=13,
        section="preferences",
        question="Any dietary preferences or foods you avoid?",
        custom_field="dietary_restrictions",
        type="multi-line",
        skip_condition=_learning_as_we_go,
    ),
    OnboardingStep(
        id=14,
        section="motivation",
        question=(
            "What’s motivating you right now? Any specific wins you’re chasing?"
        ),
        custom_field="motivation",
        type="multi-line",
        skip_condition=_learning_as_we_go,
    ),
    OnboardingStep(
        id=15,
        section="wrap-up",
        question=(
            "Awesome! Anything else you’d like me to know before we get rolling?"
        ),
        type="multi-line",
    ),
)

_SUMMARY_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "age": "Age",
    "height_cm": "Height",
    "weight_kg": "Weight",
    "gender": "Gender",
    "goals": "Goal",
    "onboarding_depth": "Detail preference",
    "health_conditions": "Health notes",
    "current_exercise": "Current exercise",
    "typical_eating": "Typical eating",
    "dietary_restrictions": "Dietary preferences",
    "motivation": "Motivation",
}

_FEET_AND_INCHES = re.compile(r"(\d+)['\"]?\s*(\d+)['\"]?")
_FEET_ONLY = re.compile(r"(\d+(?:\.\d+)?)\s*(?:'|feet|foot|ft)")


def get_onboarding_step(step_id: int) -> OnboardingStep | None:
    return next((step for step in ONBOARDING_STEPS if step.id == step_id), None)


def get_next_onboarding_step(
    current_step: int, data: Mapping[str, object] | None = None
) -> OnboardingStep | None:
    """First step after ``current_step`` whose skip condition does not hold."""
    data = data or {}
    step = get_onboarding_step(current_step + 1)
    while (
        step is not None
        and step.skip_condition is not None
        and step.skip_condition(data)
    ):
        step = get_onboarding_step(step.id + 1)
    return step


def is_onboarding_complete(step_id: int) -> bool:
    return step_id >= len(ONBOARDING_STEPS)


def parse_number(raw: str) -> float | None:
    cleaned = re.sub(r"[^\d.-]", "", raw)
    match = re.match(r"-?\d+(?:\.\d+)?|-?\.\d+", cleaned)
    if not match:
        return None
    return float(match.group(0))


def parse_onboarding_response(
    step: OnboardingStep,
    response: str,
    current_data: Mapping[str, object] | None = None,
) -> dict[str, object]:
    """Return ``current_data`` extended with the answer to ``step``."""
    data = dict(current_data or {})
    key = step.data_key
    if key is None:
        return data
    if key == "onboarding_depth":
        data[key] = "learn" if "learn" in response.lower() else "more"
        return data
    if step.type == "number":
        number = parse_number(response)
        if number is not None:
            data[key] = number
        return data
    data[key] = response.strip()
    return data


def parse_height_to_cm(raw: str) -> float | None:
    """Height in centimetres from "180cm", "5'10\"", "5 10" or "6 feet"."""
    cleaned = raw.lower().strip()
    if "cm" in cleaned or cleaned.isdigit():
        return parse_number(cleaned)
    match = _FEET_AND_INCHES.search(cleaned)
    if match:
        inches = int(match.group(1)) * 12 + int(match.group(2))
        return round_half_up(inches * CM_PER_INCH)
    match = _FEET_ONLY.search(cleaned)
    if match:
        return round_half_up(float(match.group(1)) * CM_PER_FOOT)
    return parse_number(cleaned)


def parse_weight_to_kg(raw: str) -> float | None:
    """Weight in kilograms; pounds are converted, bare numbers are kilograms."""
    cleaned = raw.lower().strip()
    if "kg" in cleaned or ("lb" not in cleaned and "pound" not in cleaned):
        return parse_number(cleaned)
    pounds = parse_number(cleaned)
    if not pounds:
        return None
    return round(pounds * KG_PER_POUND, 1)


def profile_updates_for_answer(
    step: OnboardingStep, response: str, data: Mapping[str, object]
) -> dict[str, object]:
    """Profile field updates implied by an answer to ``step``."""
    if step.field == "height_cm":
        height = parse_height_to_cm(response)
        return {"height_cm": height} if height is not None else {}
    if step.field == "weight_kg":
        weight = parse_weight_to_kg(response)
        return {"weight_kg": weight} if weight is not None else {}
    if step.field == "age":
        age = data.get("age")
        return {"age": int(age)} if isinstance(age, int | float) else {}
    if step.field and step.field in data:
        return {step.field: data[step.field]}
    return {}


def _label(key: str) -> str:
    if key in _SUMMARY_LABELS:
        return _SUMMARY_LABELS[key]
    return key.replace("_", " ").strip().capitalize()


def summarize_collected_data(data: Mapping[str, object], limit: int = 6) -> str:
    entries = [
        (key, value)
        for key, value in data.items()
        if key != "insights" and value is not None and str(value).strip()
    ][-limit:]
    return "\n".join(
        f"- {_label(key)}: {str(value).strip()}" for key, value in entries
    )


def fallback_onboarding_reply(next_step: OnboardingStep | None) -> str:
    if next_step is not None:
        return f"Thanks for sharing! {next_step.question}"
    return COMPLETION_ACKNOWLEDGEMENT


def fallback_profile_summary(profile: UserProfile, data: Mapping[str, object]) -> str:
    age = f", {profile.age}-year-old" if profile.age else ""
    goals = profile.goals or "health and fitness goals"
    highlights = [
        f"{_label(key)}: {str(value).strip()}"
        for key, value in data.items()
        if key != "insights" and value is not None and str(value).strip()
    ][:4]
    notes = "\n".join(highlights)
    parts = [
        f"Welcome to your personalized coaching journey{age}! "
        f"Based on what you've shared, I understand you're focused on {goals}."
    ]
    if notes:
        parts.append(f"A few quick notes I captured:\n{notes}")
    parts.append(
        "I'll be here to support you with tailored nutrition guidance and workout "
        "recommendations that fit your lifestyle. We'll take things step by step, "
        "building sustainable habits that work for you."
    )
    return "\n\n".join(parts)


def profile_facts(profile: UserProfile, data: Mapping[str, object]) -> str:
    """Plain-text profile description used when asking for a summary."""
    lines = [
        f"Age: {profile.age or 'Not specified'}",
        f"Gender: {profile.gender or 'Not specified'}",
        f"Height: {f'{profile.height_cm}cm' if profile.height_cm else 'Not specified'}",
        f"Weight: {f'{profile.weight_kg}kg' if profile.weight_kg else 'Not specified'}",
        f"Goals: {profile.goals or 'Not specified'}",
        "",
        "Additional Information:",
    ]
    lines.extend(
        f"{_label(key)}: {value.strip()}"
        for key, value in data.items()
        if isinstance(value, str) and value.strip()
    )
    return "\n".join(lines)
