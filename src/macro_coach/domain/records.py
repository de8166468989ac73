"""Records for confirmed logs, drafts, messages and profiles."""

from dataclasses import dataclass, field
from datetime import date, datetime

from macro_coach.domain.macros import MacroBreakdown
from macro_coach.domain.meals import StructuredMealItem

MEAL_SOURCES = ("api", "vision", "est", "manual", "text")
WORKOUT_STATUSES = ("planned", "completed", "skipped")
INTENSITIES = ("easy", "moderate", "hard")
MESSAGE_ROLES = ("user", "coach", "system")


@dataclass(frozen=True)
class MealLog:
    """Confirmed meal for one day."""

    id: str
    day_id: str
    date: date
    type: str
    items: tuple[str, ...]
    macros: MacroBreakdown
    source: str
    created_at: datetime


@dataclass(frozen=True)
class WorkoutLog:
    """Recorded or planned workout for one day."""

    id: str
    day_id: str
    date: date
    type: str
    minutes: int
    status: str
    created_at: datetime
    intensity: str | None = None
    description: str | None = None
    distance: float | None = None
    raw_text: str | None = None


@dataclass(frozen=True)
class CoachMessage:
    id: str
    role: str
    content: str
    created_at: datetime
    metadata: dict[str, object] | None = None


@dataclass(frozen=True)
class UserProfile:
    """Profile facts plus onboarding progress."""

    user_id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    age: int | None = None
    gender: str | None = None
    goals: str | None = None
    profile_summary: str | None = None
    insights: tuple[str, ...] = ()
    onboarding_step: int = 0
    onboarding_data: dict[str, object] = field(default_factory=dict)
    onboarding_completed: bool = False
    updated_at: datetime | None = None

    @property
    def needs_onboarding(self) -> bool:
        return not self.onboarding_completed and self.onboarding_step >= 0


@dataclass(frozen=True)
class WeeklyPlanEntry:
    """Plan template entry; ``weekday`` runs from 0 (Sunday) to 6 (Saturday)."""

    id: str
    weekday: int
    focus: str
    minutes_target: int
    suggested_intensity: str


@dataclass(frozen=True)
class DaySnapshot:
    day_id: str
    date: date
    meals: tuple[MealLog, ...] = ()
    workouts: tuple[WorkoutLog, ...] = ()
    targets: MacroBreakdown | None = None


@dataclass(frozen=True)
class FoodItemDraft:
    """Unconfirmed single food item; drafts from one message share ``group_id``."""

    id: str
    created_at: datetime
    meal_type: str
    group_id: str
    item: StructuredMealItem
    original_text: str
    confidence: str
    source: str


@dataclass(frozen=True)
class MealDraft:
    """Unconfirmed whole meal awaiting review."""

    id: str
    created_at: datetime
    original_text: str
    confidence: str
    source: str
    meal_type: str | None = None
    items: tuple[StructuredMealItem, ...] = ()
    macros: MacroBreakdown | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PersistResult:
    """Outcome of a write through a persistence collaborator."""

    success: bool
    message: str | None = None
    meal: MealLog | None = None
    workout: WorkoutLog | None = None


def normalize_meal_source(source: str | None) -> str:
    """Map a draft or client provenance tag onto a stored meal source."""
    if source in ("api", "vision", "est"):
        return source
    if source in ("manual", "text", "llm", "usda"):
        return "api"
    return "est"
