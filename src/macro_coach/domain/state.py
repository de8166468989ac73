"""Session state and its pure reducer."""

from dataclasses import dataclass, replace
from datetime import date

from macro_coach.domain.macros import MacroBreakdown
from macro_coach.domain.records import (
    CoachMessage,
    DaySnapshot,
    FoodItemDraft,
    MealDraft,
    MealLog,
    UserProfile,
    WeeklyPlanEntry,
    WorkoutLog,
)

DEFAULT_TARGETS = MacroBreakdown(calories=2200, protein=130, fat=70, carbs=220)

DEFAULT_WEEKLY_PLAN = (
    WeeklyPlanEntry(
        id="plan-mon",
        weekday=1,
        focus="Strength A",
        minutes_target=45,
        suggested_intensity="moderate",
    ),
    WeeklyPlanEntry(
        id="plan-tue",
        weekday=2,
        focus="Movement / Walk",
        minutes_target=30,
        suggested_intensity="easy",
    ),
    WeeklyPlanEntry(
        id="plan-wed",
        weekday=3,
        focus="Strength B",
        minutes_target=45,
        suggested_intensity="moderate",
    ),
    WeeklyPlanEntry(
        id="plan-thu",
        weekday=4,
        focus="Mobility + Core",
        minutes_target=20,
        suggested_intensity="easy",
    ),
    WeeklyPlanEntry(
        id="plan-fri",
        weekday=5,
        focus="Strength C",
        minutes_target=45,
        suggested_intensity="hard",
    ),
    WeeklyPlanEntry(
        id="plan-sat",
        weekday=6,
        focus="Cardio Session",
        minutes_target=35,
        suggested_intensity="moderate",
    ),
    WeeklyPlanEntry(
        id="plan-sun",
        weekday=0,
        focus="Recharge / Walk",
        minutes_target=20,
        suggested_intensity="easy",
    ),
)

_DAY_ID_SEPARATOR = "::"


@dataclass(frozen=True)
class CoachState:
    """Everything one chat session knows about the active user and day."""

    active_date: date
    user_id: str | None = None
    profile: UserProfile | None = None
    profile_loaded: bool = False
    messages: tuple[CoachMessage, ...] = ()
    meal_drafts: tuple[MealDraft, ...] = ()
    food_item_drafts: tuple[FoodItemDraft, ...] = ()
    meals: tuple[MealLog, ...] = ()
    workouts: tuple[WorkoutLog, ...] = ()
    weekly_plan: tuple[WeeklyPlanEntry, ...] = DEFAULT_WEEKLY_PLAN
    targets: MacroBreakdown = DEFAULT_TARGETS


@dataclass(frozen=True)
class AddMessage:
    message: CoachMessage


@dataclass(frozen=True)
class ReplaceMessages:
    messages: tuple[CoachMessage, ...]


@dataclass(frozen=True)
class AddMealDraft:
    draft: MealDraft


@dataclass(frozen=True)
class RemoveMealDraft:
    draft_id: str


@dataclass(frozen=True)
class AddFoodItemDrafts:
    drafts: tuple[FoodItemDraft, ...]


@dataclass(frozen=True)
class RemoveFoodItemDraft:
    draft_id: str


@dataclass(frozen=True)
class UpdateFoodItemDraft:
    """Replace selected draft fields; keys must be ``FoodItemDraft`` field names."""

    draft_id: str
    updates: dict[str, object]


@dataclass(frozen=True)
class UpsertMeal:
    meal: MealLog


@dataclass(frozen=True)
class RemoveMeal:
    meal_id: str


@dataclass(frozen=True)
class UpsertWorkout:
    workout: WorkoutLog


@dataclass(frozen=True)
class RemoveWorkout:
    workout_id: str


@dataclass(frozen=True)
class SetWeeklyPlan:
    plan: tuple[WeeklyPlanEntry, ...]


@dataclass(frozen=True)
class SetTargets:
    targets: MacroBreakdown


@dataclass(frozen=True)
class SyncDay:
    snapshot: DaySnapshot


@dataclass(frozen=True)
class SetUser:
    user_id: str | None


@dataclass(frozen=True)
class SetProfile:
    profile: UserProfile | None


CoachAction = (
    AddMessage
    | ReplaceMessages
    | AddMealDraft
    | RemoveMealDraft
    | AddFoodItemDrafts
    | RemoveFoodItemDraft
    | UpdateFoodItemDraft
    | UpsertMeal
    | RemoveMeal
    | UpsertWorkout
    | RemoveWorkout
    | SetWeeklyPlan
    | SetTargets
    | SyncDay
    | SetUser
    | SetProfile
)


def default_state(
    active_date: date, targets: MacroBreakdown | None = None
) -> CoachState:
    return CoachState(active_date=active_date, targets=targets or DEFAULT_TARGETS)


def build_day_id(user_id: str, day: date) -> str:
    return f"{user_id}{_DAY_ID_SEPARATOR}{day.isoformat()}"


def parse_day_id(day_id: str) -> tuple[str, date]:
    user_id, separator, raw_date = day_id.rpartition(_DAY_ID_SEPARATOR)
    if not separator or not user_id:
        raise ValueError(f"Invalid day id: {day_id!r}")
    return user_id, date.fromisoformat(raw_date)


def _upsert_by_id(collection, item) -> tuple:
    for index, existing in enumerate(collection):
        if existing.id == item.id:
            return (*collection[:index], item, *collection[index + 1 :])
    return (*collection, item)


def _without_id(collection, item_id: str) -> tuple:
    return tuple(entry for entry in collection if entry.id != item_id)


def _sync_day(state: CoachState, snapshot: DaySnapshot) -> CoachState:
    meals = [meal for meal in state.meals if meal.date != snapshot.date]
    meals.extend(snapshot.meals)
    workouts = [
        workout for workout in state.workouts if workout.date != snapshot.date
    ]
    workouts.extend(snapshot.workouts)
    return replace(
        state,
        meals=tuple(sorted(meals, key=lambda meal: meal.created_at)),
        workouts=tuple(sorted(workouts, key=lambda workout: workout.created_at)),
        targets=snapshot.targets or state.targets,
    )


def reduce_state(  # noqa: PLR0911, PLR0912
    state: CoachState, action: CoachAction
) -> CoachState:
    """Apply one action and return the new state; the input is never mutated."""
    if isinstance(action, AddMessage):
        return replace(state, messages=(*state.messages, action.message))
    if isinstance(action, ReplaceMessages):
        return replace(state, messages=tuple(action.messages))
    if isinstance(action, AddMealDraft):
        return replace(state, meal_drafts=(*state.meal_drafts, action.draft))
    if isinstance(action, RemoveMealDraft):
        return replace(
            state, meal_drafts=_without_id(state.meal_drafts, action.draft_id)
        )
    if isinstance(action, AddFoodItemDrafts):
        return replace(
            state, food_item_drafts=(*state.food_item_drafts, *action.drafts)
        )
    if isinstance(action, RemoveFoodItemDraft):
        drafts = _without_id(state.food_item_drafts, action.draft_id)
        return replace(state, food_item_drafts=drafts)
    if isinstance(action, UpdateFoodItemDraft):
        drafts = tuple(
            replace(draft, **action.updates) if draft.id == action.draft_id else draft
            for draft in state.food_item_drafts
        )
        return replace(state, food_item_drafts=drafts)
    if isinstance(action, UpsertMeal):
        return replace(state, meals=_upsert_by_id(state.meals, action.meal))
    if isinstance(action, RemoveMeal):
        return replace(state, meals=_without_id(state.meals, action.meal_id))
    if isinstance(action, UpsertWorkout):
        return replace(state, workouts=_upsert_by_id(state.workouts, action.workout))
    if isinstance(action, RemoveWorkout):
        return replace(state, workouts=_without_id(state.workouts, action.workout_id))
    if isinstance(action, SetWeeklyPlan):
        return replace(state, weekly_plan=tuple(action.plan))
    if isinstance(action, SetTargets):
        return replace(state, targets=action.targets)
    if isinstance(action, SyncDay):
        return _sync_day(state, action.snapshot)
    if isinstance(action, SetProfile):
        return replace(state, profile=action.profile)
    if isinstance(action, SetUser):
        if state.user_id == action.user_id:
            return state
        return replace(default_state(state.active_date), user_id=action.user_id)
    raise TypeError(f"Unsupported action: {action!r}")
