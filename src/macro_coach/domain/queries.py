"""Read-only aggregations over session state."""

from dataclasses import dataclass
from datetime import date, timedelta

from macro_coach.domain.macros import MacroBreakdown, sum_macros
from macro_coach.domain.meals import LOGGABLE_MEAL_TYPES
from macro_coach.domain.records import MealLog, WeeklyPlanEntry, WorkoutLog
from macro_coach.domain.rounding import round_half_up
from macro_coach.domain.state import CoachState

WEEK_LENGTH = 7


@dataclass(frozen=True)
class WeeklyWorkoutStats:
    workouts_completed: int
    total_minutes: int
    adherence: int


@dataclass(frozen=True)
class DaySummary:
    date: date
    meals: tuple[MealLog, ...]
    workouts: tuple[WorkoutLog, ...]
    totals: MacroBreakdown


def plan_weekday(day: date) -> int:
    """Weekday on the plan's numbering, 0 for Sunday through 6 for Saturday."""
    return (day.weekday() + 1) % WEEK_LENGTH


def get_meals_for_date(meals, day: date) -> tuple[MealLog, ...]:
    return tuple(meal for meal in meals if meal.date == day)


def get_workouts_for_date(workouts, day: date) -> tuple[WorkoutLog, ...]:
    return tuple(workout for workout in workouts if workout.date == day)


def calculate_daily_totals(meals) -> MacroBreakdown:
    return sum_macros(meal.macros for meal in meals)


def get_meals_by_type(meals) -> dict[str, list[MealLog]]:
    grouped: dict[str, list[MealLog]] = {
        meal_type: [] for meal_type in LOGGABLE_MEAL_TYPES
    }
    for meal in meals:
        grouped.setdefault(meal.type, []).append(meal)
    return grouped


def get_weekly_workout_stats(state: CoachState) -> WeeklyWorkoutStats:
    """Completed workouts in the Monday-start week containing the active date."""
    week_start = state.active_date - timedelta(days=state.active_date.weekday())
    completed = [
        workout
        for workout in state.workouts
        if 0 <= (workout.date - week_start).days < WEEK_LENGTH
        and workout.status == "completed"
    ]
    total_minutes = sum(workout.minutes for workout in completed)
    plan_minutes = sum(entry.minutes_target for entry in state.weekly_plan)
    adherence = (
        0
        if plan_minutes == 0
        else min(100, round_half_up(total_minutes / plan_minutes * 100))
    )
    return WeeklyWorkoutStats(
        workouts_completed=len(completed),
        total_minutes=total_minutes,
        adherence=adherence,
    )


def get_upcoming_plan(state: CoachState) -> WeeklyPlanEntry | None:
    """Next plan entry from today, wrapping around to the start of the week."""
    today = plan_weekday(state.active_date)
    ordered = sorted(state.weekly_plan, key=lambda entry: entry.weekday)
    for entry in ordered:
        if entry.weekday >= today:
            return entry
    return ordered[0] if ordered else None


def get_recent_meals(state: CoachState, limit: int = 3) -> list[MealLog]:
    return sorted(state.meals, key=lambda meal: meal.created_at, reverse=True)[:limit]


def get_day_summary(state: CoachState, day: date) -> DaySummary:
    meals = get_meals_for_date(state.meals, day)
    return DaySummary(
        date=day,
        meals=meals,
        workouts=get_workouts_for_date(state.workouts, day),
        totals=calculate_daily_totals(meals),
    )
