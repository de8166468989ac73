"""Deterministic coach replies used when no generated text is available."""

from macro_coach.domain.macros import MacroBreakdown
from macro_coach.domain.queries import (
    get_day_summary,
    get_upcoming_plan,
    get_weekly_workout_stats,
)
from macro_coach.domain.records import WorkoutLog
from macro_coach.domain.rounding import round_half_up
from macro_coach.domain.state import CoachState, UpsertWorkout, reduce_state

SIGN_IN_MESSAGE = "Please sign in so I can log your activity."
MEAL_FAILURE_MESSAGE = (
    "I can help you log that meal, but I ran into a technical issue. "
    "Can you try describing it again?"
)
WORKOUT_FAILURE_MESSAGE = (
    "I can help you log that workout, but I ran into a technical issue. "
    "Can you try describing it again?"
)


def describe_upcoming_plan(state: CoachState) -> str:
    plan = get_upcoming_plan(state)
    if plan is None:
        return "Let's keep today flexible. Take a short walk and check in afterwards."
    return (
        f"Today's plan: {plan.focus} for about {plan.minutes_target} minutes at a "
        f"{plan.suggested_intensity} pace. Want to stick with it or adjust?"
    )


def summarize_nutrition(state: CoachState) -> str:
    summary = get_day_summary(state, state.active_date)
    if not summary.meals:
        return (
            "No meals logged yet today. Share whatever you've eaten and I'll give "
            "you directional feedback."
        )
    totals = summary.totals
    gap = state.targets.protein - totals.protein
    if gap > 0:
        position = f"{round_half_up(gap)}g under"
    else:
        position = f"{round_half_up(-gap)}g over"
    return (
        f"You've logged {len(summary.meals)} meals today, putting you around "
        f"{round_half_up(totals.calories)} calories with "
        f"{round_half_up(totals.protein)}g protein. "
        f"That keeps you {position} the protein target."
    )


def summarize_progress(state: CoachState) -> str:
    stats = get_weekly_workout_stats(state)
    if stats.workouts_completed == 0:
        return (
            "No recorded movement this week yet. Even a 10-minute walk counts, so log "
            "it and I'll adjust your plan."
        )
    return (
        f"You've finished {stats.workouts_completed} sessions for "
        f"{stats.total_minutes} minutes. "
        f"That's about {stats.adherence}% of the plan so far. Nice consistency."
    )


def describe_mood(mood: str | None, message: str) -> str:
    if mood == "tired":
        return f'User reports low energy / feeling unwell: "{message}"'
    if mood == "sore":
        return f'User reports soreness and may need recovery: "{message}"'
    if mood == "energized":
        return f'User feels energized and ready for more: "{message}"'
    return f'User status update: "{message}"'


def meal_logged_message(
    added: MacroBreakdown, projected: MacroBreakdown, confidence: str = "medium"
) -> str:
    message = (
        f"Nice. That adds about {round_half_up(added.protein)}g protein and "
        f"{round_half_up(added.calories)} calories. Projected today → "
        f"{round_half_up(projected.protein)}g protein / "
        f"{round_half_up(projected.calories)} cal. Look good?"
    )
    if confidence == "low":
        return (
            f"{message} These numbers are a rough guess, so adjust the portions "
            "if they look off."
        )
    return message


def workout_logged_message(workout: WorkoutLog, state: CoachState) -> str:
    stats = get_weekly_workout_stats(reduce_state(state, UpsertWorkout(workout)))
    return (
        f"Logged {workout.type.lower()} for {workout.minutes} minutes. Week total → "
        f"{stats.workouts_completed} sessions / {stats.total_minutes} minutes "
        f"({stats.adherence}% of plan)."
    )


def status_fallback(energy_note: str | None) -> str:
    if energy_note and "unwell" in energy_note.lower():
        return (
            "Thanks for telling me. Let's listen to your body: take the day to "
            "recover with light movement or extra rest, and we'll reassess tomorrow."
        )
    return (
        "Thanks for the update. How can I help you with your nutrition or fitness "
        "goals today?"
    )


def general_fallback(state: CoachState) -> str:
    if get_weekly_workout_stats(state).workouts_completed == 0:
        return (
            "Thanks for the update. Want to log a short walk or stretch session? "
            "Even 10 minutes counts toward the plan."
        )
    if not get_day_summary(state, state.active_date).meals:
        return (
            "Tell me about your first meal when you grab it and I'll keep your macros "
            "directional, no calorie math required."
        )
    return "Thanks for sharing. Want me to log anything else or adjust today's plan?"
