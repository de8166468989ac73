"""Routing one chat message to the right flow and composing the coach reply."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from uuid import uuid4

from macro_coach.domain.intents import CoachIntent, detect_intent
from macro_coach.domain.macros import macros_for_items, sum_macros
from macro_coach.domain.meals import StructuredMealItem
from macro_coach.domain.queries import (
    calculate_daily_totals,
    get_meals_for_date,
    get_weekly_workout_stats,
)
from macro_coach.domain.records import FoodItemDraft, UserProfile, WorkoutLog
from macro_coach.domain.replies import (
    MEAL_FAILURE_MESSAGE,
    SIGN_IN_MESSAGE,
    WORKOUT_FAILURE_MESSAGE,
    describe_mood,
    describe_upcoming_plan,
    general_fallback,
    meal_logged_message,
    status_fallback,
    summarize_nutrition,
    summarize_progress,
    workout_logged_message,
)
from macro_coach.domain.rounding import round_half_up
from macro_coach.domain.state import CoachState, build_day_id
from macro_coach.domain.workouts import parse_workout
from macro_coach.services.coach import CoachContext, CoachReplyService, CoachResponse
from macro_coach.services.meal_analysis import MealAnalysisService
from macro_coach.services.onboarding import OnboardingService
from macro_coach.services.profiles import ProfileService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoachReply:
    """What the caller needs to apply after one message.

    Nothing here is persisted yet: drafts wait for confirmation, the workout
    and the profile update are written by the caller.
    """

    coach_message: str
    intent: CoachIntent
    food_item_drafts: tuple[FoodItemDraft, ...] = ()
    workout_log: WorkoutLog | None = None
    profile_update: UserProfile | None = None


def describe_items(items: tuple[StructuredMealItem, ...]) -> str:
    added = macros_for_items(items)
    names = ", ".join(item.name for item in items)
    return (
        f"{names} (~{round_half_up(added.protein)}g protein / "
        f"{round_half_up(added.calories)} cal)"
    )


@dataclass
class CoachOrchestrator:
    """Stateless router from a user message to a ``CoachReply``."""

    meal_analysis: MealAnalysisService
    coach: CoachReplyService
    onboarding: OnboardingService
    profile_service: ProfileService

    async def reply(
        self, message: str, state: CoachState, now: datetime | None = None
    ) -> CoachReply:
        now = now or datetime.now().astimezone()
        profile = state.profile
        if state.profile_loaded and profile is not None and profile.needs_onboarding:
            return await self._onboard(message, profile)

        intent = detect_intent(message)
        _logger.info("Detected intent %s", intent.type)
        if intent.type == "logMeal":
            return await self._log_meal(message, intent, state, now)
        if intent.type == "logWorkout":
            return await self._log_workout(message, intent, state, now)
        if intent.type == "askPlan":
            return CoachReply(describe_upcoming_plan(state), intent)
        if intent.type == "askNutritionSummary":
            return CoachReply(summarize_nutrition(state), intent)
        if intent.type == "askProgress":
            return CoachReply(summarize_progress(state), intent)
        if intent.type == "statusUpdate":
            energy_note = describe_mood(intent.mood, message)
            response = await self.coach.generate(
                message,
                state,
                CoachContext(intent="statusUpdate", energy_note=energy_note),
            )
            return self._with_insight(
                response, state, intent, fallback=status_fallback(energy_note)
            )

        response = await self.coach.generate(
            message, state, CoachContext(intent=intent.type)
        )
        return self._with_insight(
            response, state, intent, fallback=general_fallback(state)
        )

    async def _onboard(self, message: str, profile: UserProfile) -> CoachReply:
        outcome = await self.onboarding.handle(message, profile)
        stored, result = self.profile_service.save_profile(outcome.profile)
        if not result.success:
            _logger.warning("Onboarding progress for %s was not saved", profile.user_id)
        return CoachReply(
            coach_message=outcome.coach_message,
            intent=CoachIntent(type="unknown"),
            profile_update=stored,
        )

    async def _log_meal(
        self, message: str, intent: CoachIntent, state: CoachState, now: datetime
    ) -> CoachReply:
        text = intent.text or message
        try:
            analyzed = await self.meal_analysis.analyze(text, now=now)
            items = analyzed.items
            group_id = str(uuid4())
            drafts = tuple(
                FoodItemDraft(
                    id=str(uuid4()),
                    created_at=now,
                    meal_type=analyzed.meal_type,
                    group_id=group_id,
                    item=item,
                    original_text=text,
                    confidence=analyzed.confidence,
                    source=analyzed.nutrition_source,
                )
                for item in items
            )

            added = macros_for_items(items)
            today = calculate_daily_totals(
                get_meals_for_date(state.meals, state.active_date)
            )
            projected = sum_macros([today, added])
            response = await self.coach.generate(
                message,
                state,
                CoachContext(intent="logMeal", meal_summary=describe_items(items)),
            )
            reply = self._with_insight(
                response,
                state,
                intent,
                fallback=meal_logged_message(added, projected, analyzed.confidence),
            )
        except Exception:
            _logger.exception("Meal logging failed for %r", text)
            return CoachReply(MEAL_FAILURE_MESSAGE, intent)
        return replace(reply, food_item_drafts=drafts)

    async def _log_workout(
        self, message: str, intent: CoachIntent, state: CoachState, now: datetime
    ) -> CoachReply:
        if state.user_id is None:
            return CoachReply(SIGN_IN_MESSAGE, intent)
        text = intent.text or message
        try:
            parsed = parse_workout(text)
            workout = WorkoutLog(
                id=str(uuid4()),
                day_id=build_day_id(state.user_id, state.active_date),
                date=state.active_date,
                type=parsed.type,
                minutes=parsed.minutes,
                status=parsed.status,
                created_at=now,
                intensity=parsed.intensity,
                description=parsed.description,
                distance=parsed.distance,
                raw_text=text,
            )
            stats = get_weekly_workout_stats(state)
            summary = (
                f"{workout.type} for {workout.minutes} minutes "
                f"({workout.intensity}). This week so far: "
                f"{stats.workouts_completed} sessions, {stats.adherence}% of plan"
            )
            response = await self.coach.generate(
                message,
                state,
                CoachContext(intent="logWorkout", workout_summary=summary),
            )
            reply = self._with_insight(
                response, state, intent, fallback=workout_logged_message(workout, state)
            )
        except Exception:
            _logger.exception("Workout logging failed for %r", text)
            return CoachReply(WORKOUT_FAILURE_MESSAGE, intent)
        return replace(reply, workout_log=workout)

    def _with_insight(
        self,
        response: CoachResponse | None,
        state: CoachState,
        intent: CoachIntent,
        *,
        fallback: str,
    ) -> CoachReply:
        if response is None or not response.message.strip():
            return CoachReply(fallback, intent)
        profile_update = None
        if response.insight:
            profile_update = self.profile_service.append_insight(
                state.profile, response.insight
            )
        return CoachReply(response.message, intent, profile_update=profile_update)
