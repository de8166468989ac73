"""Confirming drafts into the daily log and keeping it in sync with storage."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import uuid4

from macro_coach.domain.macros import MacroBreakdown, macros_from_estimate, sum_macros
from macro_coach.domain.records import (
    CoachMessage,
    DaySnapshot,
    FoodItemDraft,
    MealLog,
    PersistResult,
    WorkoutLog,
    normalize_meal_source,
)
from macro_coach.domain.rounding import round_half_up
from macro_coach.domain.state import (
    AddMessage,
    CoachState,
    RemoveFoodItemDraft,
    RemoveMeal,
    RemoveMealDraft,
    SyncDay,
    UpsertMeal,
    UpsertWorkout,
    build_day_id,
    reduce_state,
)

_logger = logging.getLogger(__name__)

SIGN_IN_TO_SAVE = "Please sign in so I can save that to your log."
SAVE_FAILED = "I couldn't save that right now. Refresh the day to see what was kept."


class DayRepository(Protocol):
    """Persistence interface for days, meals and workouts."""

    def upsert_day(
        self,
        day_id: str,
        user_id: str,
        day: date,
        targets: MacroBreakdown | None = None,
    ) -> None:
        """Create the day row if needed and update its targets."""

    def upsert_meal(self, meal: MealLog) -> MealLog:
        """Create or replace a meal and return the stored version."""

    def delete_meal(self, meal_id: str) -> None:
        """Delete a meal by id."""

    def upsert_workout(self, workout: WorkoutLog) -> WorkoutLog:
        """Create or replace a workout and return the stored version."""

    def get_day_snapshot(self, user_id: str, day: date) -> DaySnapshot:
        """Return all meals and workouts stored for a user's day."""


@dataclass(frozen=True)
class LogbookUpdate:
    """New session state plus the outcome of the write that produced it."""

    state: CoachState
    result: PersistResult


def _failure(state: CoachState, message: str) -> LogbookUpdate:
    return LogbookUpdate(state, PersistResult(success=False, message=message))


def added_message(meals: list[MealLog]) -> str:
    """Confirmation line shown after meals are saved."""
    names = ", ".join(name for meal in meals for name in meal.items)
    totals = sum_macros(meal.macros for meal in meals)
    return (
        f"Added {names} (~{round_half_up(totals.protein)}g protein / "
        f"{round_half_up(totals.calories)} cal)."
    )


@dataclass
class LogbookService:
    """Apply log changes to session state first, then persist them.

    A failed write is reported in the result but the in-memory change is
    kept; a later day sync reconciles it.
    """

    repository: DayRepository

    def confirm_food_item(
        self, state: CoachState, draft_id: str, now: datetime | None = None
    ) -> LogbookUpdate:
        draft = next((d for d in state.food_item_drafts if d.id == draft_id), None)
        if draft is None:
            return _failure(state, "That item is no longer waiting to be logged.")
        return self._confirm_food_items(state, [draft], now)

    def confirm_food_item_group(
        self, state: CoachState, group_id: str, now: datetime | None = None
    ) -> LogbookUpdate:
        drafts = [d for d in state.food_item_drafts if d.group_id == group_id]
        if not drafts:
            return _failure(state, "Those items are no longer waiting to be logged.")
        return self._confirm_food_items(state, drafts, now)

    def confirm_meal_draft(
        self, state: CoachState, draft_id: str, now: datetime | None = None
    ) -> LogbookUpdate:
        """Save a whole-meal draft as one meal."""
        draft = next((d for d in state.meal_drafts if d.id == draft_id), None)
        if draft is None:
            return _failure(state, "That meal is no longer waiting to be logged.")
        if state.user_id is None:
            return _failure(state, SIGN_IN_TO_SAVE)
        now = now or datetime.now(tz=UTC)
        macros = draft.macros or sum_macros(
            macros_from_estimate(item.nutrition_estimate) for item in draft.items
        )
        meal = MealLog(
            id=str(uuid4()),
            day_id=build_day_id(state.user_id, state.active_date),
            date=state.active_date,
            type=draft.meal_type or "snack",
            items=tuple(item.name for item in draft.items),
            macros=macros,
            source=normalize_meal_source(draft.source),
            created_at=now,
        )
        state = reduce_state(state, UpsertMeal(meal))
        state = reduce_state(state, RemoveMealDraft(draft.id))
        return self._save_meals(state, [meal], now)

    def dismiss_food_item(self, state: CoachState, draft_id: str) -> CoachState:
        return reduce_state(state, RemoveFoodItemDraft(draft_id))

    def dismiss_food_item_group(self, state: CoachState, group_id: str) -> CoachState:
        for draft in state.food_item_drafts:
            if draft.group_id == group_id:
                state = reduce_state(state, RemoveFoodItemDraft(draft.id))
        return state

    def record_workout(self, state: CoachState, workout: WorkoutLog) -> LogbookUpdate:
        if state.user_id is None:
            return _failure(state, SIGN_IN_TO_SAVE)
        state = reduce_state(state, UpsertWorkout(workout))
        try:
            self.repository.upsert_day(workout.day_id, state.user_id, workout.date)
            stored = self.repository.upsert_workout(workout)
        except Exception:
            _logger.exception("Failed to save workout %s", workout.id)
            return LogbookUpdate(
                state,
                PersistResult(success=False, message=SAVE_FAILED, workout=workout),
            )
        return LogbookUpdate(state, PersistResult(success=True, workout=stored))

    def update_meal(
        self,
        state: CoachState,
        meal_id: str,
        meal_type: str | None = None,
        items: tuple[str, ...] | None = None,
        macros: MacroBreakdown | None = None,
    ) -> LogbookUpdate:
        meal = next((meal for meal in state.meals if meal.id == meal_id), None)
        if meal is None:
            return _failure(state, "I couldn't find that meal.")
        updated = replace(
            meal,
            type=meal_type or meal.type,
            items=tuple(items) if items is not None else meal.items,
            macros=macros or meal.macros,
        )
        state = reduce_state(state, UpsertMeal(updated))
        try:
            stored = self.repository.upsert_meal(updated)
        except Exception:
            _logger.exception("Failed to update meal %s", meal_id)
            return LogbookUpdate(
                state,
                PersistResult(success=False, message=SAVE_FAILED, meal=updated),
            )
        return LogbookUpdate(state, PersistResult(success=True, meal=stored))

    def remove_meal(self, state: CoachState, meal_id: str) -> LogbookUpdate:
        state = reduce_state(state, RemoveMeal(meal_id))
        try:
            self.repository.delete_meal(meal_id)
        except Exception:
            _logger.exception("Failed to delete meal %s", meal_id)
            return _failure(state, SAVE_FAILED)
        return LogbookUpdate(state, PersistResult(success=True))

    def sync_day(self, state: CoachState, day: date | None = None) -> CoachState:
        """Replace the day's meals and workouts with what storage holds."""
        if state.user_id is None:
            return state
        day = day or state.active_date
        try:
            snapshot = self.repository.get_day_snapshot(state.user_id, day)
        except Exception:
            _logger.exception("Failed to load %s for user %s", day, state.user_id)
            return state
        return reduce_state(state, SyncDay(snapshot))

    def _confirm_food_items(
        self, state: CoachState, drafts: list[FoodItemDraft], now: datetime | None
    ) -> LogbookUpdate:
        if state.user_id is None:
            return _failure(state, SIGN_IN_TO_SAVE)
        now = now or datetime.now(tz=UTC)
        day_id = build_day_id(state.user_id, state.active_date)

        meals = []
        for draft in drafts:
            meal = MealLog(
                id=str(uuid4()),
                day_id=day_id,
                date=state.active_date,
                type=draft.meal_type,
                items=(draft.item.name,),
                macros=macros_from_estimate(draft.item.nutrition_estimate),
                source="text",
                created_at=now,
            )
            state = reduce_state(state, UpsertMeal(meal))
            state = reduce_state(state, RemoveFoodItemDraft(draft.id))
            meals.append(meal)
        return self._save_meals(state, meals, now)

    def _save_meals(
        self, state: CoachState, meals: list[MealLog], now: datetime
    ) -> LogbookUpdate:
        day_id = meals[0].day_id
        try:
            self.repository.upsert_day(day_id, state.user_id, state.active_date)
            stored = [self.repository.upsert_meal(meal) for meal in meals]
        except Exception:
            _logger.exception("Failed to save %s meal(s) for %s", len(meals), day_id)
            return LogbookUpdate(
                state,
                PersistResult(success=False, message=SAVE_FAILED, meal=meals[0]),
            )

        state = self.sync_day(state, state.active_date)
        content = added_message(meals)
        confirmation = CoachMessage(
            id=str(uuid4()), role="coach", content=content, created_at=now
        )
        state = reduce_state(state, AddMessage(confirmation))
        return LogbookUpdate(
            state, PersistResult(success=True, message=content, meal=stored[0])
        )
