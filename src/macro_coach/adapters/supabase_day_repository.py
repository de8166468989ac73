"""Supabase repository for days, meals and workouts."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from macro_coach.domain.macros import ZERO_MACROS, MacroBreakdown
from macro_coach.domain.records import (
    DaySnapshot,
    MealLog,
    WorkoutLog,
    normalize_meal_source,
)
from macro_coach.domain.state import build_day_id, parse_day_id
from macro_coach.services.logbook import DayRepository

_MEAL_COLUMNS = "id, day_id, type, items_json, macros_json, source, created_at"
_WORKOUT_COLUMNS = (
    "id, day_id, type, minutes, distance, raw_text, intensity, description, "
    "status, created_at"
)


@dataclass
class SupabaseDayRepository(DayRepository):
    """Supabase implementation for the daily log."""

    client: Client

    def upsert_day(
        self,
        day_id: str,
        user_id: str,
        day: date,
        targets: MacroBreakdown | None = None,
    ) -> None:
        """Create the day row, updating targets when given."""
        payload: dict[str, object] = {
            "id": day_id,
            "user_id": user_id,
            "date": day.isoformat(),
        }
        if targets is not None:
            payload["targets_json"] = _macros_to_json(targets)
        self.client.table("days").upsert(payload).execute()

    def upsert_meal(self, meal: MealLog) -> MealLog:
        """Create or replace a meal row."""
        response = (
            self.client.table("meals")
            .upsert(
                {
                    "id": meal.id,
                    "day_id": meal.day_id,
                    "type": meal.type,
                    "items_json": list(meal.items),
                    "macros_json": _macros_to_json(meal.macros),
                    "source": normalize_meal_source(meal.source),
                    "created_at": meal.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save meal")
        return _parse_meal(response.data[0])

    def delete_meal(self, meal_id: str) -> None:
        """Delete a meal row."""
        self.client.table("meals").delete().eq("id", meal_id).execute()

    def upsert_workout(self, workout: WorkoutLog) -> WorkoutLog:
        """Create or replace a workout row."""
        response = (
            self.client.table("workouts")
            .upsert(
                {
                    "id": workout.id,
                    "day_id": workout.day_id,
                    "type": workout.type,
                    "minutes": workout.minutes,
                    "distance": workout.distance,
                    "raw_text": workout.raw_text,
                    "intensity": workout.intensity,
                    "description": workout.description,
                    "status": workout.status,
                    "created_at": workout.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save workout")
        return _parse_workout(response.data[0])

    def get_day_snapshot(self, user_id: str, day: date) -> DaySnapshot:
        """Return the day's meals and workouts, creating the day row if missing."""
        day_id = build_day_id(user_id, day)
        response = (
            self.client.table("days")
            .select("id, targets_json")
            .eq("id", day_id)
            .limit(1)
            .execute()
        )
        targets = None
        if response.data:
            targets = _parse_macros(response.data[0].get("targets_json"))
        else:
            self.upsert_day(day_id, user_id, day)

        meals = (
            self.client.table("meals")
            .select(_MEAL_COLUMNS)
            .eq("day_id", day_id)
            .order("created_at", desc=False)
            .execute()
        )
        workouts = (
            self.client.table("workouts")
            .select(_WORKOUT_COLUMNS)
            .eq("day_id", day_id)
            .order("created_at", desc=False)
            .execute()
        )
        return DaySnapshot(
            day_id=day_id,
            date=day,
            meals=tuple(_parse_meal(row) for row in meals.data or []),
            workouts=tuple(_parse_workout(row) for row in workouts.data or []),
            targets=targets,
        )


def _macros_to_json(macros: MacroBreakdown) -> dict[str, float]:
    return {
        "calories": macros.calories,
        "protein": macros.protein,
        "fat": macros.fat,
        "carbs": macros.carbs,
    }


def _parse_macros(raw: object) -> MacroBreakdown | None:
    if not isinstance(raw, dict):
        return None
    return MacroBreakdown(
        calories=float(raw.get("calories") or 0),
        protein=float(raw.get("protein") or 0),
        fat=float(raw.get("fat") or 0),
        carbs=float(raw.get("carbs") or 0),
    )


def _parse_items(raw: object) -> tuple[str, ...]:
    """Items are stored as names; older rows may hold objects with a name."""
    if not isinstance(raw, list):
        return ()
    names = []
    for entry in raw:
        if isinstance(entry, dict):
            name = entry.get("name") or entry.get("raw_text")
            if name:
                names.append(str(name))
        elif entry:
            names.append(str(entry))
    return tuple(names)


def _parse_meal(row: dict[str, object]) -> MealLog:
    day_id = str(row["day_id"])
    return MealLog(
        id=str(row["id"]),
        day_id=day_id,
        date=parse_day_id(day_id)[1],
        type=str(row["type"]),
        items=_parse_items(row.get("items_json")),
        macros=_parse_macros(row.get("macros_json")) or ZERO_MACROS,
        source=str(row.get("source") or "est"),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def _parse_workout(row: dict[str, object]) -> WorkoutLog:
    day_id = str(row["day_id"])
    distance = row.get("distance")
    return WorkoutLog(
        id=str(row["id"]),
        day_id=day_id,
        date=parse_day_id(day_id)[1],
        type=str(row["type"]),
        minutes=int(row.get("minutes") or 0),
        status=str(row.get("status") or "completed"),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        intensity=row.get("intensity"),
        description=row.get("description"),
        distance=float(distance) if distance is not None else None,
        raw_text=row.get("raw_text"),
    )
