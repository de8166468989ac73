"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import pytest

from macro_coach.adapters.supabase_day_repository import SupabaseDayRepository
from macro_coach.adapters.supabase_message_repository import (
    SupabaseMessageRepository,
)
from macro_coach.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from macro_coach.domain.macros import MacroBreakdown
from macro_coach.domain.records import CoachMessage
from macro_coach.domain.state import build_day_id
from tests.conftest import TODAY, make_meal, make_workout, onboarded_profile

DAY_ID = build_day_id("user-1", TODAY)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": [], "delete": []}
    )
    payloads: list[object] = field(default_factory=list)
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    orders: list[tuple[str, bool]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.payloads.append(payload)
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.orders.append((column, desc))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _meal_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": "meal-1",
        "day_id": DAY_ID,
        "type": "lunch",
        "items_json": ["chicken", "rice"],
        "macros_json": {"calories": 600, "protein": 45, "fat": 12, "carbs": 60},
        "source": "text",
        "created_at": "2024-05-15T12:00:00+00:00",
    }
    row.update(overrides)
    return row


def test_day_snapshot_reads_meals_workouts_and_targets() -> None:
    client = FakeSupabaseClient()
    client.table("days").queue(
        "select",
        [{"id": DAY_ID, "targets_json": {"calories": 1800, "protein": 150}}],
    )
    client.table("meals").queue(
        "select",
        [_meal_row(items_json=[{"name": "toast"}, {"raw_text": "jam"}, ""])],
    )
    client.table("workouts").queue(
        "select",
        [
            {
                "id": "workout-1",
                "day_id": DAY_ID,
                "type": "Run",
                "minutes": 30,
                "distance": "5",
                "intensity": "moderate",
                "created_at": "2024-05-15T07:00:00+00:00",
            }
        ],
    )

    snapshot = SupabaseDayRepository(client).get_day_snapshot("user-1", TODAY)

    (meal,) = snapshot.meals
    (workout,) = snapshot.workouts
    assert snapshot.targets == MacroBreakdown(
        calories=1800, protein=150, fat=0, carbs=0
    )
    assert meal.items == ("toast", "jam")
    assert meal.date == TODAY
    assert meal.macros.protein == 45
    assert workout.distance == 5.0
    assert workout.status == "completed"
    assert ("day_id", DAY_ID) in client.table("meals").last_filters
    assert client.table("workouts").orders == [("created_at", False)]
    assert client.table("days").payloads == []


def test_day_snapshot_creates_missing_day() -> None:
    client = FakeSupabaseClient()

    snapshot = SupabaseDayRepository(client).get_day_snapshot("user-1", TODAY)

    assert snapshot.meals == ()
    assert snapshot.targets is None
    assert client.table("days").payloads == [
        {"id": DAY_ID, "user_id": "user-1", "date": "2024-05-15"}
    ]


def test_upsert_day_stores_targets() -> None:
    client = FakeSupabaseClient()
    targets = MacroBreakdown(calories=2000, protein=140, fat=65, carbs=200)

    SupabaseDayRepository(client).upsert_day(DAY_ID, "user-1", TODAY, targets)

    (payload,) = client.table("days").payloads
    assert payload["targets_json"] == {
        "calories": 2000,
        "protein": 140,
        "fat": 65,
        "carbs": 200,
    }


def test_upsert_meal_normalizes_source() -> None:
    client = FakeSupabaseClient()
    meal = make_meal(items=("chicken", "rice"))
    client.table("meals").queue("upsert", [_meal_row(id=meal.id, source="est")])

    stored = SupabaseDayRepository(client).upsert_meal(meal)

    (payload,) = client.table("meals").payloads
    assert payload["source"] == "api"
    assert payload["items_json"] == ["chicken", "rice"]
    assert stored.id == meal.id
    assert stored.source == "est"


def test_stored_meal_date_comes_from_day_id() -> None:
    client = FakeSupabaseClient()
    other_day_id = build_day_id("user::1", date(2024, 5, 14))
    client.table("meals").queue("upsert", [_meal_row(day_id=other_day_id)])

    stored = SupabaseDayRepository(client).upsert_meal(make_meal())

    assert stored.day_id == other_day_id
    assert stored.date == date(2024, 5, 14)


def test_upsert_meal_without_rows_raises() -> None:
    repository = SupabaseDayRepository(FakeSupabaseClient())

    with pytest.raises(RuntimeError):
        repository.upsert_meal(make_meal())


def test_upsert_workout_and_delete_meal() -> None:
    client = FakeSupabaseClient()
    workout = make_workout()
    client.table("workouts").queue(
        "upsert",
        [
            {
                "id": workout.id,
                "day_id": workout.day_id,
                "type": "Run",
                "minutes": 30,
                "status": "completed",
                "intensity": "moderate",
                "created_at": workout.created_at.isoformat(),
            }
        ],
    )
    repository = SupabaseDayRepository(client)

    stored = repository.upsert_workout(workout)
    repository.delete_meal("meal-1")

    assert stored == workout
    assert client.table("meals").last_filters == [("id", "meal-1")]


def test_profile_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    profiles = client.table("profiles")
    row = {
        "user_id": "user-1",
        "first_name": "Sam",
        "height_cm": 178,
        "age": 34,
        "goals": "muscle gain",
        "insights_json": None,
        "onboarding_step": 16,
        "onboarding_data": {"insights": ["Likes oats"]},
        "onboarding_completed": True,
        "updated_at": "2024-05-15T09:00:00+00:00",
    }
    profiles.queue("upsert", [row])
    profiles.queue("select", [row])
    repository = SupabaseProfileRepository(client)

    stored = repository.upsert_profile(onboarded_profile())
    fetched = repository.get_profile("user-1")

    assert stored == fetched
    assert fetched.height_cm == 178.0
    assert fetched.insights == ("Likes oats",)
    assert fetched.updated_at == datetime(2024, 5, 15, 9, tzinfo=UTC)
    assert profiles.payloads[0]["insights_json"] == []


def test_profile_repository_missing_profile() -> None:
    repository = SupabaseProfileRepository(FakeSupabaseClient())

    assert repository.get_profile("nobody") is None


def test_message_repository_returns_chronological_history() -> None:
    client = FakeSupabaseClient()
    messages = client.table("chat_messages")
    messages.queue(
        "select",
        [
            {
                "id": "m2",
                "role": "coach",
                "content": "Nice!",
                "metadata": {"intent": "logMeal"},
                "created_at": "2024-05-15T12:01:00+00:00",
            },
            {
                "id": "m1",
                "role": "user",
                "content": "I had soup",
                "created_at": "2024-05-15T12:00:00+00:00",
            },
        ],
    )
    repository = SupabaseMessageRepository(client)

    history = repository.list_messages("user-1", limit=2)
    repository.append_message(
        "user-1",
        CoachMessage(
            id="m3",
            role="user",
            content="thanks",
            created_at=datetime(2024, 5, 15, 12, 2, tzinfo=UTC),
        ),
    )

    assert [m.id for m in history] == ["m1", "m2"]
    assert history[1].metadata == {"intent": "logMeal"}
    assert messages.orders == [("created_at", True)]
    assert messages.payloads[0]["user_id"] == "user-1"
    assert messages.payloads[0]["created_at"] == "2024-05-15T12:02:00+00:00"
