"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import UTC, date, datetime
from uuid import uuid4

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status

from macro_coach.api.models import (
    CoachMessageRequest,
    MealConfirmRequest,
    MealParseRequest,
    MealUpdateRequest,
)
from macro_coach.app_logging import configure_logging
from macro_coach.containers import AppContainer
from macro_coach.domain.meal_text import loggable_meal_type
from macro_coach.domain.meals import StructuredMealItem
from macro_coach.domain.queries import (
    get_day_summary,
    get_meals_by_type,
    get_recent_meals,
    get_upcoming_plan,
    get_weekly_workout_stats,
)
from macro_coach.domain.records import MealDraft
from macro_coach.domain.state import (
    AddMealDraft,
    CoachState,
    build_day_id,
    reduce_state,
)


async def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """Ensure requests carry the signed-in user's id."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return x_user_id.strip()


async def optional_user(x_user_id: str | None = Header(default=None)) -> str | None:
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return None


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/coach/messages")
    async def coach_message(
        payload: CoachMessageRequest,
        request: Request,
        user_id: str | None = Depends(optional_user),
    ) -> dict[str, object]:
        """Run one chat turn and return the coach reply."""
        state_container: AppContainer = request.app.state.container
        active_date = payload.date or _today()
        state = state_container.session_service.load(user_id, active_date)
        state, reply = await state_container.chat_service.send(state, payload.text)
        if reply is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Message text is empty",
            )
        return {
            "reply": reply.coach_message,
            "intent": reply.intent.type,
            "food_item_drafts": [asdict(draft) for draft in reply.food_item_drafts],
            "workout": asdict(reply.workout_log) if reply.workout_log else None,
            "profile": asdict(state.profile) if state.profile else None,
            "day": _day_payload(state, active_date),
        }

    @app.post("/meals/parse")
    async def parse_meal(
        payload: MealParseRequest, request: Request
    ) -> dict[str, object]:
        """Turn meal text into a draft for review."""
        state_container: AppContainer = request.app.state.container
        draft = await state_container.meal_analysis.draft_meal(
            payload.text, meal_type_hint=payload.meal_type
        )
        return {"draft": asdict(draft), "source": draft.source}

    @app.post("/meals/confirm")
    async def confirm_meal(
        payload: MealConfirmRequest,
        request: Request,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Save a reviewed meal draft."""
        state_container: AppContainer = request.app.state.container
        state = state_container.session_service.load(user_id, payload.date)
        draft = MealDraft(
            id=str(uuid4()),
            created_at=datetime.now(tz=UTC),
            original_text=payload.original_text,
            confidence=payload.confidence,
            source=payload.source or "manual",
            meal_type=loggable_meal_type(payload.meal_type, payload.original_text),
            items=tuple(
                StructuredMealItem(raw_text=name, name=name) for name in payload.items
            ),
            macros=payload.macros.to_domain(),
        )
        state = reduce_state(state, AddMealDraft(draft))
        update = state_container.logbook.confirm_meal_draft(state, draft.id)
        if not update.result.success:
            logger.warning("Meal confirmation failed for user %s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=update.result.message,
            )
        return {
            "status": "ok",
            "message": update.result.message,
            "meal": asdict(update.result.meal),
            "day": _day_payload(update.state, payload.date),
        }

    @app.put("/meals/{meal_id}")
    async def update_meal(
        meal_id: str,
        payload: MealUpdateRequest,
        request: Request,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Edit a saved meal's type, items or macros."""
        state_container: AppContainer = request.app.state.container
        state = state_container.session_service.load(user_id, payload.date)
        if not any(meal.id == meal_id for meal in state.meals):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        update = state_container.logbook.update_meal(
            state,
            meal_id,
            meal_type=(
                loggable_meal_type(payload.meal_type) if payload.meal_type else None
            ),
            items=tuple(payload.items) if payload.items is not None else None,
            macros=payload.macros.to_domain() if payload.macros else None,
        )
        if not update.result.success:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=update.result.message,
            )
        return {"status": "ok", "meal": asdict(update.result.meal)}

    @app.delete("/meals/{meal_id}")
    async def delete_meal(
        meal_id: str,
        day: date,
        request: Request,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Remove a saved meal."""
        state_container: AppContainer = request.app.state.container
        state = state_container.session_service.load(user_id, day)
        update = state_container.logbook.remove_meal(state, meal_id)
        if not update.result.success:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=update.result.message,
            )
        return {"status": "ok", "day": _day_payload(update.state, day)}

    @app.get("/days/{day}")
    async def day_snapshot(
        day: date, request: Request, user_id: str = Depends(require_user)
    ) -> dict[str, object]:
        """Return the day's log, totals, weekly stats and upcoming plan."""
        state_container: AppContainer = request.app.state.container
        state = state_container.session_service.load(user_id, day)
        return _day_payload(state, day)

    return app


def _today() -> date:
    return datetime.now().astimezone().date()


def _day_payload(state: CoachState, day: date) -> dict[str, object]:
    summary = get_day_summary(state, day)
    plan = get_upcoming_plan(state)
    return {
        "day_id": build_day_id(state.user_id, day) if state.user_id else None,
        "date": day,
        "targets": asdict(state.targets),
        "meals": [asdict(meal) for meal in summary.meals],
        "meals_by_type": {
            meal_type: [asdict(meal) for meal in meals]
            for meal_type, meals in get_meals_by_type(summary.meals).items()
        },
        "recent_meals": [asdict(meal) for meal in get_recent_meals(state)],
        "workouts": [asdict(workout) for workout in summary.workouts],
        "totals": asdict(summary.totals),
        "weekly_stats": asdict(get_weekly_workout_stats(state)),
        "upcoming_plan": asdict(plan) if plan else None,
    }
