"""One round of conversation: user message in, coach reply out, state updated."""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from macro_coach.domain.records import CoachMessage
from macro_coach.domain.state import (
    AddFoodItemDrafts,
    AddMessage,
    CoachState,
    SetProfile,
    reduce_state,
)
from macro_coach.services.logbook import LogbookService
from macro_coach.services.orchestrator import CoachOrchestrator, CoachReply
from macro_coach.services.sessions import MessageRepository

_logger = logging.getLogger(__name__)


@dataclass
class CoachChatService:
    """Apply an orchestrator reply to session state and persist what it produced."""

    orchestrator: CoachOrchestrator
    logbook: LogbookService
    message_repository: MessageRepository

    async def send(
        self, state: CoachState, text: str, now: datetime | None = None
    ) -> tuple[CoachState, CoachReply | None]:
        """Handle one user message; blank input leaves the state untouched."""
        content = text.strip()
        if not content:
            return state, None
        now = now or datetime.now().astimezone()

        user_message = CoachMessage(
            id=str(uuid4()), role="user", content=content, created_at=now
        )
        state = reduce_state(state, AddMessage(user_message))
        reply = await self.orchestrator.reply(content, state, now=now)

        if reply.food_item_drafts:
            state = reduce_state(state, AddFoodItemDrafts(reply.food_item_drafts))
        if reply.workout_log is not None:
            update = self.logbook.record_workout(state, reply.workout_log)
            state = update.state
            if not update.result.success:
                _logger.warning("Workout %s was not saved", reply.workout_log.id)
        if reply.profile_update is not None:
            state = reduce_state(state, SetProfile(reply.profile_update))

        coach_message = CoachMessage(
            id=str(uuid4()),
            role="coach",
            content=reply.coach_message,
            created_at=now,
            metadata={"intent": reply.intent.type},
        )
        state = reduce_state(state, AddMessage(coach_message))
        self._persist(state, user_message, coach_message)
        return state, reply

    def _persist(self, state: CoachState, *messages: CoachMessage) -> None:
        if state.user_id is None:
            return
        for message in messages:
            try:
                self.message_repository.append_message(state.user_id, message)
            except Exception:
                _logger.exception("Failed to store %s message", message.role)
