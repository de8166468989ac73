"""Hydrating a coach session from storage."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import uuid4

from macro_coach.domain.macros import MacroBreakdown
from macro_coach.domain.records import CoachMessage, UserProfile
from macro_coach.domain.state import (
    CoachState,
    ReplaceMessages,
    default_state,
    reduce_state,
)
from macro_coach.services.logbook import LogbookService
from macro_coach.services.profiles import ProfileService

_logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
DEFAULT_WELCOME = (
    "I'm your Coach. Tell me about your energy, meals, or movement today "
    "and I'll help you chart the next step."
)
ONBOARDING_WELCOME = (
    "Welcome! I'll ask a few quick questions to get to know you and tailor your plan."
)


class MessageRepository(Protocol):
    """Persistence interface for chat history."""

    def append_message(self, user_id: str, message: CoachMessage) -> None:
        """Store one chat message."""

    def list_messages(self, user_id: str, limit: int) -> list[CoachMessage]:
        """Return the most recent messages, oldest first."""


def welcome_message(
    profile: UserProfile | None, now: datetime | None = None
) -> CoachMessage:
    """Return the greeting shown when a session has no history."""
    onboarding = (
        profile is not None
        and profile.needs_onboarding
        and profile.onboarding_step == 0
    )
    return CoachMessage(
        id=str(uuid4()),
        role="coach",
        content=ONBOARDING_WELCOME if onboarding else DEFAULT_WELCOME,
        created_at=now or datetime.now(tz=UTC),
    )


@dataclass
class CoachSessionService:
    """Build the state a chat session starts from."""

    profile_service: ProfileService
    logbook: LogbookService
    message_repository: MessageRepository
    default_targets: MacroBreakdown | None = None
    history_limit: int = HISTORY_LIMIT

    def load(self, user_id: str | None, active_date: date) -> CoachState:
        state = default_state(active_date, self.default_targets)
        if user_id is None:
            return reduce_state(state, ReplaceMessages((welcome_message(None),)))

        profile = self._load_profile(user_id)
        state = replace(state, user_id=user_id, profile=profile, profile_loaded=True)
        state = self.logbook.sync_day(state, active_date)

        messages = self._load_messages(user_id)
        if not messages:
            messages = [welcome_message(profile)]
        return reduce_state(state, ReplaceMessages(tuple(messages)))

    def _load_profile(self, user_id: str) -> UserProfile:
        try:
            profile = self.profile_service.get_profile(user_id)
        except Exception:
            _logger.exception("Failed to load profile for user %s", user_id)
            profile = None
        if profile is None:
            _logger.info("No profile for user %s, starting onboarding", user_id)
            return UserProfile(user_id=user_id)
        return profile

    def _load_messages(self, user_id: str) -> list[CoachMessage]:
        try:
            return self.message_repository.list_messages(user_id, self.history_limit)
        except Exception:
            _logger.exception("Failed to load chat history for user %s", user_id)
            return []
