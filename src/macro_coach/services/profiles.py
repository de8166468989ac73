"""User profile persistence and insight tracking."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol

from macro_coach.domain.records import PersistResult, UserProfile

_logger = logging.getLogger(__name__)

MAX_INSIGHTS = 20


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile for a user, if present."""

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace a profile and return the stored version."""


@dataclass
class ProfileService:
    """Load and save profiles, reporting write failures instead of raising."""

    repository: ProfileRepository

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self.repository.get_profile(user_id)

    def save_profile(self, profile: UserProfile) -> tuple[UserProfile, PersistResult]:
        stamped = replace(profile, updated_at=datetime.now(tz=UTC))
        try:
            stored = self.repository.upsert_profile(stamped)
        except Exception:
            _logger.exception("Failed to save profile for user %s", profile.user_id)
            return stamped, PersistResult(
                success=False, message="Could not save your profile right now."
            )
        return stored, PersistResult(success=True)

    def append_insight(
        self, profile: UserProfile | None, insight: str | None
    ) -> UserProfile | None:
        """Put ``insight`` first in the profile's insight list and persist it.

        Returns None when there is nothing to record. A failed save still
        returns the updated profile.
        """
        if profile is None or not profile.user_id:
            return None
        if not insight or not insight.strip():
            return None
        trimmed = insight.strip()
        if profile.insights and profile.insights[0] == trimmed:
            return profile
        others = (item for item in profile.insights if item != trimmed)
        insights = (trimmed, *others)[:MAX_INSIGHTS]
        updated = replace(
            profile,
            insights=insights,
            onboarding_data={**profile.onboarding_data, "insights": list(insights)},
        )
        stored, _ = self.save_profile(updated)
        return stored
