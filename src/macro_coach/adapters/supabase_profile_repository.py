"""Supabase-backed profile repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from macro_coach.domain.records import UserProfile
from macro_coach.services.profiles import ProfileRepository

_PROFILE_COLUMNS = (
    "user_id, username, first_name, last_name, height_cm, weight_kg, age, gender, "
    "goals, profile_summary, insights_json, onboarding_step, onboarding_data, "
    "onboarding_completed, updated_at"
)


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for user profiles."""

    client: Client

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile for a user, if present."""
        response = (
            self.client.table("profiles")
            .select(_PROFILE_COLUMNS)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace the profile row and return it."""
        response = (
            self.client.table("profiles")
            .upsert(
                {
                    "user_id": profile.user_id,
                    "username": profile.username,
                    "first_name": profile.first_name,
                    "last_name": profile.last_name,
                    "height_cm": profile.height_cm,
                    "weight_kg": profile.weight_kg,
                    "age": profile.age,
                    "gender": profile.gender,
                    "goals": profile.goals,
                    "profile_summary": profile.profile_summary,
                    "insights_json": list(profile.insights),
                    "onboarding_step": profile.onboarding_step,
                    "onboarding_data": profile.onboarding_data,
                    "onboarding_completed": profile.onboarding_completed,
                    "updated_at": (
                        profile.updated_at.isoformat() if profile.updated_at else None
                    ),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save profile")
        return _parse_profile(response.data[0])


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None


def _parse_profile(row: dict[str, object]) -> UserProfile:
    onboarding_data = row.get("onboarding_data") or {}
    insights = row.get("insights_json")
    if not isinstance(insights, list):
        insights = onboarding_data.get("insights") or []
    updated_at = row.get("updated_at")
    age = row.get("age")
    return UserProfile(
        user_id=str(row["user_id"]),
        username=row.get("username"),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        height_cm=_optional_float(row.get("height_cm")),
        weight_kg=_optional_float(row.get("weight_kg")),
        age=int(age) if age is not None else None,
        gender=row.get("gender"),
        goals=row.get("goals"),
        profile_summary=row.get("profile_summary"),
        insights=tuple(str(insight) for insight in insights),
        onboarding_step=int(row.get("onboarding_step") or 0),
        onboarding_data=dict(onboarding_data),
        onboarding_completed=bool(row.get("onboarding_completed")),
        updated_at=datetime.fromisoformat(str(updated_at)) if updated_at else None,
    )
