"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from macro_coach.domain.macros import MacroBreakdown
from macro_coach.domain.state import DEFAULT_TARGETS

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
_TARGET_FIELDS = 4


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-5-mini"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    default_targets: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_default_targets(raw: str | None) -> MacroBreakdown:
    """Parse "calories,protein,fat,carbs" into daily targets."""
    if raw is None:
        return DEFAULT_TARGETS
    chunks = [chunk.strip() for chunk in raw.split(",")]
    if len(chunks) != _TARGET_FIELDS:
        return DEFAULT_TARGETS
    try:
        calories, protein, fat, carbs = (float(chunk) for chunk in chunks)
    except ValueError:
        return DEFAULT_TARGETS
    if min(calories, protein, fat, carbs) < 0:
        return DEFAULT_TARGETS
    return MacroBreakdown(calories=calories, protein=protein, fat=fat, carbs=carbs)
