"""Pydantic models for HTTP request payloads."""

import datetime

from pydantic import BaseModel, Field, field_validator

from macro_coach.domain.macros import MacroBreakdown


class MacrosPayload(BaseModel):
    """Macro totals sent by the client."""

    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    fat: float = Field(ge=0)
    carbs: float = Field(ge=0)

    def to_domain(self) -> MacroBreakdown:
        return MacroBreakdown(
            calories=self.calories,
            protein=self.protein,
            fat=self.fat,
            carbs=self.carbs,
        )


class CoachMessageRequest(BaseModel):
    """A chat message for the coach."""

    text: str
    date: datetime.date | None = None


class MealParseRequest(BaseModel):
    """Free-text meal description to turn into a draft."""

    text: str = Field(min_length=1)
    meal_type: str | None = None


class MealConfirmRequest(BaseModel):
    """A reviewed meal draft to save."""

    date: datetime.date
    meal_type: str
    items: list[str] = Field(min_length=1)
    macros: MacrosPayload
    source: str | None = None
    original_text: str = ""
    confidence: str = "medium"

    @field_validator("items")
    @classmethod
    def _strip_items(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item.strip()]
        if not cleaned:
            raise ValueError("items must contain at least one name")
        return cleaned


class MealUpdateRequest(BaseModel):
    """Explicit edit of a saved meal; omitted fields stay unchanged."""

    date: datetime.date
    meal_type: str | None = None
    items: list[str] | None = None
    macros: MacrosPayload | None = None
