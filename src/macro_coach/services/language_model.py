"""Language model interface used by parsing, enrichment and coaching services."""

from dataclasses import dataclass
from typing import Protocol


class LanguageModelClient(Protocol):
    """Interface for a remote text model."""

    async def complete_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        user_input: str,
    ) -> dict[str, object]:
        """Return the model's reply parsed as a JSON object."""

    async def complete_text(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        user_input: str,
    ) -> str:
        """Return the model's reply as plain text."""


@dataclass(frozen=True)
class ModelOptions:
    """Per-call model settings shared by every service that talks to the model."""

    model: str
    reasoning_effort: str | None = None
    store: bool = False
