"""OpenAI Responses API client for text and JSON completions."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from macro_coach.services.language_model import LanguageModelClient


@dataclass
class OpenAIResponsesClient(LanguageModelClient):
    """Language model client backed by the OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIResponsesClient":
        """Create an OpenAI client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def complete_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        user_input: str,
    ) -> dict[str, object]:
        """Request a JSON object reply and decode it."""
        output_text = await self._create(
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
            instructions=instructions,
            user_input=user_input,
            text_format={"format": {"type": "json_object"}},
        )
        payload = json.loads(output_text)
        if not isinstance(payload, dict):
            raise RuntimeError("OpenAI returned JSON that is not an object")
        return payload

    async def complete_text(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        user_input: str,
    ) -> str:
        """Request a plain text reply."""
        output_text = await self._create(
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
            instructions=instructions,
            user_input=user_input,
        )
        return output_text.strip()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()

    async def _create(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        user_input: str,
        text_format: dict[str, object] | None = None,
    ) -> str:
        request_payload: dict[str, object] = {
            "model": model,
            "instructions": instructions,
            "input": user_input,
            "store": store,
        }
        if text_format:
            request_payload["text"] = text_format
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text or not output_text.strip():
            raise RuntimeError("OpenAI returned an empty response")
        return output_text
