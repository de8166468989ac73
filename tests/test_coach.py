"""Tests for coach reply generation."""

import asyncio
from dataclasses import replace

from macro_coach.domain.state import default_state
from macro_coach.services.coach import (
    CoachContext,
    CoachReplyService,
    build_coach_prompt,
    parse_coach_output,
)
from macro_coach.services.language_model import ModelOptions
from tests.conftest import TODAY, FakeLanguageModel, make_meal, make_workout


def test_parse_coach_output_splits_reply_and_insight() -> None:
    response = parse_coach_output("Reply: Great job today!\nInsight: Trains early")

    assert response.message == "Great job today!"
    assert response.insight == "Trains early"


def test_parse_coach_output_ignores_empty_insight() -> None:
    response = parse_coach_output("Reply: Nice.\nInsight: none")

    assert response.insight is None


def test_parse_coach_output_uses_unlabelled_text() -> None:
    response = parse_coach_output("Nice work today.\n\nKeep it up.")

    assert response.message == "Nice work today. Keep it up."
    assert response.insight is None


def test_parse_coach_output_without_reply() -> None:
    assert parse_coach_output("") is None
    assert parse_coach_output(None) is None
    assert parse_coach_output("Insight: likes tea") is None


def test_build_coach_prompt_includes_day_context() -> None:
    state = replace(
        default_state(TODAY),
        meals=(make_meal(),),
        workouts=(make_workout(),),
    )

    prompt = build_coach_prompt(
        "how am I doing?", state, CoachContext(intent="status")
    )

    assert 'User message: "how am I doing?"' in prompt
    assert "Intent: status" in prompt
    assert "Today so far: 500/2200 kcal, 40/130g protein" in prompt
    assert "Workouts today: Run 30 min (completed)" in prompt
    assert "Upcoming plan: Strength B, 45 minutes (moderate)" in prompt
    assert "No earlier messages." in prompt


def test_generate_without_client_returns_none(options: ModelOptions) -> None:
    service = CoachReplyService(None, options)

    reply = asyncio.run(
        service.generate("hi", default_state(TODAY), CoachContext())
    )

    assert reply is None


def test_generate_parses_model_reply(options: ModelOptions) -> None:
    client = FakeLanguageModel(
        text_responses=["Reply: Keep going!\nInsight: Prefers evening runs"]
    )
    service = CoachReplyService(client, options)

    reply = asyncio.run(
        service.generate("ran tonight", default_state(TODAY), CoachContext())
    )

    assert reply.message == "Keep going!"
    assert reply.insight == "Prefers evening runs"
    assert client.calls[0]["kind"] == "text"


def test_generate_returns_none_on_failure(options: ModelOptions) -> None:
    client = FakeLanguageModel(text_responses=[RuntimeError("boom")])
    service = CoachReplyService(client, options)

    reply = asyncio.run(
        service.generate("hi", default_state(TODAY), CoachContext())
    )

    assert reply is None
