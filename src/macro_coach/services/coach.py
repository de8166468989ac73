"""Coaching replies generated by the language model."""

import logging
from dataclasses import dataclass

from macro_coach.domain.queries import (
    calculate_daily_totals,
    get_meals_for_date,
    get_upcoming_plan,
    get_workouts_for_date,
)
from macro_coach.domain.rounding import round_half_up
from macro_coach.domain.state import CoachState
from macro_coach.services.language_model import LanguageModelClient, ModelOptions

_logger = logging.getLogger(__name__)

COACH_INSTRUCTIONS = """You are an experienced sports nutrition coach. You are \
supportive, encouraging and non-judgmental, and you help people build sustainable \
eating and movement habits.

Guidelines:
- Lead with encouragement, then give actionable guidance.
- Keep answers conversational, 2 to 4 sentences, focused on the next helpful step.
- Reference the user's history only when it is provided below.
- If the user is struggling, acknowledge it and offer a gentle, achievable \
suggestion, including rest.
- When summarizing meals or logs, invite corrections.
- Never invent meals, workouts or plans. Without details, ask a short clarifying \
question or offer at most two optional ideas starting with "You could try" or \
"One option is".
- Only call a workout completed if the user says they did it.
- Never mention that you are an AI.

Always answer in exactly this format:
Reply: <your coaching message>
Insight: <short note about the user's preferences, habits or needs, or "none" if \
nothing new>"""

_RECENT_MESSAGE_LIMIT = 6
_INSIGHT_LIMIT = 5


@dataclass(frozen=True)
class CoachContext:
    intent: str = "general"
    meal_summary: str | None = None
    workout_summary: str | None = None
    energy_note: str | None = None


@dataclass(frozen=True)
class CoachResponse:
    message: str
    insight: str | None = None


def parse_coach_output(raw: str | None) -> CoachResponse | None:
    """Split "Reply:" and "Insight:" lines; unlabelled text becomes the reply."""
    if not raw:
        return None
    lines = [line.strip() for line in raw.splitlines() if line.strip()]
    reply: str | None = None
    insight: str | None = None
    for line in lines:
        lowered = line.lower()
        if lowered.startswith("reply:"):
            reply = line[len("reply:") :].strip()
        elif lowered.startswith("insight:"):
            value = line[len("insight:") :].strip()
            if value and value.lower() != "none":
                insight = value
    if not reply:
        reply = " ".join(
            line for line in lines if not line.lower().startswith("insight:")
        )
    if not reply:
        return None
    return CoachResponse(message=reply, insight=insight)


def _day_lines(state: CoachState) -> list[str]:
    totals = calculate_daily_totals(get_meals_for_date(state.meals, state.active_date))
    targets = state.targets
    calories = f"{round_half_up(totals.calories)}/{round_half_up(targets.calories)}"
    protein = f"{round_half_up(totals.protein)}/{round_half_up(targets.protein)}"
    lines = [f"Today so far: {calories} kcal, {protein}g protein"]
    workouts = get_workouts_for_date(state.workouts, state.active_date)
    if workouts:
        done = ", ".join(
            f"{workout.type} {workout.minutes} min ({workout.status})"
            for workout in workouts
        )
        lines.append(f"Workouts today: {done}")
    else:
        lines.append("Workouts today: none logged")
    plan = get_upcoming_plan(state)
    if plan is not None:
        lines.append(
            f"Upcoming plan: {plan.focus}, {plan.minutes_target} minutes"
            f" ({plan.suggested_intensity})"
        )
    return lines


def build_coach_prompt(
    user_message: str, state: CoachState, context: CoachContext
) -> str:
    context_lines = [f"Active date: {state.active_date.isoformat()}"]
    context_lines.extend(_day_lines(state))
    if context.meal_summary:
        context_lines.append(f"Proposed meal: {context.meal_summary}")
    if context.workout_summary:
        context_lines.append(f"Logged workout: {context.workout_summary}")
    if context.energy_note:
        context_lines.append(f"Energy update: {context.energy_note}")
    profile = state.profile
    if profile is not None:
        if profile.first_name:
            context_lines.append(f"Name: {profile.first_name}")
        if profile.goals:
            context_lines.append(f"Goal: {profile.goals}")
        if profile.insights:
            known = "; ".join(profile.insights[:_INSIGHT_LIMIT])
            context_lines.append(f"Known about the user: {known}")

    recent = [
        f"{message.role}: {message.content}"
        for message in state.messages[-_RECENT_MESSAGE_LIMIT:]
    ]
    history = "\n".join(recent) if recent else "No earlier messages."
    return (
        f'User message: "{user_message}"\n'
        f"Intent: {context.intent}\n"
        "Context:\n" + "\n".join(context_lines) + "\n"
        f"Recent conversation:\n{history}\n\n"
        "Respond with 2 to 4 sentences. Start with encouragement or empathy, then "
        "offer a clear next step. If you lack information, ask a brief clarifying "
        "question."
    )


@dataclass
class CoachReplyService:
    """Ask the model for a coaching reply; ``None`` means use a template instead."""

    client: LanguageModelClient | None
    options: ModelOptions

    async def generate(
        self, user_message: str, state: CoachState, context: CoachContext
    ) -> CoachResponse | None:
        if self.client is None:
            return None
        try:
            raw = await self.client.complete_text(
                model=self.options.model,
                reasoning_effort=self.options.reasoning_effort,
                store=self.options.store,
                instructions=COACH_INSTRUCTIONS,
                user_input=build_coach_prompt(user_message, state, context),
            )
        except Exception:
            _logger.warning("Coach reply request failed", exc_info=True)
            return None
        return parse_coach_output(raw)
