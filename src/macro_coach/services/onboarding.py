"""Onboarding conversation flow."""

import logging
from dataclasses import dataclass, replace

from macro_coach.domain.onboarding import (
    CLOSING_PROMPT,
    ONBOARDING_STEPS,
    RESTART_MESSAGE,
    OnboardingStep,
    fallback_onboarding_reply,
    fallback_profile_summary,
    get_next_onboarding_step,
    get_onboarding_step,
    parse_onboarding_response,
    profile_facts,
    profile_updates_for_answer,
    summarize_collected_data,
)
from macro_coach.domain.records import UserProfile
from macro_coach.services.language_model import LanguageModelClient, ModelOptions

_logger = logging.getLogger(__name__)

SUMMARY_INSTRUCTIONS = (
    "You are a fitness coach writing a personal summary right after onboarding a "
    "new client. Write two or three warm, encouraging paragraphs that acknowledge "
    "their goals and situation, highlight what stood out in their answers and set "
    "expectations for the journey ahead. "
    "Be specific to their details and stay under 200 words."
)


@dataclass(frozen=True)
class OnboardingReply:
    coach_message: str
    profile: UserProfile


def _acknowledgement_instructions(
    current: OnboardingStep,
    next_step: OnboardingStep | None,
    response: str,
    data: dict[str, object],
) -> str:
    next_line = f'"{next_step.question}"' if next_step else "This completes onboarding"
    closing = (
        "Ask the next question in a natural, conversational way."
        if next_step
        else "Wrap up warmly and let them know you are ready to help."
    )
    return (
        "You are a friendly, encouraging fitness coach running onboarding. "
        "Acknowledge what the user just shared, then continue.\n\n"
        f'Just asked: "{current.question}"\n'
        f'User responded: "{response}"\n'
        f"Next question: {next_line}\n"
        f"Previous answers:\n{summarize_collected_data(data) or 'None yet.'}\n\n"
        "Acknowledge the answer in one or two sentences, connecting it to earlier "
        "answers when relevant. "
        f"{closing} Use their name when known, paraphrase rather than repeat, "
        "and keep the whole reply to three sentences."
    )


@dataclass
class OnboardingService:
    """Advance a profile through the onboarding questions one message at a time."""

    client: LanguageModelClient | None
    options: ModelOptions

    async def handle(self, message: str, profile: UserProfile) -> OnboardingReply:
        step = profile.onboarding_step
        data = dict(profile.onboarding_data)

        if step == 0:
            first = ONBOARDING_STEPS[0]
            return OnboardingReply(
                coach_message=first.question,
                profile=replace(
                    profile,
                    onboarding_step=first.id,
                    onboarding_data=data,
                    onboarding_completed=False,
                ),
            )

        current = get_onboarding_step(step)
        if current is None:
            _logger.warning(
                "Unknown onboarding step %s for user %s, restarting",
                step,
                profile.user_id,
            )
            return OnboardingReply(
                coach_message=RESTART_MESSAGE,
                profile=replace(profile, onboarding_step=0),
            )

        updates: dict[str, object] = {}
        if step > 1:
            data = parse_onboarding_response(current, message, data)
            updates = profile_updates_for_answer(current, message, data)
        updated = replace(profile, onboarding_data=data, **updates)

        next_step = get_next_onboarding_step(step, data)
        if next_step is None:
            summary = await self._profile_summary(updated, data)
            acknowledgement = await self._acknowledge(message, current, None, data)
            return OnboardingReply(
                coach_message=f"{acknowledgement}\n\n{summary}\n\n{CLOSING_PROMPT}",
                profile=replace(
                    updated,
                    onboarding_step=step + 1,
                    onboarding_completed=True,
                    profile_summary=summary,
                ),
            )

        acknowledgement = await self._acknowledge(message, current, next_step, data)
        return OnboardingReply(
            coach_message=acknowledgement,
            profile=replace(updated, onboarding_step=next_step.id),
        )

    async def _acknowledge(
        self,
        message: str,
        current: OnboardingStep,
        next_step: OnboardingStep | None,
        data: dict[str, object],
    ) -> str:
        if self.client is None:
            return fallback_onboarding_reply(next_step)
        try:
            reply = await self.client.complete_text(
                model=self.options.model,
                reasoning_effort=self.options.reasoning_effort,
                store=self.options.store,
                instructions=_acknowledgement_instructions(
                    current, next_step, message, data
                ),
                user_input=message,
            )
        except Exception:
            _logger.warning("Onboarding acknowledgement failed", exc_info=True)
            return fallback_onboarding_reply(next_step)
        return reply.strip() or fallback_onboarding_reply(next_step)

    async def _profile_summary(
        self, profile: UserProfile, data: dict[str, object]
    ) -> str:
        if self.client is None:
            return fallback_profile_summary(profile, data)
        try:
            summary = await self.client.complete_text(
                model=self.options.model,
                reasoning_effort=self.options.reasoning_effort,
                store=self.options.store,
                instructions=SUMMARY_INSTRUCTIONS,
                user_input=(
                    "Please create a profile summary for this user:\n\n"
                    f"{profile_facts(profile, data)}"
                ),
            )
        except Exception:
            _logger.warning("Profile summary generation failed", exc_info=True)
            return fallback_profile_summary(profile, data)
        return summary.strip() or fallback_profile_summary(profile, data)
