"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from macro_coach.adapters.fdc_client import HttpxFdcClient
from macro_coach.adapters.openai_client import OpenAIResponsesClient
from macro_coach.adapters.supabase_day_repository import SupabaseDayRepository
from macro_coach.adapters.supabase_message_repository import (
    SupabaseMessageRepository,
)
from macro_coach.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from macro_coach.config import Settings, parse_default_targets
from macro_coach.services.cache import InMemoryCache
from macro_coach.services.chat import CoachChatService
from macro_coach.services.coach import CoachReplyService
from macro_coach.services.enrichment import NutritionEnrichmentService
from macro_coach.services.food_match import FoodMatchService
from macro_coach.services.language_model import ModelOptions
from macro_coach.services.logbook import LogbookService
from macro_coach.services.meal_analysis import MealAnalysisService
from macro_coach.services.meal_parser import MealParserService
from macro_coach.services.onboarding import OnboardingService
from macro_coach.services.orchestrator import CoachOrchestrator
from macro_coach.services.profiles import ProfileService
from macro_coach.services.sessions import CoachSessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    profile_service: ProfileService
    logbook: LogbookService
    meal_analysis: MealAnalysisService
    session_service: CoachSessionService
    chat_service: CoachChatService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    profile_service = ProfileService(SupabaseProfileRepository(supabase_client))
    logbook = LogbookService(SupabaseDayRepository(supabase_client))
    message_repository = SupabaseMessageRepository(supabase_client)

    language_model = (
        OpenAIResponsesClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )
    options = ModelOptions(
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    fdc_client = (
        HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
        )
        if resolved_settings.fdc_api_key
        else None
    )
    meal_analysis = MealAnalysisService(
        meal_parser=MealParserService(language_model, options),
        enrichment=NutritionEnrichmentService(language_model, options),
        food_matcher=(
            FoodMatchService(fdc_client=fdc_client, cache=InMemoryCache())
            if fdc_client
            else None
        ),
    )
    orchestrator = CoachOrchestrator(
        meal_analysis=meal_analysis,
        coach=CoachReplyService(language_model, options),
        onboarding=OnboardingService(language_model, options),
        profile_service=profile_service,
    )
    session_service = CoachSessionService(
        profile_service=profile_service,
        logbook=logbook,
        message_repository=message_repository,
        default_targets=parse_default_targets(resolved_settings.default_targets),
    )
    chat_service = CoachChatService(
        orchestrator=orchestrator,
        logbook=logbook,
        message_repository=message_repository,
    )

    async def close_resources() -> None:
        if fdc_client is not None:
            await fdc_client.close()
        if language_model is not None:
            await language_model.close()

    return AppContainer(
        settings=resolved_settings,
        profile_service=profile_service,
        logbook=logbook,
        meal_analysis=meal_analysis,
        session_service=session_service,
        chat_service=chat_service,
        close_resources=close_resources,
    )
