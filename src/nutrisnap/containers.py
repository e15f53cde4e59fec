"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from nutrisnap.adapters.http_meal_repository import HttpxMealRepository
from nutrisnap.adapters.key_value_meal_repository import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueMealRepository,
)
from nutrisnap.adapters.openai_oracle_client import OpenAIOracleClient
from nutrisnap.adapters.remote_provider import HttpxRemoteProvider
from nutrisnap.adapters.supabase_meal_repository import SupabaseMealRepository
from nutrisnap.config import Settings, parse_storage_backend
from nutrisnap.services.meals import DiarySession, MealRepository
from nutrisnap.services.oracle import OracleService
from nutrisnap.services.providers import LocalProvider, ProviderUnconfigured
from nutrisnap.services.resolution import ResolutionPipeline, StageDeadlines

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    oracle_service: OracleService | None
    resolution_pipeline: ResolutionPipeline
    meal_repository: MealRepository
    diary_session: DiarySession
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    closers: list[Callable[[], Awaitable[None]]] = []

    def build_oracle(api_key: str) -> OracleService:
        client = OpenAIOracleClient.create(api_key)
        closers.append(client.close)
        return OracleService(
            client=client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        )

    try:
        local_provider: LocalProvider | None = LocalProvider.create(
            resolved_settings.openai_api_key, build_oracle
        )
    except ProviderUnconfigured:
        _logger.info("No oracle credential; local analysis fallback disabled")
        local_provider = None

    remote_provider = HttpxRemoteProvider.create(resolved_settings.remote_analysis_url)
    closers.append(remote_provider.close)
    resolution_pipeline = ResolutionPipeline(
        remote=remote_provider,
        local=local_provider,
        deadlines=StageDeadlines(
            remote_image=resolved_settings.remote_image_timeout_seconds,
            remote_text=resolved_settings.remote_text_timeout_seconds,
            local_image=resolved_settings.local_image_timeout_seconds,
            local_text=resolved_settings.local_text_timeout_seconds,
        ),
        confidence_threshold=resolved_settings.confidence_threshold,
    )
    meal_repository = build_meal_repository(resolved_settings, closers)

    async def close_resources() -> None:
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        oracle_service=local_provider.oracle if local_provider else None,
        resolution_pipeline=resolution_pipeline,
        meal_repository=meal_repository,
        diary_session=DiarySession(meal_repository),
        close_resources=close_resources,
    )


def build_meal_repository(
    settings: Settings,
    closers: list[Callable[[], Awaitable[None]]] | None = None,
) -> MealRepository:
    """Create the configured diary storage backend."""
    backend = parse_storage_backend(settings.storage_backend)
    if backend == "remote":
        repository = HttpxMealRepository.create(
            settings.meal_api_url or settings.remote_analysis_url
        )
        if closers is not None:
            closers.append(repository.close)
        return repository
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage needs SUPABASE_URL and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseMealRepository(client)
    if backend == "memory":
        return KeyValueMealRepository(InMemoryKeyValueStore())
    return KeyValueMealRepository(
        JsonFileKeyValueStore(Path(settings.local_storage_dir))
    )
