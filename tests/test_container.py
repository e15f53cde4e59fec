"""Tests for container wiring."""

import asyncio

import pytest

from nutrisnap.adapters.http_meal_repository import HttpxMealRepository
from nutrisnap.adapters.key_value_meal_repository import (
    JsonFileKeyValueStore,
    KeyValueMealRepository,
)
from nutrisnap.config import parse_storage_backend
from nutrisnap.containers import build_container, build_meal_repository
from nutrisnap.services.providers import LocalProvider


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.oracle_service is not None
    assert isinstance(container.resolution_pipeline.local, LocalProvider)
    assert container.resolution_pipeline.remote.base_url == "https://analysis.test"
    assert container.diary_session.repository is container.meal_repository
    asyncio.run(container.close_resources())


def test_build_container_without_credential_has_no_fallback(settings) -> None:
    container = build_container(settings.model_copy(update={"openai_api_key": None}))

    assert container.oracle_service is None
    assert container.resolution_pipeline.local is None
    asyncio.run(container.close_resources())


def test_build_container_applies_deadlines(settings) -> None:
    container = build_container(
        settings.model_copy(
            update={"remote_image_timeout_seconds": 5, "confidence_threshold": 55}
        )
    )

    pipeline = container.resolution_pipeline
    assert pipeline.deadlines.remote_image == 5
    assert pipeline.confidence_threshold == 55
    asyncio.run(container.close_resources())


def test_local_storage_backend_uses_json_files(settings, tmp_path) -> None:
    repository = build_meal_repository(
        settings.model_copy(
            update={"storage_backend": "file", "local_storage_dir": str(tmp_path)}
        )
    )

    assert isinstance(repository, KeyValueMealRepository)
    assert isinstance(repository.store, JsonFileKeyValueStore)
    assert repository.store.directory == tmp_path


def test_remote_backend_talks_to_meal_api(settings) -> None:
    container = build_container(
        settings.model_copy(
            update={
                "storage_backend": "remote",
                "meal_api_url": "https://meals.test/",
            }
        )
    )

    repository = container.meal_repository
    assert isinstance(repository, HttpxMealRepository)
    assert repository.base_url == "https://meals.test"
    asyncio.run(container.close_resources())
    assert repository.http_client.is_closed


def test_supabase_backend_requires_credentials(settings) -> None:
    with pytest.raises(ValueError):
        build_meal_repository(
            settings.model_copy(
                update={"storage_backend": "supabase", "supabase_url": None}
            )
        )


def test_parse_storage_backend() -> None:
    assert parse_storage_backend("") == "local"
    assert parse_storage_backend(" Memory ") == "memory"
    assert parse_storage_backend("supabase") == "supabase"
    assert parse_storage_backend("remote") == "remote"
    with pytest.raises(ValueError):
        parse_storage_backend("redis")
