"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from nutrisnap.adapters.key_value_meal_repository import (
    InMemoryKeyValueStore,
    KeyValueMealRepository,
)
from nutrisnap.config import Settings
from nutrisnap.containers import AppContainer
from nutrisnap.domain.analysis import AnalysisInput, AnalysisResult
from nutrisnap.domain.meals import DiaryRecord, MealType
from nutrisnap.services.meals import DiarySession, MealRepository
from nutrisnap.services.oracle import OracleClient, OracleService
from nutrisnap.services.providers import InferenceProvider, ProviderError
from nutrisnap.services.resolution import ResolutionPipeline


def make_result(
    confidence: float = 90.0, name: str = "Chicken salad"
) -> AnalysisResult:
    return AnalysisResult(
        name=name,
        calories=420,
        protein=32,
        carbs=12,
        fat=24,
        sugar=6,
        confidence=confidence,
    )


def make_record(  # noqa: PLR0913
    record_id: str,
    day: str = "2024-01-01",
    calories: float = 500,
    meal_type: MealType = MealType.LUNCH,
    protein: float | None = None,
    carbs: float | None = None,
    fat: float | None = None,
    sugar: float | None = None,
) -> DiaryRecord:
    return DiaryRecord(
        id=record_id,
        date=day,
        time="1:15 PM",
        name=f"Meal {record_id}",
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        sugar=sugar,
        meal_type=meal_type,
    )


@dataclass
class FakeOracleClient(OracleClient):
    """Fake oracle client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "name": "Avocado toast",
            "calories": 350,
            "protein": 8,
            "carbs": 30,
            "fat": 22,
            "sugar": 4,
            "confidence": 100,
        }
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.calls.append({"prompt": prompt, "image_data_url": image_data_url})
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class ScriptedProvider(InferenceProvider):
    """Provider that answers after a delay with a result or an error."""

    result: AnalysisResult | None = None
    error: Exception | None = None
    delay: float = 0.0
    calls: int = 0
    started_at: list[float] = field(default_factory=list)
    cancelled: bool = False

    async def infer(self, analysis_input: AnalysisInput) -> AnalysisResult:
        self.calls += 1
        self.started_at.append(asyncio.get_running_loop().time())
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise ProviderError("no scripted result")
        return self.result


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory diary repository with controllable failures."""

    records: dict[str | None, list[DiaryRecord]] = field(default_factory=dict)
    fail_actions: set[str] = field(default_factory=set)
    fail_ids: set[str] = field(default_factory=set)
    gate: asyncio.Event | None = None
    calls: list[tuple[str, str | None, str]] = field(default_factory=list)

    async def get_all(self, scope: str | None) -> list[DiaryRecord]:
        return list(self.records.get(scope, []))

    async def add(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        await self._checkpoint("add", scope, record.id)
        self.records.setdefault(scope, []).insert(0, record)
        return record

    async def update(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        await self._checkpoint("update", scope, record.id)
        self.records[scope] = [
            record if item.id == record.id else item
            for item in self.records.get(scope, [])
        ]
        return record

    async def delete(self, scope: str | None, record_id: str) -> None:
        await self._checkpoint("delete", scope, record_id)
        self.records[scope] = [
            item for item in self.records.get(scope, []) if item.id != record_id
        ]

    async def _checkpoint(self, action: str, scope: str | None, record_id: str) -> None:
        self.calls.append((action, scope, record_id))
        if self.gate is not None:
            await self.gate.wait()
        if action in self.fail_actions or record_id in self.fail_ids:
            raise RuntimeError(f"{action} rejected")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        remote_analysis_url="https://analysis.test",
        openai_api_key="openai-key",
        storage_backend="memory",
    )


@pytest.fixture
def oracle_client() -> FakeOracleClient:
    return FakeOracleClient()


@pytest.fixture
def container(settings: Settings, oracle_client: FakeOracleClient) -> AppContainer:
    oracle_service = OracleService(
        client=oracle_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )
    meal_repository = KeyValueMealRepository(InMemoryKeyValueStore())

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        oracle_service=oracle_service,
        resolution_pipeline=ResolutionPipeline(remote=ScriptedProvider()),
        meal_repository=meal_repository,
        diary_session=DiarySession(meal_repository),
        close_resources=close_resources,
    )
