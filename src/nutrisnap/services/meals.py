"""Optimistic meal diary store."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from nutrisnap.domain.meals import DiaryRecord
from nutrisnap.domain.stats import DailyTotals
from nutrisnap.services.stats import compute_targets, compute_totals

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for diary records of one scope."""

    async def get_all(self, scope: str | None) -> list[DiaryRecord]:
        """Return every record stored for the scope."""

    async def add(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Store a new record."""

    async def update(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Overwrite the record with the same id."""

    async def delete(self, scope: str | None, record_id: str) -> None:
        """Delete the record with the id."""


class RecordNotFoundError(LookupError):
    """No record with the requested id is in the store."""


class DuplicateRecordError(ValueError):
    """A record with the same id is already in the store."""


@dataclass(frozen=True)
class PersistenceFailure:
    """A background write the repository rejected."""

    action: str
    record_id: str
    cause: BaseException
    rolled_back: bool
    previous: DiaryRecord | None = None


@dataclass(frozen=True)
class _Mutation:
    """A local change, its write, and the compensating action for a failed write."""

    action: str
    record_id: str
    apply: Callable[[], None]
    persist: Callable[[], Awaitable[object]]
    rollback: Callable[[], None] | None = None
    previous: DiaryRecord | None = None


@dataclass
class MealStore:
    """In-memory diary for one scope with optimistic writes.

    Every mutation changes ``records`` before returning and persists in a
    background task. ``add`` and ``remove`` undo themselves when the write
    fails; ``update`` keeps the new value and only reports the failure.
    """

    repository: MealRepository
    scope: str | None
    today: Callable[[], date] = date.today
    on_failure: Callable[[PersistenceFailure], None] | None = None
    failures: list[PersistenceFailure] = field(default_factory=list)
    _records: list[DiaryRecord] = field(default_factory=list, repr=False)
    _pending: set["asyncio.Task[bool]"] = field(default_factory=set, repr=False)

    @classmethod
    async def load(
        cls,
        repository: MealRepository,
        scope: str | None,
        today: Callable[[], date] = date.today,
        on_failure: Callable[[PersistenceFailure], None] | None = None,
    ) -> "MealStore":
        """Create a store holding everything persisted for the scope."""
        store = cls(
            repository=repository, scope=scope, today=today, on_failure=on_failure
        )
        store._records = list(await repository.get_all(scope))
        return store

    @property
    def records(self) -> tuple[DiaryRecord, ...]:
        """Return the current records, newest additions first."""
        return tuple(self._records)

    def get(self, record_id: str) -> DiaryRecord | None:
        """Return the record with the id, if present."""
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def add(self, record: DiaryRecord) -> "asyncio.Task[bool]":
        """Prepend a record and persist it in the background."""
        if self.get(record.id) is not None:
            raise DuplicateRecordError(record.id)

        def apply() -> None:
            self._records.insert(0, record)

        def rollback() -> None:
            self._records = [item for item in self._records if item.id != record.id]

        return self._dispatch(
            _Mutation(
                action="add",
                record_id=record.id,
                apply=apply,
                persist=lambda: self.repository.add(self.scope, record),
                rollback=rollback,
            )
        )

    def update(self, record: DiaryRecord) -> "asyncio.Task[bool]":
        """Replace the record with the same id and persist it in the background."""
        previous = self.get(record.id)
        if previous is None:
            raise RecordNotFoundError(record.id)

        def apply() -> None:
            self._records = [
                record if item.id == record.id else item for item in self._records
            ]

        return self._dispatch(
            _Mutation(
                action="update",
                record_id=record.id,
                apply=apply,
                persist=lambda: self.repository.update(self.scope, record),
                previous=previous,
            )
        )

    def remove(self, record_id: str) -> "asyncio.Task[bool]":
        """Drop a record and delete it in the background."""
        if self.get(record_id) is None:
            raise RecordNotFoundError(record_id)
        snapshot = list(self._records)

        def apply() -> None:
            self._records = [item for item in self._records if item.id != record_id]

        def rollback() -> None:
            self._records = snapshot

        return self._dispatch(
            _Mutation(
                action="remove",
                record_id=record_id,
                apply=apply,
                persist=lambda: self.repository.delete(self.scope, record_id),
                rollback=rollback,
            )
        )

    async def flush(self) -> None:
        """Wait until every background write has been reconciled."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def totals(self, day: str | None = None) -> DailyTotals:
        """Return totals for ``day``, today by default."""
        return compute_totals(self._records, day or self.today().isoformat())

    def targets(
        self,
        calorie_goal: float,
        protein: float | None = None,
        sugar: float | None = None,
    ) -> DailyTotals:
        """Return daily targets for a calorie goal."""
        return compute_targets(calorie_goal, protein=protein, sugar=sugar)

    def _dispatch(self, mutation: _Mutation) -> "asyncio.Task[bool]":
        loop = asyncio.get_running_loop()
        mutation.apply()
        task = loop.create_task(self._reconcile(mutation))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _reconcile(self, mutation: _Mutation) -> bool:
        try:
            await mutation.persist()
        except Exception as exc:
            if mutation.rollback is not None:
                mutation.rollback()
            failure = PersistenceFailure(
                action=mutation.action,
                record_id=mutation.record_id,
                cause=exc,
                rolled_back=mutation.rollback is not None,
                previous=mutation.previous,
            )
            _logger.warning(
                "Persisting %s of meal %s failed (rolled back: %s): %s",
                mutation.action,
                mutation.record_id,
                failure.rolled_back,
                exc,
            )
            self.failures.append(failure)
            if self.on_failure is not None:
                self.on_failure(failure)
            return False
        return True


@dataclass
class DiarySession:
    """Holds the single store of the active scope."""

    repository: MealRepository
    today: Callable[[], date] = date.today
    on_failure: Callable[[PersistenceFailure], None] | None = None
    store: MealStore | None = None

    async def activate(self, scope: str | None) -> MealStore:
        """Discard the current store and load a fresh one for the scope."""
        self.store = await MealStore.load(
            self.repository, scope, today=self.today, on_failure=self.on_failure
        )
        _logger.info(
            "Loaded %s meals for scope %s", len(self.store.records), scope or "guest"
        )
        return self.store
