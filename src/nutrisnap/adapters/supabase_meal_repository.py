"""Supabase repository for diary records."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from nutrisnap.domain.meals import DiaryRecord
from nutrisnap.services.meals import MealRepository

GUEST_USER_ID = "guest"
_COLUMNS = (
    "id, name, meal_type, meal_time, meal_date, calories, protein_g, carbs_g, "
    "fat_g, sugar_g, image_url"
)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for diary records."""

    client: Client
    table_name: str = "meal_entries"

    async def get_all(self, scope: str | None) -> list[DiaryRecord]:
        """Return every record for the scope, newest first."""
        return await asyncio.to_thread(self._select_all, scope)

    async def add(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Insert a record row."""
        return await asyncio.to_thread(self._insert, scope, record)

    async def update(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Update the row with the record's id."""
        return await asyncio.to_thread(self._update, scope, record)

    async def delete(self, scope: str | None, record_id: str) -> None:
        """Delete the row with the id."""
        await asyncio.to_thread(self._delete, scope, record_id)

    def _select_all(self, scope: str | None) -> list[DiaryRecord]:
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("user_id", _user_id(scope))
            .order("meal_date", desc=True)
            .execute()
        )
        return [_row_to_record(row) for row in response.data or []]

    def _insert(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        response = (
            self.client.table(self.table_name)
            .insert(_record_to_row(scope, record))
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to create meal {record.id}")
        return _row_to_record(response.data[0])

    def _update(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        row = _record_to_row(scope, record)
        row.pop("id")
        response = (
            self.client.table(self.table_name)
            .update(row)
            .eq("id", record.id)
            .eq("user_id", _user_id(scope))
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Meal {record.id} not found")
        return _row_to_record(response.data[0])

    def _delete(self, scope: str | None, record_id: str) -> None:
        (
            self.client.table(self.table_name)
            .delete()
            .eq("id", record_id)
            .eq("user_id", _user_id(scope))
            .execute()
        )


def _user_id(scope: str | None) -> str:
    return scope or GUEST_USER_ID


def _record_to_row(scope: str | None, record: DiaryRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "user_id": _user_id(scope),
        "name": record.name,
        "meal_type": record.meal_type.value,
        "meal_time": record.time,
        "meal_date": record.date,
        "calories": record.calories,
        "protein_g": record.protein,
        "carbs_g": record.carbs,
        "fat_g": record.fat,
        "sugar_g": record.sugar,
        "image_url": record.image_url,
    }


def _row_to_record(row: dict[str, object]) -> DiaryRecord:
    return DiaryRecord(
        id=str(row["id"]),
        name=str(row["name"]),
        meal_type=row["meal_type"],
        time=str(row.get("meal_time") or ""),
        date=str(row["meal_date"])[:10],
        calories=_to_float(row.get("calories")) or 0.0,
        protein=_to_float(row.get("protein_g")),
        carbs=_to_float(row.get("carbs_g")),
        fat=_to_float(row.get("fat_g")),
        sugar=_to_float(row.get("sugar_g")),
        image_url=row.get("image_url") or None,
    )


def _to_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(str(value))
    except ValueError:
        return None
