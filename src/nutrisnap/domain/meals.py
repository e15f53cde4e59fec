"""Domain models for the meal diary."""

import time
from datetime import date, datetime
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MealType(StrEnum):
    """Diary slot a meal belongs to."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


def new_record_id() -> str:
    """Return a millisecond timestamp id with a random suffix."""
    return f"{time.time_ns() // 1_000_000}-{uuid4().hex[:8]}"


class DiaryRecord(BaseModel):
    """A single meal logged in the diary."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    date: str
    time: str
    name: str
    calories: float = Field(ge=0.0)
    protein: float | None = Field(default=None, ge=0.0)
    carbs: float | None = Field(default=None, ge=0.0)
    fat: float | None = Field(default=None, ge=0.0)
    sugar: float | None = Field(default=None, ge=0.0)
    image_url: str | None = Field(default=None, alias="imageUrl")
    meal_type: MealType = Field(alias="type")

    @field_validator("date")
    @classmethod
    def _check_calendar_date(cls, value: str) -> str:
        parsed = date.fromisoformat(value)
        if parsed.isoformat() != value:
            raise ValueError("date must be formatted as YYYY-MM-DD")
        return value

    @classmethod
    def new(  # noqa: PLR0913
        cls,
        *,
        name: str,
        calories: float,
        meal_type: MealType,
        logged_at: datetime | None = None,
        protein: float | None = None,
        carbs: float | None = None,
        fat: float | None = None,
        sugar: float | None = None,
        image_url: str | None = None,
    ) -> "DiaryRecord":
        """Create a record with a time-based id and display time."""
        moment = logged_at or datetime.now()
        return cls(
            id=new_record_id(),
            date=moment.date().isoformat(),
            time=moment.strftime("%I:%M %p").lstrip("0"),
            name=name,
            calories=calories,
            protein=protein,
            carbs=carbs,
            fat=fat,
            sugar=sugar,
            image_url=image_url,
            meal_type=meal_type,
        )

    def to_payload(self) -> dict[str, object]:
        """Return the wire representation used by storage backends."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

