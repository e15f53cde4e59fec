"""Domain models for daily aggregates and targets."""

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class DailyTotals:
    """Calories and macros for one day, or the daily targets."""

    calories: float
    protein: float
    carbs: float
    fat: float
    sugar: float


class Goal(StrEnum):
    """Body-weight goal selected in the profile."""

    LOSE_WEIGHT = "LOSS_WEIGHT"
    GAIN_MUSCLE = "GAIN_MUSCLE"
    GAIN_WEIGHT = "GAIN_WEIGHT"


class Gender(StrEnum):
    """Gender used by the BMR equation."""

    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class BodyProfile:
    """Physical attributes used to derive calorie goals."""

    age: int
    gender: Gender
    height_cm: float
    weight_kg: float


@dataclass(frozen=True)
class GoalTargets:
    """Targets derived from a body profile and a goal."""

    daily_calories: int
    daily_protein: int
    max_daily_sugar: int
