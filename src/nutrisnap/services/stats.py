"""Daily totals, nutrient targets and goal-based calorie calculators."""

import math
from collections.abc import Iterable

from nutrisnap.domain.meals import DiaryRecord
from nutrisnap.domain.stats import BodyProfile, DailyTotals, Gender, Goal, GoalTargets

KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARBS = 4
KCAL_PER_GRAM_FAT = 9
KCAL_PER_GRAM_SUGAR = 4

# Shares of a record's calories assumed when a macro was not logged.
ESTIMATE_PROTEIN_SHARE = 0.25
ESTIMATE_FAT_SHARE = 0.30
ESTIMATE_CARBS_SHARE = 0.45

# Shares of the calorie goal used for daily targets.
TARGET_PROTEIN_SHARE = 0.30
TARGET_CARBS_SHARE = 0.45
TARGET_FAT_SHARE = 0.25
TARGET_SUGAR_SHARE = 0.10

SEDENTARY_ACTIVITY_FACTOR = 1.2
MIN_WEIGHT_LOSS_CALORIES = 1200


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def compute_totals(records: Iterable[DiaryRecord], day: str) -> DailyTotals:
    """Sum calories and macros of the records logged on ``day``."""
    calories = protein = carbs = fat = sugar = 0.0
    for record in records:
        if record.date != day:
            continue
        calories += record.calories
        protein += _or_estimate(
            record.protein,
            record.calories,
            ESTIMATE_PROTEIN_SHARE,
            KCAL_PER_GRAM_PROTEIN,
        )
        fat += _or_estimate(
            record.fat, record.calories, ESTIMATE_FAT_SHARE, KCAL_PER_GRAM_FAT
        )
        carbs += _or_estimate(
            record.carbs, record.calories, ESTIMATE_CARBS_SHARE, KCAL_PER_GRAM_CARBS
        )
        if record.sugar is not None:
            sugar += record.sugar
    return DailyTotals(
        calories=calories, protein=protein, carbs=carbs, fat=fat, sugar=sugar
    )


def compute_targets(
    calorie_goal: float,
    protein: float | None = None,
    sugar: float | None = None,
) -> DailyTotals:
    """Derive per-nutrient daily targets from a calorie goal."""
    if protein is None:
        protein = _share_in_grams(
            calorie_goal, TARGET_PROTEIN_SHARE, KCAL_PER_GRAM_PROTEIN
        )
    if sugar is None:
        sugar = _share_in_grams(calorie_goal, TARGET_SUGAR_SHARE, KCAL_PER_GRAM_SUGAR)
    return DailyTotals(
        calories=calorie_goal,
        protein=protein,
        carbs=_share_in_grams(calorie_goal, TARGET_CARBS_SHARE, KCAL_PER_GRAM_CARBS),
        fat=_share_in_grams(calorie_goal, TARGET_FAT_SHARE, KCAL_PER_GRAM_FAT),
        sugar=sugar,
    )


def calculate_bmr(profile: BodyProfile) -> float:
    """Return the Mifflin-St Jeor basal metabolic rate."""
    bmr = 10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age
    if profile.gender is Gender.MALE:
        return bmr + 5
    return bmr - 161


def calculate_goal_targets(profile: BodyProfile, goal: Goal) -> GoalTargets:
    """Return calorie, protein and sugar targets for a goal."""
    tdee = calculate_bmr(profile) * SEDENTARY_ACTIVITY_FACTOR
    if goal is Goal.LOSE_WEIGHT:
        calories = round_half_up(tdee - 500)
        protein_per_kg = 2.2
    elif goal is Goal.GAIN_MUSCLE:
        calories = round_half_up(tdee + 250)
        protein_per_kg = 2.0
    else:
        calories = round_half_up(tdee + 500)
        protein_per_kg = 1.8
    max_sugar = _share_in_grams(calories, TARGET_SUGAR_SHARE, KCAL_PER_GRAM_SUGAR)
    if goal is Goal.LOSE_WEIGHT:
        calories = max(MIN_WEIGHT_LOSS_CALORIES, calories)
    return GoalTargets(
        daily_calories=calories,
        daily_protein=round_half_up(profile.weight_kg * protein_per_kg),
        max_daily_sugar=max_sugar,
    )


def _or_estimate(
    logged: float | None, calories: float, share: float, kcal_per_gram: int
) -> float:
    if logged is not None:
        return logged
    return _share_in_grams(calories, share, kcal_per_gram)


def _share_in_grams(calories: float, share: float, kcal_per_gram: int) -> int:
    return round_half_up(calories * share / kcal_per_gram)
