"""Tests for totals, targets and goal calculators."""

import pytest

from nutrisnap.domain.stats import BodyProfile, Gender, Goal, GoalTargets
from nutrisnap.services.stats import (
    calculate_bmr,
    calculate_goal_targets,
    compute_targets,
    compute_totals,
    round_half_up,
)
from tests.conftest import make_record

MALE_PROFILE = BodyProfile(age=30, gender=Gender.MALE, height_cm=180, weight_kg=80)


def test_round_half_up_rounds_halves_upward() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(55.5) == 56
    assert round_half_up(40.9) == 41
    assert round_half_up(31.25) == 31


def test_compute_totals_prefers_logged_macros() -> None:
    records = [
        make_record("1", calories=400, protein=30, carbs=40, fat=10, sugar=5),
        make_record("2", calories=100, sugar=3),
        make_record("3", day="2024-01-02", calories=900, protein=90),
    ]

    totals = compute_totals(records, "2024-01-01")

    assert totals.calories == 500
    assert totals.protein == 30 + 6
    assert totals.carbs == 40 + 11
    assert totals.fat == 10 + 3
    assert totals.sugar == 8


def test_compute_totals_for_empty_day_is_zero() -> None:
    totals = compute_totals([make_record("1")], "2030-01-01")

    assert (totals.calories, totals.protein, totals.sugar) == (0, 0, 0)


def test_compute_targets_respects_overrides() -> None:
    targets = compute_targets(1800, protein=120, sugar=30)

    assert targets.protein == 120
    assert targets.sugar == 30
    assert targets.carbs == 203
    assert targets.fat == 50


def test_calculate_bmr_per_gender() -> None:
    female = BodyProfile(age=30, gender=Gender.FEMALE, height_cm=180, weight_kg=80)

    assert calculate_bmr(MALE_PROFILE) == 1780
    assert calculate_bmr(female) == 1614


@pytest.mark.parametrize(
    ("goal", "expected"),
    [
        (Goal.LOSE_WEIGHT, GoalTargets(1636, 176, 41)),
        (Goal.GAIN_MUSCLE, GoalTargets(2386, 160, 60)),
        (Goal.GAIN_WEIGHT, GoalTargets(2636, 144, 66)),
    ],
)
def test_calculate_goal_targets(goal: Goal, expected: GoalTargets) -> None:
    assert calculate_goal_targets(MALE_PROFILE, goal) == expected


def test_weight_loss_calories_never_drop_below_floor() -> None:
    profile = BodyProfile(age=70, gender=Gender.FEMALE, height_cm=150, weight_kg=40)

    targets = calculate_goal_targets(profile, Goal.LOSE_WEIGHT)

    assert targets.daily_calories == 1200
    assert targets.daily_protein == 88
    assert targets.max_daily_sugar == 12


def test_goal_values_match_stored_profile_strings() -> None:
    assert Goal("LOSS_WEIGHT") is Goal.LOSE_WEIGHT
    assert Gender("female") is Gender.FEMALE
