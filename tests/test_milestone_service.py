import pytest

from app.services.milestone_service import (
    MILESTONE_CATALOG,
    MilestoneService,
    calculate_coast_fi_percent,
    calculate_net_worth_for_retirement_income,
    calculate_projected_retirement_income,
    calculate_runway_years,
    years_to_retirement,
)
from app.services.projection_service import ProjectionService
from tests.conftest import YEAR_END, make_scenario


@pytest.fixture
def milestones():
    return MilestoneService()


def _evaluate(scenario, net_worth, birth_year=None, years=60, with_months=False):
    result = ProjectionService().project(scenario, net_worth, YEAR_END, years, birth_year=birth_year)
    evaluation = MilestoneService().evaluate_milestones(
        result.yearlyRows,
        scenario,
        birth_year,
        current_row=result.currentRow,
        monthly_rows=result.monthlyRows if with_months else None,
    )
    return result, evaluation, {m.id: m for m in evaluation.milestones}


def test_catalog_shape(milestones):
    catalog = milestones.get_catalog()
    ids = [m.id for m in catalog]

    assert len(catalog) == 43
    assert len(set(ids)) == len(ids)
    assert ids[:5] == ["fi_10", "fi_25", "fi_50", "fi_75", "fi_100"]
    assert sum(1 for m in catalog if m.type == "retirement_income") == 22
    assert "retirement_income_1_25m" in ids
    assert {m.type for m in catalog} == {
        "percentage", "lifestyle", "runway", "coast", "special", "retirement_income",
    }


def test_catalog_is_a_copy(milestones):
    milestones.get_catalog().clear()

    assert len(MILESTONE_CATALOG) == 43


def test_no_rows_gives_empty_evaluation(milestones):
    evaluation = milestones.evaluate_milestones([], make_scenario())

    assert evaluation.milestones == []
    assert evaluation.currentMilestone is None
    assert evaluation.nextMilestone is None


def test_already_independent_achieves_every_percentage():
    _, evaluation, by_id = _evaluate(make_scenario(), 1_000_000)

    for pct in (10, 25, 50, 75, 100):
        assert by_id[f"fi_{pct}"].isAchieved
        assert by_id[f"fi_{pct}"].year == 2025
    assert evaluation.currentMilestone.id == "fi_100"
    assert evaluation.nextMilestone is None
    assert evaluation.progressToNext == 100
    assert evaluation.amountToNext == 0


def test_runway_milestones():
    # 1M against 36k a year is about 27.8 years of runway
    _, _, by_id = _evaluate(make_scenario(), 1_000_000)

    for milestone_id in ("runway_6mo", "runway_1yr", "runway_2yr", "runway_3yr", "runway_5yr", "runway_10yr"):
        assert by_id[milestone_id].isAchieved


def test_lifestyle_tiers_use_todays_base_budget():
    _, _, by_id = _evaluate(make_scenario(yearlyContribution=20_000), 700_000)

    assert by_id["lean_fi"].isAchieved  # 630k
    assert not by_id["barista_fi"].isAchieved  # 765k
    assert not by_id["regular_fi"].isAchieved  # 900k
    assert by_id["regular_fi"].year is not None
    assert by_id["fat_fi"].year >= by_id["regular_fi"].year


def test_percentage_milestones_are_reached_in_order():
    result, evaluation, by_id = _evaluate(make_scenario(yearlyContribution=30_000), 100_000)
    years = [by_id[f"fi_{pct}"].year for pct in (10, 25, 50, 75, 100)]

    assert None not in years
    assert years == sorted(years)
    fi_row = next(r for r in result.yearlyRows if r.isFiYear)
    assert by_id["fi_100"].year == fi_row.year
    assert by_id["flamingo_fi"].year == by_id["fi_50"].year


def test_next_milestone_and_distance():
    result, evaluation, _ = _evaluate(make_scenario(), 300_000)
    now = result.currentRow

    # 300k of a 900k target is 33.3%
    assert evaluation.currentMilestone.id == "fi_25"
    assert evaluation.nextMilestone.id == "fi_50"
    assert evaluation.amountToNext == pytest.approx(450_000 - 300_000)
    assert evaluation.progressToNext == pytest.approx((now.fiProgress - 25) / 25 * 100)


def test_crossover_milestone_matches_projection():
    result, _, by_id = _evaluate(make_scenario(yearlyContribution=10_000), 0, years=40)
    crossover_row = next(r for r in result.yearlyRows if r.isCrossover)

    assert by_id["crossover"].year == crossover_row.year
    assert not by_id["crossover"].isAchieved


def test_achieved_milestones_sort_first():
    _, evaluation, _ = _evaluate(make_scenario(yearlyContribution=10_000), 300_000, birth_year=1990)
    flags = [m.isAchieved for m in evaluation.milestones]
    pending = [m for m in evaluation.milestones if not m.isAchieved]

    assert flags == sorted(flags, reverse=True)
    reached = [m.year for m in pending if m.year is not None]
    assert reached == sorted(reached)
    assert all(m.year is None for m in pending[len(reached):])


def test_age_based_milestones_need_a_birth_year():
    _, _, by_id = _evaluate(make_scenario(), 1_000_000)

    for milestone_id, milestone in by_id.items():
        if milestone.type in ("coast", "retirement_income") or milestone_id == "coast_fi":
            assert not milestone.isAchieved
            assert milestone.year is None
            assert milestone.age is None


def test_age_based_milestones_with_birth_year():
    # Age 35: 30 years of growth at 7% against 3% inflation
    _, _, by_id = _evaluate(make_scenario(), 1_000_000, birth_year=1990)

    assert by_id["coast_fi"].isAchieved
    assert by_id["coast_fi"].age == 35
    assert by_id["coast_75"].isAchieved
    assert by_id["retirement_income_100k"].isAchieved
    assert not by_id["retirement_income_150k"].isAchieved


def test_months_are_refined_from_monthly_rows():
    _, _, by_id = _evaluate(make_scenario(yearlyContribution=30_000), 100_000, with_months=True)
    reached_later = [m for m in by_id.values() if m.year is not None and not m.isAchieved]

    assert reached_later
    assert all(1 <= m.month <= 12 for m in reached_later)

    _, _, without = _evaluate(make_scenario(yearlyContribution=30_000), 100_000)
    assert all(m.month is None for m in without.values() if m.year is not None and not m.isAchieved)


def test_milestone_formulas():
    assert calculate_runway_years(120_000, 2_000) == pytest.approx(5)
    assert calculate_runway_years(120_000, 0) == 0
    assert years_to_retirement(None) is None
    assert years_to_retirement(70) == 0
    assert years_to_retirement(40) == 25

    assert calculate_projected_retirement_income(1_000_000, 0, 7, 3, 4) == pytest.approx(40_000)
    needed = calculate_net_worth_for_retirement_income(50_000, 10, 7, 3, 4)
    assert calculate_projected_retirement_income(needed, 10, 7, 3, 4) == pytest.approx(50_000)
    assert calculate_net_worth_for_retirement_income(50_000, 10, 7, 3, 0) == 0

    # With no time left, coast percent is plain FI progress
    assert calculate_coast_fi_percent(450_000, 3_000, 0, 7, 3, 4) == pytest.approx(50)
