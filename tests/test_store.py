from datetime import date, datetime

import pytest

from app.models.entry import NetWorthEntryCreate
from app.models.profile import ProfileUpdate
from app.models.scenario import SCENARIO_COLORS, ScenarioCreate, ScenarioUpdate
from app.services.entry_service import EntryService
from app.services.scenario_service import ScenarioService


async def test_default_scenario_is_created_once(session, user):
    service = ScenarioService(session)

    first = await service.create_default_scenario(user.id)
    again = await service.create_default_scenario(user.id)

    assert again.id == first.id
    assert first.name == "My Scenario"
    assert first.color == SCENARIO_COLORS[0]
    assert first.order == 0
    assert first.isSelected
    assert len(await service.get_scenarios(user.id)) == 1


async def test_new_scenarios_get_palette_colors_and_trailing_order(session, user):
    service = ScenarioService(session)

    created = [await service.create_scenario(user.id, ScenarioCreate(name=f"Plan {i}")) for i in range(3)]

    assert [s.color for s in created] == SCENARIO_COLORS[:3]
    assert [s.order for s in created] == [0, 1, 2]
    assert [s.name for s in await service.get_scenarios(user.id)] == ["Plan 0", "Plan 1", "Plan 2"]


async def test_scenario_limit(session, user):
    service = ScenarioService(session)
    for i in range(8):
        await service.create_scenario(user.id, ScenarioCreate(name=f"Plan {i}"))

    with pytest.raises(ValueError):
        await service.create_scenario(user.id, ScenarioCreate(name="One too many"))


async def test_loose_numeric_input_falls_back_to_defaults(session, user):
    service = ScenarioService(session)
    scenario = await service.create_scenario(
        user.id, ScenarioCreate(currentRate="abc", swr=-2, filingStatus="Head of Household")
    )

    assert scenario.currentRate == 7
    assert scenario.swr == 0
    assert scenario.filingStatus == "head_of_household"


async def test_income_profile_derives_contribution(session, user):
    service = ScenarioService(session)
    scenario = await service.create_scenario(
        user.id, ScenarioCreate(grossIncome=100_000, baseMonthlyBudget=3_000, spendingGrowthRate=0)
    )

    # 100k gross less 21,491 tax less 36k spending
    assert scenario.yearlyContribution == pytest.approx(42_509)
    assert scenario.effectiveTaxRate == pytest.approx(21.491)

    updated = await service.update_scenario(scenario, ScenarioUpdate(baseMonthlyBudget=2_000))
    assert updated.yearlyContribution == pytest.approx(54_509)


async def test_manual_contribution_is_kept_without_income(session, user):
    service = ScenarioService(session)
    scenario = await service.create_scenario(user.id, ScenarioCreate(yearlyContribution=15_000))

    assert scenario.yearlyContribution == 15_000
    assert scenario.effectiveTaxRate is None


async def test_new_entry_refreshes_derived_contribution(session, user):
    service = ScenarioService(session)
    entries = EntryService(session)
    scenario = await service.create_scenario(
        user.id, ScenarioCreate(grossIncome=100_000, baseMonthlyBudget=3_000, spendingGrowthRate=2)
    )
    assert scenario.yearlyContribution == pytest.approx(42_509)

    entry = await entries.add_entry(user.id, NetWorthEntryCreate(amount=600_000))
    await service.refresh_derived_fields(user.id)
    refreshed = await service.get_scenario(scenario.id)

    # Spending rises to 3,000 + 600,000 * 2% / 12 = 4,000 a month
    assert refreshed.yearlyContribution == pytest.approx(30_509)

    await entries.remove_entry(entry)
    await service.refresh_derived_fields(user.id)
    refreshed = await service.get_scenario(scenario.id)
    assert refreshed.yearlyContribution == pytest.approx(42_509)


async def test_update_skips_nulls_except_clearable_fields(session, user):
    service = ScenarioService(session)
    scenario = await service.create_scenario(
        user.id, ScenarioCreate(name="Salary", grossIncome=80_000, stateCode="ny")
    )
    assert scenario.stateCode == "NY"

    updated = await service.update_scenario(
        scenario, ScenarioUpdate(name=None, currentRate="oops", grossIncome=None, stateCode=None)
    )

    assert updated.name == "Salary"
    assert updated.currentRate == 7
    assert updated.grossIncome is None
    assert updated.stateCode is None
    assert updated.effectiveTaxRate is None


async def test_last_scenario_cannot_be_deleted(session, user):
    service = ScenarioService(session)
    only = await service.create_default_scenario(user.id)

    with pytest.raises(ValueError, match="At least one scenario must remain"):
        await service.delete_scenario(only)

    extra = await service.create_scenario(user.id, ScenarioCreate(name="Extra"))
    await service.delete_scenario(extra)
    assert [s.id for s in await service.get_scenarios(user.id)] == [only.id]


async def test_duplicate_copies_assumptions(session, user):
    service = ScenarioService(session)
    original = await service.create_scenario(
        user.id, ScenarioCreate(name="Bold", currentRate=9, swr=3.5, description="High equity")
    )

    copy = await service.duplicate_scenario(original)

    assert copy.id != original.id
    assert copy.name == "Bold (Copy)"
    assert copy.currentRate == 9
    assert copy.swr == 3.5
    assert copy.description == "High equity"
    assert copy.color == SCENARIO_COLORS[1]
    assert copy.order == original.order + 1


async def test_reorder_and_move(session, user):
    service = ScenarioService(session)
    a, b, c = [await service.create_scenario(user.id, ScenarioCreate(name=n)) for n in "abc"]

    reordered = await service.reorder_scenarios(user.id, [c.id, a.id, b.id])
    assert [s.name for s in reordered] == ["c", "a", "b"]
    assert [s.order for s in reordered] == [0, 1, 2]

    moved = await service.move_scenario(b, "up")
    assert [s.name for s in moved] == ["c", "b", "a"]

    # Already first: nothing to swap with
    unchanged = await service.move_scenario(c, "up")
    assert [s.name for s in unchanged] == ["c", "b", "a"]

    with pytest.raises(ValueError):
        await service.reorder_scenarios(user.id, [a.id, b.id])
    with pytest.raises(ValueError):
        await service.move_scenario(a, "sideways")


async def test_selection(session, user):
    service = ScenarioService(session)
    a = await service.create_scenario(user.id, ScenarioCreate(name="a"))
    b = await service.create_scenario(user.id, ScenarioCreate(name="b"))

    toggled = await service.toggle_selected(a)
    assert not toggled.isSelected
    assert [s.name for s in await service.get_selected_scenarios(user.id)] == ["b"]

    scenarios = await service.select_only(a)
    assert {s.name: s.isSelected for s in scenarios} == {"a": True, "b": False}


async def test_templates(session, user):
    service = ScenarioService(session)

    scenario = await service.create_from_template(user.id, "aggressive")
    assert scenario.name == "Aggressive"
    assert scenario.currentRate == 9
    assert scenario.swr == 4.5

    with pytest.raises(ValueError):
        await service.create_from_template(user.id, "yolo")


async def test_profile_is_created_on_first_read(session, user):
    service = ScenarioService(session)

    profile = await service.get_profile(user.id)
    assert profile.birthDate is None
    assert profile.birthYear is None

    updated = await service.update_profile(user.id, ProfileUpdate(birthDate=date(1990, 5, 1)))
    assert updated.id == profile.id
    assert updated.birthYear == 1990


async def test_entries_are_listed_newest_first(session, user):
    entries = EntryService(session)
    for amount, day in ((100_000, 1), (120_000, 20), (110_000, 10)):
        await entries.add_entry(user.id, NetWorthEntryCreate(amount=amount, timestamp=datetime(2025, 3, day)))

    listed = await entries.list_entries(user.id)

    assert [e.amount for e in listed] == [120_000, 110_000, 100_000]
    assert (await entries.latest_entry(user.id)).amount == 120_000
    assert (await entries.oldest_entry(user.id)).amount == 100_000


def test_entry_amount_must_be_finite():
    with pytest.raises(ValueError):
        NetWorthEntryCreate(amount=float("nan"))
