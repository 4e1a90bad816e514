import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.profile import ProfileUpdate, UserProfile
from app.models.scenario import (
    SCENARIO_COLORS,
    SCENARIO_TEMPLATES,
    Scenario,
    ScenarioBase,
    ScenarioCreate,
    ScenarioUpdate,
)
from app.services.entry_service import EntryService
from app.services.spending_service import SpendingCalculator
from app.services.tax_service import PreTaxContributions, TaxService

logger = logging.getLogger(__name__)

# Columns that may legitimately be cleared with an explicit null
NULLABLE_FIELDS = {"description", "grossIncome", "stateCode"}


class ScenarioService:
    """
    Store for scenarios and the user profile.

    Besides CRUD this keeps the derived scenario fields honest: whenever a
    scenario with an income profile is saved, its `yearlyContribution` and
    `effectiveTaxRate` are recomputed from a fresh income breakdown at the
    user's latest net worth.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tax_service = TaxService()
        self.entry_service = EntryService(session)

    # -- Reads ---------------------------------------------------------------

    async def get_scenarios(self, user_id: UUID) -> List[Scenario]:
        result = await self.session.execute(
            select(Scenario)
            .where(Scenario.userId == user_id)
            .order_by(Scenario.order, Scenario.createdAt)
        )
        return result.scalars().all()

    async def get_selected_scenarios(self, user_id: UUID) -> List[Scenario]:
        return [s for s in await self.get_scenarios(user_id) if s.isSelected]

    async def get_scenario(self, scenario_id: UUID) -> Optional[Scenario]:
        result = await self.session.execute(select(Scenario).where(Scenario.id == scenario_id))
        return result.scalars().first()

    # -- Derived fields --------------------------------------------------------

    async def _current_net_worth(self, user_id: UUID) -> float:
        latest = await self.entry_service.latest_entry(user_id)
        return latest.amount if latest else 0.0

    def apply_derived_fields(self, scenario: Scenario, current_net_worth: float) -> Scenario:
        if not scenario.hasIncomeProfile:
            scenario.effectiveTaxRate = None
            return scenario

        monthly_spending = SpendingCalculator.compute_monthly_spend(current_net_worth, scenario, 0)
        breakdown = self.tax_service.calculate_scenario_income(
            scenario.grossIncome,
            scenario.filingStatus,
            scenario.stateCode,
            PreTaxContributions(
                traditional401k=scenario.preTax401k,
                traditionalIRA=scenario.preTaxIRA,
                hsa=scenario.preTaxHSA,
                other=scenario.preTaxOther,
            ),
            monthly_spending,
        )
        scenario.yearlyContribution = breakdown.totalAnnualSavings
        scenario.effectiveTaxRate = breakdown.taxes.effectiveTotalRate
        return scenario

    async def refresh_derived_fields(self, user_id: UUID) -> None:
        """Recomputes income-derived contributions, e.g. after net worth changes."""
        net_worth = await self._current_net_worth(user_id)
        for scenario in await self.get_scenarios(user_id):
            if scenario.hasIncomeProfile:
                self.apply_derived_fields(scenario, net_worth)
                scenario.updatedAt = datetime.utcnow()
                self.session.add(scenario)
        await self.session.commit()

    # -- Writes ----------------------------------------------------------------

    async def create_scenario(self, user_id: UUID, data: ScenarioCreate) -> Scenario:
        existing = await self.get_scenarios(user_id)
        if len(existing) >= settings.MAX_SCENARIOS_PER_USER:
            raise ValueError(f"Maximum of {settings.MAX_SCENARIOS_PER_USER} scenarios allowed per user")

        fields = data.model_dump()
        if fields.get("color") is None:
            fields["color"] = SCENARIO_COLORS[len(existing) % len(SCENARIO_COLORS)]
        if fields.get("order") is None:
            fields["order"] = self._next_order(existing)

        scenario = Scenario(**fields, userId=user_id)
        self.apply_derived_fields(scenario, await self._current_net_worth(user_id))

        self.session.add(scenario)
        await self.session.commit()
        await self.session.refresh(scenario)
        logger.info(f"Created scenario {scenario.id} ({scenario.name}) for user {user_id}")
        return scenario

    async def create_from_template(self, user_id: UUID, template_key: str) -> Scenario:
        template = SCENARIO_TEMPLATES.get(template_key)
        if template is None:
            raise ValueError(f"Unknown scenario template: {template_key}")
        return await self.create_scenario(user_id, ScenarioCreate(**template))

    async def create_default_scenario(self, user_id: UUID) -> Scenario:
        """Gives a new user one scenario with default assumptions. No-op if any exist."""
        existing = await self.get_scenarios(user_id)
        if existing:
            return existing[0]
        return await self.create_scenario(user_id, ScenarioCreate())

    async def update_scenario(self, scenario: Scenario, data: ScenarioUpdate) -> Scenario:
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None and key not in NULLABLE_FIELDS:
                continue
            setattr(scenario, key, value)

        scenario.updatedAt = datetime.utcnow()
        self.apply_derived_fields(scenario, await self._current_net_worth(scenario.userId))

        self.session.add(scenario)
        await self.session.commit()
        await self.session.refresh(scenario)
        return scenario

    async def duplicate_scenario(self, scenario: Scenario) -> Scenario:
        existing = await self.get_scenarios(scenario.userId)
        if len(existing) >= settings.MAX_SCENARIOS_PER_USER:
            raise ValueError(f"Maximum of {settings.MAX_SCENARIOS_PER_USER} scenarios allowed per user")

        fields = {name: getattr(scenario, name) for name in ScenarioBase.model_fields}
        fields.update(
            name=f"{scenario.name} (Copy)",
            color=SCENARIO_COLORS[len(existing) % len(SCENARIO_COLORS)],
            order=self._next_order(existing),
        )
        copy = Scenario(**fields, userId=scenario.userId)
        self.apply_derived_fields(copy, await self._current_net_worth(scenario.userId))

        self.session.add(copy)
        await self.session.commit()
        await self.session.refresh(copy)
        logger.info(f"Duplicated scenario {scenario.id} as {copy.id}")
        return copy

    async def delete_scenario(self, scenario: Scenario) -> None:
        existing = await self.get_scenarios(scenario.userId)
        if len(existing) <= 1:
            raise ValueError("At least one scenario must remain")

        await self.session.delete(scenario)
        await self.session.commit()
        logger.info(f"Deleted scenario {scenario.id}")

    async def reorder_scenarios(self, user_id: UUID, ordered_ids: List[UUID]) -> List[Scenario]:
        scenarios = await self.get_scenarios(user_id)
        by_id = {s.id: s for s in scenarios}
        if len(ordered_ids) != len(by_id) or set(ordered_ids) != set(by_id):
            raise ValueError("Reorder must list each of the user's scenarios exactly once")

        for index, scenario_id in enumerate(ordered_ids):
            by_id[scenario_id].order = index
            self.session.add(by_id[scenario_id])
        await self.session.commit()
        return await self.get_scenarios(user_id)

    async def move_scenario(self, scenario: Scenario, direction: str) -> List[Scenario]:
        if direction not in ("up", "down"):
            raise ValueError(f"Unknown direction: {direction}")

        ids = [s.id for s in await self.get_scenarios(scenario.userId)]
        index = ids.index(scenario.id)
        target = index - 1 if direction == "up" else index + 1
        if 0 <= target < len(ids):
            ids[index], ids[target] = ids[target], ids[index]
        return await self.reorder_scenarios(scenario.userId, ids)

    async def toggle_selected(self, scenario: Scenario) -> Scenario:
        scenario.isSelected = not scenario.isSelected
        self.session.add(scenario)
        await self.session.commit()
        await self.session.refresh(scenario)
        return scenario

    async def select_only(self, scenario: Scenario) -> List[Scenario]:
        scenarios = await self.get_scenarios(scenario.userId)
        for s in scenarios:
            s.isSelected = s.id == scenario.id
            self.session.add(s)
        await self.session.commit()
        return await self.get_scenarios(scenario.userId)

    @staticmethod
    def _next_order(existing: List[Scenario]) -> int:
        return max((s.order for s in existing), default=-1) + 1

    # -- Profile ---------------------------------------------------------------

    async def get_profile(self, user_id: UUID) -> UserProfile:
        result = await self.session.execute(select(UserProfile).where(UserProfile.userId == user_id))
        profile = result.scalars().first()
        if profile is None:
            profile = UserProfile(userId=user_id)
            self.session.add(profile)
            await self.session.commit()
            await self.session.refresh(profile)
        return profile

    async def update_profile(self, user_id: UUID, data: ProfileUpdate) -> UserProfile:
        profile = await self.get_profile(user_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, key, value)
        profile.updatedAt = datetime.utcnow()
        self.session.add(profile)
        await self.session.commit()
        await self.session.refresh(profile)
        return profile
