from datetime import datetime
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.config import settings
from app.database import get_db
from app.models.user import User
from app.models.entry import NetWorthEntry, NetWorthEntryRead
from app.models.scenario import Scenario, ScenarioRead
from app.services.entry_service import EntryService
from app.services.milestone_service import MilestoneEvaluation, MilestoneService
from app.services.projection_service import (
    GrowthRates,
    ProjectionRow,
    ProjectionService,
    ProjectionSummary,
    RealTimeNetWorth,
    years_between,
)
from app.services.scenario_service import ScenarioService
from app.services.spending_service import LevelInfo, SpendingCalculator

router = APIRouter()

class ScenarioProjection(BaseModel):
    scenario: ScenarioRead
    summary: ProjectionSummary
    currentRow: ProjectionRow
    yearlyRows: List[ProjectionRow]
    monthlyRows: List[ProjectionRow]
    milestones: MilestoneEvaluation
    levelInfo: LevelInfo
    realTimeNetWorth: RealTimeNetWorth
    growthRates: GrowthRates

class ProjectionsResponse(BaseModel):
    asOf: datetime
    display: str
    birthYear: Optional[int] = None
    latestEntry: Optional[NetWorthEntryRead] = None
    projections: List[ScenarioProjection]

class PlanningSnapshot(BaseModel):
    """Everything one projection request reads from the store, loaded up front."""
    scenarios: List[Scenario]
    latest: Optional[NetWorthEntry] = None
    oldest: Optional[NetWorthEntry] = None
    birthYear: Optional[int] = None

async def load_snapshot(db: AsyncSession, user: User, scenario_id: Optional[UUID] = None) -> PlanningSnapshot:
    scenario_service = ScenarioService(db)
    entry_service = EntryService(db)

    if scenario_id is not None:
        scenario = await scenario_service.get_scenario(scenario_id)
        if not scenario:
            raise HTTPException(status_code=404, detail="Scenario not found")
        if scenario.userId != user.id:
            raise HTTPException(status_code=403, detail="Not authorized")
        scenarios = [scenario]
    else:
        scenarios = await scenario_service.get_selected_scenarios(user.id)

    profile = await scenario_service.get_profile(user.id)
    return PlanningSnapshot(
        scenarios=scenarios,
        latest=await entry_service.latest_entry(user.id),
        oldest=await entry_service.oldest_entry(user.id),
        birthYear=profile.birthYear,
    )

def build_projection(
    scenario: Scenario,
    snapshot: PlanningSnapshot,
    as_of: datetime,
    years: int,
    months: Optional[int],
    display: str,
) -> ScenarioProjection:
    engine = ProjectionService()
    latest = snapshot.latest
    net_worth = latest.amount if latest else 0.0
    start = latest.timestamp if latest else as_of

    result = engine.project(
        scenario, net_worth, start, years,
        as_of=as_of, birth_year=snapshot.birthYear, horizon_months=months,
    )
    milestones = MilestoneService().evaluate_milestones(
        result.yearlyRows, scenario, snapshot.birthYear,
        current_row=result.currentRow, monthly_rows=result.monthlyRows,
    )
    tracked_years = years_between(snapshot.oldest.timestamp, as_of) if snapshot.oldest else 0.0
    real_time = engine.calculate_real_time_net_worth(net_worth, start, scenario, as_of)

    current_row, yearly_rows, monthly_rows = result.currentRow, result.yearlyRows, result.monthlyRows
    if display == "real":
        current_row, = engine.to_real_rows([current_row], scenario.inflationRate)
        yearly_rows = engine.to_real_rows(yearly_rows, scenario.inflationRate)
        monthly_rows = engine.to_real_rows(monthly_rows, scenario.inflationRate)

    return ScenarioProjection(
        scenario=ScenarioRead.model_validate(scenario),
        summary=engine.summarize(result),
        currentRow=current_row,
        yearlyRows=yearly_rows,
        monthlyRows=monthly_rows,
        milestones=milestones,
        levelInfo=SpendingCalculator.calculate_level_info(result.currentRow.netWorth, scenario, max(0.0, tracked_years)),
        realTimeNetWorth=real_time,
        growthRates=engine.calculate_growth_rates(real_time.total, scenario),
    )

@router.get("", response_model=ProjectionsResponse)
async def get_projections(
    years: int = Query(settings.PROJECTION_YEARS, ge=0, le=100),
    months: Optional[int] = Query(settings.MONTHLY_PROJECTION_MONTHS, ge=0, le=1212),
    display: str = Query("nominal", pattern="^(nominal|real)$"),
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Projections, milestones and level info for every selected scenario,
    all computed from the same snapshot of entries and profile.
    """
    snapshot = await load_snapshot(db, current_user)
    as_of = datetime.utcnow()
    return ProjectionsResponse(
        asOf=as_of,
        display=display,
        birthYear=snapshot.birthYear,
        latestEntry=NetWorthEntryRead.model_validate(snapshot.latest) if snapshot.latest else None,
        projections=[
            build_projection(s, snapshot, as_of, years, months, display) for s in snapshot.scenarios
        ],
    )

@router.get("/{scenario_id}", response_model=ScenarioProjection)
async def get_scenario_projection(
    scenario_id: UUID,
    years: int = Query(settings.PROJECTION_YEARS, ge=0, le=100),
    months: Optional[int] = Query(settings.MONTHLY_PROJECTION_MONTHS, ge=0, le=1212),
    display: str = Query("nominal", pattern="^(nominal|real)$"),
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await load_snapshot(db, current_user, scenario_id)
    return build_projection(snapshot.scenarios[0], snapshot, datetime.utcnow(), years, months, display)
