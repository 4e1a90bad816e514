from typing import Any, Dict, List
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.database import get_db
from app.models.user import User
from app.models.scenario import SCENARIO_TEMPLATES, Scenario, ScenarioCreate, ScenarioRead, ScenarioUpdate
from app.services.scenario_service import ScenarioService

router = APIRouter()

class ReorderRequest(BaseModel):
    orderedIds: List[UUID]

class TemplateRequest(BaseModel):
    template: str

async def get_owned_scenario(scenario_id: UUID, current_user: User, service: ScenarioService) -> Scenario:
    scenario = await service.get_scenario(scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    if scenario.userId != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")
    return scenario

@router.get("", response_model=List[ScenarioRead])
async def get_scenarios(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List the user's scenarios in display order.
    """
    return await ScenarioService(db).get_scenarios(current_user.id)

@router.post("", response_model=ScenarioRead)
async def create_scenario(
    scenario_data: ScenarioCreate,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await ScenarioService(db).create_scenario(current_user.id, scenario_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/templates")
async def get_templates(
    current_user: User = Depends(deps.get_current_user),
) -> Dict[str, Any]:
    return SCENARIO_TEMPLATES

@router.post("/templates", response_model=ScenarioRead)
async def create_from_template(
    request: TemplateRequest,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await ScenarioService(db).create_from_template(current_user.id, request.template)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.post("/default", response_model=ScenarioRead)
async def create_default_scenario(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ScenarioService(db).create_default_scenario(current_user.id)

@router.post("/reorder", response_model=List[ScenarioRead])
async def reorder_scenarios(
    request: ReorderRequest,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await ScenarioService(db).reorder_scenarios(current_user.id, request.orderedIds)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/{scenario_id}", response_model=ScenarioRead)
async def get_scenario(
    scenario_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_owned_scenario(scenario_id, current_user, ScenarioService(db))

@router.patch("/{scenario_id}", response_model=ScenarioRead)
async def update_scenario(
    scenario_id: UUID,
    scenario_update: ScenarioUpdate,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ScenarioService(db)
    scenario = await get_owned_scenario(scenario_id, current_user, service)
    return await service.update_scenario(scenario, scenario_update)

@router.delete("/{scenario_id}", status_code=204)
async def delete_scenario(
    scenario_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ScenarioService(db)
    scenario = await get_owned_scenario(scenario_id, current_user, service)
    try:
        await service.delete_scenario(scenario)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return None

@router.post("/{scenario_id}/duplicate", response_model=ScenarioRead)
async def duplicate_scenario(
    scenario_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ScenarioService(db)
    scenario = await get_owned_scenario(scenario_id, current_user, service)
    try:
        return await service.duplicate_scenario(scenario)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.post("/{scenario_id}/toggle", response_model=ScenarioRead)
async def toggle_scenario(
    scenario_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ScenarioService(db)
    scenario = await get_owned_scenario(scenario_id, current_user, service)
    return await service.toggle_selected(scenario)

@router.post("/{scenario_id}/select-only", response_model=List[ScenarioRead])
async def select_only_scenario(
    scenario_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ScenarioService(db)
    scenario = await get_owned_scenario(scenario_id, current_user, service)
    return await service.select_only(scenario)

@router.post("/{scenario_id}/move", response_model=List[ScenarioRead])
async def move_scenario(
    scenario_id: UUID,
    direction: str = Query(..., pattern="^(up|down)$"),
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ScenarioService(db)
    scenario = await get_owned_scenario(scenario_id, current_user, service)
    return await service.move_scenario(scenario, direction)
