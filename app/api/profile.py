from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.database import get_db
from app.models.user import User
from app.models.profile import ProfileRead, ProfileUpdate
from app.services.scenario_service import ScenarioService

router = APIRouter()

@router.get("", response_model=ProfileRead)
async def get_profile(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    profile = await ScenarioService(db).get_profile(current_user.id)
    return ProfileRead(birthDate=profile.birthDate, birthYear=profile.birthYear)

@router.patch("", response_model=ProfileRead)
async def update_profile(
    profile_update: ProfileUpdate,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    profile = await ScenarioService(db).update_profile(current_user.id, profile_update)
    return ProfileRead(birthDate=profile.birthDate, birthYear=profile.birthYear)
