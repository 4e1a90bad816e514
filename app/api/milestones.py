from typing import List, Any
from app.api import deps
from fastapi import APIRouter, Depends
from app.models.user import User
from app.services.milestone_service import MilestoneDefinition, MilestoneService

router = APIRouter()

@router.get("/catalog", response_model=List[MilestoneDefinition])
async def get_milestone_catalog(
    current_user: User = Depends(deps.get_current_user)
) -> Any:
    return MilestoneService().get_catalog()
