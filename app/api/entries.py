from typing import List, Any
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.database import get_db
from app.models.user import User
from app.models.entry import NetWorthEntryCreate, NetWorthEntryRead
from app.services.entry_service import EntryService
from app.services.scenario_service import ScenarioService

router = APIRouter()

@router.get("", response_model=List[NetWorthEntryRead])
async def list_entries(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Net worth history, newest first.
    """
    return await EntryService(db).list_entries(current_user.id)

@router.post("", response_model=NetWorthEntryRead)
async def add_entry(
    entry_data: NetWorthEntryCreate,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    entry = await EntryService(db).add_entry(current_user.id, entry_data)
    # Income-based contributions depend on net worth through the spending budget
    await ScenarioService(db).refresh_derived_fields(current_user.id)
    return entry

@router.delete("/{entry_id}", status_code=204)
async def remove_entry(
    entry_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = EntryService(db)
    entry = await service.get_entry(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found")
    if entry.userId != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    await service.remove_entry(entry)
    await ScenarioService(db).refresh_derived_fields(current_user.id)
    return None
