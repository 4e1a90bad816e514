import logging
from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.entry import NetWorthEntry, NetWorthEntryCreate

logger = logging.getLogger(__name__)


class EntryService:
    """Reads and writes a user's net worth entries. Entries are never edited in place."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_entries(self, user_id: UUID) -> List[NetWorthEntry]:
        result = await self.session.execute(
            select(NetWorthEntry)
            .where(NetWorthEntry.userId == user_id)
            .order_by(NetWorthEntry.timestamp.desc())
        )
        return result.scalars().all()

    async def get_entry(self, entry_id: UUID) -> Optional[NetWorthEntry]:
        result = await self.session.execute(select(NetWorthEntry).where(NetWorthEntry.id == entry_id))
        return result.scalars().first()

    async def latest_entry(self, user_id: UUID) -> Optional[NetWorthEntry]:
        result = await self.session.execute(
            select(NetWorthEntry)
            .where(NetWorthEntry.userId == user_id)
            .order_by(NetWorthEntry.timestamp.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def oldest_entry(self, user_id: UUID) -> Optional[NetWorthEntry]:
        result = await self.session.execute(
            select(NetWorthEntry)
            .where(NetWorthEntry.userId == user_id)
            .order_by(NetWorthEntry.timestamp.asc())
            .limit(1)
        )
        return result.scalars().first()

    async def add_entry(self, user_id: UUID, data: NetWorthEntryCreate) -> NetWorthEntry:
        entry = NetWorthEntry(**data.model_dump(), userId=user_id)
        self.session.add(entry)
        await self.session.commit()
        await self.session.refresh(entry)
        logger.info(f"Recorded net worth entry {entry.id} for user {user_id}")
        return entry

    async def remove_entry(self, entry: NetWorthEntry) -> None:
        await self.session.delete(entry)
        await self.session.commit()
        logger.info(f"Deleted net worth entry {entry.id}")
