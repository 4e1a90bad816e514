import math
from typing import Optional
from uuid import UUID
from datetime import datetime, timezone
from pydantic import field_validator
from sqlmodel import SQLModel, Field
from uuid6 import uuid7

# Net Worth Entries
# Entries are immutable observations: created and deleted, never updated.

class NetWorthEntryBase(SQLModel):
    amount: float
    timestamp: datetime = Field(default_factory=datetime.utcnow, index=True)
    note: Optional[str] = None

class NetWorthEntry(NetWorthEntryBase, table=True):
    __tablename__ = "net_worth_entries"
    id: UUID = Field(default_factory=uuid7, primary_key=True)
    userId: UUID = Field(foreign_key="users.id", index=True, sa_column_kwargs={"name": "user_id"})
    createdAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "created_at"})

class NetWorthEntryCreate(NetWorthEntryBase):

    @field_validator("amount")
    @classmethod
    def amount_must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("amount must be a finite number")
        return v

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        # Stored as naive UTC, like every other timestamp column
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

class NetWorthEntryRead(NetWorthEntryBase):
    id: UUID
    createdAt: datetime
