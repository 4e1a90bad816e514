from typing import Optional
from uuid import UUID
from datetime import date, datetime
from sqlmodel import SQLModel, Field
from uuid6 import uuid7

class ProfileBase(SQLModel):
    birthDate: Optional[date] = Field(default=None, sa_column_kwargs={"name": "birth_date"})

class UserProfile(ProfileBase, table=True):
    __tablename__ = "user_profiles"
    id: UUID = Field(default_factory=uuid7, primary_key=True)
    userId: UUID = Field(foreign_key="users.id", unique=True, sa_column_kwargs={"name": "user_id"})
    updatedAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "updated_at"})

    @property
    def birthYear(self) -> Optional[int]:
        return self.birthDate.year if self.birthDate else None

class ProfileUpdate(SQLModel):
    birthDate: Optional[date] = None

class ProfileRead(ProfileBase):
    birthYear: Optional[int] = None
