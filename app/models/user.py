from typing import Optional
from uuid import UUID
from sqlmodel import SQLModel, Field
from uuid6 import uuid7
from datetime import datetime

class UserBase(SQLModel):
    firstName: Optional[str] = Field(default=None, sa_column_kwargs={"name": "first_name"})
    lastName: Optional[str] = Field(default=None, sa_column_kwargs={"name": "last_name"})
    email: str = Field(unique=True, index=True)

class User(UserBase, table=True):
    __tablename__ = "users"
    id: UUID = Field(default_factory=uuid7, primary_key=True)
    password: str
    createdAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "created_at"})

class UserRead(UserBase):
    id: UUID
    createdAt: datetime
