from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from app.core.config import settings

engine_kwargs = {"echo": False, "future": True}
# SQLite (local dev, tests) does not take pool sizing arguments
if not settings.DATABASE_URL.startswith("sqlite"):
    engine_kwargs.update(pool_size=20, max_overflow=0)

# Create async engine
# echo=True will log SQL queries for debugging
engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)

# Async session factory
async_session_maker = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

async def get_db():
    async with async_session_maker() as session:
        yield session

async def init_db():
    # Register every table on the metadata before create_all
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
