from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from app.core.config import settings

def build_engine(url: str, **kwargs):
    # SQLite (local dev / tests) does not take the Postgres pool settings
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_size", 20)
        kwargs.setdefault("max_overflow", 0)
    # echo=True will log SQL queries for debugging
    return create_async_engine(url, echo=False, future=True, **kwargs)

# Create async engine
engine = build_engine(settings.DATABASE_URL)

# Async session factory
async_session_maker = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

async def get_db():
    async with async_session_maker() as session:
        yield session

async def init_db(bind=None):
    # Register every table on the metadata before create_all
    import app.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
