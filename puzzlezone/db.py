from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost/puzzlezone"
    google_client_id: str = ""  # Required for Google OAuth token verification
    cors_origins: list[str] = ["*"]
    seed_on_startup: bool = True
    sql_echo: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env.local", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str, echo: bool = False):
    """Create an async engine for the given URL.

    In-memory SQLite shares one connection so every session sees the same
    database, and foreign keys are switched on for any SQLite connection.
    """
    url = database_url.replace("postgresql://", "postgresql+asyncpg://")
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/").endswith("aiosqlite:"):
            kwargs["poolclass"] = StaticPool

    new_engine = create_async_engine(url, echo=echo, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_sqlite_fks(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = make_engine(settings.database_url, echo=settings.sql_echo)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    async with async_session() as session:
        yield session


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
