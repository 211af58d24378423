"""
Arena Teams – Async SQLAlchemy engine, session, and declarative base.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from arena.config import settings

# ── Engine ──
engine_kwargs = {
    "echo": settings.DEBUG,
    "future": True,
}

# If using PostgreSQL (Supabase pooler), disable prepared statement caching
# because PgBouncer (transaction mode) does not support it properly.
if "postgresql" in settings.DATABASE_URL:
    engine_kwargs["connect_args"] = {"statement_cache_size": 0}

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_kwargs
)

# ── Session factory ──
async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ── Dependency for FastAPI routes ──
async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async database session, auto-closed on exit."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def atomic(db: AsyncSession):
    """Commit everything issued inside the block, or roll all of it back."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


# ── Upserts ──
_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def upsert(
    db: AsyncSession,
    model: Any,
    rows: Sequence[Dict[str, Any]],
    conflict: Iterable[str],
    update: Optional[List[str]] = None,
) -> None:
    """
    INSERT ... ON CONFLICT for the session's dialect.

    With ``update`` the listed columns are overwritten from the incoming row,
    otherwise conflicting rows are left untouched.
    """
    if not rows:
        return
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"upsert is not supported on {dialect}")

    stmt = insert(model).values(list(rows))
    if update:
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict),
            set_={col: stmt.excluded[col] for col in update},
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict))
    await db.execute(stmt)


def utcnow() -> datetime:
    """Timezone-aware now, used as the Python-side default for timestamps."""
    return datetime.now(timezone.utc)
