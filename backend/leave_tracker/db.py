from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Annotated, ParamSpec, TypeVar

from fastapi import Depends
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from leave_tracker.config import get_settings
from leave_tracker.exceptions import StorageError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the singleton async engine, creating it on first call."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the singleton async session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            expire_on_commit=False,
        )
    return _session_factory


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def commit(session: AsyncSession) -> None:
    """Commit the unit of work, translating driver failures into StorageError.

    Integrity violations are not transient and are left to the caller.
    """
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    except DBAPIError as exc:
        await session.rollback()
        logger.warning("Commit failed against the record store: %s", exc.orig)
        raise StorageError("The record store is temporarily unavailable") from exc


def storage_guard(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise driver failures of a service call as StorageError.

    The wrapped function must take the session as its first argument.
    Integrity violations pass through untouched.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except IntegrityError:
            raise
        except DBAPIError as exc:
            session: AsyncSession = args[0] if args else kwargs["session"]  # type: ignore[assignment]
            await session.rollback()
            logger.warning("%s failed against the record store: %s", func.__name__, exc.orig)
            raise StorageError("The record store is temporarily unavailable") from exc

    return wrapper


async def dispose_engine() -> None:
    """Dispose the engine and reset singletons. Call on app shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
