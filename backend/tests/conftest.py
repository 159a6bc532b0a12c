from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_tracker.db import get_session
from leave_tracker.main import app
from leave_tracker.models import SQLModel
from leave_tracker.models.enums import EmployeeRole
from leave_tracker.schemas.auth import AuthContext
from leave_tracker.schemas.department import CreateDepartmentRequest, DepartmentResponse
from leave_tracker.schemas.employee import BalancesPayload, CreateEmployeeRequest, EmployeeResponse
from leave_tracker.services.department import create_department
from leave_tracker.services.employee import create_employee

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """In-memory SQLite engine with a fresh schema for every test."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_department(db_session: AsyncSession) -> Callable[..., Awaitable[DepartmentResponse]]:
    async def _make(name: str | None = None, code: str | None = None) -> DepartmentResponse:
        suffix = uuid.uuid4().hex[:6].upper()
        payload = CreateDepartmentRequest(name=name or f"Department {suffix}", code=code or f"D{suffix}")
        return await create_department(db_session, None, payload)

    return _make


@pytest.fixture
def make_employee(db_session: AsyncSession) -> Callable[..., Awaitable[EmployeeResponse]]:
    """Create an employee through the service layer with opening balances."""

    async def _make(
        role: EmployeeRole = EmployeeRole.TEAM_MEMBER,
        department_id: uuid.UUID | None = None,
        manager_id: uuid.UUID | None = None,
        **balances: Any,
    ) -> EmployeeResponse:
        suffix = uuid.uuid4().hex[:8]
        payload = CreateEmployeeRequest(
            employee_code=f"EMP-{suffix}",
            email=f"user-{suffix}@example.com",
            first_name="Test",
            last_name=suffix,
            role=role,
            department_id=department_id,
            manager_id=manager_id,
            balances=BalancesPayload(**balances) if balances else None,
        )
        return await create_employee(db_session, None, payload)

    return _make


def auth_for(employee: EmployeeResponse) -> AuthContext:
    return AuthContext(
        user_id=employee.id,
        role=employee.role,
        department_id=employee.department_id,
        manager_id=employee.manager_id,
    )


def headers_for(employee: EmployeeResponse) -> dict[str, str]:
    return {"X-User-Id": str(employee.id)}
