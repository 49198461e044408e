import os
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from helpdesk_sla.database import get_db
from helpdesk_sla.main import create_app
from helpdesk_sla.models import (
    Base,
    BusinessCalendar,
    Contract,
    ContractType,
    SlaTemplate,
    SlaTemplateRule,
    Ticket,
    TicketPriority,
)

# In-memory SQLite by default; point TEST_DATABASE_URL at PostgreSQL to run against it.
TEST_DB_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

TZ = ZoneInfo("America/Sao_Paulo")

STANDARD_HOURS = {
    day: {"enabled": True, "start": "08:00", "end": "18:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
} | {
    "saturday": {"enabled": False, "start": "08:00", "end": "12:00"},
    "sunday": {"enabled": False, "start": "08:00", "end": "12:00"},
}


def make_calendar(**overrides) -> BusinessCalendar:
    """Build a transient calendar: Mon-Fri 08:00-18:00 in America/Sao_Paulo."""
    values = {
        "name": "Comercial Brasil",
        "timezone": "America/Sao_Paulo",
        "skip_weekends": True,
        "skip_holidays": True,
        "working_hours": STANDARD_HOURS,
        "holidays": [],
    }
    values.update(overrides)
    return BusinessCalendar(**values)


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh schema per test."""
    if TEST_DB_URL.startswith("sqlite"):
        engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)

        # pysqlite defers BEGIN, which breaks SAVEPOINT; take over transaction control
        @event.listens_for(engine.sync_engine, "connect")
        def _connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _begin(conn):
            conn.exec_driver_sql("BEGIN")
    else:
        engine = create_async_engine(TEST_DB_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client wired to the FastAPI app with test DB override."""
    app = create_app()

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def calendar(db: AsyncSession) -> BusinessCalendar:
    """Persist the standard Mon-Fri 08:00-18:00 calendar."""
    cal = make_calendar()
    db.add(cal)
    await db.commit()
    await db.refresh(cal)
    return cal


async def create_template(
    db: AsyncSession,
    name: str = "Suporte Padrão",
    contract_type: ContractType = ContractType.support,
    is_default: bool = True,
    calendar_id: int | None = None,
    rules: dict[TicketPriority, tuple[int, int]] | None = None,
    legacy_rules=None,
) -> SlaTemplate:
    template = SlaTemplate(
        name=name,
        contract_type=contract_type,
        is_default=is_default,
        is_active=True,
        calendar_id=calendar_id,
        rules=legacy_rules,
    )
    db.add(template)
    await db.flush()
    for priority, (response, solution) in (rules or {}).items():
        db.add(
            SlaTemplateRule(
                template_id=template.id,
                priority=priority,
                response_time_minutes=response,
                solution_time_minutes=solution,
            )
        )
    await db.commit()
    await db.refresh(template)
    return template


@pytest.fixture
async def support_template(db: AsyncSession, calendar: BusinessCalendar) -> SlaTemplate:
    """Default support template with rules for low, medium and high only."""
    return await create_template(
        db,
        calendar_id=calendar.id,
        rules={
            TicketPriority.low: (240, 1440),
            TicketPriority.medium: (60, 480),
            TicketPriority.high: (30, 240),
        },
    )


async def create_ticket(
    db: AsyncSession,
    priority: TicketPriority = TicketPriority.medium,
    created_at: datetime | None = None,
    contract_id: str | None = None,
) -> Ticket:
    # SQLite drops the offset, so store UTC like the application does
    created_at = (created_at or local(2024, 1, 8, 9)).astimezone(timezone.utc)
    ticket = Ticket(priority=priority, contract_id=contract_id, created_at=created_at)
    db.add(ticket)
    await db.commit()
    await db.refresh(ticket)
    return ticket


async def create_contract(
    db: AsyncSession,
    contract_id: str,
    contract_type: ContractType = ContractType.support,
    sla_template_id: int | None = None,
) -> Contract:
    contract = Contract(id=contract_id, type=contract_type, sla_template_id=sla_template_id)
    db.add(contract)
    await db.commit()
    return contract
