from datetime import datetime
from typing import Any, AsyncIterator, cast

import pytest
import pytest_asyncio
from pool_booking import deps
from pool_booking import service as service_module
from pool_booking.infrastructure.repositories import SqlAlchemyClientRepository, SqlAlchemyReservationRepository
from pool_booking.models import Base, Client, Reservation
from pool_booking.utils.audit_log import get_operation_id
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


class DummySession:
    """Never touched: building a service only stores the session."""


@pytest_asyncio.fixture
async def maker(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    monkeypatch.setattr(deps, "get_sessionmaker", lambda: session_maker)
    yield session_maker
    await engine.dispose()


@pytest.fixture
def audit_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_emit(**kwargs: Any) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(service_module, "emit_audit_log", fake_emit)
    return calls


async def _client(maker: async_sessionmaker[AsyncSession], name: str) -> Client:
    async with maker() as session, session.begin():
        client = Client(name=name, created_at=datetime(2024, 5, 1, 8, 0))
        session.add(client)
    return client


async def _stored_count(maker: async_sessionmaker[AsyncSession]) -> int:
    async with maker() as session:
        return int(await session.scalar(select(func.count(Reservation.id))) or 0)


def test_build_service_wires_sql_stores_and_shared_locks() -> None:
    session = cast(AsyncSession, DummySession())

    first = deps.build_service(session)
    second = deps.build_service(session)

    assert isinstance(first.res_repo, SqlAlchemyReservationRepository)
    assert isinstance(first.client_repo, SqlAlchemyClientRepository)
    assert first.res_repo.session is session
    assert first.locks is second.locks
    assert first.window is deps.get_operating_window()


@pytest.mark.asyncio
async def test_reservation_service_commits_then_audits(
    maker: async_sessionmaker[AsyncSession], audit_calls: list[dict[str, Any]]
) -> None:
    client = await _client(maker, "Ann")

    async with deps.reservation_service() as service:
        reservation_id = await service.create_reservation(client.id, datetime(2024, 5, 20, 10, 0))
        assert audit_calls == []
    operation_id = get_operation_id()

    async with maker() as session:
        stored = await session.get(Reservation, reservation_id)
        assert stored is not None
        assert stored.client_id == client.id
    assert operation_id is not None
    assert [call["action"] for call in audit_calls] == ["reservation.created"]
    assert audit_calls[0]["reservation_id"] == reservation_id


@pytest.mark.asyncio
async def test_rolled_back_booking_leaves_no_audit_line(
    maker: async_sessionmaker[AsyncSession], audit_calls: list[dict[str, Any]]
) -> None:
    client = await _client(maker, "Ann")

    with pytest.raises(RuntimeError):
        async with deps.reservation_service() as service:
            await service.create_reservation(client.id, datetime(2024, 5, 20, 10, 0))
            raise RuntimeError("caller failed after booking")

    assert audit_calls == []
    assert await _stored_count(maker) == 0
