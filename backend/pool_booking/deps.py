from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_sessionmaker
from .domain.window import OperatingWindow
from .infrastructure.repositories import SqlAlchemyClientRepository, SqlAlchemyReservationRepository
from .service import ReservationService
from .usecases.locks import BookingLocks
from .utils.audit_log import new_operation_id


@lru_cache
def get_operating_window() -> OperatingWindow:
    return get_settings().operating_window()


@lru_cache
def get_booking_locks() -> BookingLocks:
    return BookingLocks()


def build_service(session: AsyncSession, *, defer_audit: bool = False) -> ReservationService:
    return ReservationService(
        SqlAlchemyReservationRepository(session),
        SqlAlchemyClientRepository(session),
        window=get_operating_window(),
        locks=get_booking_locks(),
        defer_audit=defer_audit,
    )


@asynccontextmanager
async def reservation_service() -> AsyncIterator[ReservationService]:
    """
    One transaction per operation: committed on exit, rolled back on error.
    Audit lines are written only once the commit has gone through.
    """
    new_operation_id()
    async with get_sessionmaker()() as session:
        async with session.begin():
            service = build_service(session, defer_audit=True)
            yield service
        service.flush_audit()
