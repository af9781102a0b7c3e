from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.repositories import ClientRepository, ReservationRepository
from ..models import Client, Reservation


class SqlAlchemyClientRepository(ClientRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_id(self, client_id: int) -> Client | None:
        return await self.session.get(Client, client_id)


class SqlAlchemyReservationRepository(ReservationRepository):
    """Flushes but never commits; the caller owns the transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_time_range(self, start: datetime, end: datetime) -> List[Reservation]:
        stmt: Select[tuple[Reservation]] = (
            select(Reservation)
            .where(Reservation.reservation_time >= start, Reservation.reservation_time <= end)
            .order_by(Reservation.reservation_time, Reservation.id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def find_by_exact_time(self, timestamp: datetime) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.reservation_time == timestamp).order_by(Reservation.id)
        return list((await self.session.scalars(stmt)).all())

    async def count_by_client_and_time_range(self, client_id: int, start: datetime, end: datetime) -> int:
        stmt = select(func.count(Reservation.id)).where(
            Reservation.client_id == client_id,
            Reservation.reservation_time >= start,
            Reservation.reservation_time <= end,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def save(self, reservation: Reservation) -> Reservation:
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def find_by_id(self, reservation_id: int) -> Optional[Reservation]:
        return await self.session.get(Reservation, reservation_id)

    async def delete(self, reservation: Reservation) -> None:
        await self.session.delete(reservation)
        await self.session.flush()

    async def find_by_client_name(self, name: str) -> List[Reservation]:
        stmt: Select[tuple[Reservation]] = (
            select(Reservation)
            .join(Client, Reservation.client_id == Client.id)
            .where(Client.name == name)
            .order_by(Reservation.reservation_time, Reservation.id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def lock_booking_scope(self, client_id: int, timestamp: datetime) -> None:
        # Client row lock serializes one client's bookings. The locking read on the
        # indexed reservation_time takes InnoDB next-key locks, which block inserts
        # at the same slot time until this transaction ends. On an empty slot two
        # transactions can both hold the gap lock; their inserts then deadlock and the
        # database aborts one of them, which surfaces as a store error to that caller.
        await self.session.execute(select(Client.id).where(Client.id == client_id).with_for_update())
        await self.session.execute(
            select(Reservation.id).where(Reservation.reservation_time == timestamp).with_for_update()
        )
