from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from itertools import count
from typing import List, Optional

from ..domain.repositories import ClientRepository, ReservationRepository
from ..models import Client, Reservation


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class InMemoryClientRepository(ClientRepository):
    def __init__(self) -> None:
        self._clients: dict[int, Client] = {}
        self._ids = count(1)

    def add_client(self, name: str) -> Client:
        client = Client(id=next(self._ids), name=name, created_at=_utc_now_naive())
        self._clients[client.id] = client
        return client

    def ids_by_name(self, name: str) -> set[int]:
        return {client_id for client_id, client in self._clients.items() if client.name == name}

    async def find_by_id(self, client_id: int) -> Client | None:
        await asyncio.sleep(0)
        return self._clients.get(client_id)


class InMemoryReservationRepository(ReservationRepository):
    """
    Dict-backed store. Every call yields to the event loop once, the way a real
    store round trip would, so unsynchronized callers can interleave.
    """

    def __init__(self, clients: InMemoryClientRepository) -> None:
        self._clients = clients
        self._reservations: dict[int, Reservation] = {}
        self._ids = count(1)

    def _sorted(self, reservations: List[Reservation]) -> List[Reservation]:
        return sorted(reservations, key=lambda r: (r.reservation_time, r.id))

    async def find_by_time_range(self, start: datetime, end: datetime) -> List[Reservation]:
        await asyncio.sleep(0)
        return self._sorted([r for r in self._reservations.values() if start <= r.reservation_time <= end])

    async def find_by_exact_time(self, timestamp: datetime) -> List[Reservation]:
        await asyncio.sleep(0)
        return self._sorted([r for r in self._reservations.values() if r.reservation_time == timestamp])

    async def count_by_client_and_time_range(self, client_id: int, start: datetime, end: datetime) -> int:
        await asyncio.sleep(0)
        return sum(
            1
            for r in self._reservations.values()
            if r.client_id == client_id and start <= r.reservation_time <= end
        )

    async def save(self, reservation: Reservation) -> Reservation:
        await asyncio.sleep(0)
        if reservation.id is None:
            reservation.id = next(self._ids)
        self._reservations[reservation.id] = reservation
        return reservation

    async def find_by_id(self, reservation_id: int) -> Optional[Reservation]:
        await asyncio.sleep(0)
        return self._reservations.get(reservation_id)

    async def delete(self, reservation: Reservation) -> None:
        await asyncio.sleep(0)
        self._reservations.pop(reservation.id, None)

    async def find_by_client_name(self, name: str) -> List[Reservation]:
        await asyncio.sleep(0)
        ids = self._clients.ids_by_name(name)
        return self._sorted([r for r in self._reservations.values() if r.client_id in ids])

    async def lock_booking_scope(self, client_id: int, timestamp: datetime) -> None:
        # visibility is immediate; BookingLocks provides the exclusion
        return None
