from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models import Client, Reservation


class ReservationRepository(Protocol):
    async def find_by_time_range(self, start: datetime, end: datetime) -> list[Reservation]: ...

    async def find_by_exact_time(self, timestamp: datetime) -> list[Reservation]: ...

    async def count_by_client_and_time_range(self, client_id: int, start: datetime, end: datetime) -> int: ...

    async def save(self, reservation: Reservation) -> Reservation: ...

    async def find_by_id(self, reservation_id: int) -> Reservation | None: ...

    async def delete(self, reservation: Reservation) -> None: ...

    async def find_by_client_name(self, name: str) -> list[Reservation]: ...

    async def lock_booking_scope(self, client_id: int, timestamp: datetime) -> None:
        """Hold store-side locks on the client and the slot until the transaction ends."""
        ...


class ClientRepository(Protocol):
    async def find_by_id(self, client_id: int) -> Client | None: ...
