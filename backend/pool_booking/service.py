from datetime import date, datetime, time
from typing import Any

from .domain.repositories import ClientRepository, ReservationRepository
from .domain.window import OperatingWindow
from .models import Reservation
from .usecases import reservations as reservation_usecase
from .usecases import slots as slot_usecase
from .usecases.locks import BookingLocks
from .utils.audit_log import emit_audit_log


class ReservationService:
    """
    Entry point for callers. Holds the stores, the operating window and the
    booking locks handed in at construction.

    With `defer_audit=True` audit events wait in `pending_audit` until the owner
    of the transaction calls `flush_audit()` after commit; that list is the only
    state the service keeps between calls.
    """

    def __init__(
        self,
        res_repo: ReservationRepository,
        client_repo: ClientRepository,
        *,
        window: OperatingWindow,
        locks: BookingLocks | None = None,
        defer_audit: bool = False,
    ) -> None:
        self.res_repo = res_repo
        self.client_repo = client_repo
        self.window = window
        self.locks = locks if locks is not None else BookingLocks()
        self.defer_audit = defer_audit
        self.pending_audit: list[dict[str, Any]] = []

    def _audit(self, **event: Any) -> None:
        if self.defer_audit:
            self.pending_audit.append(event)
        else:
            emit_audit_log(**event)

    def flush_audit(self) -> None:
        pending, self.pending_audit = self.pending_audit, []
        for event in pending:
            emit_audit_log(**event)

    async def occupied_slots(self, day: date) -> dict[time, int]:
        return await slot_usecase.occupied_slots(self.res_repo, self.window, day=day)

    async def available_slots(self, day: date) -> dict[time, int]:
        return await slot_usecase.available_slots(self.res_repo, self.window, day=day)

    async def create_reservation(self, client_id: int, timestamp: datetime) -> int:
        reservation = await reservation_usecase.create_reservation(
            self.res_repo,
            self.client_repo,
            self.window,
            self.locks,
            client_id=client_id,
            timestamp=timestamp,
        )
        self._audit(
            action="reservation.created",
            reservation_id=reservation.id,
            client_id=reservation.client_id,
            reservation_time=reservation.reservation_time,
        )
        return reservation.id

    async def cancel_reservation(self, reservation_id: int) -> None:
        removed = await reservation_usecase.cancel_reservation(self.res_repo, reservation_id=reservation_id)
        self._audit(
            action="reservation.cancelled",
            reservation_id=reservation_id,
            client_id=removed.client_id,
            reservation_time=removed.reservation_time,
        )

    async def reservations_by_client_name(self, name: str) -> list[Reservation]:
        return await reservation_usecase.reservations_by_client_name(self.res_repo, name=name)

    async def reservations_by_date(self, day: date) -> list[Reservation]:
        return await reservation_usecase.reservations_by_date(self.res_repo, self.window, day=day)
