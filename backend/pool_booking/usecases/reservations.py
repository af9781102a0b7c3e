from datetime import date, datetime, timezone
from typing import cast

from ..domain.errors import ReservationNotFoundError
from ..domain.repositories import ClientRepository, ReservationRepository
from ..domain.services import (
    Approved,
    BookingDecision,
    Rejected,
    check_client_capacity,
    check_client_exists,
    check_slot_capacity,
    check_working_hours,
)
from ..domain.window import OperatingWindow
from ..models import Client, Reservation
from ..utils.logger import get_logger
from .locks import BookingLocks

logger = get_logger(__name__)


async def decide_booking(
    res_repo: ReservationRepository,
    client_repo: ClientRepository,
    window: OperatingWindow,
    *,
    client_id: int,
    timestamp: datetime,
) -> BookingDecision:
    """
    Run the admission rules in order and stop at the first failure:
    working hours, client lookup, client daily cap, slot capacity.
    Working hours are checked before touching any store. Nothing is written.
    """
    error = check_working_hours(window, timestamp)
    if error is not None:
        return Rejected(error)

    client = await client_repo.find_by_id(client_id)
    error = check_client_exists(client, client_id)
    if error is not None:
        return Rejected(error)

    day_start, day_end = window.day_bounds(timestamp.date())
    booked_today = await res_repo.count_by_client_and_time_range(client_id, day_start, day_end)
    error = check_client_capacity(window, client_id, timestamp.date(), booked_today)
    if error is not None:
        return Rejected(error)

    booked_in_slot = len(await res_repo.find_by_exact_time(timestamp))
    error = check_slot_capacity(window, timestamp, booked_in_slot)
    if error is not None:
        return Rejected(error)

    return Approved(cast(Client, client))


async def create_reservation(
    res_repo: ReservationRepository,
    client_repo: ClientRepository,
    window: OperatingWindow,
    locks: BookingLocks,
    *,
    client_id: int,
    timestamp: datetime,
) -> Reservation:
    async with locks.hold(client_id, timestamp):
        if check_working_hours(window, timestamp) is None:
            await res_repo.lock_booking_scope(client_id, timestamp)
        decision = await decide_booking(res_repo, client_repo, window, client_id=client_id, timestamp=timestamp)
        if isinstance(decision, Rejected):
            logger.info("booking rejected client_id=%s time=%s: %s", client_id, timestamp.isoformat(), decision.error)
            raise decision.error

        reservation = await res_repo.save(
            Reservation(
                client_id=decision.client.id,
                reservation_time=timestamp,
                created_at=datetime.now(timezone.utc).replace(tzinfo=None),
            )
        )
    logger.info("booking committed id=%s client_id=%s time=%s", reservation.id, client_id, timestamp.isoformat())
    return reservation


async def cancel_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
) -> Reservation:
    reservation = await res_repo.find_by_id(reservation_id)
    if reservation is None:
        raise ReservationNotFoundError(reservation_id)
    await res_repo.delete(reservation)
    logger.info("reservation cancelled id=%s", reservation_id)
    return reservation


async def reservations_by_client_name(
    res_repo: ReservationRepository,
    *,
    name: str,
) -> list[Reservation]:
    return await res_repo.find_by_client_name(name)


async def reservations_by_date(
    res_repo: ReservationRepository,
    window: OperatingWindow,
    *,
    day: date,
) -> list[Reservation]:
    start, end = window.day_bounds(day)
    return await res_repo.find_by_time_range(start, end)
