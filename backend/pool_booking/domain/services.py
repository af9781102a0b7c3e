from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Union

from ..models import Client, Reservation
from .errors import (
    BookingError,
    ClientCapacityExceededError,
    ClientNotFoundError,
    MisalignedSlotError,
    NonWorkingHoursError,
    SlotCapacityExceededError,
)
from .window import OperatingWindow


def count_occupancy(window: OperatingWindow, day: date, reservations: Iterable[Reservation]) -> dict[time, int]:
    """
    Pure slot counting: every slot start of the day in ascending order mapped to
    the number of reservations at exactly that date and time. Empty slots map to 0.
    """
    counts = [0] * window.slot_count
    for reservation in reservations:
        moment = reservation.reservation_time
        if moment.date() != day or not window.is_slot_boundary(moment.time()):
            continue
        index = window.slot_index(moment.time())
        if index is not None:
            counts[index] += 1
    return {window.slot_start(index): count for index, count in enumerate(counts)}


def remaining_capacity(window: OperatingWindow, occupancy: dict[time, int]) -> dict[time, int]:
    """Slots that can still take a booking, mapped to their free places. Full slots are left out."""
    capacity = window.max_reservations_per_slot
    return {slot: capacity - count for slot, count in occupancy.items() if count < capacity}


@dataclass(frozen=True)
class Approved:
    client: Client


@dataclass(frozen=True)
class Rejected:
    error: BookingError


BookingDecision = Union[Approved, Rejected]


def check_working_hours(window: OperatingWindow, timestamp: datetime) -> BookingError | None:
    if timestamp.tzinfo is not None:
        return NonWorkingHoursError(timestamp, f"reservation time must be a naive local time: {timestamp.isoformat()}")
    moment = timestamp.time()
    if not window.is_working_time(moment):
        return NonWorkingHoursError(timestamp)
    if not window.is_slot_boundary(moment):
        return MisalignedSlotError(timestamp)
    return None


def check_client_exists(client: Client | None, client_id: int) -> BookingError | None:
    if client is None:
        return ClientNotFoundError(client_id)
    return None


def check_client_capacity(
    window: OperatingWindow, client_id: int, day: date, booked_today: int
) -> BookingError | None:
    if booked_today >= window.max_reservations_per_client_per_day:
        return ClientCapacityExceededError(client_id, day)
    return None


def check_slot_capacity(window: OperatingWindow, timestamp: datetime, booked_in_slot: int) -> BookingError | None:
    if booked_in_slot >= window.max_reservations_per_slot:
        return SlotCapacityExceededError(timestamp)
    return None
