from __future__ import annotations

from datetime import date, datetime


class BookingError(Exception):
    """Base class for every caller-visible booking failure."""


class NonWorkingHoursError(BookingError):
    def __init__(self, timestamp: datetime, message: str | None = None) -> None:
        self.timestamp = timestamp
        super().__init__(message or f"cannot create a reservation outside of working hours: {timestamp.isoformat()}")


class MisalignedSlotError(NonWorkingHoursError):
    """Timestamp is inside the operating window but not on a slot start."""

    def __init__(self, timestamp: datetime) -> None:
        super().__init__(timestamp, f"reservation time is not a slot start: {timestamp.isoformat()}")


class ClientNotFoundError(BookingError):
    def __init__(self, client_id: int) -> None:
        self.client_id = client_id
        super().__init__(f"client with id {client_id} not found")


class ClientCapacityExceededError(BookingError):
    def __init__(self, client_id: int, day: date) -> None:
        self.client_id = client_id
        self.day = day
        super().__init__(f"client {client_id} reached the daily reservation limit for {day.isoformat()}")


class SlotCapacityExceededError(BookingError):
    def __init__(self, timestamp: datetime) -> None:
        self.timestamp = timestamp
        super().__init__(f"slot {timestamp.isoformat()} is fully booked")


class ReservationNotFoundError(BookingError):
    def __init__(self, reservation_id: int) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"reservation {reservation_id} not found")
