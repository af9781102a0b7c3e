from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

SLOT_DURATION = timedelta(hours=1)


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class OperatingWindow:
    """
    Daily opening hours of the pool and its capacity limits.
    Slots are addressed by integer index: index = (t - day_start) // slot_duration.
    """

    day_start: time
    day_end: time
    max_reservations_per_slot: int
    max_reservations_per_client_per_day: int
    slot_duration: timedelta = field(default=SLOT_DURATION, init=False)

    def __post_init__(self) -> None:
        for bound in (self.day_start, self.day_end):
            if bound.tzinfo is not None:
                raise ValueError("operating window bounds must be naive local times")
            if bound.second or bound.microsecond:
                raise ValueError("operating window bounds must be whole minutes")
        if self.day_start >= self.day_end:
            raise ValueError("day_start must be earlier than day_end")
        if (_minutes(self.day_end) - _minutes(self.day_start)) % self._slot_minutes:
            raise ValueError("operating window must be a whole number of slots")
        if self.max_reservations_per_slot < 1:
            raise ValueError("max_reservations_per_slot must be >= 1")
        if self.max_reservations_per_client_per_day < 1:
            raise ValueError("max_reservations_per_client_per_day must be >= 1")

    @property
    def _slot_minutes(self) -> int:
        return int(self.slot_duration.total_seconds()) // 60

    @property
    def slot_count(self) -> int:
        return (_minutes(self.day_end) - _minutes(self.day_start)) // self._slot_minutes

    def slot_start(self, index: int) -> time:
        if not 0 <= index < self.slot_count:
            raise IndexError(f"slot index {index} out of range")
        minutes = _minutes(self.day_start) + index * self._slot_minutes
        return time(minutes // 60, minutes % 60)

    def slot_starts(self) -> tuple[time, ...]:
        return tuple(self.slot_start(index) for index in range(self.slot_count))

    def slot_index(self, value: time) -> int | None:
        """Index of the slot containing `value`, or None outside [day_start, day_end)."""
        if not self.is_working_time(value):
            return None
        return (_minutes(value) - _minutes(self.day_start)) // self._slot_minutes

    def is_working_time(self, value: time) -> bool:
        return self.day_start <= value.replace(tzinfo=None) < self.day_end

    def is_slot_boundary(self, value: time) -> bool:
        if value.second or value.microsecond:
            return False
        return (_minutes(value) - _minutes(self.day_start)) % self._slot_minutes == 0

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        return datetime.combine(day, self.day_start), datetime.combine(day, self.day_end)
