from datetime import date, time

from ..domain.repositories import ReservationRepository
from ..domain.services import count_occupancy, remaining_capacity
from ..domain.window import OperatingWindow


async def occupied_slots(
    res_repo: ReservationRepository,
    window: OperatingWindow,
    *,
    day: date,
) -> dict[time, int]:
    start, end = window.day_bounds(day)
    reservations = await res_repo.find_by_time_range(start, end)
    return count_occupancy(window, day, reservations)


async def available_slots(
    res_repo: ReservationRepository,
    window: OperatingWindow,
    *,
    day: date,
) -> dict[time, int]:
    occupancy = await occupied_slots(res_repo, window, day=day)
    return remaining_capacity(window, occupancy)
