import asyncio
from datetime import datetime

import pytest
from pool_booking.domain.errors import ClientCapacityExceededError, SlotCapacityExceededError
from pool_booking.domain.window import OperatingWindow
from pool_booking.infrastructure.memory import InMemoryClientRepository, InMemoryReservationRepository
from pool_booking.models import Reservation
from pool_booking.usecases import reservations as uc
from pool_booking.usecases.locks import BookingLocks

SLOT = datetime(2024, 5, 20, 10, 0)


@pytest.mark.asyncio
async def test_concurrent_bookings_never_exceed_slot_capacity(
    res_repo: InMemoryReservationRepository,
    client_repo: InMemoryClientRepository,
    window: OperatingWindow,
) -> None:
    locks = BookingLocks()
    clients = [client_repo.add_client(f"swimmer-{i}") for i in range(10)]

    results = await asyncio.gather(
        *(
            uc.create_reservation(res_repo, client_repo, window, locks, client_id=c.id, timestamp=SLOT)
            for c in clients
        ),
        return_exceptions=True,
    )

    booked = [r for r in results if isinstance(r, Reservation)]
    rejected = [r for r in results if isinstance(r, SlotCapacityExceededError)]
    assert len(booked) == window.max_reservations_per_slot
    assert len(rejected) == len(clients) - window.max_reservations_per_slot
    assert len(await res_repo.find_by_exact_time(SLOT)) == window.max_reservations_per_slot
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_concurrent_bookings_never_exceed_client_cap(
    res_repo: InMemoryReservationRepository,
    client_repo: InMemoryClientRepository,
    window: OperatingWindow,
) -> None:
    locks = BookingLocks()
    client = client_repo.add_client("Ann")
    moments = [datetime(2024, 5, 20, hour, 0) for hour in range(9, 15)]

    results = await asyncio.gather(
        *(
            uc.create_reservation(res_repo, client_repo, window, locks, client_id=client.id, timestamp=m)
            for m in moments
        ),
        return_exceptions=True,
    )

    booked = [r for r in results if isinstance(r, Reservation)]
    assert len(booked) == window.max_reservations_per_client_per_day
    assert all(isinstance(r, ClientCapacityExceededError) for r in results if not isinstance(r, Reservation))


@pytest.mark.asyncio
async def test_without_shared_locks_the_race_overbooks(
    res_repo: InMemoryReservationRepository,
    client_repo: InMemoryClientRepository,
    window: OperatingWindow,
) -> None:
    clients = [client_repo.add_client(f"swimmer-{i}") for i in range(6)]

    # a fresh lock registry per request gives no mutual exclusion
    await asyncio.gather(
        *(
            uc.create_reservation(res_repo, client_repo, window, BookingLocks(), client_id=c.id, timestamp=SLOT)
            for c in clients
        ),
        return_exceptions=True,
    )

    assert len(await res_repo.find_by_exact_time(SLOT)) > window.max_reservations_per_slot


@pytest.mark.asyncio
async def test_locks_are_keyed_per_client_day_and_slot() -> None:
    locks = BookingLocks()
    async with locks.hold(1, SLOT):
        # (client 1, day), (day, 10:00)
        assert len(locks) == 2
        async with locks.hold(2, datetime(2024, 5, 20, 11, 0)):
            assert len(locks) == 4
        assert len(locks) == 2
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_registry_is_empty_after_many_days_of_bookings(
    res_repo: InMemoryReservationRepository,
    client_repo: InMemoryClientRepository,
    window: OperatingWindow,
) -> None:
    locks = BookingLocks()
    client = client_repo.add_client("Ann")
    for offset in range(1, 29):
        moment = datetime(2024, 2, offset, 10, 0)
        reservation = await uc.create_reservation(
            res_repo, client_repo, window, locks, client_id=client.id, timestamp=moment
        )
        await uc.cancel_reservation(res_repo, reservation_id=reservation.id)

    assert len(locks) == 0
