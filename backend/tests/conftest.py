from datetime import time

import pytest
from pool_booking.domain.window import OperatingWindow
from pool_booking.infrastructure.memory import InMemoryClientRepository, InMemoryReservationRepository
from pool_booking.service import ReservationService


@pytest.fixture
def window() -> OperatingWindow:
    return OperatingWindow(
        day_start=time(9, 0),
        day_end=time(20, 0),
        max_reservations_per_slot=3,
        max_reservations_per_client_per_day=2,
    )


@pytest.fixture
def client_repo() -> InMemoryClientRepository:
    return InMemoryClientRepository()


@pytest.fixture
def res_repo(client_repo: InMemoryClientRepository) -> InMemoryReservationRepository:
    return InMemoryReservationRepository(client_repo)


@pytest.fixture
def service(
    res_repo: InMemoryReservationRepository,
    client_repo: InMemoryClientRepository,
    window: OperatingWindow,
) -> ReservationService:
    return ReservationService(res_repo, client_repo, window=window)
