"""
Test Configuration and Fixtures

Everything here runs without PostgreSQL or Kafka: repositories are replaced
by the in-memory fakes in ``test/fakes.py`` (same conditional-update
semantics), the broker by a recording publisher.
"""

# =============================================================================
# Environment setup MUST happen before any application import
# (settings and the loguru sinks are configured at import time)
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ.setdefault('POSTGRES_DB', 'patient_booking_test_db')
    os.environ.setdefault('DEBUG', 'false')


_early_setup_test_environment()

from datetime import date, time  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from src.service.booking.domain.enum.service_kind import ServiceKind  # noqa: E402
from src.service.booking.domain.value_object.pricing import (  # noqa: E402
    ServiceCatalogEntry,
    SurgeWindow,
)
from test.constants import NOW  # noqa: E402
from test.fakes import (  # noqa: E402
    FixedClock,
    InMemoryBookingStore,
    InMemoryServiceCatalog,
    RecordingEventPublisher,
    build_orchestrator,
)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def injection_entry() -> ServiceCatalogEntry:
    return ServiceCatalogEntry(
        service_type='INJECTION', kind=ServiceKind.NURSING, base_price=Decimal('1000')
    )


@pytest.fixture
def night_surge_entry() -> ServiceCatalogEntry:
    return ServiceCatalogEntry(
        service_type='GENERAL_NURSING',
        kind=ServiceKind.NURSING,
        base_price=Decimal('1000'),
        surge_windows=[SurgeWindow(start=time(22, 0), end=time(6, 0), multiplier='1.5')],
    )


@pytest.fixture
def physio_package_entry() -> ServiceCatalogEntry:
    return ServiceCatalogEntry(
        service_type='PHYSIO_PACKAGE_10', kind=ServiceKind.PACKAGE, base_price=Decimal('8000')
    )


@pytest.fixture
def store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def catalog(
    injection_entry: ServiceCatalogEntry, physio_package_entry: ServiceCatalogEntry
) -> InMemoryServiceCatalog:
    return InMemoryServiceCatalog([injection_entry, physio_package_entry])


@pytest.fixture
def event_publisher() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest.fixture
def orchestrator(store, catalog, event_publisher, clock):
    return build_orchestrator(
        store=store, catalog=catalog, event_publisher=event_publisher, clock=clock
    )


@pytest.fixture
def scheduled_in_50_hours() -> tuple[date, str]:
    """2026-10-20 12:00 UTC, 50h after NOW."""
    return date(2026, 10, 20), '12:00'
