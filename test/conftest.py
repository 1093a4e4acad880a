"""
Test Configuration and Fixtures

This module provides:
- Environment setup before application modules read settings
- A fresh SQLite (aiosqlite) database per test for repository and API tests
- Repository fixtures bound to that database
- A TestClient whose DI container points at the per-test database

Architecture:
- Unit tests (test/**/unit/): in-memory fakes and AsyncMock, no database
- Integration tests (test/**/integration/): real SQLAlchemy repositories on SQLite
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read once at import time by src.platform.config.core_setting
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{test_log_dir / f"booking_{worker_id}.db"}'
    os.environ['DB_CREATE_TABLES_ON_STARTUP'] = 'false'
    os.environ['ENABLE_EXPIRY_SWEEPER'] = 'false'
    os.environ['TICKET_SIGNING_SECRET'] = 'test-signing-secret'
    os.environ['RESERVATION_HOLD_MINUTES'] = '15'
    os.environ['MAX_SEATS_PER_BOOKING'] = '2'
    os.environ['MAX_SEATS_PER_GUEST_BOOKING'] = '10'
    os.environ['CANCEL_ON_PAYMENT_FAILURE'] = 'false'


_early_setup_test_environment()

import asyncio  # noqa: E402
from collections.abc import AsyncGenerator, Callable, Generator  # noqa: E402

from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from src.platform.database.orm_db_setting import (  # noqa: E402
    AsyncEngineManager,
    Database,
    create_db_and_tables,
)
from src.service.booking.domain.entity import Trip  # noqa: E402
from src.service.booking.driven_adapter import model  # noqa: E402, F401  (register tables)
from src.service.booking.driven_adapter.repo.reservation_command_repo_impl import (  # noqa: E402
    ReservationCommandRepoImpl,
)
from src.service.booking.driven_adapter.repo.reservation_query_repo_impl import (  # noqa: E402
    ReservationQueryRepoImpl,
)
from src.service.booking.driven_adapter.repo.trip_repo_impl import (  # noqa: E402
    TripCommandRepoImpl,
    TripQueryRepoImpl,
)


def _sqlite_url(directory: Path) -> str:
    return f'sqlite+aiosqlite:///{directory / "booking.db"}'


# =============================================================================
# Integration Test Fixtures (async, same event loop as the test)
# =============================================================================
@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    manager = AsyncEngineManager(url=_sqlite_url(tmp_path))
    await create_db_and_tables(manager.get_engine())
    yield Database(engine_manager=manager)
    await manager.dispose()


@pytest.fixture
def trip_query_repo(database: Database) -> TripQueryRepoImpl:
    return TripQueryRepoImpl(session_factory=database.session)


@pytest.fixture
def trip_command_repo(database: Database) -> TripCommandRepoImpl:
    return TripCommandRepoImpl(session_factory=database.session)


@pytest.fixture
def reservation_query_repo(database: Database) -> ReservationQueryRepoImpl:
    return ReservationQueryRepoImpl(session_factory=database.session)


@pytest.fixture
def reservation_command_repo(database: Database) -> ReservationCommandRepoImpl:
    return ReservationCommandRepoImpl(session_factory=database.session)


# =============================================================================
# API Fixtures (TestClient runs its own event loop)
# =============================================================================
async def _prepare_database(manager: AsyncEngineManager) -> None:
    await create_db_and_tables(manager.get_engine())
    await manager.dispose()


async def _insert_trip(manager: AsyncEngineManager, trip: Trip) -> None:
    database = Database(engine_manager=manager)
    await TripCommandRepoImpl(session_factory=database.session).create(trip=trip)
    await manager.dispose()


@pytest.fixture
def api_engine_manager(tmp_path: Path) -> AsyncEngineManager:
    manager = AsyncEngineManager(url=_sqlite_url(tmp_path))
    asyncio.run(_prepare_database(manager))
    return manager


@pytest.fixture
def api_database(api_engine_manager: AsyncEngineManager) -> Database:
    return Database(engine_manager=api_engine_manager)


@pytest.fixture
def seed_trip(api_engine_manager: AsyncEngineManager) -> Callable[[Trip], Trip]:
    """Insert a trip before the TestClient starts its own event loop."""

    def _seed(trip: Trip) -> Trip:
        asyncio.run(_insert_trip(api_engine_manager, trip))
        return trip

    return _seed


@pytest.fixture
def client(api_database: Database) -> Generator[TestClient, None, None]:
    from src.main import app
    from src.platform.config.di import container

    container.reset_singletons()
    container.database.override(providers.Object(api_database))
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        container.database.reset_override()
        container.reset_singletons()
