"""
Shared fixtures across unit test modules.
"""
import datetime as dt
from typing import Generator

import pytest

from tests.helpers import TickingClock, at
from workclock.data.database import open_database, close_db
from workclock.data.event_store import EventStore
from workclock.services.clock_controller import ClockController


@pytest.fixture
def database() -> Generator:
    """In-memory SQLite database, closed after the test"""
    db = open_database(':memory:')
    yield db
    close_db(db)


@pytest.fixture
def store(database) -> EventStore:
    return EventStore(database)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(at(8), dt.timedelta(minutes=30))


@pytest.fixture
def controller(store: EventStore, clock: TickingClock) -> ClockController:
    return ClockController(store, clock=clock)


@pytest.fixture
def file_store(tmp_path) -> Generator[EventStore, None, None]:
    """File backed store, needed when several threads share the ledger"""
    store = EventStore(open_database(str(tmp_path / "ledger.db")))
    yield store
    store.close()
