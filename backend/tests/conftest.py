from datetime import datetime

import pytest

from reservations.core.config import Settings
from reservations.core.database import build_engine, build_session_factory, init_db
from reservations.models.table_model import TableRecord
from reservations.services.reservation_service import ReservationSystem

# Fixed "now" so past-date validation is deterministic
NOW = datetime(2024, 1, 1, 9, 0)


@pytest.fixture
def engine():
    engine = build_engine(Settings(DATABASE_URL="sqlite://"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def provision_tables(session_factory):
    def _provision(*rows):
        session = session_factory()
        try:
            for row in rows:
                number, capacity = row[0], row[1]
                location = row[2] if len(row) > 2 else f"Zone {number}"
                is_active = row[3] if len(row) > 3 else True
                session.add(TableRecord(
                    table_number=number, capacity=capacity, location=location, is_active=is_active
                ))
            session.commit()
        finally:
            session.close()
    return _provision


@pytest.fixture
def system(session_factory, provision_tables):
    provision_tables((1, 2, "Window"), (2, 4, "Main hall"))
    system = ReservationSystem(session_factory, clock=lambda: NOW)
    assert system.start()
    return system


@pytest.fixture
def row_count(session_factory):
    def _count(model):
        session = session_factory()
        try:
            return session.query(model).count()
        finally:
            session.close()
    return _count
