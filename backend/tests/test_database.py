from sqlalchemy.pool import QueuePool, StaticPool

from reservations.core.config import Settings
from reservations.core.database import build_engine, build_session_factory, init_db
from reservations.main import create_system
from reservations.models.booking_model import BookingStatusRecord
from reservations.models.table_model import TableRecord


def test_settings_defaults():
    settings = Settings()
    assert settings.DB_POOL_SIZE > 0
    assert settings.DB_STATEMENT_TIMEOUT > 0


def test_memory_database_uses_static_pool():
    engine = build_engine(Settings(DATABASE_URL="sqlite://"))
    assert isinstance(engine.pool, StaticPool)


def test_file_database_uses_connection_pool(tmp_path):
    url = f"sqlite:///{tmp_path / 'booking.db'}"
    engine = build_engine(Settings(DATABASE_URL=url, DB_POOL_SIZE=3))
    assert isinstance(engine.pool, QueuePool)
    assert engine.pool.size() == 3
    engine.dispose()


def test_init_db_seeds_statuses_once(engine, session_factory):
    init_db(engine)

    session = session_factory()
    try:
        rows = session.query(BookingStatusRecord).order_by(BookingStatusRecord.id).all()
        assert [(r.id, r.name) for r in rows] == [
            (1, "PENDING"), (2, "CONFIRMED"), (3, "CANCELLED"), (4, "COMPLETED")
        ]
    finally:
        session.close()


def test_create_system_on_file_database(tmp_path):
    settings = Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'cafe.db'}")
    engine = build_engine(settings)
    init_db(engine)
    session = build_session_factory(engine)()
    session.add(TableRecord(table_number=1, capacity=4, location="Terrace"))
    session.commit()
    session.close()
    engine.dispose()

    system = create_system(settings)

    assert not system.degraded
    assert [t.location for t in system.tables()] == ["Terrace"]
