import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def build_engine(settings: Settings = default_settings) -> Engine:
    """
    Create a pooled engine for the configured database.

    In-memory SQLite shares a single connection through StaticPool, everything
    else gets a QueuePool bounded by DB_POOL_SIZE / DB_MAX_OVERFLOW / DB_POOL_TIMEOUT.
    """
    url = settings.DATABASE_URL

    if _is_memory_sqlite(url):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif _is_sqlite(url):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": settings.DB_STATEMENT_TIMEOUT},
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    else:
        statement_timeout_ms = int(settings.DB_STATEMENT_TIMEOUT * 1000)
        engine = create_engine(
            url,
            connect_args={"options": f"-c statement_timeout={statement_timeout_ms}"},
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
        )

    if _is_sqlite(url):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the schema and the fixed booking_status rows."""
    # Models must be imported so their tables are registered on Base.metadata
    from ..models import table_model, customer_model, booking_model  # noqa: F401
    from ..workflow.status import BookingStatus

    Base.metadata.create_all(bind=engine)

    session = build_session_factory(engine)()
    try:
        existing = {row.id for row in session.query(booking_model.BookingStatusRecord).all()}
        for status in BookingStatus:
            if status.code not in existing:
                session.add(booking_model.BookingStatusRecord(id=status.code, name=status.name))
        session.commit()
    except Exception as e:
        logger.error(f"Failed to seed booking statuses: {e}", exc_info=True)
        session.rollback()
        raise
    finally:
        session.close()
