# backend/reservations/main.py
import logging
from typing import Optional

from .core.config import Settings, settings as default_settings
from .core.database import build_engine, build_session_factory, init_db
from .services.reservation_service import ReservationSystem

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings = default_settings):
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


def create_system(settings: Optional[Settings] = None, create_schema: bool = True) -> ReservationSystem:
    """
    Build the reservation core: pooled engine, schema, registry and store.

    A storage outage at start-up does not raise; the system comes up in
    degraded mode (seed tables, flagged booking set) and `system.degraded` says so.
    """
    settings = settings or default_settings
    engine = build_engine(settings)

    if create_schema:
        try:
            init_db(engine)
        except Exception as e:
            logger.error(f"Database initialisation failed: {e}", exc_info=True)

    system = ReservationSystem(build_session_factory(engine))
    system.start()

    logger.info(
        f"Reservation core ready: {len(system.tables())} tables, "
        f"{len(system.bookings())} bookings, source={system.data_source.value}"
    )
    return system


if __name__ == "__main__":
    configure_logging()
    create_system()
