"""
Booking Store

Canonical in-memory copy of every booking. Mutations are applied only after
the matching storage write committed, so readers never see a partial change.
"""

from datetime import date
from typing import Callable, List, Optional
import logging
import threading

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, sessionmaker

from ..core.errors import StorageError
from ..models.booking_model import BookingRecord
from ..schemas.booking_schema import Booking
from ..schemas.table_schema import Table
from ..workflow.status import BookingStatus, set_status
from .table_registry import TableRegistry

logger = logging.getLogger(__name__)

BookingPredicate = Callable[[Booking], bool]


def load_all_bookings(session_factory: sessionmaker, registry: TableRegistry) -> List[Booking]:
    """
    Read every booking with its customer and table, newest first.
    Tables missing from the registry (e.g. deactivated ones) are built from the row.
    Raises StorageError.
    """
    session = session_factory()
    try:
        rows = session.query(BookingRecord).options(
            joinedload(BookingRecord.customer),
            joinedload(BookingRecord.table)
        ).order_by(BookingRecord.booking_date_time.desc()).all()

        bookings = []
        for row in rows:
            table = registry.find_by_number(row.table.table_number) or Table.model_validate(row.table)
            booking = Booking(
                id=row.id,
                customer_name=row.customer.name,
                phone=row.customer.phone,
                guests=row.guests,
                booking_date_time=row.booking_date_time,
                table=table,
                special_requests=row.special_requests,
            )
            set_status(booking, BookingStatus.from_code(row.status_id))
            bookings.append(booking)
        return bookings
    except SQLAlchemyError as e:
        logger.error(f"Failed to load bookings: {e}", exc_info=True)
        raise StorageError(f"could not load bookings: {e}") from e
    except PydanticValidationError as e:
        logger.error(f"Invalid booking row in storage: {e}")
        raise StorageError(f"could not load bookings: invalid row: {e}") from e
    finally:
        session.close()


def same_day(filter_date: Optional[date]) -> Optional[BookingPredicate]:
    if filter_date is None:
        return None
    return lambda booking: booking.booking_date == filter_date


class BookingStore:

    def __init__(self, bookings: Optional[List[Booking]] = None):
        self._bookings: List[Booking] = list(bookings or [])
        self._predicate: Optional[BookingPredicate] = None
        self._filter_date: Optional[date] = None
        self._lock = threading.RLock()

    # ===== READS =====

    def all(self) -> List[Booking]:
        with self._lock:
            return list(self._bookings)

    def get(self, booking_id: int) -> Optional[Booking]:
        with self._lock:
            return next((b for b in self._bookings if b.id == booking_id), None)

    def filtered(self) -> List[Booking]:
        """Current bookings that pass the active filter, recomputed on every call"""
        with self._lock:
            predicate = self._predicate
            if predicate is None:
                return list(self._bookings)
            return [b for b in self._bookings if predicate(b)]

    def filtered_by_date(self, filter_date: Optional[date]) -> List[Booking]:
        predicate = same_day(filter_date)
        with self._lock:
            if predicate is None:
                return list(self._bookings)
            return [b for b in self._bookings if predicate(b)]

    def for_table(self, table_number: int, include_cancelled: bool = False) -> List[Booking]:
        with self._lock:
            bookings = [
                b for b in self._bookings
                if b.table_number == table_number
                and (include_cancelled or b.status.occupies_table)
            ]
        return sorted(bookings, key=lambda b: b.booking_date_time)

    def __len__(self):
        with self._lock:
            return len(self._bookings)

    # ===== FILTER =====

    @property
    def filter_date(self) -> Optional[date]:
        return self._filter_date

    def set_filter(self, filter_date: Optional[date]):
        with self._lock:
            self._filter_date = filter_date
            self._predicate = same_day(filter_date)

    def set_predicate(self, predicate: Optional[BookingPredicate]):
        with self._lock:
            self._filter_date = None
            self._predicate = predicate

    # ===== MUTATIONS (call only after the storage write committed) =====

    def reset(self, bookings: List[Booking]):
        with self._lock:
            self._bookings = list(bookings)

    def insert(self, booking: Booking):
        if booking.id is None:
            raise ValueError("Only persisted bookings (with an id) can be stored")
        with self._lock:
            self._bookings.append(booking)

    def replace(self, booking: Booking) -> bool:
        """Swap the booking with the same id. Appends it when absent; returns True if replaced."""
        with self._lock:
            for index, existing in enumerate(self._bookings):
                if existing.id == booking.id:
                    self._bookings[index] = booking
                    return True
            self._bookings.append(booking)
            return False

    def remove(self, booking_id: int) -> Optional[Booking]:
        with self._lock:
            for index, existing in enumerate(self._bookings):
                if existing.id == booking_id:
                    return self._bookings.pop(index)
        return None
