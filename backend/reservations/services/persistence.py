"""
Persistence Coordinator

Runs every booking write as one transaction on its own pooled session:
customer dedup by phone, table resolution by number, then the booking row.
Any failure rolls the whole unit back, so no orphan customer row survives a
failed booking insert. Nothing here touches the in-memory store.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import func

from ..core.errors import PersistenceError
from ..models.booking_model import BookingRecord
from ..models.customer_model import CustomerRecord
from ..models.table_model import TableRecord
from ..schemas.booking_schema import WriteReceipt
from ..schemas.table_schema import Table
from ..workflow.status import BookingStatus

logger = logging.getLogger(__name__)

TIMEOUT_MARKERS = (
    "timeout",
    "timed out",
    "canceling statement",
    "database is locked",
    "lock wait",
)


def translate_error(exc: SQLAlchemyError) -> PersistenceError:
    """Map a SQLAlchemy failure to a PersistenceError with a stable reason"""
    if isinstance(exc, PoolTimeoutError):
        return PersistenceError("timeout", str(exc))
    if isinstance(exc, OperationalError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        if any(marker in message for marker in TIMEOUT_MARKERS):
            return PersistenceError("timeout", str(exc.orig))
    if isinstance(exc, IntegrityError):
        return PersistenceError("constraint violation", str(exc.orig))
    return PersistenceError("storage failure", str(exc))


class PersistenceCoordinator:

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def transaction(self):
        """Yield a session; commit on success, roll back and raise PersistenceError otherwise"""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except PersistenceError as e:
            session.rollback()
            logger.warning(f"Transaction rolled back: {e}")
            raise
        except SQLAlchemyError as e:
            session.rollback()
            error = translate_error(e)
            logger.error(f"Transaction rolled back: {error}", exc_info=True)
            raise error from e
        finally:
            session.close()

    # ===== STEPS (always inside a transaction) =====

    def _resolve_customer(self, session: Session, name: str, phone: str) -> CustomerRecord:
        # Phone is the only dedup key; the stored name of a known phone is kept.
        customer = session.query(CustomerRecord).filter(CustomerRecord.phone == phone).first()
        if customer is not None:
            if customer.name != name:
                logger.debug(f"Customer {customer.id} keeps stored name, ignoring {name!r}")
            return customer

        customer = CustomerRecord(name=name, phone=phone)
        session.add(customer)
        session.flush()
        logger.info(f"Created customer {customer.id} for phone {phone}")
        return customer

    def _resolve_table(self, session: Session, table_number: int) -> TableRecord:
        table = session.query(TableRecord).filter(TableRecord.table_number == table_number).first()
        if table is None:
            raise PersistenceError("table not found", f"table number {table_number}")
        return table

    def _resolve(self, session: Session, name: str, phone: str, table_number: int) -> Tuple[CustomerRecord, TableRecord]:
        customer = self._resolve_customer(session, name, phone)
        table = self._resolve_table(session, table_number)
        return customer, table

    # ===== OPERATIONS =====

    def create_booking(
        self,
        customer_name: str,
        phone: str,
        guests: int,
        when: datetime,
        table_number: int,
        notes: Optional[str] = None
    ) -> WriteReceipt:
        """Insert a new PENDING booking and return the id storage assigned"""
        with self.transaction() as session:
            customer, table = self._resolve(session, customer_name, phone, table_number)

            booking = BookingRecord(
                customer_id=customer.id,
                table_id=table.id,
                status_id=BookingStatus.PENDING.code,
                guests=guests,
                booking_date_time=when,
                special_requests=notes,
            )
            session.add(booking)
            session.flush()

            if booking.id is None:
                raise PersistenceError("storage failure", "no id returned for the new booking")

            receipt = WriteReceipt(
                booking_id=booking.id,
                customer_id=customer.id,
                customer_name=customer.name,
                table=Table.model_validate(table),
            )

        logger.info(f"Booking {receipt.booking_id} created for table {table_number}")
        return receipt

    def update_booking(
        self,
        booking_id: int,
        customer_name: str,
        phone: str,
        guests: int,
        when: datetime,
        table_number: int,
        notes: Optional[str],
        status: BookingStatus
    ) -> WriteReceipt:
        """Replace every field of an existing booking except its id"""
        with self.transaction() as session:
            customer, table = self._resolve(session, customer_name, phone, table_number)

            affected = session.query(BookingRecord).filter(
                BookingRecord.id == booking_id
            ).update(
                {
                    BookingRecord.customer_id: customer.id,
                    BookingRecord.table_id: table.id,
                    BookingRecord.status_id: status.code,
                    BookingRecord.guests: guests,
                    BookingRecord.booking_date_time: when,
                    BookingRecord.special_requests: notes,
                    BookingRecord.updated_at: func.now(),
                },
                synchronize_session=False
            )
            if affected == 0:
                raise PersistenceError("booking not found", f"booking id {booking_id}")

            receipt = WriteReceipt(
                booking_id=booking_id,
                customer_id=customer.id,
                customer_name=customer.name,
                table=Table.model_validate(table),
            )

        logger.info(f"Booking {booking_id} updated")
        return receipt

    def delete_booking(self, booking_id: int) -> None:
        with self.transaction() as session:
            affected = session.query(BookingRecord).filter(
                BookingRecord.id == booking_id
            ).delete(synchronize_session=False)
            if affected == 0:
                raise PersistenceError("booking not found", f"booking id {booking_id}")

        logger.info(f"Booking {booking_id} deleted")
