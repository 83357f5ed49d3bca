"""
ReservationSystem

The in-process API the presentation layer calls. Every operation returns a
Result instead of raising: validation happens before any I/O, storage is
written first, and the booking store is updated only after the commit.
Changes are announced on `events`.
"""

from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Union
import logging

from ..core.errors import (
    PersistenceError,
    Result,
    StorageError,
    ValidationError,
)
from ..core.events import (
    BookingCreated,
    BookingDeleted,
    BookingFilterChanged,
    BookingStatusChanged,
    BookingUpdated,
    DegradedModeEntered,
    EventBus,
)
from ..schemas.booking_schema import (
    Booking,
    BookingRequest,
    PydanticValidationError,
    WriteReceipt,
    validation_messages,
)
from ..schemas.table_schema import Table
from ..workflow.status import BookingStatus, set_status
from . import analytics, availability
from .booking_store import BookingStore, load_all_bookings
from .persistence import PersistenceCoordinator
from .table_registry import DataSource, TableRegistry

logger = logging.getLogger(__name__)


class ReservationSystem:

    def __init__(
        self,
        session_factory,
        registry: Optional[TableRegistry] = None,
        store: Optional[BookingStore] = None,
        events: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self._session_factory = session_factory
        self.registry = registry or TableRegistry()
        self.store = store or BookingStore()
        self.events = events or EventBus()
        self.coordinator = PersistenceCoordinator(session_factory)
        self._clock = clock
        self._bookings_degraded = False

    # ===== LOADING =====

    def start(self) -> bool:
        """Load tables, then bookings. Returns False when running in degraded mode."""
        self.load_active_tables()
        self.load_all_bookings()
        if self.degraded:
            logger.warning("Reservation system started in degraded mode")
        else:
            logger.info("Reservation system started")
        return not self.degraded

    def load_active_tables(self) -> Result[List[Table]]:
        """
        On storage failure the registry switches to seed tables; the result
        then carries the StorageError while tables() still serves the seed set.
        """
        source = self.registry.load(self._session_factory)
        if source is DataSource.SEED:
            self.events.publish(DegradedModeEntered(component="tables", reason=str(self.registry.load_error)))
            return Result.failure(self.registry.load_error)
        return Result.success(self.registry.all())

    def load_all_bookings(self) -> Result[List[Booking]]:
        try:
            bookings = load_all_bookings(self._session_factory, self.registry)
        except StorageError as e:
            # Whatever the store held before is kept; it is flagged, never silently emptied.
            logger.warning(f"Booking store running in degraded mode with {len(self.store)} bookings: {e}")
            self._bookings_degraded = True
            self.events.publish(DegradedModeEntered(component="bookings", reason=str(e)))
            return Result.failure(e)

        self.store.reset(bookings)
        self._bookings_degraded = False
        logger.info(f"Loaded {len(bookings)} bookings")
        return Result.success(bookings)

    @property
    def degraded(self) -> bool:
        return self.registry.degraded or self._bookings_degraded

    @property
    def data_source(self) -> DataSource:
        return DataSource.SEED if self.degraded else DataSource.LIVE

    # ===== QUERIES =====

    def tables(self) -> List[Table]:
        return self.registry.all()

    def bookings(self) -> List[Booking]:
        return self.store.all()

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.store.get(booking_id)

    def filtered_bookings(self) -> List[Booking]:
        return self.store.filtered()

    def set_filter(self, filter_date: Optional[Union[date, datetime]]):
        if isinstance(filter_date, datetime):
            filter_date = filter_date.date()
        self.store.set_filter(filter_date)
        self.events.publish(BookingFilterChanged(filter_date=filter_date))

    def clear_filter(self):
        self.set_filter(None)

    def available_tables(
        self,
        guests: int,
        at: datetime,
        ignore_booking_id: Optional[int] = None
    ) -> Result[List[Table]]:
        try:
            tables = availability.available_tables(
                self.registry.all(), self.store.all(), guests, at, ignore_booking_id
            )
        except ValidationError as e:
            return Result.failure(e)
        return Result.success(tables)

    def table_occupancy(self, at: Optional[datetime] = None) -> Dict[int, bool]:
        """table_number -> True when occupied; defaults to the current moment"""
        return availability.occupancy(self.registry.all(), self.store.all(), at or self._clock())

    def bookings_for_table(self, table_number: int) -> List[Booking]:
        return self.store.for_table(table_number)

    def stats(self, on_date: Optional[date] = None) -> Dict:
        return analytics.get_dashboard_stats(self.store.all(), on_date)

    def bookings_by_date(self) -> Dict[date, int]:
        """Non-cancelled bookings per calendar day"""
        return analytics.get_bookings_by_date(self.store.all())

    # ===== COMMANDS =====

    def _validate(self, **fields) -> BookingRequest:
        try:
            return BookingRequest.model_validate(fields, context={"today": self._clock().date()})
        except PydanticValidationError as e:
            raise ValidationError(validation_messages(e)) from e

    def _mirror(self, receipt: WriteReceipt, request: BookingRequest, status: BookingStatus) -> Booking:
        booking = Booking(
            id=receipt.booking_id,
            customer_name=receipt.customer_name,
            phone=request.phone,
            guests=request.guests,
            booking_date_time=request.booking_date_time,
            table=self.registry.find_by_number(receipt.table.table_number) or receipt.table,
            special_requests=request.special_requests,
        )
        set_status(booking, status)
        return booking

    def create_booking(
        self,
        customer_name: str,
        phone: str,
        guests: int,
        at: datetime,
        table_number: Optional[int],
        notes: str = ""
    ) -> Result[int]:
        """Persist a new PENDING booking. The result value is the id storage assigned."""
        try:
            request = self._validate(
                customer_name=customer_name, phone=phone, guests=guests,
                booking_date_time=at, table_number=table_number, special_requests=notes,
            )
            receipt = self.coordinator.create_booking(
                request.customer_name, request.phone, request.guests,
                request.booking_date_time, request.table_number, request.special_requests,
            )
        except ValidationError as e:
            logger.warning(f"Booking rejected: {e}")
            return Result.failure(e)
        except PersistenceError as e:
            logger.error(f"Failed to create booking: {e}")
            return Result.failure(e)

        booking = self._mirror(receipt, request, BookingStatus.PENDING)
        self.store.insert(booking)
        self.events.publish(BookingCreated(booking_id=booking.id, table_number=booking.table_number))
        return Result.success(booking.id)

    def update_booking(
        self,
        booking_id: int,
        customer_name: str,
        phone: str,
        guests: int,
        at: datetime,
        table_number: Optional[int],
        notes: str,
        status: BookingStatus
    ) -> Result[Booking]:
        """Replace every field of a booking except its id"""
        try:
            request = self._validate(
                customer_name=customer_name, phone=phone, guests=guests,
                booking_date_time=at, table_number=table_number, special_requests=notes,
            )
            receipt = self.coordinator.update_booking(
                booking_id, request.customer_name, request.phone, request.guests,
                request.booking_date_time, request.table_number, request.special_requests, status,
            )
        except ValidationError as e:
            logger.warning(f"Update of booking {booking_id} rejected: {e}")
            return Result.failure(e)
        except PersistenceError as e:
            logger.error(f"Failed to update booking {booking_id}: {e}")
            return Result.failure(e)

        booking = self._mirror(receipt, request, status)
        self.store.replace(booking)
        self.events.publish(BookingUpdated(booking_id=booking.id, table_number=booking.table_number))
        return Result.success(booking)

    def change_status(self, booking_id: int, status: BookingStatus) -> Result[Booking]:
        """Persist a new status, keeping every other field. Any status may follow any other."""
        current = self.store.get(booking_id)
        if current is None:
            return Result.failure(PersistenceError("booking not found", f"booking id {booking_id}"))

        try:
            self.coordinator.update_booking(
                booking_id, current.customer_name, current.phone, current.guests,
                current.booking_date_time, current.table_number, current.special_requests, status,
            )
        except PersistenceError as e:
            logger.error(f"Failed to change status of booking {booking_id}: {e}")
            return Result.failure(e)

        updated = current.model_copy()
        old_status = set_status(updated, status)
        self.store.replace(updated)
        self.events.publish(BookingStatusChanged(
            booking_id=booking_id, old_status=old_status.name, new_status=status.name
        ))
        return Result.success(updated)

    def delete_booking(self, booking_id: int) -> Result[None]:
        try:
            self.coordinator.delete_booking(booking_id)
        except PersistenceError as e:
            logger.error(f"Failed to delete booking {booking_id}: {e}")
            return Result.failure(e)

        self.store.remove(booking_id)
        self.events.publish(BookingDeleted(booking_id=booking_id))
        return Result.success(None)
