from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from reservations.core.errors import PersistenceError
from reservations.models.booking_model import BookingRecord
from reservations.models.customer_model import CustomerRecord
from reservations.services.persistence import PersistenceCoordinator, translate_error
from reservations.workflow.status import BookingStatus

AT = datetime(2024, 1, 1, 18)


@pytest.fixture
def coordinator(session_factory, provision_tables):
    provision_tables((1, 2, "Window"), (2, 4, "Main hall"))
    return PersistenceCoordinator(session_factory)


def fetch_booking(session_factory, booking_id):
    session = session_factory()
    try:
        return session.query(BookingRecord).filter(BookingRecord.id == booking_id).first()
    finally:
        session.close()


def test_create_booking_returns_storage_id_and_starts_pending(coordinator, session_factory):
    receipt = coordinator.create_booking("Ivan", "+70000000001", 3, AT, 2, "Birthday")

    row = fetch_booking(session_factory, receipt.booking_id)
    assert row is not None
    assert row.status_id == BookingStatus.PENDING.code
    assert row.guests == 3
    assert row.booking_date_time == AT
    assert row.special_requests == "Birthday"
    assert receipt.table.table_number == 2
    assert receipt.customer_name == "Ivan"


def test_ids_are_assigned_by_storage(coordinator):
    first = coordinator.create_booking("Ivan", "+70000000001", 2, AT, 1)
    second = coordinator.create_booking("Maria", "+70000000002", 2, AT, 2)
    assert second.booking_id != first.booking_id


def test_existing_phone_reuses_customer_and_keeps_stored_name(coordinator, row_count):
    first = coordinator.create_booking("Ivan", "+70000000001", 2, AT, 1)
    second = coordinator.create_booking("Ivan Petrov", "+70000000001", 2, AT, 2)

    assert second.customer_id == first.customer_id
    assert second.customer_name == "Ivan"
    assert row_count(CustomerRecord) == 1


def test_unknown_table_writes_nothing(coordinator, row_count):
    with pytest.raises(PersistenceError) as exc_info:
        coordinator.create_booking("New Guest", "+70000000009", 2, AT, 99)

    assert exc_info.value.reason == "table not found"
    assert row_count(CustomerRecord) == 0
    assert row_count(BookingRecord) == 0


def test_update_replaces_every_field_including_status(coordinator, session_factory):
    receipt = coordinator.create_booking("Ivan", "+70000000001", 2, AT, 1, "Window please")
    later = datetime(2024, 1, 2, 20)

    updated = coordinator.update_booking(
        receipt.booking_id, "Maria", "+70000000002", 4, later, 2, "Anniversary", BookingStatus.CONFIRMED
    )

    row = fetch_booking(session_factory, receipt.booking_id)
    assert row.status_id == BookingStatus.CONFIRMED.code
    assert row.guests == 4
    assert row.booking_date_time == later
    assert row.special_requests == "Anniversary"
    assert row.customer_id == updated.customer_id != receipt.customer_id
    assert updated.table.table_number == 2


def test_update_unknown_booking_rolls_back_new_customer(coordinator, row_count):
    with pytest.raises(PersistenceError) as exc_info:
        coordinator.update_booking(
            404, "Nobody", "+70000000404", 2, AT, 1, "", BookingStatus.CONFIRMED
        )

    assert exc_info.value.reason == "booking not found"
    assert row_count(CustomerRecord) == 0


def test_update_with_unknown_table_keeps_row(coordinator, session_factory):
    receipt = coordinator.create_booking("Ivan", "+70000000001", 2, AT, 1)

    with pytest.raises(PersistenceError) as exc_info:
        coordinator.update_booking(
            receipt.booking_id, "Ivan", "+70000000001", 2, AT, 99, "", BookingStatus.CONFIRMED
        )

    assert exc_info.value.reason == "table not found"
    row = fetch_booking(session_factory, receipt.booking_id)
    assert row.status_id == BookingStatus.PENDING.code


def test_delete_booking(coordinator, row_count):
    receipt = coordinator.create_booking("Ivan", "+70000000001", 2, AT, 1)
    coordinator.delete_booking(receipt.booking_id)

    assert row_count(BookingRecord) == 0
    assert row_count(CustomerRecord) == 1


def test_delete_unknown_booking_fails(coordinator, row_count):
    coordinator.create_booking("Ivan", "+70000000001", 2, AT, 1)

    with pytest.raises(PersistenceError) as exc_info:
        coordinator.delete_booking(404)

    assert exc_info.value.reason == "booking not found"
    assert row_count(BookingRecord) == 1


# ===== ERROR TRANSLATION =====

def test_pool_timeout_becomes_timeout():
    error = translate_error(PoolTimeoutError("QueuePool limit of size 5 overflow 5 reached"))
    assert error.reason == "timeout"


@pytest.mark.parametrize("message", [
    "canceling statement due to statement timeout",
    "database is locked",
])
def test_driver_timeouts_become_timeout(message):
    error = translate_error(OperationalError("UPDATE bookings", {}, Exception(message)))
    assert error.reason == "timeout"


def test_integrity_error_becomes_constraint_violation():
    error = translate_error(IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")))
    assert error.reason == "constraint violation"


def test_other_operational_error_is_storage_failure():
    error = translate_error(OperationalError("SELECT", {}, Exception("server closed the connection")))
    assert error.reason == "storage failure"


class TimingOutSession:
    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def query(self, *args, **kwargs):
        raise PoolTimeoutError("QueuePool limit of size 5 overflow 5 reached")

    def commit(self):
        raise AssertionError("must not commit")

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def test_timeout_is_reported_after_rollback():
    session = TimingOutSession()
    coordinator = PersistenceCoordinator(lambda: session)

    with pytest.raises(PersistenceError) as exc_info:
        coordinator.create_booking("Ivan", "+70000000001", 2, AT, 1)

    assert exc_info.value.reason == "timeout"
    assert session.rolled_back
    assert session.closed
