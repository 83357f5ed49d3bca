from datetime import date, datetime

from reservations.schemas.booking_schema import Booking
from reservations.schemas.table_schema import Table
from reservations.services.analytics import get_bookings_by_date, get_dashboard_stats
from reservations.workflow.status import BookingStatus, set_status

TABLE = Table(table_number=1, capacity=6, location="VIP area")


def make_booking(booking_id, at, status, guests=2):
    booking = Booking(
        id=booking_id,
        customer_name="Guest",
        phone=f"+7000000000{booking_id}",
        guests=guests,
        booking_date_time=at,
        table=TABLE,
    )
    set_status(booking, status)
    return booking


BOOKINGS = [
    make_booking(1, datetime(2024, 1, 1, 12), BookingStatus.CONFIRMED, guests=4),
    make_booking(2, datetime(2024, 1, 1, 18), BookingStatus.PENDING),
    make_booking(3, datetime(2024, 1, 1, 20), BookingStatus.CANCELLED, guests=6),
    make_booking(4, datetime(2024, 1, 2, 19), BookingStatus.COMPLETED, guests=3),
]


def test_dashboard_stats():
    stats = get_dashboard_stats(BOOKINGS)

    assert stats["total_bookings"] == 4
    assert stats["confirmed_bookings"] == 1
    assert stats["pending_bookings"] == 1
    assert stats["bookings_by_status"] == {
        "PENDING": 1, "CONFIRMED": 1, "CANCELLED": 1, "COMPLETED": 1
    }
    assert stats["total_guests"] == 9


def test_dashboard_stats_for_one_day():
    stats = get_dashboard_stats(BOOKINGS, on_date=date(2024, 1, 2))
    assert stats["total_bookings"] == 1
    assert stats["bookings_by_status"]["COMPLETED"] == 1


def test_empty_stats():
    stats = get_dashboard_stats([])
    assert stats["total_bookings"] == 0
    assert stats["total_guests"] == 0


def test_bookings_by_date_skips_cancelled():
    assert get_bookings_by_date(BOOKINGS) == {date(2024, 1, 1): 2, date(2024, 1, 2): 1}
