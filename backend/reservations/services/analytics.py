from collections import Counter
from datetime import date
from typing import Dict, Iterable, Optional

from ..schemas.booking_schema import Booking
from ..workflow.status import BookingStatus


def get_dashboard_stats(bookings: Iterable[Booking], on_date: Optional[date] = None) -> Dict:
    """
    Aggregate booking counts for the dashboard.
    When `on_date` is given, only bookings on that calendar day are counted.
    """
    bookings = [b for b in bookings if on_date is None or b.booking_date == on_date]
    by_status = Counter(b.status for b in bookings)

    return {
        "total_bookings": len(bookings),
        "confirmed_bookings": by_status[BookingStatus.CONFIRMED],
        "pending_bookings": by_status[BookingStatus.PENDING],
        "bookings_by_status": {status.name: by_status[status] for status in BookingStatus},
        "total_guests": sum(b.guests for b in bookings if b.status.occupies_table),
    }


def get_bookings_by_date(bookings: Iterable[Booking]) -> Dict[date, int]:
    """Non-cancelled booking count per calendar day, oldest day first"""
    counts = Counter(b.booking_date for b in bookings if b.status.occupies_table)
    return dict(sorted(counts.items()))

