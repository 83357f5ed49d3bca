"""
Availability Engine

A table can take a party when it seats enough guests and no non-cancelled
booking on the same table and the same calendar day starts less than
CONFLICT_WINDOW_HOURS away by hour of day. Only the hour is compared, so a
23:00 booking never blocks 01:00 on the next day.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..core.errors import ValidationError
from ..schemas.booking_schema import Booking
from ..schemas.table_schema import Table

CONFLICT_WINDOW_HOURS = 2


def conflicts(booking: Booking, table: Table, at: datetime) -> bool:
    return (
        booking.table_number == table.table_number
        and booking.status.occupies_table
        and booking.booking_date_time.date() == at.date()
        and abs(booking.booking_date_time.hour - at.hour) < CONFLICT_WINDOW_HOURS
    )


def is_table_free(
    table: Table,
    at: datetime,
    bookings: Iterable[Booking],
    ignore_booking_id: Optional[int] = None
) -> bool:
    for booking in bookings:
        if ignore_booking_id is not None and booking.id == ignore_booking_id:
            continue
        if conflicts(booking, table, at):
            return False
    return True


def available_tables(
    tables: Iterable[Table],
    bookings: Iterable[Booking],
    guests: int,
    at: datetime,
    ignore_booking_id: Optional[int] = None
) -> List[Table]:
    """Tables that can serve `guests` at `at`, ascending by table number"""
    if guests is None or guests < 1:
        raise ValidationError({"guests": "Number of guests must be at least 1"})
    if at is None:
        raise ValidationError({"booking_date_time": "Please choose a date"})

    bookings = list(bookings)
    candidates = sorted(tables, key=lambda t: t.table_number)
    return [
        table for table in candidates
        if table.capacity >= guests and is_table_free(table, at, bookings, ignore_booking_id)
    ]


def occupancy(tables: Iterable[Table], bookings: Iterable[Booking], at: datetime) -> Dict[int, bool]:
    """table_number -> True when the table is occupied at `at`"""
    bookings = list(bookings)
    return {
        table.table_number: not is_table_free(table, at, bookings)
        for table in sorted(tables, key=lambda t: t.table_number)
    }
