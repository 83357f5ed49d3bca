"""
Booking lifecycle states.

No transition graph is enforced: any status may be replaced by any other.
Only CANCELLED frees a table; COMPLETED still counts as "table was used".
"""

from enum import Enum
import logging

logger = logging.getLogger(__name__)


class BookingStatus(Enum):
    PENDING = 1
    CONFIRMED = 2
    CANCELLED = 3
    COMPLETED = 4

    @property
    def code(self) -> int:
        """Identifier of the matching booking_status row"""
        return self.value

    @property
    def occupies_table(self) -> bool:
        return self is not BookingStatus.CANCELLED

    @classmethod
    def from_code(cls, code) -> "BookingStatus":
        # Unknown codes come from newer schema versions; treat them as PENDING.
        try:
            return cls(code)
        except ValueError:
            logger.warning(f"Unknown booking status code {code!r}, decoding as PENDING")
            return cls.PENDING


def set_status(booking, new_status: BookingStatus):
    """Unconditionally assign a new status. Returns the previous one."""
    old_status = booking.status
    booking.status = new_status
    return old_status
