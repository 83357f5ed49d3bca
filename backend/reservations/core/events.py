"""
Event bus

Explicit notifications for the presentation layer. Subscribers register a
handler per event type; the core publishes events only after a write has
committed and the in-memory booking store reflects it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Type
from uuid import UUID, uuid4
import logging

logger = logging.getLogger(__name__)


@dataclass
class BookingEvent:
    event_id: UUID = field(default_factory=uuid4, init=False)
    occurred_at: datetime = field(default_factory=datetime.now, init=False)


@dataclass
class BookingCreated(BookingEvent):
    booking_id: int = 0
    table_number: int = 0


@dataclass
class BookingUpdated(BookingEvent):
    booking_id: int = 0
    table_number: int = 0


@dataclass
class BookingDeleted(BookingEvent):
    booking_id: int = 0


@dataclass
class BookingStatusChanged(BookingEvent):
    booking_id: int = 0
    old_status: str = ""
    new_status: str = ""


@dataclass
class BookingFilterChanged(BookingEvent):
    filter_date: Optional[date] = None


@dataclass
class DegradedModeEntered(BookingEvent):
    """Startup loaders failed; the core runs on seed tables or an empty booking set"""
    component: str = ""
    reason: str = ""


class EventBus:
    """
    Routes events to every handler subscribed to their type (1:N).
    Errors in handlers are logged but don't stop other handlers.
    """

    def __init__(self):
        self._handlers: Dict[Type[BookingEvent], List[Callable[[BookingEvent], None]]] = {}

    def subscribe(self, event_type: Type[BookingEvent], handler: Callable[[BookingEvent], None]):
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type.__name__}")

    def unsubscribe(self, event_type: Type[BookingEvent], handler: Callable[[BookingEvent], None]):
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: BookingEvent):
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug(f"No subscribers for {event_type.__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} "
                    f"for event {event_type.__name__}: {e}",
                    exc_info=True
                )
