from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from typing import Dict, Optional
from datetime import date, datetime

from .table_schema import Table
from ..workflow.status import BookingStatus


class Booking(BaseModel):
    """
    In-memory copy of a booking row.

    Every booking starts PENDING whatever status is passed in; loaders and
    status changes assign the real status afterwards via set_status().
    """
    id: Optional[int] = None
    customer_name: str
    phone: str
    guests: int = Field(..., gt=0)
    booking_date_time: datetime
    table: Table
    special_requests: str = ""
    status: BookingStatus = BookingStatus.PENDING

    class Config:
        from_attributes = True

    @field_validator("status", mode="before")
    @classmethod
    def starts_pending(cls, value):
        return BookingStatus.PENDING

    @field_validator("special_requests", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or ""

    @property
    def table_number(self) -> int:
        return self.table.table_number

    @property
    def booking_date(self) -> date:
        return self.booking_date_time.date()


class BookingRequest(BaseModel):
    """
    Caller input for creating or editing a booking.

    Validated before any storage call. Pass {"today": date} as validation
    context to pin the clock; otherwise date.today() is used.
    """
    customer_name: Optional[str] = Field(None, validate_default=True)
    phone: Optional[str] = Field(None, validate_default=True)
    guests: int = 1
    booking_date_time: Optional[datetime] = Field(None, validate_default=True)
    table_number: Optional[int] = Field(None, validate_default=True)
    special_requests: str = ""

    @field_validator("customer_name")
    @classmethod
    def name_required(cls, value):
        if value is None or not value.strip():
            raise ValueError("Please enter the customer name")
        return value.strip()

    @field_validator("phone")
    @classmethod
    def phone_required(cls, value):
        if value is None or not value.strip():
            raise ValueError("Please enter a phone number")
        return value.strip()

    @field_validator("guests")
    @classmethod
    def guests_positive(cls, value):
        if value < 1:
            raise ValueError("Number of guests must be at least 1")
        return value

    @field_validator("booking_date_time")
    @classmethod
    def date_not_in_past(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError("Please choose a date")
        today = (info.context or {}).get("today") or date.today()
        if value.date() < today:
            raise ValueError("A past date cannot be booked")
        return value

    @field_validator("table_number")
    @classmethod
    def table_selected(cls, value):
        if value is None or value <= 0:
            raise ValueError("Please select a table")
        return value

    @field_validator("special_requests", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or ""


def validation_messages(exc: PydanticValidationError) -> Dict[str, str]:
    """Flatten a pydantic error into {field: message}, first message per field wins"""
    messages = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__root__"
        cause = (error.get("ctx") or {}).get("error")
        messages.setdefault(field, str(cause) if cause is not None else error["msg"])
    return messages


class WriteReceipt(BaseModel):
    """What durable storage actually recorded for a create/update"""
    booking_id: int
    customer_id: int
    customer_name: str
    table: Table
