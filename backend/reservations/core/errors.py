"""
Error taxonomy and the result type returned by the core-facing API.

Loaders and the persistence coordinator raise these exceptions internally;
ReservationSystem catches them and hands a Result back to the caller.
"""

from dataclasses import dataclass
from typing import Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ReservationError(Exception):
    """Base class for every failure the core reports"""


class StorageError(ReservationError):
    """Durable storage could not be reached or a load failed"""


class PersistenceError(ReservationError):
    """
    A specific write failed and was rolled back.

    `reason` is a short, stable code such as "table not found",
    "booking not found", "timeout", "constraint violation" or "storage failure".
    """

    def __init__(self, reason: str, detail: Optional[str] = None):
        self.reason = reason
        self.detail = detail
        super().__init__(reason if detail is None else f"{reason}: {detail}")


class ValidationError(ReservationError):
    """Caller-supplied data rejected before any storage call"""

    def __init__(self, messages: Dict[str, str]):
        self.messages = dict(messages)
        super().__init__("; ".join(f"{field}: {message}" for field, message in self.messages.items()))


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[ReservationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ReservationError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
