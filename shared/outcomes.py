"""
Typed operation outcomes
Store adapters and service operations return an Outcome instead of raising
for the expected failure modes, so callers branch on the kind.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UNPROCESSABLE = "unprocessable"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def not_found(cls, detail: str) -> "Outcome[T]":
        return cls(error=ErrorKind.NOT_FOUND, detail=detail)

    @classmethod
    def unprocessable(cls, detail: str) -> "Outcome[T]":
        return cls(error=ErrorKind.UNPROCESSABLE, detail=detail)
