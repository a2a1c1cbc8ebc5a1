"""Explicit success/error results for PanelKit storage utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a query that may fail without raising.

    Exactly one of ``value`` or ``error`` is meaningful: a successful outcome
    carries the value, a failed one carries a human readable error message.
    """

    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "Outcome[T]":
        if not error:
            raise ValueError("A failed outcome needs an error message")
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        """Return the value, or ``default`` when the outcome failed."""
        return self.value if self.ok else default
