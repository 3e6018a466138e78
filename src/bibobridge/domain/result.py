# src/bibobridge/domain/result.py
"""
Result type returned by the mapping operations.

A result holds exactly one of a value or a ConversionError. Operations never
hand back a partially populated object: on failure the value is None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from bibobridge.domain.errors import ConversionError

T = TypeVar("T")


@dataclass(frozen=True)
class ConversionResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ConversionError] = None

    def __post_init__(self):
        if (self.value is None) == (self.error is None):
            raise ValueError("ConversionResult needs exactly one of value or error")

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, value: T) -> "ConversionResult[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: ConversionError) -> "ConversionResult[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
