# src/bibobridge/domain/publication_date.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bibobridge.domain.errors import InvalidDate


@dataclass(frozen=True, order=True)
class PublicationDate:
    """
    Year with optional month and day.

    Range checks run at construction. Calendar validity (Feb 29 and friends)
    is the job of ``date_model.validate_or_raise``.
    """

    year: int
    month: Optional[int] = None
    day: Optional[int] = None

    def __post_init__(self):
        if self.year is None or self.year <= 0:
            raise InvalidDate(self.year, self.month, self.day, "year must be positive")
        if self.month is not None and not 1 <= self.month <= 12:
            raise InvalidDate(self.year, self.month, self.day, "month must be in 1..12")
        if self.day is not None:
            if self.month is None:
                raise InvalidDate(self.year, self.month, self.day, "day requires a month")
            if not 1 <= self.day <= 31:
                raise InvalidDate(self.year, self.month, self.day, "day must be in 1..31")

    @property
    def precision(self) -> str:
        if self.day is not None:
            return "day"
        if self.month is not None:
            return "month"
        return "year"

    def to_iso(self) -> str:
        if self.day is not None:
            return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
        if self.month is not None:
            return f"{self.year:04d}-{self.month:02d}"
        return f"{self.year:04d}"

    def __str__(self) -> str:
        return self.to_iso()
