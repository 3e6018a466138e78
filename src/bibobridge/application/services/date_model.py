# src/bibobridge/application/services/date_model.py
"""
Publication date validation and free-form date parsing.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from types import MappingProxyType
from typing import Optional

from bibobridge.domain.errors import InvalidDate, UnparsableDate

logger = logging.getLogger(__name__)

FUTURE_WARNING_YEARS = 5

_DAYS_PER_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# Tried in order by parse_date.
DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d-%b-%Y",
    "%B %d, %Y",
    "%d %B %Y",
    "%Y/%m/%d",
)

_YEAR_PATTERNS = (
    re.compile(r"\b(?P<year>\d{4})\b"),
    re.compile(r"(?P<year>\d{4})-\d{2}-\d{2}"),
    re.compile(r"\d{2}/\d{2}/(?P<year>\d{4})"),
    re.compile(r"(?:circa|c\.|~)\s*(?P<year>\d{4})", re.IGNORECASE),
)
_CIRCA_RE = re.compile(r"circa|c\.|~", re.IGNORECASE)

_MONTHS = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

MONTH_ALIASES = MappingProxyType(
    {
        **{name: idx for idx, name in enumerate(_MONTHS, start=1)},
        **{name[:3]: idx for idx, name in enumerate(_MONTHS, start=1)},
        "sept": 9,
    }
)

CIRCA_NOTE = "Approximate publication date (circa {year})"


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(year: int, month: int) -> int:
    if month == 2 and is_leap_year(year):
        return 29
    return _DAYS_PER_MONTH[month - 1]


def is_valid_date(year: int, month: int, day: int) -> bool:
    if month < 1 or month > 12:
        return False
    if day < 1:
        return False
    return day <= days_in_month(year, month)


def _current_year(current_year: Optional[int]) -> int:
    return current_year if current_year is not None else date.today().year


def validate_or_raise(
    year: int,
    month: int,
    day: int,
    *,
    current_year: Optional[int] = None,
    warning_years: int = FUTURE_WARNING_YEARS,
) -> None:
    """Raise InvalidDate for impossible dates; years beyond warning_years ahead only log a warning."""
    if not is_valid_date(year, month, day):
        raise InvalidDate(year, month, day, "not a calendar date")
    if year > _current_year(current_year) + warning_years:
        logger.warning(f"Future date detected: {year} (allowed but unusual)")


def validate_with_future_check(
    year: int,
    month: int,
    day: int,
    allow_future: bool,
    *,
    current_year: Optional[int] = None,
    warning_years: int = FUTURE_WARNING_YEARS,
) -> None:
    """Like validate_or_raise, and in strict mode reject any year after the current one."""
    validate_or_raise(year, month, day, current_year=current_year, warning_years=warning_years)
    if not allow_future and year > _current_year(current_year):
        raise InvalidDate(year, month, day, "future dates are not allowed")


def is_circa(text: Optional[str]) -> bool:
    return bool(text) and _CIRCA_RE.search(text) is not None


def extract_year_from_free_form(text: Optional[str]) -> int:
    """
    Pull a 4-digit year out of free text such as ``circa 1850`` or ``06/15/2024``.

    Raises:
        UnparsableDate: no year could be found
    """
    if not text:
        raise UnparsableDate(text)
    for pattern in _YEAR_PATTERNS:
        match = pattern.search(text)
        if match:
            year = int(match.group("year"))
            if is_circa(text):
                logger.info(f"Circa date detected: {text!r}, extracted year: {year}")
            return year
    raise UnparsableDate(text)


def parse_date(text: Optional[str]) -> date:
    """
    Parse a date in one of DATE_FORMATS.

    Falls back to January 1 of the year found by extract_year_from_free_form.
    """
    if text is None or not text.strip():
        raise UnparsableDate(text)
    trimmed = text.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(trimmed, fmt).date()
        except ValueError:
            continue
    year = extract_year_from_free_form(trimmed)
    if year < 1:
        raise UnparsableDate(text)
    return date(year, 1, 1)


def parse_month(text: Optional[str]) -> Optional[int]:
    """Month number for ``3``, ``03``, ``mar``, ``March`` or ``sept``. None if unknown."""
    if text is None:
        return None
    value = text.strip().strip("{}").strip().rstrip(".").lower()
    if not value:
        return None
    if value.isdigit():
        month = int(value)
        return month if 1 <= month <= 12 else None
    return MONTH_ALIASES.get(value)


def month_abbreviation(month: int) -> str:
    """BibTeX month macro (``jan`` .. ``dec``)."""
    return _MONTHS[month - 1][:3]
