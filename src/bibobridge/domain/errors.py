# src/bibobridge/domain/errors.py
"""
Conversion error taxonomy.

Every failure raised while mapping records, parsing names, validating dates
or identifiers, or decoding graphs is a ConversionError subclass. Each error
carries the field name and the offending value so callers can report it
without parsing the message.
"""

from __future__ import annotations

from typing import Any, Optional


class ConversionError(Exception):
    """Base class for all conversion failures."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "field": self.field,
            "value": None if self.value is None else str(self.value),
        }


class NullInput(ConversionError):
    """A required input object was None."""

    def __init__(self, what: str = "input"):
        super().__init__(f"{what} must not be None", field=what)
        self.what = what


class MissingRequiredField(ConversionError):
    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}", field=field)


class InvalidFieldValue(ConversionError):
    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(f"Invalid value for {field}: {value!r} ({reason})", field=field, value=value)
        self.reason = reason


# Record field each identifier kind is stored under.
_IDENTIFIER_FIELDS = {
    "DOI": "doi",
    "ISBN_10": "isbn",
    "ISBN_13": "isbn",
    "ISSN": "issn",
    "HANDLE": "handle",
    "URI": "uri",
    "URL": "url",
}


class InvalidIdentifier(ConversionError):
    """An identifier failed format or checksum validation."""

    def __init__(self, kind: Any, value: Any, expected_format: str, field: Optional[str] = None):
        kind_name = getattr(kind, "name", str(kind))
        if field is None:
            field = _IDENTIFIER_FIELDS.get(kind_name, "identifier")
        super().__init__(
            f"Invalid {kind_name} {value!r}: expected {expected_format}",
            field=field,
            value=value,
        )
        self.kind = kind
        self.expected_format = expected_format


class InvalidDate(ConversionError):
    """A year/month/day triple is not a valid calendar date."""

    def __init__(
        self,
        year: Optional[int],
        month: Optional[int] = None,
        day: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        parts = [str(p) for p in (year, month, day) if p is not None]
        text = "-".join(parts) or "<empty>"
        message = f"Invalid date {text}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, field="date", value=text)
        self.year = year
        self.month = month
        self.day = day
        self.reason = reason


class UnparsableDate(ConversionError):
    def __init__(self, text: Any):
        super().__init__(f"Cannot extract a date from {text!r}", field="date", value=text)
        self.text = text
