# src/bibobridge/application/services/identifier_validator.py
"""
Identifier format and checksum validation.

Each ``validate_*`` function returns the normalized value or raises
InvalidIdentifier with the expected format, so callers can report what was
wrong instead of a bare boolean.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Optional
from urllib.parse import urlsplit

from bibobridge.domain.errors import InvalidIdentifier
from bibobridge.domain.identifier import IdentifierType

_SEPARATOR_RE = re.compile(r"[-\s]+")
_ISBN_PREFIX_RE = re.compile(r"^isbn(?:-1[03])?:?\s*", re.IGNORECASE)
_ISSN_PREFIX_RE = re.compile(r"^e?issn:?\s*", re.IGNORECASE)
_DOI_RE = re.compile(r"^10\.\d{4,9}/\S+$")
_HANDLE_RE = re.compile(r"^\d+(?:\.\d+)*/\S+$")
_URI_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

_DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)
_HANDLE_PREFIXES = (
    "https://hdl.handle.net/",
    "http://hdl.handle.net/",
    "hdl:",
)

URL_SCHEMES = frozenset({"http", "https", "ftp", "ftps"})

EXPECTED_FORMATS = {
    IdentifierType.ISBN_10: "9 digits plus a check digit or X (mod 11)",
    IdentifierType.ISBN_13: "13 digits with a valid EAN check digit",
    IdentifierType.ISSN: "7 digits plus a check digit or X (NNNN-NNNC)",
    IdentifierType.DOI: "10.<registrant>/<suffix>",
    IdentifierType.HANDLE: "<prefix>/<suffix> with a numeric dotted prefix",
    IdentifierType.URL: "absolute http(s) or ftp(s) URL without whitespace",
    IdentifierType.URI: "<scheme>:<rest>",
    IdentifierType.OTHER: "non-blank text",
}


def _fail(kind: IdentifierType, value, field: Optional[str] = None) -> InvalidIdentifier:
    return InvalidIdentifier(kind, value, EXPECTED_FORMATS[kind], field)


def _compact(value: str, prefix_re: "re.Pattern[str]") -> str:
    text = prefix_re.sub("", value.strip())
    return _SEPARATOR_RE.sub("", text).upper()


def _strip_prefix(value: str, prefixes) -> str:
    text = value.strip()
    lowered = text.lower()
    for prefix in prefixes:
        if lowered.startswith(prefix):
            return text[len(prefix) :].strip()
    return text


def isbn10_checksum_ok(digits: str) -> bool:
    if len(digits) != 10 or not digits[:9].isdigit():
        return False
    check = digits[9]
    if check == "X":
        check_value = 10
    elif check.isdigit():
        check_value = int(check)
    else:
        return False
    total = sum((10 - i) * int(d) for i, d in enumerate(digits[:9])) + check_value
    return total % 11 == 0


def isbn13_checksum_ok(digits: str) -> bool:
    if len(digits) != 13 or not digits.isdigit():
        return False
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits[:12]))
    return (10 - total % 10) % 10 == int(digits[12])


def issn_checksum_ok(digits: str) -> bool:
    if len(digits) != 8 or not digits[:7].isdigit():
        return False
    check = digits[7]
    if check == "X":
        check_value = 10
    elif check.isdigit():
        check_value = int(check)
    else:
        return False
    total = sum((8 - i) * int(d) for i, d in enumerate(digits[:7])) + check_value
    return total % 11 == 0


def validate_isbn10(value: str, field: Optional[str] = None) -> str:
    digits = _compact(value or "", _ISBN_PREFIX_RE)
    if not isbn10_checksum_ok(digits):
        raise _fail(IdentifierType.ISBN_10, value, field)
    return digits


def validate_isbn13(value: str, field: Optional[str] = None) -> str:
    digits = _compact(value or "", _ISBN_PREFIX_RE)
    if not isbn13_checksum_ok(digits):
        raise _fail(IdentifierType.ISBN_13, value, field)
    return digits


def validate_issn(value: str, field: Optional[str] = None) -> str:
    digits = _compact(value or "", _ISSN_PREFIX_RE)
    if not issn_checksum_ok(digits):
        raise _fail(IdentifierType.ISSN, value, field)
    return f"{digits[:4]}-{digits[4:]}"


def validate_doi(value: str, field: Optional[str] = None) -> str:
    doi = _strip_prefix(value or "", _DOI_PREFIXES)
    if not _DOI_RE.match(doi):
        raise _fail(IdentifierType.DOI, value, field)
    return doi


def validate_handle(value: str, field: Optional[str] = None) -> str:
    handle = _strip_prefix(value or "", _HANDLE_PREFIXES)
    if not _HANDLE_RE.match(handle):
        raise _fail(IdentifierType.HANDLE, value, field)
    return handle


def validate_url(value: str, field: Optional[str] = None) -> str:
    text = (value or "").strip()
    if not text or any(ch.isspace() for ch in text):
        raise _fail(IdentifierType.URL, value, field)
    try:
        parts = urlsplit(text)
    except ValueError:
        raise _fail(IdentifierType.URL, value, field)
    if parts.scheme.lower() not in URL_SCHEMES or not parts.netloc:
        raise _fail(IdentifierType.URL, value, field)
    return text


def validate_uri(value: str, field: Optional[str] = None) -> str:
    text = (value or "").strip()
    colon = text.find(":")
    if colon <= 0 or any(ch.isspace() for ch in text):
        raise _fail(IdentifierType.URI, value, field)
    if not _URI_SCHEME_RE.match(text[:colon]):
        raise _fail(IdentifierType.URI, value, field)
    return text


def validate_other(value: str, field: Optional[str] = None) -> str:
    text = (value or "").strip()
    if not text:
        raise _fail(IdentifierType.OTHER, value, field)
    return text


_VALIDATORS: Dict[IdentifierType, Callable[..., str]] = {
    IdentifierType.ISBN_10: validate_isbn10,
    IdentifierType.ISBN_13: validate_isbn13,
    IdentifierType.ISSN: validate_issn,
    IdentifierType.DOI: validate_doi,
    IdentifierType.HANDLE: validate_handle,
    IdentifierType.URL: validate_url,
    IdentifierType.URI: validate_uri,
    IdentifierType.OTHER: validate_other,
}


def validate(kind: IdentifierType, value: str, field: Optional[str] = None) -> str:
    """Validate ``value`` as ``kind`` and return its normalized form."""
    return _VALIDATORS[IdentifierType(kind)](value, field)


def is_valid(kind: IdentifierType, value: str) -> bool:
    try:
        validate(kind, value)
    except InvalidIdentifier:
        return False
    return True


def classify_isbn(value: str) -> IdentifierType:
    """ISBN_10 or ISBN_13 by digit count, OTHER for anything else."""
    digits = _compact(value or "", _ISBN_PREFIX_RE)
    if len(digits) == 10:
        return IdentifierType.ISBN_10
    if len(digits) == 13:
        return IdentifierType.ISBN_13
    return IdentifierType.OTHER
