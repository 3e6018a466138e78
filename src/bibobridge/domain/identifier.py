# src/bibobridge/domain/identifier.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bibobridge.domain.errors import InvalidFieldValue


class IdentifierType(str, Enum):
    """Identifier kinds understood by the converter."""

    DOI = "doi"
    ISBN_10 = "isbn10"
    ISBN_13 = "isbn13"
    ISSN = "issn"
    HANDLE = "handle"
    URI = "uri"
    URL = "url"
    OTHER = "other"


@dataclass(frozen=True, order=True)
class Identifier:
    type: IdentifierType
    value: str

    def __post_init__(self):
        if not isinstance(self.type, IdentifierType):
            object.__setattr__(self, "type", IdentifierType(self.type))
        if self.value is None or not str(self.value).strip():
            raise InvalidFieldValue("identifier", self.value, "identifier value must not be blank")
        object.__setattr__(self, "value", str(self.value).strip())

    def __str__(self) -> str:
        return f"{self.type.value}:{self.value}"
