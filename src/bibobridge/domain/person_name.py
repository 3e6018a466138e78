# src/bibobridge/domain/person_name.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from bibobridge.domain.errors import InvalidFieldValue


def strip_outer_braces(value: str) -> str:
    """Remove one level of surrounding braces, e.g. ``{Barnes and Noble}``."""
    text = value.strip()
    if len(text) >= 2 and text.startswith("{") and text.endswith("}"):
        depth = 0
        for idx, ch in enumerate(text):
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                # Closing brace before the end means "{A} and {B}", not one group.
                if depth == 0 and idx != len(text) - 1:
                    return text
        return text[1:-1].strip()
    return text


@dataclass(frozen=True)
class PersonName:
    """
    A parsed personal name.

    ``full_name`` is the source string with one level of braces removed and
    is always present. Every other part is derived and may be missing.
    """

    full_name: str
    given_name: Optional[str] = None
    middle_name: Optional[str] = None
    name_particle: Optional[str] = None
    family_name: Optional[str] = None
    suffix: Optional[str] = None

    def __post_init__(self):
        if self.full_name is None or not str(self.full_name).strip():
            raise InvalidFieldValue("full_name", self.full_name, "name must not be blank")
        object.__setattr__(self, "full_name", strip_outer_braces(str(self.full_name)))
        for attr in ("given_name", "middle_name", "name_particle", "family_name", "suffix"):
            value = getattr(self, attr)
            if value is not None and not value.strip():
                object.__setattr__(self, attr, None)

    @property
    def is_structured(self) -> bool:
        return self.family_name is not None and self.given_name is not None

    def display_name(self) -> str:
        """Name in natural reading order, e.g. ``Vincent van Gogh``."""
        if self.family_name is None:
            return self.full_name
        parts = [self.given_name, self.middle_name, self.name_particle, self.family_name]
        text = " ".join(p for p in parts if p)
        if self.suffix:
            text = f"{text}, {self.suffix}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "full_name": self.full_name,
            "given_name": self.given_name,
            "middle_name": self.middle_name,
            "name_particle": self.name_particle,
            "family_name": self.family_name,
            "suffix": self.suffix,
        }
