# src/bibobridge/application/services/name_parser.py
"""
BibTeX personal name parsing.

Supported forms:
- ``Given Middle particle Family`` (``Vincent van Gogh``)
- ``particle Family, Given`` (``van Gogh, Vincent``)
- ``Family, Suffix, Given`` (``Smith, Jr., John``)
- ``Given Family, Suffix`` (``John Smith, Jr``)

Parsing never fails on non-blank input; names that do not fit any form
still keep ``full_name``.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from bibobridge.domain.errors import InvalidFieldValue
from bibobridge.domain.person_name import PersonName, strip_outer_braces

SUFFIX_TOKENS = frozenset({"jr", "sr", "ii", "iii", "iv", "v", "phd", "md", "esq"})

_NAME_SEPARATOR_RE = re.compile(r"\s+and\s+", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def is_suffix(text: str) -> bool:
    """True for recognized generational or academic suffixes (``Jr.``, ``III``, ``Ph.D.``)."""
    token = text.replace(".", "").strip().lower()
    return token in SUFFIX_TOKENS


def _is_particle(token: str) -> bool:
    return token.isalpha() and token.islower()


def _join(tokens: List[str]) -> Optional[str]:
    return " ".join(tokens) if tokens else None


def _split_family_segment(segment: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Split ``van der Berg`` into particle ``van der`` and family ``Berg``.

    The particle is the lowercase run right before the last token; capitalized
    tokens ahead of it stay in the family name (``Lloyd de la Cruz`` gives
    particle ``de la`` and family ``Lloyd Cruz``).
    """
    tokens = segment.split()
    if not tokens:
        return None, None
    start = len(tokens) - 1
    while start > 0 and _is_particle(tokens[start - 1]):
        start -= 1
    particle = tokens[start : len(tokens) - 1]
    family = tokens[:start] + tokens[-1:]
    return _join(particle), _join(family)


def _parse_free_form(full_name: str, text: str) -> PersonName:
    tokens = text.split()
    if len(tokens) == 1:
        return PersonName(full_name=full_name, family_name=tokens[0])

    # Lowercase run strictly inside the name is the particle.
    particle_start = particle_end = None
    for idx in range(1, len(tokens) - 1):
        if _is_particle(tokens[idx]):
            particle_start = idx
            particle_end = idx
            while particle_end + 1 < len(tokens) - 1 and _is_particle(tokens[particle_end + 1]):
                particle_end += 1
            break

    if particle_start is not None:
        leading = tokens[:particle_start]
        particle = _join(tokens[particle_start : particle_end + 1])
        family = _join(tokens[particle_end + 1 :])
    else:
        leading = tokens[:-1]
        particle = None
        family = tokens[-1]

    given = middle = None
    if len(leading) == 1:
        given = leading[0]
    elif len(leading) > 1:
        given = _join(leading[:-1])
        middle = leading[-1]

    return PersonName(
        full_name=full_name,
        given_name=given,
        middle_name=middle,
        name_particle=particle,
        family_name=family,
    )


def parse_name(raw: Optional[str]) -> PersonName:
    """Parse one BibTeX name into its parts."""
    if raw is None or not raw.strip():
        raise InvalidFieldValue("name", raw, "name must not be blank")

    unbraced = strip_outer_braces(raw)
    full_name = _WHITESPACE_RE.sub(" ", unbraced).strip()
    if not full_name:
        raise InvalidFieldValue("name", raw, "name must not be blank")

    # A fully braced name containing "and" is one unit, e.g. {Barnes and Noble}.
    if unbraced != raw.strip() and _NAME_SEPARATOR_RE.search(full_name):
        return PersonName(full_name=full_name, family_name=full_name)

    if "," not in full_name:
        return _parse_free_form(full_name, full_name)

    segments = [s.strip() for s in full_name.split(",")]
    if not segments[0]:
        return PersonName(full_name=full_name)

    if len(segments) == 2:
        if is_suffix(segments[1]):
            parsed = _parse_free_form(full_name, segments[0])
            return PersonName(
                full_name=full_name,
                given_name=parsed.given_name,
                middle_name=parsed.middle_name,
                name_particle=parsed.name_particle,
                family_name=parsed.family_name,
                suffix=segments[1],
            )
        suffix = None
    else:
        suffix = ", ".join(s for s in segments[1:-1] if s) or None

    particle, family = _split_family_segment(segments[0])
    return PersonName(
        full_name=full_name,
        given_name=segments[-1] or None,
        name_particle=particle,
        family_name=family,
        suffix=suffix,
    )


def split_names(raw: Optional[str]) -> List[str]:
    """Split a BibTeX name list on `` and `` outside braces."""
    text = (raw or "").strip()
    if not text:
        return []
    names: List[str] = []
    depth = 0
    start = 0
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(depth - 1, 0)
        elif depth == 0 and ch.isspace():
            match = _NAME_SEPARATOR_RE.match(text, idx)
            if match:
                names.append(text[start:idx])
                start = idx = match.end()
                continue
        idx += 1
    names.append(text[start:])
    return [n.strip() for n in names if n.strip()]


def parse_names(raw: Optional[str]) -> List[PersonName]:
    """Parse an ``author``/``editor`` field. Duplicate names are kept."""
    return [parse_name(name) for name in split_names(raw)]


def format_name(name: PersonName) -> str:
    """Render a name in the comma form BibTeX sorts on, e.g. ``van Gogh, Vincent``."""
    if name.given_name is None and name.family_name == name.full_name and " " in name.full_name:
        return "{%s}" % name.full_name
    if not name.family_name or not name.given_name:
        return name.full_name
    family = " ".join(p for p in (name.name_particle, name.family_name) if p)
    given = " ".join(p for p in (name.given_name, name.middle_name) if p)
    if name.suffix:
        return f"{family}, {name.suffix}, {given}"
    return f"{family}, {given}"
