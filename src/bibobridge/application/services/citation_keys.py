# src/bibobridge/application/services/citation_keys.py
"""
Citation key generation and per-batch de-duplication.
"""

from __future__ import annotations

import hashlib
import logging
import re
import unicodedata
from enum import Enum
from typing import Optional, Set

from bibobridge.domain.document import BibliographicDocument, Contributor

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 64
HASH_LENGTH = 8
FALLBACK_TOKEN = "entry"

VALID_KEY_RE = re.compile(r"^[A-Za-z0-9_\-/:+.]+$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

TITLE_STOPWORDS = frozenset(
    {
        "a", "an", "the", "of", "on", "in", "for", "and", "or", "to", "with",
        "at", "by", "from", "into", "is", "are", "via", "towards", "toward",
        "der", "die", "das", "le", "la", "les", "un", "une", "el", "los", "il",
    }
)


class KeyStrategy(str, Enum):
    AUTHOR_YEAR = "author_year"
    AUTHOR_TITLE = "author_title"
    HASH = "hash"


def sanitize_key_token(value: Optional[str]) -> str:
    """ASCII-fold, lowercase and collapse non-alphanumeric runs to ``_``."""
    folded = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    token = _NON_ALNUM_RE.sub("_", folded.lower()).strip("_")
    return token or FALLBACK_TOKEN


def clamp_key(key: str, limit: int = MAX_KEY_LENGTH) -> str:
    return key[:limit].rstrip("_") or key[:limit]


def is_valid_key(key: Optional[str]) -> bool:
    return bool(key) and VALID_KEY_RE.match(key) is not None


def first_significant_word(title: Optional[str]) -> Optional[str]:
    for word in re.split(r"[\s\-:;,./]+", title or ""):
        token = sanitize_key_token(word)
        if token != FALLBACK_TOKEN and token not in TITLE_STOPWORDS:
            return token
    return None


def _primary_contributor(document: BibliographicDocument) -> Optional[Contributor]:
    authors = document.authors
    if authors:
        return authors[0]
    return document.contributors[0] if document.contributors else None


def _contributor_token(contributor: Contributor) -> str:
    name = contributor.name
    return sanitize_key_token(name.family_name or name.full_name)


class CitationKeyGenerator:
    """
    Stateless citation key generator.

    Strategies:
    1. author_year: ``family_year`` (``family`` when there is no year)
    2. author_title: ``family_titleword``
    3. hash: 8 hex chars of SHA-256 over title, year and authors

    Without any contributor the first significant title word stands in for
    the family name.
    """

    def __init__(self, strategy: KeyStrategy = KeyStrategy.AUTHOR_YEAR):
        self.strategy = KeyStrategy(strategy)

    def base_key(self, document: BibliographicDocument) -> str:
        if self.strategy == KeyStrategy.HASH:
            return self._hash_key(document)

        contributor = _primary_contributor(document)
        if contributor is not None:
            lead = _contributor_token(contributor)
        else:
            lead = first_significant_word(document.title) or FALLBACK_TOKEN

        if self.strategy == KeyStrategy.AUTHOR_TITLE:
            word = first_significant_word(document.title)
            key = f"{lead}_{word}" if word and contributor is not None else lead
        elif document.year is not None:
            key = f"{lead}_{document.year}"
        else:
            key = lead
        return clamp_key(key)

    @staticmethod
    def _hash_key(document: BibliographicDocument) -> str:
        authors = ";".join(c.name.full_name for c in document.authors)
        payload = f"{document.title}|{document.year or ''}|{authors}"
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:HASH_LENGTH]


class CitationKeyRegistry:
    """
    Keys already used within one batch.

    Create one per batch; collisions get ``_2``, ``_3``, ... appended.
    """

    def __init__(self, generator: Optional[CitationKeyGenerator] = None):
        self.generator = generator or CitationKeyGenerator()
        self._used: Set[str] = set()

    def __contains__(self, key: str) -> bool:
        return key in self._used

    def __len__(self) -> int:
        return len(self._used)

    def claim(self, key: str) -> str:
        """Reserve ``key`` or the first free ``key_N`` variant and return it."""
        candidate = clamp_key(key)
        counter = 2
        while candidate in self._used:
            suffix = f"_{counter}"
            candidate = clamp_key(key, MAX_KEY_LENGTH - len(suffix)) + suffix
            counter += 1
        self._used.add(candidate)
        return candidate

    def register_generated(self, document: BibliographicDocument) -> str:
        return self.claim(self.generator.base_key(document))

    def register_provided(self, key: Optional[str]) -> Optional[str]:
        """Claim a caller-supplied key; None when it is blank or has invalid characters."""
        text = (key or "").strip()
        if not text:
            return None
        if not is_valid_key(text):
            logger.warning(f"Discarding invalid citation key {key!r}; generating one")
            return None
        return self.claim(text)

    def resolve(self, document: BibliographicDocument, provided_key: Optional[str] = None) -> str:
        """
        Final key for ``document``.

        A provided key with characters outside ``[A-Za-z0-9_-/:+.]`` is
        discarded in favour of a generated one.
        """
        return self.register_provided(provided_key) or self.register_generated(document)

    def reset(self) -> None:
        self._used.clear()
