# src/bibobridge/domain/document.py
"""
Bibliographic document domain model.

Contains the value objects exchanged between the record mapper and the
graph codec:
- DocumentType: closed set of document kinds
- ContributorRole: role of a person in a document
- Contributor: parsed name plus role
- PageRange: parsed ``pages`` value
- BibliographicDocument: the converted document
- DocumentBuilder: immutable builder validating at ``build()``
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from bibobridge.domain.errors import ConversionError, InvalidFieldValue, MissingRequiredField
from bibobridge.domain.identifier import Identifier, IdentifierType
from bibobridge.domain.person_name import PersonName
from bibobridge.domain.publication_date import PublicationDate
from bibobridge.domain.result import ConversionResult


class DocumentType(str, Enum):
    ARTICLE = "article"
    BOOK = "book"
    BOOK_SECTION = "book_section"
    THESIS = "thesis"
    REPORT = "report"
    CONFERENCE_PAPER = "conference_paper"
    PROCEEDINGS = "proceedings"
    WEBPAGE = "webpage"
    BOOKLET = "booklet"
    MANUAL = "manual"
    MANUSCRIPT = "manuscript"
    UNPUBLISHED = "unpublished"
    OTHER = "other"

    @property
    def is_conference(self) -> bool:
        return self in (DocumentType.CONFERENCE_PAPER, DocumentType.PROCEEDINGS)


class ContributorRole(str, Enum):
    AUTHOR = "author"
    EDITOR = "editor"
    TRANSLATOR = "translator"
    ADVISOR = "advisor"
    REVIEWER = "reviewer"
    CONTRIBUTOR = "contributor"


@dataclass(frozen=True)
class Contributor:
    name: PersonName
    role: ContributorRole = ContributorRole.AUTHOR
    affiliation: Optional[str] = None

    def __post_init__(self):
        if self.name is None:
            raise MissingRequiredField("name")
        if not isinstance(self.role, ContributorRole):
            object.__setattr__(self, "role", ContributorRole(self.role))
        if self.affiliation is not None and not self.affiliation.strip():
            object.__setattr__(self, "affiliation", None)


_PAGE_SPLIT_RE = re.compile(r"\s*(?:-{1,3}|–|—)\s*")


@dataclass(frozen=True)
class PageRange:
    """Start and optional end page. Roman numerals and article numbers are kept as text."""

    start: str
    end: Optional[str] = None

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["PageRange"]:
        text = (value or "").strip()
        if not text:
            return None
        parts = [p for p in _PAGE_SPLIT_RE.split(text, maxsplit=1) if p]
        if not parts:
            return None
        if len(parts) == 1:
            return cls(start=parts[0])
        return cls(start=parts[0], end=parts[1])

    def page_count(self) -> Optional[int]:
        if self.end is None:
            return 1 if self.start.isdigit() else None
        if self.start.isdigit() and self.end.isdigit():
            count = int(self.end) - int(self.start) + 1
            return count if count > 0 else None
        return None

    def __str__(self) -> str:
        return self.start if self.end is None else f"{self.start}--{self.end}"


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    out = []
    for value in values:
        text = (value or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return tuple(out)


@dataclass(frozen=True)
class BibliographicDocument:
    """
    A bibliographic document.

    Required fields: title, document_type.
    Contributors keep their order; keywords are an ordered set.
    """

    title: str
    document_type: DocumentType = DocumentType.OTHER
    identifier: Optional[str] = None
    subtitle: Optional[str] = None
    contributors: Tuple[Contributor, ...] = ()
    publication_date: Optional[PublicationDate] = None
    publisher: Optional[str] = None
    place_of_publication: Optional[str] = None
    conference_location: Optional[str] = None
    conference_organizer: Optional[str] = None
    container_title: Optional[str] = None
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None
    identifiers: Tuple[Identifier, ...] = ()
    url: Optional[str] = None
    language: Optional[str] = None
    abstract: Optional[str] = None
    notes: Optional[str] = None
    series: Optional[str] = None
    edition: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    organization: Optional[str] = None
    how_published: Optional[str] = None
    degree_type: Optional[str] = None

    def __post_init__(self):
        if self.title is None or not str(self.title).strip():
            raise MissingRequiredField("title")
        if self.document_type is None:
            raise MissingRequiredField("document_type")
        if not isinstance(self.document_type, DocumentType):
            object.__setattr__(self, "document_type", DocumentType(self.document_type))
        object.__setattr__(self, "title", str(self.title).strip())
        object.__setattr__(self, "contributors", tuple(self.contributors))
        object.__setattr__(self, "identifiers", tuple(self.identifiers))
        object.__setattr__(self, "keywords", _dedupe(self.keywords))
        for f in fields(self):
            value = getattr(self, f.name)
            if type(value) is str and f.name != "title":
                stripped = value.strip()
                object.__setattr__(self, f.name, stripped or None)

    @property
    def authors(self) -> Tuple[Contributor, ...]:
        return self.contributors_by_role(ContributorRole.AUTHOR)

    @property
    def editors(self) -> Tuple[Contributor, ...]:
        return self.contributors_by_role(ContributorRole.EDITOR)

    def contributors_by_role(self, role: ContributorRole) -> Tuple[Contributor, ...]:
        return tuple(c for c in self.contributors if c.role == role)

    def identifiers_of(self, kind: IdentifierType) -> Tuple[Identifier, ...]:
        return tuple(i for i in self.identifiers if i.type == kind)

    def first_identifier(self, kind: IdentifierType) -> Optional[str]:
        matches = self.identifiers_of(kind)
        return matches[0].value if matches else None

    @property
    def year(self) -> Optional[int]:
        return self.publication_date.year if self.publication_date else None

    @property
    def page_range(self) -> Optional[PageRange]:
        return PageRange.parse(self.pages)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for JSON output."""
        return {
            "identifier": self.identifier,
            "document_type": self.document_type.value,
            "title": self.title,
            "subtitle": self.subtitle,
            "contributors": [
                {"role": c.role.value, "affiliation": c.affiliation, **c.name.to_dict()}
                for c in self.contributors
            ],
            "publication_date": self.publication_date.to_iso() if self.publication_date else None,
            "publisher": self.publisher,
            "place_of_publication": self.place_of_publication,
            "conference_location": self.conference_location,
            "conference_organizer": self.conference_organizer,
            "container_title": self.container_title,
            "volume": self.volume,
            "issue": self.issue,
            "pages": self.pages,
            "identifiers": [{"type": i.type.value, "value": i.value} for i in self.identifiers],
            "url": self.url,
            "language": self.language,
            "abstract": self.abstract,
            "notes": self.notes,
            "series": self.series,
            "edition": self.edition,
            "keywords": list(self.keywords),
            "organization": self.organization,
            "how_published": self.how_published,
            "degree_type": self.degree_type,
        }


_SEQUENCE_FIELDS = ("contributors", "identifiers", "keywords")
_DOCUMENT_FIELDS = frozenset(
    f.name for f in fields(BibliographicDocument) if f.name not in _SEQUENCE_FIELDS
)


@dataclass(frozen=True)
class DocumentBuilder:
    """
    Immutable document builder.

    Every ``with_*``/``add_*`` call returns a new builder; nothing is checked
    until ``build()``, which returns a ConversionResult instead of raising.
    """

    values: Tuple[Tuple[str, Any], ...] = ()
    contributors: Tuple[Contributor, ...] = ()
    identifiers: Tuple[Identifier, ...] = ()
    keywords: Tuple[str, ...] = field(default=())

    def _set(self, name: str, value: Any) -> "DocumentBuilder":
        if name not in _DOCUMENT_FIELDS:
            raise InvalidFieldValue(name, value, "unknown document field")
        kept = tuple((k, v) for k, v in self.values if k != name)
        return replace(self, values=kept + ((name, value),))

    def get(self, name: str) -> Any:
        for key, value in self.values:
            if key == name:
                return value
        return None

    def with_type(self, document_type: DocumentType) -> "DocumentBuilder":
        return self._set("document_type", document_type)

    def with_title(self, title: Optional[str]) -> "DocumentBuilder":
        return self._set("title", title)

    def with_date(self, date: Optional[PublicationDate]) -> "DocumentBuilder":
        return self._set("publication_date", date)

    def with_fields(self, **values: Any) -> "DocumentBuilder":
        builder = self
        for name, value in values.items():
            builder = builder._set(name, value)
        return builder

    def add_contributor(self, contributor: Contributor) -> "DocumentBuilder":
        return replace(self, contributors=self.contributors + (contributor,))

    def add_contributors(self, contributors: Iterable[Contributor]) -> "DocumentBuilder":
        return replace(self, contributors=self.contributors + tuple(contributors))

    def add_identifier(self, identifier: Identifier) -> "DocumentBuilder":
        return replace(self, identifiers=self.identifiers + (identifier,))

    def add_keywords(self, keywords: Iterable[str]) -> "DocumentBuilder":
        return replace(self, keywords=self.keywords + tuple(keywords))

    def build(self) -> ConversionResult[BibliographicDocument]:
        kwargs = dict(self.values)
        if "document_type" in kwargs and kwargs["document_type"] is None:
            return ConversionResult.fail(MissingRequiredField("document_type"))
        try:
            document = BibliographicDocument(
                title=kwargs.pop("title", None),
                contributors=self.contributors,
                identifiers=self.identifiers,
                keywords=self.keywords,
                **kwargs,
            )
        except ConversionError as exc:
            return ConversionResult.fail(exc)
        return ConversionResult.ok(document)

    @classmethod
    def from_document(cls, document: BibliographicDocument) -> "DocumentBuilder":
        values = tuple(
            (f.name, getattr(document, f.name))
            for f in fields(document)
            if f.name not in _SEQUENCE_FIELDS
        )
        return cls(
            values=values,
            contributors=document.contributors,
            identifiers=document.identifiers,
            keywords=document.keywords,
        )
