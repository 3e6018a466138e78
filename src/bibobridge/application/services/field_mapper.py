# src/bibobridge/application/services/field_mapper.py
"""
BibTeX record <-> BibliographicDocument mapping.

Field meaning depends on the entry type:
- ``address``: conference location for conference papers and proceedings,
  place of publication otherwise
- ``organization``: conference organizer for conference types, publisher
  for manuals, generic organization otherwise
- publisher storage: ``school`` for theses, ``institution`` for reports
- container title storage: ``journal`` for articles, ``booktitle`` otherwise
"""

from __future__ import annotations

import logging
import re
from datetime import date
from types import MappingProxyType
from typing import Callable, Dict, List, Optional, Tuple

from bibobridge.application.services import date_model, identifier_validator, latex_codec
from bibobridge.application.services.citation_keys import CitationKeyRegistry, is_valid_key
from bibobridge.application.services.name_parser import format_name, parse_names
from bibobridge.domain.document import (
    BibliographicDocument,
    Contributor,
    ContributorRole,
    DocumentBuilder,
    DocumentType,
)
from bibobridge.domain.errors import (
    ConversionError,
    InvalidDate,
    InvalidFieldValue,
    InvalidIdentifier,
    MissingRequiredField,
    NullInput,
    UnparsableDate,
)
from bibobridge.domain.identifier import Identifier, IdentifierType
from bibobridge.domain.publication_date import PublicationDate
from bibobridge.domain.record import BibTeXRecord
from bibobridge.domain.result import ConversionResult

logger = logging.getLogger(__name__)

ENTRY_TYPES = MappingProxyType(
    {
        "article": DocumentType.ARTICLE,
        "book": DocumentType.BOOK,
        "inbook": DocumentType.BOOK_SECTION,
        "incollection": DocumentType.BOOK_SECTION,
        "inproceedings": DocumentType.CONFERENCE_PAPER,
        "conference": DocumentType.CONFERENCE_PAPER,
        "proceedings": DocumentType.PROCEEDINGS,
        "mastersthesis": DocumentType.THESIS,
        "phdthesis": DocumentType.THESIS,
        "techreport": DocumentType.REPORT,
        "report": DocumentType.REPORT,
        "online": DocumentType.WEBPAGE,
        "electronic": DocumentType.WEBPAGE,
        "www": DocumentType.WEBPAGE,
        "booklet": DocumentType.BOOKLET,
        "manual": DocumentType.MANUAL,
        "unpublished": DocumentType.UNPUBLISHED,
    }
)

DOCUMENT_ENTRY_TYPES = MappingProxyType(
    {
        DocumentType.ARTICLE: "article",
        DocumentType.BOOK: "book",
        DocumentType.BOOK_SECTION: "incollection",
        DocumentType.CONFERENCE_PAPER: "inproceedings",
        DocumentType.PROCEEDINGS: "proceedings",
        DocumentType.THESIS: "phdthesis",
        DocumentType.REPORT: "techreport",
        DocumentType.WEBPAGE: "online",
        DocumentType.BOOKLET: "booklet",
        DocumentType.MANUAL: "manual",
        DocumentType.MANUSCRIPT: "unpublished",
        DocumentType.UNPUBLISHED: "unpublished",
        DocumentType.OTHER: "misc",
    }
)

FALLBACK_ENTRY_TYPE = "misc"
MASTERS_DEGREE = "Master's thesis"

CONTRIBUTOR_FIELDS: Tuple[Tuple[str, ContributorRole], ...] = (
    ("author", ContributorRole.AUTHOR),
    ("editor", ContributorRole.EDITOR),
    ("translator", ContributorRole.TRANSLATOR),
    ("advisor", ContributorRole.ADVISOR),
)

# Plain one-to-one fields: record field -> document attribute.
SIMPLE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("subtitle", "subtitle"),
    ("volume", "volume"),
    ("number", "issue"),
    ("pages", "pages"),
    ("series", "series"),
    ("edition", "edition"),
    ("language", "language"),
    ("abstract", "abstract"),
    ("howpublished", "how_published"),
)

MIN_VALID_YEAR = 1000
MULTI_VALUE_SEPARATOR = re.compile(r"[,;]")
_ISO_PARTIAL_RE = re.compile(r"^(?P<year>\d{4})(?:-(?P<month>\d{1,2}))?(?:-(?P<day>\d{1,2}))?$")
# Malformed ISBN tokens are kept as OTHER identifiers; they go back to ``isbn``.
_ISBN_LIKE_RE = re.compile(r"^(?:ISBN[\s:-]*)?[0-9Xx][0-9Xx\s-]*$", re.IGNORECASE)


def sanitize_url(url: Optional[str]) -> Optional[str]:
    """First line only; scheme-relative and scheme-less URLs get ``https``."""
    if url is None:
        return None
    text = url.strip()
    text = re.split(r"[\r\n]", text, maxsplit=1)[0].strip()
    if not text:
        return None
    lowered = text.lower()
    if text.startswith("//"):
        return "https:" + text
    if lowered.startswith("http://"):
        return "http://" + text[7:]
    if lowered.startswith("https://"):
        return "https://" + text[8:]
    if "://" not in text:
        return "https://" + text
    return text


def combine_notes(primary: Optional[str], extra: Optional[str]) -> Optional[str]:
    primary = (primary or "").strip()
    extra = (extra or "").strip()
    if primary and extra:
        return f"{primary} | {extra}"
    return primary or extra or None


def split_multi_value(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [token.strip() for token in MULTI_VALUE_SEPARATOR.split(value) if token.strip()]


def document_type_for(entry_type: str) -> DocumentType:
    return ENTRY_TYPES.get((entry_type or "").strip().lower(), DocumentType.OTHER)


def entry_type_for(document: BibliographicDocument) -> str:
    """Entry type for a document. Theses pick master/phd from the degree type."""
    if document.document_type == DocumentType.THESIS:
        degree = (document.degree_type or "").lower()
        return "mastersthesis" if "master" in degree else "phdthesis"
    return DOCUMENT_ENTRY_TYPES.get(document.document_type, FALLBACK_ENTRY_TYPE)


def publisher_field_for(entry_type: str) -> str:
    if entry_type in ("mastersthesis", "phdthesis"):
        return "school"
    if entry_type == "techreport":
        return "institution"
    return "publisher"


def container_field_for(entry_type: str) -> str:
    return "journal" if entry_type == "article" else "booktitle"


class TypeAndFieldMapper:
    """
    Maps tokenized BibTeX records to documents and back.

    Both directions return a ConversionResult; no partially mapped value
    is ever returned.

    Args:
        strict_identifiers: fail conversion on an invalid identifier instead
            of logging it and keeping the raw value
        allow_future_dates: when False, years after the current one fail
        future_year_window: years past the current one before a date is
            reported as suspicious
        current_year: override for the current year (tests)
    """

    def __init__(
        self,
        strict_identifiers: bool = False,
        allow_future_dates: bool = True,
        future_year_window: int = date_model.FUTURE_WARNING_YEARS,
        current_year: Optional[int] = None,
    ):
        self.strict_identifiers = strict_identifiers
        self.allow_future_dates = allow_future_dates
        self.future_year_window = future_year_window
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year if self._current_year is not None else date.today().year

    # ------------------------------------------------------------------
    # record -> document
    # ------------------------------------------------------------------

    def to_document(self, record: Optional[BibTeXRecord]) -> ConversionResult[BibliographicDocument]:
        if record is None:
            return ConversionResult.fail(NullInput("record"))
        try:
            document = self._to_document(record)
        except ConversionError as exc:
            logger.debug(f"Record {record.key!r} failed to convert: {exc}")
            return ConversionResult.fail(exc)
        logger.debug(
            f"Mapped @{record.entry_type}{{{record.key}}} to {document.document_type.value} "
            f"({len(document.contributors)} contributors, {len(document.identifiers)} identifiers)"
        )
        return ConversionResult.ok(document)

    def _field(self, record: BibTeXRecord, name: str) -> Optional[str]:
        value = latex_codec.decode_field(name, record.get(name))
        if value is None:
            return None
        return value.strip() or None

    def _to_document(self, record: BibTeXRecord) -> BibliographicDocument:
        title = self._field(record, "title") or record.key
        if not title or not title.strip():
            raise MissingRequiredField("title")

        doc_type = document_type_for(record.entry_type)
        builder = (
            DocumentBuilder()
            .with_type(doc_type)
            .with_title(title)
            .with_fields(identifier=record.key)
        )

        for field_name, role in CONTRIBUTOR_FIELDS:
            raw = self._field(record, field_name)
            builder = builder.add_contributors(
                Contributor(name=name, role=role) for name in parse_names(raw)
            )

        publication_date, circa_note = self._parse_date(record)
        builder = builder.with_date(publication_date)

        for field_name, attr in SIMPLE_FIELDS:
            builder = builder.with_fields(**{attr: self._field(record, field_name)})

        builder = self._map_publisher_and_places(record, doc_type, builder)
        builder = builder.with_fields(
            container_title=self._field(record, "journal") or self._field(record, "booktitle"),
            degree_type=self._degree_type(record),
            url=sanitize_url(record.get("url")),
            notes=combine_notes(self._field(record, "note"), circa_note),
        )

        for identifier in self._extract_identifiers(record):
            builder = builder.add_identifier(identifier)
        builder = builder.add_keywords(split_multi_value(self._field(record, "keywords")))

        return builder.build().unwrap()

    def _map_publisher_and_places(
        self,
        record: BibTeXRecord,
        doc_type: DocumentType,
        builder: DocumentBuilder,
    ) -> DocumentBuilder:
        entry_type = record.entry_type
        publisher = self._field(record, "publisher")
        organization = self._field(record, "organization")
        address = self._field(record, "address")

        if publisher is None:
            if entry_type in ("mastersthesis", "phdthesis"):
                publisher = self._field(record, "school")
            elif doc_type == DocumentType.REPORT:
                publisher = self._field(record, "institution")
            elif doc_type == DocumentType.MANUAL and organization:
                publisher, organization = organization, None

        if doc_type.is_conference:
            builder = builder.with_fields(conference_location=address, conference_organizer=organization)
        else:
            builder = builder.with_fields(place_of_publication=address, organization=organization)
        return builder.with_fields(publisher=publisher)

    def _degree_type(self, record: BibTeXRecord) -> Optional[str]:
        explicit = self._field(record, "type")
        if explicit:
            return explicit
        # phdthesis intentionally gets no default.
        if record.entry_type == "mastersthesis":
            return MASTERS_DEGREE
        return None

    def _parse_date(self, record: BibTeXRecord) -> Tuple[Optional[PublicationDate], Optional[str]]:
        raw_year = record.get("year")
        circa_note = None
        if raw_year is None:
            return self._parse_date_field(record.get("date")), None

        if raw_year.isdigit():
            year = int(raw_year)
        else:
            year = date_model.extract_year_from_free_form(raw_year)
            if date_model.is_circa(raw_year):
                circa_note = date_model.CIRCA_NOTE.format(year=year)

        month = self._parse_month(record.get("month"))
        day = self._parse_day(record.get("day")) if month is not None else None
        self._check_date(year, month, day)
        return PublicationDate(year, month, day), circa_note

    def _parse_date_field(self, raw: Optional[str]) -> Optional[PublicationDate]:
        """biblatex ``date``: ``YYYY``, ``YYYY-MM``, ``YYYY-MM-DD`` or any parse_date format."""
        if raw is None:
            return None
        match = _ISO_PARTIAL_RE.match(raw.strip())
        if match:
            year = int(match.group("year"))
            month = int(match.group("month")) if match.group("month") else None
            day = int(match.group("day")) if match.group("day") else None
        else:
            parsed = date_model.parse_date(raw)
            year, month, day = parsed.year, parsed.month, parsed.day
        self._check_date(year, month, day)
        return PublicationDate(year, month, day)

    def _check_date(self, year: int, month: Optional[int], day: Optional[int]) -> None:
        if month is not None and day is not None:
            date_model.validate_with_future_check(
                year,
                month,
                day,
                self.allow_future_dates,
                current_year=self.current_year,
                warning_years=self.future_year_window,
            )
            return
        if month is not None and not 1 <= month <= 12:
            raise InvalidDate(year, month, day, "month must be in 1..12")
        if not self.allow_future_dates and year > self.current_year:
            raise InvalidDate(year, month, day, "future dates are not allowed")
        if year > self.current_year + self.future_year_window:
            logger.warning(f"Future date detected: {year} (allowed but unusual)")

    @staticmethod
    def _parse_month(raw: Optional[str]) -> Optional[int]:
        if raw is None:
            return None
        month = date_model.parse_month(raw)
        if month is None:
            raise InvalidFieldValue("month", raw, "expected 1-12 or an English month name")
        return month

    @staticmethod
    def _parse_day(raw: Optional[str]) -> Optional[int]:
        if raw is None:
            return None
        if not raw.isdigit() or not 1 <= int(raw) <= 31:
            raise InvalidFieldValue("day", raw, "expected a day of month 1-31")
        return int(raw)

    @staticmethod
    def _identifier_candidates(record: BibTeXRecord) -> List[Tuple[IdentifierType, str, str]]:
        """(kind, raw value, field) for every identifier-bearing field."""
        candidates: List[Tuple[IdentifierType, str, str]] = []
        for field_name, kind in (
            ("doi", IdentifierType.DOI),
            ("handle", IdentifierType.HANDLE),
            ("uri", IdentifierType.URI),
        ):
            value = record.get(field_name)
            if value:
                candidates.append((kind, value, field_name))
        for token in split_multi_value(record.get("isbn")):
            candidates.append((identifier_validator.classify_isbn(token), token, "isbn"))
        for token in split_multi_value(record.get("issn")):
            candidates.append((IdentifierType.ISSN, token, "issn"))
        for token in split_multi_value(record.get("eprint")):
            candidates.append((IdentifierType.OTHER, token, "eprint"))
        return candidates

    def _extract_identifiers(self, record: BibTeXRecord) -> List[Identifier]:
        identifiers = []
        for kind, value, field_name in self._identifier_candidates(record):
            identifiers.append(Identifier(kind, self._checked_identifier(kind, value, field_name)))
        return identifiers

    def _checked_identifier(self, kind: IdentifierType, value: str, field_name: str) -> str:
        try:
            return identifier_validator.validate(kind, value, field_name)
        except InvalidIdentifier as exc:
            if self.strict_identifiers:
                raise
            logger.warning(f"Keeping invalid identifier: {exc.message}")
            return value.strip()

    # ------------------------------------------------------------------
    # document -> record
    # ------------------------------------------------------------------

    def from_document(
        self,
        document: Optional[BibliographicDocument],
        registry: Optional[CitationKeyRegistry] = None,
    ) -> ConversionResult[BibTeXRecord]:
        """
        Map a document back to a BibTeX record.

        ``registry`` tracks keys used within a batch; a fresh one is used
        when omitted.
        """
        if document is None:
            return ConversionResult.fail(NullInput("document"))
        try:
            record = self._from_document(document, registry or CitationKeyRegistry())
        except ConversionError as exc:
            return ConversionResult.fail(exc)
        return ConversionResult.ok(record)

    def _from_document(self, document: BibliographicDocument, registry: CitationKeyRegistry) -> BibTeXRecord:
        entry_type = entry_type_for(document)
        fields: Dict[str, str] = {}

        def put(name: str, value: Optional[str]) -> None:
            if value is None or not str(value).strip():
                return
            fields[name] = latex_codec.encode_field(name, str(value).strip())

        put("title", document.title)
        for attr_field, attr in SIMPLE_FIELDS:
            put(attr_field, getattr(document, attr))

        for field_name, role in CONTRIBUTOR_FIELDS:
            names = [format_name(c.name) for c in document.contributors_by_role(role)]
            if names:
                put(field_name, " and ".join(names))

        if document.publication_date is not None:
            pub = document.publication_date
            put("year", str(pub.year))
            if pub.month is not None:
                put("month", date_model.month_abbreviation(pub.month))
            if pub.day is not None:
                put("day", str(pub.day))

        publisher_field = publisher_field_for(entry_type)
        if entry_type == "manual" and document.publisher and not document.organization:
            publisher_field = "organization"
        put(publisher_field, document.publisher)

        if document.document_type.is_conference:
            put("address", document.conference_location)
            put("organization", document.conference_organizer)
        else:
            put("address", document.place_of_publication)
            if document.organization:
                put("organization", document.organization)

        put("type", document.degree_type if self._keeps_type(document, entry_type) else None)
        put(container_field_for(entry_type), document.container_title)
        put("url", document.url)
        put("note", document.notes)
        if document.keywords:
            put("keywords", ", ".join(document.keywords))

        self._put_identifiers(document, put, fields)

        key = registry.resolve(document, document.identifier)
        return BibTeXRecord(entry_type=entry_type, key=key, fields=fields)

    @staticmethod
    def _keeps_type(document: BibliographicDocument, entry_type: str) -> bool:
        # The masters default is implied by the entry type.
        return not (entry_type == "mastersthesis" and document.degree_type == MASTERS_DEGREE)

    @staticmethod
    def _put_identifiers(
        document: BibliographicDocument,
        put: Callable[[str, Optional[str]], None],
        fields: Dict[str, str],
    ) -> None:
        others = [i.value for i in document.identifiers_of(IdentifierType.OTHER)]
        isbns = [
            i.value for i in document.identifiers if i.type in (IdentifierType.ISBN_10, IdentifierType.ISBN_13)
        ] + [value for value in others if _ISBN_LIKE_RE.match(value)]
        eprints = [value for value in others if not _ISBN_LIKE_RE.match(value)]
        issns = [i.value for i in document.identifiers_of(IdentifierType.ISSN)]
        put("isbn", ", ".join(isbns) if isbns else None)
        put("issn", ", ".join(issns) if issns else None)
        put("eprint", ", ".join(eprints) if eprints else None)
        put("doi", document.first_identifier(IdentifierType.DOI))
        put("handle", document.first_identifier(IdentifierType.HANDLE))
        put("uri", document.first_identifier(IdentifierType.URI))
        if "url" not in fields:
            put("url", document.first_identifier(IdentifierType.URL))

    # ------------------------------------------------------------------
    # pre-flight validation
    # ------------------------------------------------------------------

    def validate_record(self, record: Optional[BibTeXRecord]) -> List[ConversionError]:
        """
        Check a record without converting it.

        Returns every problem found; an empty list means the record is valid.
        """
        if record is None:
            return [NullInput("record")]
        errors: List[ConversionError] = []
        if not record.get("title") and not record.key:
            errors.append(MissingRequiredField("title"))
        if record.key and not is_valid_key(record.key):
            errors.append(InvalidFieldValue("key", record.key, "invalid characters in citation key"))

        try:
            self._parse_date(record)
        except (InvalidDate, UnparsableDate, InvalidFieldValue) as exc:
            errors.append(exc)

        for kind, value, field_name in self._identifier_candidates(record):
            try:
                identifier_validator.validate(kind, value, field_name)
            except InvalidIdentifier as exc:
                errors.append(exc)
        return errors

    def validate_document(
        self,
        document: Optional[BibliographicDocument],
        lenient: bool = False,
    ) -> List[ConversionError]:
        """
        Check a document before export.

        Lenient mode skips identifier checks so malformed identifiers can
        still round-trip.
        """
        if document is None:
            return [NullInput("document")]
        errors: List[ConversionError] = []
        pub = document.publication_date
        latest = self.current_year + self.future_year_window
        if pub is not None:
            if pub.year < MIN_VALID_YEAR or pub.year > latest:
                errors.append(
                    InvalidDate(
                        pub.year,
                        pub.month,
                        pub.day,
                        f"year outside {MIN_VALID_YEAR}..{latest}",
                    )
                )
            elif pub.day is not None and not date_model.is_valid_date(pub.year, pub.month, pub.day):
                errors.append(InvalidDate(pub.year, pub.month, pub.day, "not a calendar date"))
        if not lenient:
            for identifier in document.identifiers:
                try:
                    identifier_validator.validate(identifier.type, identifier.value)
                except InvalidIdentifier as exc:
                    errors.append(exc)
        return errors
