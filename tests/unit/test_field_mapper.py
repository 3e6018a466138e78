"""
TypeAndFieldMapper tests: record -> document, document -> record, validation.
"""

import pytest

from bibobridge.application.services.citation_keys import CitationKeyRegistry
from bibobridge.application.services.field_mapper import (
    MASTERS_DEGREE,
    TypeAndFieldMapper,
    sanitize_url,
    split_multi_value,
)
from bibobridge.domain.document import (
    BibliographicDocument,
    Contributor,
    ContributorRole,
    DocumentType,
)
from bibobridge.domain.errors import (
    InvalidDate,
    InvalidIdentifier,
    MissingRequiredField,
    NullInput,
)
from bibobridge.domain.identifier import Identifier, IdentifierType
from bibobridge.application.services.name_parser import parse_name
from bibobridge.domain.publication_date import PublicationDate
from bibobridge.domain.record import BibTeXRecord


def _record(entry_type, key="k1", **fields):
    return BibTeXRecord(entry_type=entry_type, key=key, fields=fields)


class TestRecordToDocument:
    """Forward mapping."""

    def setup_method(self):
        self.mapper = TypeAndFieldMapper(current_year=2024)

    def test_article(self, article_record):
        """All article fields land on the document."""
        result = self.mapper.to_document(article_record)
        assert result.success
        doc = result.value
        assert doc.document_type == DocumentType.ARTICLE
        assert doc.title == "Café Terrace at Night"
        assert doc.identifier == "gogh2020"
        assert [c.name.family_name for c in doc.authors] == ["Gogh", "Smith", "Madonna"]
        assert doc.container_title == "Journal of Impressionism"
        assert doc.publication_date == PublicationDate(2020, 5)
        assert doc.issue == "3"
        assert doc.pages == "100--120"
        assert doc.identifiers == (
            Identifier(IdentifierType.DOI, "10.1234/jimp.2020.12"),
            Identifier(IdentifierType.ISSN, "0378-5955"),
        )
        assert doc.keywords == ("painting", "night", "cafe")

    def test_conference_address_is_location(self, conference_record):
        """For conference types address/organization describe the event."""
        doc = self.mapper.to_document(conference_record).value
        assert doc.document_type == DocumentType.CONFERENCE_PAPER
        assert doc.conference_location == "Vienna, Austria"
        assert doc.conference_organizer == "ACM"
        assert doc.place_of_publication is None
        assert doc.publisher == "ACM Press"
        assert doc.container_title == "Proceedings of GraphConf"

    def test_book_address_is_place_of_publication(self):
        """For other types address is the publisher's location."""
        record = _record("book", title="A Book", address="London", publisher="Penguin", year="1999")
        doc = self.mapper.to_document(record).value
        assert doc.place_of_publication == "London"
        assert doc.conference_location is None
        assert doc.publisher == "Penguin"

    def test_manual_organization_is_publisher(self):
        record = _record("manual", title="User Guide", organization="ACME Corp")
        doc = self.mapper.to_document(record).value
        assert doc.document_type == DocumentType.MANUAL
        assert doc.publisher == "ACME Corp"
        assert doc.organization is None

    def test_thesis_school_and_degree(self):
        """Masters theses get an implicit degree; PhD theses do not."""
        masters = self.mapper.to_document(_record("mastersthesis", title="T", school="MIT")).value
        phd = self.mapper.to_document(_record("phdthesis", title="T", school="MIT")).value
        assert masters.publisher == "MIT"
        assert masters.degree_type == MASTERS_DEGREE
        assert phd.degree_type is None

    def test_explicit_type_overrides_degree(self):
        record = _record("mastersthesis", title="T", type="MSc dissertation")
        assert self.mapper.to_document(record).value.degree_type == "MSc dissertation"

    def test_report_institution(self):
        doc = self.mapper.to_document(_record("techreport", title="R", institution="CERN")).value
        assert doc.document_type == DocumentType.REPORT
        assert doc.publisher == "CERN"

    def test_unknown_type_is_other(self):
        doc = self.mapper.to_document(_record("dataset", title="Data")).value
        assert doc.document_type == DocumentType.OTHER

    def test_key_is_title_fallback(self):
        doc = self.mapper.to_document(_record("misc", key="fallback2020")).value
        assert doc.title == "fallback2020"

    def test_missing_title_and_key(self):
        result = self.mapper.to_document(BibTeXRecord(entry_type="misc", fields={"year": "2020"}))
        assert not result.success
        assert isinstance(result.error, MissingRequiredField)
        assert result.error.field == "title"
        assert result.value is None

    def test_none_record(self):
        result = self.mapper.to_document(None)
        assert isinstance(result.error, NullInput)

    def test_circa_year_adds_note(self):
        doc = self.mapper.to_document(_record("book", title="Old", year="circa 1850", note="Reprint")).value
        assert doc.year == 1850
        assert doc.notes == "Reprint | Approximate publication date (circa 1850)"

    def test_invalid_calendar_date_fails(self):
        result = self.mapper.to_document(_record("article", title="T", year="2023", month="feb", day="29"))
        assert isinstance(result.error, InvalidDate)

    def test_future_date_rejected_when_disallowed(self):
        mapper = TypeAndFieldMapper(allow_future_dates=False, current_year=2024)
        result = mapper.to_document(_record("article", title="T", year="2030"))
        assert isinstance(result.error, InvalidDate)

    @pytest.mark.parametrize("fields", [{"year": "2027"}, {"year": "2027", "month": "mar", "day": "3"}])
    def test_future_window_applies_to_every_precision(self, caplog, fields):
        """A full date and a bare year use the same configured window."""
        mapper = TypeAndFieldMapper(current_year=2024, future_year_window=1)
        with caplog.at_level("WARNING"):
            result = mapper.to_document(_record("article", title="T", **fields))
        assert result.success
        assert "Future date detected: 2027" in caplog.text

    def test_biblatex_date_field(self):
        doc = self.mapper.to_document(_record("online", title="Page", date="2021-07-04")).value
        assert doc.document_type == DocumentType.WEBPAGE
        assert doc.publication_date == PublicationDate(2021, 7, 4)

    def test_invalid_identifier_kept_when_lenient(self):
        doc = self.mapper.to_document(_record("book", title="B", isbn="0-306-40615-3")).value
        assert doc.identifiers == (Identifier(IdentifierType.ISBN_10, "0-306-40615-3"),)

    def test_invalid_identifier_fails_when_strict(self):
        mapper = TypeAndFieldMapper(strict_identifiers=True)
        result = mapper.to_document(_record("book", title="B", isbn="0-306-40615-3"))
        assert isinstance(result.error, InvalidIdentifier)
        assert result.error.field == "isbn"

    def test_isbn_normalized(self):
        doc = self.mapper.to_document(_record("book", title="B", isbn="978-0-306-40615-7")).value
        assert doc.first_identifier(IdentifierType.ISBN_13) == "9780306406157"

    def test_url_sanitized(self):
        doc = self.mapper.to_document(_record("online", title="P", url="example.org/page")).value
        assert doc.url == "https://example.org/page"

    def test_translator_role(self):
        doc = self.mapper.to_document(_record("book", title="B", author="A. Writer", translator="T. Lator")).value
        assert [c.role for c in doc.contributors] == [ContributorRole.AUTHOR, ContributorRole.TRANSLATOR]


class TestDocumentToRecord:
    """Reverse mapping."""

    def setup_method(self):
        self.mapper = TypeAndFieldMapper(current_year=2024)

    def test_conference_fields(self):
        doc = BibliographicDocument(
            title="Talk",
            document_type=DocumentType.CONFERENCE_PAPER,
            container_title="Proc. Conf",
            conference_location="Vienna",
            conference_organizer="ACM",
            publisher="ACM Press",
        )
        record = self.mapper.from_document(doc).value
        assert record.entry_type == "inproceedings"
        assert record.get("address") == "Vienna"
        assert record.get("organization") == "ACM"
        assert record.get("booktitle") == "Proc. Conf"
        assert record.get("publisher") == "ACM Press"

    def test_book_address(self):
        doc = BibliographicDocument(title="B", document_type=DocumentType.BOOK, place_of_publication="London")
        assert self.mapper.from_document(doc).value.get("address") == "London"

    def test_thesis_storage_fields(self):
        masters = BibliographicDocument(
            title="T", document_type=DocumentType.THESIS, publisher="MIT", degree_type=MASTERS_DEGREE
        )
        record = self.mapper.from_document(masters).value
        assert record.entry_type == "mastersthesis"
        assert record.get("school") == "MIT"
        assert not record.has("type")

        phd = BibliographicDocument(title="T", document_type=DocumentType.THESIS)
        assert self.mapper.from_document(phd).value.entry_type == "phdthesis"

    def test_names_dates_and_escapes(self):
        doc = BibliographicDocument(
            title="Café & Bar",
            document_type=DocumentType.ARTICLE,
            contributors=(
                Contributor(parse_name("Vincent van Gogh")),
                Contributor(parse_name("Madonna")),
            ),
            publication_date=PublicationDate(2020, 5, 7),
        )
        record = self.mapper.from_document(doc).value
        assert record.get("title") == "Caf{\\'e} \\& Bar"
        assert record.get("author") == "van Gogh, Vincent and Madonna"
        assert record.get("year") == "2020"
        assert record.get("month") == "may"
        assert record.get("day") == "7"

    def test_generated_keys_are_unique(self):
        doc = BibliographicDocument(
            title="Paper",
            document_type=DocumentType.ARTICLE,
            contributors=(Contributor(parse_name("John Smith")),),
            publication_date=PublicationDate(2020),
        )
        registry = CitationKeyRegistry()
        first = self.mapper.from_document(doc, registry).value
        second = self.mapper.from_document(doc, registry).value
        assert first.key == "smith_2020"
        assert second.key == "smith_2020_2"

    def test_identifier_used_as_key(self):
        doc = BibliographicDocument(title="P", document_type=DocumentType.ARTICLE, identifier="mykey")
        assert self.mapper.from_document(doc).value.key == "mykey"

    def test_identifiers_written(self):
        doc = BibliographicDocument(
            title="B",
            document_type=DocumentType.BOOK,
            identifiers=(
                Identifier(IdentifierType.ISBN_10, "0306406152"),
                Identifier(IdentifierType.ISBN_13, "9780306406157"),
                Identifier(IdentifierType.DOI, "10.1000/x"),
            ),
        )
        record = self.mapper.from_document(doc).value
        assert record.get("isbn") == "0306406152, 9780306406157"
        assert record.get("doi") == "10.1000/x"

    def test_other_identifiers_split_between_isbn_and_eprint(self):
        """Only ISBN-looking OTHER values are written back as ISBNs."""
        doc = BibliographicDocument(
            title="B",
            identifiers=(
                Identifier(IdentifierType.ISBN_13, "9780306406157"),
                Identifier(IdentifierType.OTHER, "0-306"),
                Identifier(IdentifierType.OTHER, "arXiv:2101.00001"),
            ),
        )
        record = self.mapper.from_document(doc).value
        assert record.get("isbn") == "9780306406157, 0-306"
        assert record.get("eprint") == "arXiv:2101.00001"

    def test_eprint_round_trip(self):
        record = _record("misc", title="Preprint", eprint="arXiv:2101.00001")
        doc = self.mapper.to_document(record).value
        assert doc.identifiers == (Identifier(IdentifierType.OTHER, "arXiv:2101.00001"),)
        back = self.mapper.from_document(doc).value
        assert back.get("eprint") == "arXiv:2101.00001"
        assert back.get("isbn") is None

    def test_other_is_misc(self):
        doc = BibliographicDocument(title="X", document_type=DocumentType.OTHER)
        assert self.mapper.from_document(doc).value.entry_type == "misc"

    def test_none_document(self):
        assert isinstance(self.mapper.from_document(None).error, NullInput)

    def test_record_round_trip(self, article_record):
        """record -> document -> record keeps the meaningful fields."""
        doc = self.mapper.to_document(article_record).value
        back = self.mapper.from_document(doc).value
        assert back.entry_type == "article"
        assert back.key == "gogh2020"
        assert back.get("title") == article_record.get("title")
        assert back.get("journal") == "Journal of Impressionism"
        assert back.get("doi") == "10.1234/jimp.2020.12"
        again = self.mapper.to_document(back).value
        parts = lambda d: [(c.name.given_name, c.name.name_particle, c.name.family_name) for c in d.authors]
        assert parts(again) == parts(doc)
        assert again.publication_date == doc.publication_date


class TestValidation:
    """Pre-flight validation."""

    def setup_method(self):
        self.mapper = TypeAndFieldMapper(current_year=2024)

    def test_valid_record(self, article_record):
        assert self.mapper.validate_record(article_record) == []

    def test_collects_every_problem(self):
        record = BibTeXRecord(
            entry_type="book",
            key="bad key!",
            fields={"year": "2023", "month": "2", "day": "30", "isbn": "123", "doi": "nope"},
        )
        errors = self.mapper.validate_record(record)
        kinds = {type(e).__name__ for e in errors}
        assert {"InvalidFieldValue", "InvalidDate", "InvalidIdentifier"} <= kinds

    def test_validate_document_year_window(self):
        doc = BibliographicDocument(title="T", publication_date=PublicationDate(2100))
        errors = self.mapper.validate_document(doc)
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidDate)

    def test_lenient_skips_identifiers(self):
        doc = BibliographicDocument(title="T", identifiers=(Identifier(IdentifierType.DOI, "bogus"),))
        assert len(self.mapper.validate_document(doc)) == 1
        assert self.mapper.validate_document(doc, lenient=True) == []


class TestHelpers:
    def test_sanitize_url(self):
        assert sanitize_url("//cdn.example.org/x") == "https://cdn.example.org/x"
        assert sanitize_url("HTTP://example.org\nextra") == "http://example.org"
        assert sanitize_url("   ") is None

    def test_split_multi_value(self):
        assert split_multi_value("a, b;c") == ["a", "b", "c"]
        assert split_multi_value(None) == []
