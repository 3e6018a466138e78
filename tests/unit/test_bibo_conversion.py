"""
BibliographicConverter workflow tests.
"""

import pytest
from rdflib import Graph, URIRef

from bibobridge.application.workflows.bibo_conversion import BibliographicConverter
from bibobridge.domain import vocabulary as V
from bibobridge.domain.errors import MissingRequiredField, NullInput
from bibobridge.domain.record import BibTeXRecord
from bibobridge.utils.settings import ConverterSettings


class TestForward:
    """Records to graph."""

    def setup_method(self):
        self.converter = BibliographicConverter()

    def test_record_to_graph(self, article_record):
        result = self.converter.convert_record_to_graph(article_record)
        assert result.success
        graph = result.value
        subjects = self.converter.codec.discover_subjects(graph)
        assert len(subjects) == 1
        assert (subjects[0], V.AUTHOR_LIST, None) in graph

    def test_records_share_graph(self, article_record, conference_record):
        graph = Graph()
        self.converter.convert_record_to_graph(article_record, graph)
        self.converter.convert_record_to_graph(conference_record, graph)
        assert len(self.converter.codec.discover_subjects(graph)) == 2

    def test_failure_passed_through(self):
        result = self.converter.convert_record_to_graph(BibTeXRecord(entry_type="misc"))
        assert isinstance(result.error, MissingRequiredField)

    def test_settings_reach_codec(self, article_record):
        converter = BibliographicConverter(ConverterSettings(base_iri="http://example.org/ref/"))
        graph = converter.convert_record_to_graph(article_record).value
        assert converter.codec.discover_subjects(graph) == [URIRef("http://example.org/ref/gogh2020")]


class TestReverse:
    """Graph to records."""

    def setup_method(self):
        self.converter = BibliographicConverter()

    def test_round_trip_keeps_author_order(self, article_record):
        graph = self.converter.convert_record_to_graph(article_record).value
        records = self.converter.convert_all_from_graph(graph)
        assert len(records) == 1
        record = records[0]
        assert record.entry_type == "article"
        assert record.key == "gogh2020"
        assert record.get("author") == "van Gogh, Vincent and Smith, John and Madonna"
        assert record.get("title") == article_record.get("title")
        assert record.get("journal") == "Journal of Impressionism"
        assert record.get("doi") == "10.1234/jimp.2020.12"
        assert record.get("month") == "may"

    def test_conference_round_trip(self, conference_record):
        graph = self.converter.convert_record_to_graph(conference_record).value
        record = self.converter.convert_all_from_graph(graph)[0]
        assert record.entry_type == "inproceedings"
        assert record.get("booktitle") == "Proceedings of GraphConf"
        assert record.get("address") == "Vienna, Austria"
        assert record.get("organization") == "ACM"
        assert record.get("publisher") == "ACM Press"

    def test_batch_keys_unique(self):
        graph = Graph()
        for title in ("First", "Second"):
            record = BibTeXRecord(entry_type="misc", fields={"title": title, "author": "Doe, Jane", "year": "2020"})
            self.converter.convert_record_to_graph(record, graph)
        keys = sorted(r.key for r in self.converter.convert_all_from_graph(graph))
        assert keys == ["doe_2020", "doe_2020_2"]

    def test_duplicate_keys_in_one_graph(self):
        """Records sharing a key both come back, with distinct keys."""
        converter = BibliographicConverter(ConverterSettings(base_iri="https://example.org/bib/"))
        graph = Graph()
        for title, authors in (("Alpha", "Smith, John and Doe, Jane"), ("Beta", "Smith, John")):
            record = BibTeXRecord(
                entry_type="article", key="smith2020", fields={"title": title, "author": authors, "year": "2020"}
            )
            assert converter.convert_record_to_graph(record, graph).success
        documents = converter.documents_from_graph(graph)
        assert [d.title for d in documents] == ["Alpha", "Beta"]
        records = converter.convert_all_from_graph(graph)
        assert [r.key for r in records] == ["smith2020", "smith2020_2"]

    def test_empty_graph(self):
        assert self.converter.convert_all_from_graph(Graph()) == []

    def test_null_graph(self):
        with pytest.raises(NullInput):
            self.converter.convert_all_from_graph(None)
        assert isinstance(self.converter.convert_from_graph(None, URIRef("urn:x")).error, NullInput)

    def test_convert_from_graph_non_document(self, article_record):
        graph = self.converter.convert_record_to_graph(article_record).value
        result = self.converter.convert_from_graph(graph, URIRef("urn:missing"))
        assert not result.success

    def test_null_document(self):
        assert isinstance(self.converter.convert_from_bibo(None).error, NullInput)
