"""
RDF serialization helper tests.
"""

import pytest
from rdflib import Graph, Literal, URIRef

from bibobridge.domain import vocabulary as V
from bibobridge.infrastructure.rdf.rdf_formats import (
    RdfFormat,
    detect_format,
    load_graph,
    parse_format,
    parse_graph,
    serialize_graph,
)

SUBJECT = URIRef("http://example.org/doc")


def _graph():
    graph = Graph()
    graph.add((SUBJECT, V.TITLE, Literal("A Title")))
    graph.add((SUBJECT, V.VOLUME, Literal("3")))
    return graph


class TestFormats:
    """Format names and detection."""

    @pytest.mark.parametrize(
        "text,expected",
        [("ttl", RdfFormat.TURTLE), ("Turtle", RdfFormat.TURTLE), ("jsonld", RdfFormat.JSON_LD), ("rdfxml", RdfFormat.XML)],
    )
    def test_aliases(self, text, expected):
        assert parse_format(text) == expected

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            parse_format("yaml")

    def test_none_passes_through(self):
        assert parse_format(None) is None

    @pytest.mark.parametrize(
        "name,expected",
        [("refs.ttl", RdfFormat.TURTLE), ("refs.rdf", RdfFormat.XML), ("refs.jsonld", RdfFormat.JSON_LD), ("refs.nq", RdfFormat.NQUADS)],
    )
    def test_detect(self, name, expected):
        assert detect_format(name) == expected

    def test_detect_default(self):
        assert detect_format("refs.unknown") == RdfFormat.TURTLE

    def test_quad_formats(self):
        assert RdfFormat.TRIG.is_quad_format
        assert not RdfFormat.TURTLE.is_quad_format


class TestSerialization:
    """serialize_graph / parse_graph."""

    @pytest.mark.parametrize("fmt", list(RdfFormat))
    def test_every_format_reads_back(self, fmt):
        text = serialize_graph(_graph(), fmt)
        parsed = parse_graph(text, fmt)
        assert parsed.value(SUBJECT, V.TITLE) == Literal("A Title")
        assert len(parsed) == 2

    def test_turtle_uses_prefixes(self):
        assert "dcterms:title" in serialize_graph(_graph(), "turtle")

    def test_load_graph_detects_suffix(self, tmp_path):
        path = tmp_path / "refs.nt"
        path.write_text(serialize_graph(_graph(), RdfFormat.NT), encoding="utf-8")
        assert len(load_graph(path)) == 2
