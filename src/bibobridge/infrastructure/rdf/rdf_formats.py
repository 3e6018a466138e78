# src/bibobridge/infrastructure/rdf/rdf_formats.py
"""
Serialization helpers around rdflib's parsers and serializers.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from rdflib import Dataset, Graph
from rdflib.util import guess_format

from bibobridge.domain.vocabulary import bind_prefixes

logger = logging.getLogger(__name__)


class RdfFormat(str, Enum):
    TURTLE = "turtle"
    XML = "xml"
    JSON_LD = "json-ld"
    NT = "nt"
    NQUADS = "nquads"
    TRIG = "trig"

    @property
    def is_quad_format(self) -> bool:
        return self in (RdfFormat.NQUADS, RdfFormat.TRIG)


_SUFFIXES = {
    ".ttl": RdfFormat.TURTLE,
    ".turtle": RdfFormat.TURTLE,
    ".rdf": RdfFormat.XML,
    ".xml": RdfFormat.XML,
    ".owl": RdfFormat.XML,
    ".jsonld": RdfFormat.JSON_LD,
    ".json": RdfFormat.JSON_LD,
    ".nt": RdfFormat.NT,
    ".nq": RdfFormat.NQUADS,
    ".trig": RdfFormat.TRIG,
}


def parse_format(value: Union[str, RdfFormat, None]) -> Optional[RdfFormat]:
    """Accept enum members, their values, and the usual aliases (``ttl``, ``rdfxml``, ``jsonld``)."""
    if value is None or isinstance(value, RdfFormat):
        return value
    text = value.strip().lower()
    aliases = {"ttl": "turtle", "rdfxml": "xml", "rdf/xml": "xml", "jsonld": "json-ld", "ntriples": "nt"}
    return RdfFormat(aliases.get(text, text))


def detect_format(filename: Union[str, Path], default: RdfFormat = RdfFormat.TURTLE) -> RdfFormat:
    """Guess the format from a file name; ``default`` when the suffix is unknown."""
    suffix = Path(filename).suffix.lower()
    if suffix in _SUFFIXES:
        return _SUFFIXES[suffix]
    guessed = guess_format(str(filename))
    if guessed:
        try:
            return RdfFormat(guessed)
        except ValueError:
            logger.debug(f"rdflib format {guessed!r} for {filename} is not supported, using {default.value}")
    return default


def serialize_graph(graph: Graph, fmt: Union[str, RdfFormat] = RdfFormat.TURTLE) -> str:
    fmt = parse_format(fmt)
    bind_prefixes(graph)
    if fmt.is_quad_format:
        # Quad serializers need a context-aware store.
        dataset = Dataset()
        for triple in graph:
            dataset.add(triple)
        bind_prefixes(dataset)
        return dataset.serialize(format=fmt.value)
    return graph.serialize(format=fmt.value)


def parse_graph(text: str, fmt: Union[str, RdfFormat] = RdfFormat.TURTLE) -> Graph:
    fmt = parse_format(fmt)
    if fmt.is_quad_format:
        dataset = Dataset()
        dataset.parse(data=text, format=fmt.value)
        graph = Graph()
        for s, p, o, _ctx in dataset.quads((None, None, None, None)):
            graph.add((s, p, o))
    else:
        graph = Graph()
        graph.parse(data=text, format=fmt.value)
    bind_prefixes(graph)
    return graph


def load_graph(path: Union[str, Path], fmt: Union[str, RdfFormat, None] = None) -> Graph:
    """Read an RDF file; the format is detected from the suffix unless given."""
    path = Path(path)
    fmt = parse_format(fmt) or detect_format(path)
    logger.info(f"Loading {fmt.value} graph from {path}")
    return parse_graph(path.read_text(encoding="utf-8"), fmt)
