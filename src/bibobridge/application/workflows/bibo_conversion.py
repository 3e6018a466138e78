# src/bibobridge/application/workflows/bibo_conversion.py
"""
BibTeX <-> BIBO conversion workflow.

Forward:  BibTeXRecord -> BibliographicDocument -> rdflib Graph
Reverse:  Graph -> BibliographicDocument(s) -> BibTeXRecord(s)

The converter is stateless apart from its configuration; citation key
de-duplication lives in a CitationKeyRegistry created per batch.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from rdflib import Graph
from rdflib.term import Node

from bibobridge.application.services.citation_keys import CitationKeyGenerator, CitationKeyRegistry
from bibobridge.application.services.field_mapper import TypeAndFieldMapper
from bibobridge.domain.document import BibliographicDocument
from bibobridge.domain.errors import ConversionError, NullInput
from bibobridge.domain.record import BibTeXRecord
from bibobridge.domain.result import ConversionResult
from bibobridge.infrastructure.rdf.graph_codec import GraphCodec
from bibobridge.utils.settings import ConverterSettings

logger = logging.getLogger(__name__)


class BibliographicConverter:
    """
    Entry point for both conversion directions.

    Usage:
        converter = BibliographicConverter()
        result = converter.convert_record_to_graph(record)
        if result.success:
            print(result.value.serialize(format="turtle"))
    """

    def __init__(self, settings: Optional[ConverterSettings] = None):
        self.settings = settings or ConverterSettings()
        self.mapper = TypeAndFieldMapper(
            strict_identifiers=self.settings.strict_identifiers,
            allow_future_dates=self.settings.allow_future_dates,
            future_year_window=self.settings.future_year_window,
        )
        self.key_generator = CitationKeyGenerator(self.settings.key_strategy)
        self.codec = GraphCodec(base_iri=self.settings.base_iri)

    def new_registry(self) -> CitationKeyRegistry:
        return CitationKeyRegistry(self.key_generator)

    # ------------------------------------------------------------------ forward

    def convert_to_bibo(self, record: Optional[BibTeXRecord]) -> ConversionResult[BibliographicDocument]:
        return self.mapper.to_document(record)

    def to_graph(self, document: BibliographicDocument, graph: Optional[Graph] = None) -> Tuple[Graph, Node]:
        return self.codec.encode(document, graph)

    def convert_record_to_graph(
        self,
        record: Optional[BibTeXRecord],
        graph: Optional[Graph] = None,
    ) -> ConversionResult[Graph]:
        """Convert one record and add its statements to ``graph`` (a new graph by default)."""
        result = self.convert_to_bibo(record)
        if not result.success:
            return ConversionResult.fail(result.error)
        out, _subject = self.to_graph(result.value, graph)
        return ConversionResult.ok(out)

    # ------------------------------------------------------------------ reverse

    def convert_from_bibo(
        self,
        document: Optional[BibliographicDocument],
        registry: Optional[CitationKeyRegistry] = None,
    ) -> ConversionResult[BibTeXRecord]:
        return self.mapper.from_document(document, registry or self.new_registry())

    def convert_from_bibo_batch(self, documents: Iterable[BibliographicDocument]) -> List[BibTeXRecord]:
        """Records for all convertible documents, with keys unique across the batch."""
        registry = self.new_registry()
        records: List[BibTeXRecord] = []
        for index, document in enumerate(documents):
            result = self.convert_from_bibo(document, registry)
            if result.success:
                records.append(result.value)
            else:
                logger.warning(f"Skipping document #{index}: {result.error}")
        return records

    def documents_from_graph(self, graph: Optional[Graph]) -> List[BibliographicDocument]:
        if graph is None:
            raise NullInput("graph")
        return self.codec.decode_all(graph)

    def convert_from_graph(self, graph: Optional[Graph], subject: Node) -> ConversionResult[BibliographicDocument]:
        if graph is None:
            return ConversionResult.fail(NullInput("graph"))
        try:
            return ConversionResult.ok(self.codec.decode(graph, subject))
        except ConversionError as exc:
            return ConversionResult.fail(exc)

    def convert_all_from_graph(self, graph: Optional[Graph]) -> List[BibTeXRecord]:
        """Every document in ``graph`` as a record; undecodable subjects are skipped."""
        documents = self.documents_from_graph(graph)
        logger.info(f"Found {len(documents)} documents in graph of {len(graph)} statements")
        return self.convert_from_bibo_batch(documents)
