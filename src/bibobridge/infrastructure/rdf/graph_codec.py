# src/bibobridge/infrastructure/rdf/graph_codec.py
"""
BibliographicDocument <-> rdflib Graph.

Graph layout for one document::

    <doc> a bibo:Document, bibo:Article ;
        dcterms:title "..." ;
        dcterms:issued "2020-05"^^xsd:gYearMonth ;
        dcterms:isPartOf [ a bibo:Document ; dcterms:title "Journal" ] ;
        bibo:authorList ( [ a foaf:Person ; foaf:name "..." ] ... ) .

Containers are typed ``bibo:Document`` only, so subject discovery (generic
class plus exactly one specific class) never mistakes them for documents.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import quote

from rdflib import RDF, XSD, BNode, Graph, Literal, URIRef
from rdflib.term import Node

from bibobridge.application.services import identifier_validator
from bibobridge.domain import vocabulary as V
from bibobridge.domain.document import BibliographicDocument, DocumentBuilder, DocumentType
from bibobridge.domain.errors import ConversionError, InvalidFieldValue, MissingRequiredField
from bibobridge.domain.identifier import Identifier, IdentifierType
from bibobridge.domain.publication_date import PublicationDate
from bibobridge.infrastructure.rdf.ordered_relation_codec import OrderedRelationCodec

logger = logging.getLogger(__name__)

_ABSOLUTE_IRI_RE = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.\-]*://\S+|urn:\S+)$", re.IGNORECASE)
_ISSUED_RE = re.compile(r"^(\d{1,4})(?:-(\d{2})(?:-(\d{2}))?)?")

_LITERAL_FIELDS = (
    ("subtitle", V.SUBTITLE),
    ("identifier", V.IDENTIFIER),
    ("publisher", V.PUBLISHER),
    ("place_of_publication", V.PLACE_OF_PUBLICATION),
    ("language", V.LANGUAGE),
    ("abstract", V.ABSTRACT),
    ("notes", V.NOTE),
    ("volume", V.VOLUME),
    ("issue", V.ISSUE),
    ("pages", V.PAGES),
    ("series", V.SERIES),
    ("edition", V.EDITION),
    ("degree_type", V.DEGREE),
    ("how_published", V.HOW_PUBLISHED),
    ("organization", V.ORGANIZATION),
)

# Predicates whose IRI objects belong to the document's closure.
_CLOSURE_PREDICATES = frozenset({RDF.first, RDF.rest, V.IS_PART_OF, *V.PREDICATE_TO_ROLE})


def _first_text(graph: Graph, subject: Node, predicate: Node) -> Optional[str]:
    values = sorted(str(v).strip() for v in graph.objects(subject, predicate))
    values = [v for v in values if v]
    return values[0] if values else None


def _link_or_literal(kind: IdentifierType, value: str) -> Node:
    if identifier_validator.is_valid(kind, value):
        return URIRef(value)
    return Literal(value)


def issued_literal(date: PublicationDate) -> Literal:
    """``dcterms:issued`` value typed by the date's precision."""
    if date.day is not None:
        return Literal(date.to_iso(), datatype=XSD.date)
    if date.month is not None:
        return Literal(date.to_iso(), datatype=XSD.gYearMonth)
    return Literal(date.to_iso(), datatype=XSD.gYear)


def parse_issued(value: Node) -> Optional[PublicationDate]:
    text = str(value).strip()
    match = _ISSUED_RE.match(text)
    if not match:
        logger.warning(f"Ignoring unparsable issued date {text!r}")
        return None
    year, month, day = match.groups()
    try:
        return PublicationDate(int(year), int(month) if month else None, int(day) if day else None)
    except ConversionError as exc:
        logger.warning(f"Ignoring invalid issued date {text!r}: {exc}")
        return None


class GraphCodec:
    """
    Encode documents into a graph and discover/decode them back.

    Args:
        base_iri: prefix for subject IRIs minted from document identifiers;
            without it, non-IRI identifiers get a blank node subject
    """

    def __init__(self, base_iri: Optional[str] = None, relation_codec: Optional[OrderedRelationCodec] = None):
        self.base_iri = base_iri
        self.relation_codec = relation_codec or OrderedRelationCodec()

    # ------------------------------------------------------------------ encode

    def subject_for(self, document: BibliographicDocument, graph: Optional[Graph] = None) -> Node:
        """
        Subject node for ``document``.

        An IRI already describing a document in ``graph`` is never reused:
        minted IRIs get ``_2``, ``_3``, ... and absolute identifiers fall back
        to a blank node.
        """
        identifier = document.identifier
        if identifier and _ABSOLUTE_IRI_RE.match(identifier):
            subject = URIRef(identifier)
            if graph is not None and (subject, RDF.type, V.DOCUMENT) in graph:
                logger.warning(f"Subject {subject} already describes a document; using a blank node")
                return BNode()
            return subject
        if identifier and self.base_iri:
            minted = f"{self.base_iri}{quote(identifier, safe='')}"
            subject = URIRef(minted)
            counter = 2
            while graph is not None and (subject, RDF.type, V.DOCUMENT) in graph:
                subject = URIRef(f"{minted}_{counter}")
                counter += 1
            return subject
        return BNode()

    def encode(self, document: BibliographicDocument, graph: Optional[Graph] = None) -> Tuple[Graph, Node]:
        if graph is None:
            graph = Graph()
        V.bind_prefixes(graph)
        subject = self.subject_for(document, graph)

        graph.add((subject, RDF.type, V.DOCUMENT))
        graph.add((subject, RDF.type, V.DOCUMENT_CLASSES[document.document_type]))
        graph.add((subject, V.TITLE, Literal(document.title)))
        for attr, predicate in _LITERAL_FIELDS:
            value = getattr(document, attr)
            if value:
                graph.add((subject, predicate, Literal(value)))

        if document.publication_date is not None:
            graph.add((subject, V.ISSUED, issued_literal(document.publication_date)))

        page_range = document.page_range
        if page_range is not None:
            graph.add((subject, V.PAGE_START, Literal(page_range.start)))
            if page_range.end is not None:
                graph.add((subject, V.PAGE_END, Literal(page_range.end)))

        for keyword in document.keywords:
            graph.add((subject, V.SUBJECT, Literal(keyword)))

        self._encode_container(graph, subject, document)
        self._encode_links(graph, subject, document)
        self.relation_codec.encode(graph, subject, document.contributors)
        return graph, subject

    @staticmethod
    def _encode_container(graph: Graph, subject: Node, document: BibliographicDocument) -> None:
        if not (document.container_title or document.conference_location or document.conference_organizer):
            return
        container = BNode()
        graph.add((subject, V.IS_PART_OF, container))
        graph.add((container, RDF.type, V.DOCUMENT))
        if document.container_title:
            graph.add((container, V.TITLE, Literal(document.container_title)))
        if document.conference_location:
            graph.add((container, V.SPATIAL, Literal(document.conference_location)))
        if document.conference_organizer:
            graph.add((container, V.ORGANIZER, Literal(document.conference_organizer)))

    @staticmethod
    def _encode_links(graph: Graph, subject: Node, document: BibliographicDocument) -> None:
        if document.url:
            graph.add((subject, V.PAGE, _link_or_literal(IdentifierType.URL, document.url)))
        for identifier in document.identifiers:
            predicate = V.IDENTIFIER_PREDICATES[identifier.type]
            if identifier.type in (IdentifierType.URL, IdentifierType.URI):
                obj = _link_or_literal(identifier.type, identifier.value)
            else:
                obj = Literal(identifier.value)
            graph.add((subject, predicate, obj))

    # ------------------------------------------------------------------ decode

    @staticmethod
    def document_type_of(graph: Graph, subject: Node) -> Optional[DocumentType]:
        """The single specific type of a document subject, None when it is not one."""
        classes = set(graph.objects(subject, RDF.type))
        if V.DOCUMENT not in classes:
            return None
        specific = {V.CLASS_TO_TYPE[c] for c in classes if c in V.CLASS_TO_TYPE}
        if len(specific) != 1:
            return None
        return specific.pop()

    def discover_subjects(self, graph: Graph) -> List[Node]:
        subjects = [
            s for s in set(graph.subjects(RDF.type, V.DOCUMENT)) if self.document_type_of(graph, s) is not None
        ]
        return sorted(subjects, key=lambda s: (_first_text(graph, s, V.TITLE) or "", str(s)))

    def decode(self, graph: Graph, subject: Node) -> BibliographicDocument:
        """
        Read one document back.

        Raises:
            InvalidFieldValue: subject is not typed as exactly one document kind
            MissingRequiredField: no title
        """
        document_type = self.document_type_of(graph, subject)
        if document_type is None:
            raise InvalidFieldValue("rdf:type", str(subject), "not a document with exactly one specific class")
        title = _first_text(graph, subject, V.TITLE)
        if not title:
            raise MissingRequiredField("title")

        values = {attr: _first_text(graph, subject, predicate) for attr, predicate in _LITERAL_FIELDS}
        if not values["pages"]:
            start = _first_text(graph, subject, V.PAGE_START)
            end = _first_text(graph, subject, V.PAGE_END)
            if start:
                values["pages"] = f"{start}--{end}" if end else start

        issued = graph.value(subject, V.ISSUED)
        pages_links = sorted(str(v).strip() for v in graph.objects(subject, V.PAGE) if str(v).strip())

        builder = (
            DocumentBuilder()
            .with_type(document_type)
            .with_title(title)
            .with_date(parse_issued(issued) if issued is not None else None)
            .with_fields(url=pages_links[0] if pages_links else None, **values)
            .with_fields(**self._decode_container(graph, subject))
            .add_contributors(self.relation_codec.decode(graph, subject))
            .add_keywords(sorted(str(k) for k in graph.objects(subject, V.SUBJECT)))
        )
        for identifier in self._decode_identifiers(graph, subject, pages_links[1:]):
            builder = builder.add_identifier(identifier)
        return builder.build().unwrap()

    @staticmethod
    def _decode_container(graph: Graph, subject: Node) -> dict:
        found = {"container_title": None, "conference_location": None, "conference_organizer": None}
        for container in sorted(graph.objects(subject, V.IS_PART_OF), key=str):
            if isinstance(container, Literal):
                found["container_title"] = found["container_title"] or str(container).strip() or None
                continue
            found["container_title"] = found["container_title"] or _first_text(graph, container, V.TITLE)
            found["conference_location"] = found["conference_location"] or _first_text(
                graph, container, V.SPATIAL
            )
            found["conference_organizer"] = found["conference_organizer"] or _first_text(
                graph, container, V.ORGANIZER
            )
        return found

    @staticmethod
    def _decode_identifiers(graph: Graph, subject: Node, extra_links: List[str]) -> List[Identifier]:
        identifiers: List[Identifier] = []
        for kind, predicate in V.IDENTIFIER_PREDICATES.items():
            if kind == IdentifierType.URL:
                values = extra_links
            else:
                values = sorted(str(v).strip() for v in graph.objects(subject, predicate))
            for value in values:
                if not value:
                    continue
                try:
                    identifiers.append(Identifier(kind, value))
                except InvalidFieldValue as exc:
                    logger.warning(f"Ignoring {kind.value} identifier on {subject}: {exc}")
        return identifiers

    def decode_all(self, graph: Graph) -> List[BibliographicDocument]:
        """Every decodable document in ``graph``; failing subjects are logged and skipped."""
        documents = []
        for subject in self.discover_subjects(graph):
            try:
                documents.append(self.decode(graph, subject))
            except ConversionError as exc:
                logger.warning(f"Skipping graph subject {subject}: {exc}")
        return documents

    @staticmethod
    def subgraph(graph: Graph, subject: Node) -> Graph:
        """Statements about ``subject`` plus everything reachable through blank nodes, lists and containers."""
        out = Graph()
        V.bind_prefixes(out)
        pending = [subject]
        seen = set()
        while pending:
            node = pending.pop()
            if node in seen:
                continue
            seen.add(node)
            for predicate, obj in graph.predicate_objects(node):
                out.add((node, predicate, obj))
                if isinstance(obj, BNode) or (predicate in _CLOSURE_PREDICATES and isinstance(obj, URIRef)):
                    pending.append(obj)
        return out
