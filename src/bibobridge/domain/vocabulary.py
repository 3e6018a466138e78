# src/bibobridge/domain/vocabulary.py
"""
RDF vocabulary used by the graph codec.

The IRIs below are a published contract consumed by downstream RDF tools.
Changing any of them breaks existing data.
"""

from __future__ import annotations

from types import MappingProxyType

from rdflib import DCTERMS, FOAF, RDF, RDFS, XSD, Namespace

from bibobridge.domain.document import ContributorRole, DocumentType
from bibobridge.domain.identifier import IdentifierType

BIBO = Namespace("http://purl.org/ontology/bibo/")
BIBO_EXT = Namespace("http://purl.org/ontology/bibo-ext/")

PREFIXES = MappingProxyType(
    {
        "bibo": BIBO,
        "bibo-ext": BIBO_EXT,
        "dcterms": DCTERMS,
        "foaf": FOAF,
        "rdf": RDF,
        "rdfs": RDFS,
        "xsd": XSD,
    }
)

# Classes
DOCUMENT = BIBO.Document
PERSON = FOAF.Person

DOCUMENT_CLASSES = MappingProxyType(
    {
        DocumentType.ARTICLE: BIBO.Article,
        DocumentType.BOOK: BIBO.Book,
        DocumentType.BOOK_SECTION: BIBO.Chapter,
        DocumentType.THESIS: BIBO.Thesis,
        DocumentType.REPORT: BIBO.Report,
        DocumentType.CONFERENCE_PAPER: BIBO.ConferencePaper,
        DocumentType.PROCEEDINGS: BIBO.Proceedings,
        DocumentType.WEBPAGE: BIBO.Webpage,
        DocumentType.BOOKLET: BIBO_EXT.Booklet,
        DocumentType.MANUAL: BIBO.Manual,
        DocumentType.MANUSCRIPT: BIBO.Manuscript,
        DocumentType.UNPUBLISHED: BIBO_EXT.Unpublished,
        DocumentType.OTHER: BIBO_EXT.Misc,
    }
)

# Accepted on decode only.
CLASS_ALIASES = MappingProxyType(
    {
        BIBO.BookSection: DocumentType.BOOK_SECTION,
        BIBO.AcademicArticle: DocumentType.ARTICLE,
    }
)

CLASS_TO_TYPE = MappingProxyType(
    {**{iri: doc_type for doc_type, iri in DOCUMENT_CLASSES.items()}, **CLASS_ALIASES}
)

# Document literals
TITLE = DCTERMS.title
SUBTITLE = BIBO.subtitle
IDENTIFIER = DCTERMS.identifier
ISSUED = DCTERMS.issued
PUBLISHER = DCTERMS.publisher
SPATIAL = DCTERMS.spatial
LANGUAGE = DCTERMS.language
ABSTRACT = DCTERMS.abstract
SUBJECT = DCTERMS.subject
IS_PART_OF = DCTERMS.isPartOf
NOTE = RDFS.comment
VOLUME = BIBO.volume
ISSUE = BIBO.issue
PAGES = BIBO.pages
PAGE_START = BIBO.pageStart
PAGE_END = BIBO.pageEnd
SERIES = BIBO.series
EDITION = BIBO.edition
DEGREE = BIBO.degree
ORGANIZER = BIBO.organizer
PAGE = FOAF.page
HOW_PUBLISHED = BIBO_EXT.howpublished
ORGANIZATION = BIBO_EXT.organization
PLACE_OF_PUBLICATION = DCTERMS.spatial

# Person literals
NAME = FOAF.name
GIVEN_NAME = FOAF.givenName
FAMILY_NAME = FOAF.familyName
MIDDLE_NAME = BIBO_EXT.middleName
NAME_PARTICLE = BIBO_EXT.nameParticle
NAME_SUFFIX = BIBO_EXT.nameSuffix
AFFILIATION = BIBO_EXT.affiliationName

# Ordered contributor lists
AUTHOR_LIST = BIBO.authorList
EDITOR_LIST = BIBO.editorList
CONTRIBUTOR_LIST = BIBO.contributorList

ROLE_PREDICATES = MappingProxyType(
    {
        ContributorRole.AUTHOR: DCTERMS.creator,
        ContributorRole.EDITOR: BIBO.editor,
        ContributorRole.TRANSLATOR: BIBO.translator,
        ContributorRole.ADVISOR: BIBO.advisor,
        ContributorRole.REVIEWER: BIBO.reviewer,
        ContributorRole.CONTRIBUTOR: DCTERMS.contributor,
    }
)

PREDICATE_TO_ROLE = MappingProxyType({iri: role for role, iri in ROLE_PREDICATES.items()})

IDENTIFIER_PREDICATES = MappingProxyType(
    {
        IdentifierType.DOI: BIBO.doi,
        IdentifierType.ISBN_10: BIBO.isbn10,
        IdentifierType.ISBN_13: BIBO.isbn13,
        IdentifierType.ISSN: BIBO.issn,
        IdentifierType.HANDLE: BIBO.handle,
        IdentifierType.URI: BIBO.uri,
        IdentifierType.URL: FOAF.page,
        IdentifierType.OTHER: BIBO.identifier,
    }
)

PREDICATE_TO_IDENTIFIER = MappingProxyType(
    {iri: kind for kind, iri in IDENTIFIER_PREDICATES.items()}
)


def bind_prefixes(graph) -> None:
    """Bind the vocabulary prefixes on a graph for readable serialization."""
    for prefix, namespace in PREFIXES.items():
        graph.bind(prefix, namespace, override=True)
