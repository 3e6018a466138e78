# src/bibobridge/infrastructure/rdf/ordered_relation_codec.py
"""
Ordered contributor lists in RDF.

A graph is an unordered set of triples, so author and editor order is kept
with the RDF list idiom: a chain of fresh blank nodes linked by
``rdf:first``/``rdf:rest`` and terminated by ``rdf:nil``.

- authors   -> bibo:authorList
- editors   -> bibo:editorList
- any other -> bibo:contributorList (role from the direct role predicate)

Every person is also linked from the document by its role predicate
(``dcterms:creator``, ``bibo:editor``, ...) so consumers that ignore lists
still see the contributors.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from rdflib import RDF, BNode, Graph, Literal
from rdflib.term import Node

from bibobridge.application.services.name_parser import parse_name
from bibobridge.domain import vocabulary as V
from bibobridge.domain.document import Contributor, ContributorRole
from bibobridge.domain.errors import ConversionError, InvalidFieldValue
from bibobridge.domain.person_name import PersonName

logger = logging.getLogger(__name__)

_LIST_ROLES = (
    (V.AUTHOR_LIST, ContributorRole.AUTHOR),
    (V.EDITOR_LIST, ContributorRole.EDITOR),
)
_OTHER_ROLES = tuple(
    role for role in ContributorRole if role not in (ContributorRole.AUTHOR, ContributorRole.EDITOR)
)


def build_list(graph: Graph, items: Iterable[Node]) -> Node:
    """Add an RDF list of ``items`` to ``graph`` and return its head (``rdf:nil`` when empty)."""
    head: Node = RDF.nil
    for item in reversed(list(items)):
        node = BNode()
        graph.add((node, RDF.first, item))
        graph.add((node, RDF.rest, head))
        head = node
    return head


def walk_list(graph: Graph, head: Node) -> List[Node]:
    """
    Members of the RDF list starting at ``head``, in order.

    Raises:
        InvalidFieldValue: the list is cyclic or a node lacks first/rest
    """
    items: List[Node] = []
    seen = set()
    node: Optional[Node] = head
    while node != RDF.nil:
        if node is None:
            raise InvalidFieldValue("rdf:rest", str(head), "list does not end in rdf:nil")
        if node in seen:
            raise InvalidFieldValue("rdf:rest", str(head), "cyclic list")
        seen.add(node)
        first = graph.value(node, RDF.first)
        if first is None:
            raise InvalidFieldValue("rdf:first", str(node), "list node without a member")
        items.append(first)
        node = graph.value(node, RDF.rest)
    return items


def _literal(graph: Graph, subject: Node, predicate: Node) -> Optional[str]:
    value = graph.value(subject, predicate)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class OrderedRelationCodec:
    """Encode and decode a document's contributors as ordered RDF lists."""

    def encode(self, graph: Graph, subject: Node, contributors: Iterable[Contributor]) -> Dict[Node, Node]:
        """
        Add contributor statements for ``subject``.

        Returns:
            Map of list predicate to list head for every non-empty group
        """
        contributors = list(contributors)
        groups: Dict[Node, List[Node]] = {}
        for contributor in contributors:
            person = self._person_node(graph, contributor)
            graph.add((subject, V.ROLE_PREDICATES[contributor.role], person))
            if contributor.role == ContributorRole.AUTHOR:
                list_predicate = V.AUTHOR_LIST
            elif contributor.role == ContributorRole.EDITOR:
                list_predicate = V.EDITOR_LIST
            else:
                list_predicate = V.CONTRIBUTOR_LIST
            groups.setdefault(list_predicate, []).append(person)

        heads: Dict[Node, Node] = {}
        for list_predicate, people in groups.items():
            head = build_list(graph, people)
            graph.add((subject, list_predicate, head))
            heads[list_predicate] = head
        return heads

    @staticmethod
    def _person_node(graph: Graph, contributor: Contributor) -> Node:
        name = contributor.name
        person = BNode()
        graph.add((person, RDF.type, V.PERSON))
        graph.add((person, V.NAME, Literal(name.full_name)))
        for predicate, value in (
            (V.GIVEN_NAME, name.given_name),
            (V.FAMILY_NAME, name.family_name),
            (V.MIDDLE_NAME, name.middle_name),
            (V.NAME_PARTICLE, name.name_particle),
            (V.NAME_SUFFIX, name.suffix),
            (V.AFFILIATION, contributor.affiliation),
        ):
            if value:
                graph.add((person, predicate, Literal(value)))
        return person

    def decode(self, graph: Graph, subject: Node) -> List[Contributor]:
        """Contributors of ``subject``: authors, then editors, then everyone else."""
        contributors: List[Contributor] = []
        for list_predicate, role in _LIST_ROLES:
            head = graph.value(subject, list_predicate)
            if head is not None:
                members = walk_list(graph, head)
            else:
                members = self._sorted_people(graph, graph.objects(subject, V.ROLE_PREDICATES[role]))
            contributors.extend(self._contributors(graph, members, lambda _person, r=role: r))

        head = graph.value(subject, V.CONTRIBUTOR_LIST)
        if head is not None:
            members = walk_list(graph, head)
            contributors.extend(
                self._contributors(graph, members, lambda person: self._role_of(graph, subject, person))
            )
        else:
            for role in _OTHER_ROLES:
                members = self._sorted_people(graph, graph.objects(subject, V.ROLE_PREDICATES[role]))
                contributors.extend(self._contributors(graph, members, lambda _person, r=role: r))
        return contributors

    def _contributors(self, graph: Graph, members: List[Node], role_of) -> List[Contributor]:
        out = []
        for member in members:
            contributor = self._read_person(graph, member, role_of(member))
            if contributor is not None:
                out.append(contributor)
        return out

    @staticmethod
    def _role_of(graph: Graph, subject: Node, person: Node) -> ContributorRole:
        for role in _OTHER_ROLES:
            if (subject, V.ROLE_PREDICATES[role], person) in graph:
                return role
        return ContributorRole.CONTRIBUTOR

    @staticmethod
    def _sorted_people(graph: Graph, people: Iterable[Node]) -> List[Node]:
        # Unordered links carry no sequence; sort for stable output.
        return sorted(people, key=lambda p: (_literal(graph, p, V.NAME) or str(p), str(p)))

    @staticmethod
    def _read_person(graph: Graph, person: Node, role: ContributorRole) -> Optional[Contributor]:
        if isinstance(person, Literal):
            text = str(person).strip()
            if not text:
                return None
            return Contributor(name=parse_name(text), role=role)

        given = _literal(graph, person, V.GIVEN_NAME)
        family = _literal(graph, person, V.FAMILY_NAME)
        full_name = _literal(graph, person, V.NAME) or " ".join(p for p in (given, family) if p)
        if not full_name:
            logger.debug(f"Skipping contributor {person} without a name")
            return None
        try:
            name = PersonName(
                full_name=full_name,
                given_name=given,
                middle_name=_literal(graph, person, V.MIDDLE_NAME),
                name_particle=_literal(graph, person, V.NAME_PARTICLE),
                family_name=family,
                suffix=_literal(graph, person, V.NAME_SUFFIX),
            )
        except ConversionError as exc:
            logger.debug(f"Skipping contributor {person}: {exc}")
            return None
        return Contributor(name=name, role=role, affiliation=_literal(graph, person, V.AFFILIATION))
