from bibobridge.infrastructure.rdf.graph_codec import GraphCodec
from bibobridge.infrastructure.rdf.ordered_relation_codec import OrderedRelationCodec, walk_list
from bibobridge.infrastructure.rdf.rdf_formats import (
    RdfFormat,
    detect_format,
    load_graph,
    parse_graph,
    serialize_graph,
)

__all__ = [
    "GraphCodec",
    "OrderedRelationCodec",
    "walk_list",
    "RdfFormat",
    "detect_format",
    "load_graph",
    "parse_graph",
    "serialize_graph",
]
