from bibobridge.application.services.citation_keys import (
    CitationKeyGenerator,
    CitationKeyRegistry,
    KeyStrategy,
)
from bibobridge.application.services.field_mapper import TypeAndFieldMapper
from bibobridge.application.services.name_parser import parse_name, parse_names

__all__ = [
    "CitationKeyGenerator",
    "CitationKeyRegistry",
    "KeyStrategy",
    "TypeAndFieldMapper",
    "parse_name",
    "parse_names",
]
