# src/bibobridge/infrastructure/bibtex/bibtex_writer.py
"""
Render BibTeXRecord values as ``.bib`` text.

Field values are written inside braces as they are; escaping already
happened when the record was built from a document.
"""

from __future__ import annotations

from typing import Iterable, List

from bibobridge.domain.record import BibTeXRecord

FIELD_ORDER = (
    "title",
    "subtitle",
    "author",
    "editor",
    "translator",
    "advisor",
    "journal",
    "booktitle",
    "year",
    "month",
    "day",
    "volume",
    "number",
    "pages",
    "publisher",
    "school",
    "institution",
    "organization",
    "address",
    "edition",
    "series",
    "type",
    "howpublished",
    "doi",
    "isbn",
    "issn",
    "eprint",
    "url",
    "keywords",
    "language",
    "abstract",
    "note",
)
_RANK = {name: idx for idx, name in enumerate(FIELD_ORDER)}


def _field_sort_key(name: str):
    return (_RANK.get(name, len(FIELD_ORDER)), name)


def format_record(record: BibTeXRecord) -> str:
    key = record.key or ""
    lines = [f"@{record.entry_type}{{{key},"]
    for name in sorted(record.fields, key=_field_sort_key):
        value = record.fields[name]
        if not value.strip():
            continue
        lines.append(f"  {name} = {{{value}}},")
    lines.append("}")
    return "\n".join(lines)


def format_records(records: Iterable[BibTeXRecord]) -> str:
    blocks: List[str] = [format_record(r) for r in records]
    return "\n\n".join(blocks) + ("\n" if blocks else "")
