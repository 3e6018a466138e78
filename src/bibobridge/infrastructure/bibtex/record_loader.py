# src/bibobridge/infrastructure/bibtex/record_loader.py
"""
Load tokenized BibTeX records from JSON.

Expected shape::

    [{"entry_type": "article", "key": "smith2020", "fields": {"title": "..."}}, ...]

A single object is accepted as a one-record list.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Union

from pydantic import ValidationError

from bibobridge.domain.record import BibTeXRecord

logger = logging.getLogger(__name__)


class RecordLoadError(ValueError):
    """Raised when the input cannot be turned into records."""


def records_from_data(data: Any) -> List[BibTeXRecord]:
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise RecordLoadError(f"Expected a list of records, got {type(data).__name__}")

    records: List[BibTeXRecord] = []
    for index, item in enumerate(data):
        try:
            records.append(BibTeXRecord.model_validate(item))
        except ValidationError as exc:
            raise RecordLoadError(f"Record #{index} is invalid: {exc.errors()[0]['msg']}") from exc
    return records


def load_records(path: Union[str, Path]) -> List[BibTeXRecord]:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RecordLoadError(f"{path} is not valid JSON: {exc}") from exc
    records = records_from_data(data)
    logger.info(f"Loaded {len(records)} records from {path}")
    return records
