# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src/ to sys.path so `import bibobridge` works without installation.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from bibobridge.domain.record import BibTeXRecord  # noqa: E402
from bibobridge.utils.logging_config import Logger, clear_trace_id  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_log_dir(tmp_path):
    """Send file logs to a per-test directory."""
    Logger.close()
    Logger.init(base_dir=str(tmp_path / "logs"))
    yield
    Logger.close()
    clear_trace_id()


@pytest.fixture
def article_record():
    return BibTeXRecord(
        entry_type="article",
        key="gogh2020",
        fields={
            "title": "Caf{\\'e} Terrace at Night",
            "author": "Vincent van Gogh and Smith, John and Madonna",
            "journal": "Journal of Impressionism",
            "year": "2020",
            "month": "may",
            "volume": "12",
            "number": "3",
            "pages": "100--120",
            "doi": "10.1234/jimp.2020.12",
            "issn": "0378-5955",
            "keywords": "painting, night; cafe",
        },
    )


@pytest.fixture
def conference_record():
    return BibTeXRecord(
        entry_type="inproceedings",
        key="lee2019",
        fields={
            "title": "Graph Methods",
            "author": "Lee, Ann",
            "booktitle": "Proceedings of GraphConf",
            "address": "Vienna, Austria",
            "organization": "ACM",
            "publisher": "ACM Press",
            "year": "2019",
        },
    )
