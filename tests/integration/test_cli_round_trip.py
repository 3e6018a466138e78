"""
End-to-end: JSON records -> RDF file -> .bib text, for every RDF format.
"""

import json

import pytest

from bibobridge.presentation.cli.main import run_cli

RECORDS = [
    {
        "entry_type": "article",
        "key": "gogh1888",
        "fields": {
            "title": "Caf{\\'e} Terrace at Night",
            "author": "Vincent van Gogh and Gauguin, Paul and {Barnes and Noble}",
            "journal": "Letters",
            "year": "1888",
            "month": "sep",
            "pages": "1--4",
            "doi": "10.1234/letters.1888",
        },
    },
    {
        "entry_type": "mastersthesis",
        "key": "roe2019",
        "fields": {"title": "On Lists", "author": "Roe, Rick", "school": "TU Wien", "year": "2019"},
    },
    {
        "entry_type": "inproceedings",
        "fields": {
            "title": "Ordered Graphs",
            "author": "Lee, Ann",
            "booktitle": "Proc. GraphConf",
            "address": "Vienna",
            "year": "2019",
        },
    },
]


@pytest.mark.parametrize("suffix", [".ttl", ".rdf", ".jsonld", ".nt", ".nq", ".trig"])
def test_records_survive_rdf_round_trip(tmp_path, capsys, monkeypatch, suffix):
    monkeypatch.delenv("BIBOBRIDGE_KEY_STRATEGY", raising=False)
    source = tmp_path / "records.json"
    source.write_text(json.dumps(RECORDS), encoding="utf-8")
    graph = tmp_path / f"refs{suffix}"
    bib = tmp_path / "refs.bib"

    assert run_cli(["to-rdf", str(source), "-f", _format_for(suffix), "-o", str(graph)]) == 0
    assert run_cli(["to-bibtex", str(graph), "-o", str(bib)]) == 0
    capsys.readouterr()

    text = bib.read_text(encoding="utf-8")
    assert text.count("@") == 3
    assert "@article{gogh1888," in text
    assert "  author = {van Gogh, Vincent and Gauguin, Paul and {Barnes and Noble}}," in text
    assert "  title = {Caf{\\'e} Terrace at Night}," in text
    assert "  month = {sep}," in text
    assert "@mastersthesis{roe2019," in text
    assert "  school = {TU Wien}," in text
    assert "@inproceedings{lee_2019," in text
    assert "  address = {Vienna}," in text


def _format_for(suffix):
    return {".ttl": "turtle", ".rdf": "xml", ".jsonld": "json-ld", ".nt": "nt", ".nq": "nquads", ".trig": "trig"}[suffix]
