"""
CLI entry point.

Subcommands:
    to-rdf     tokenized BibTeX records (JSON) -> RDF
    to-bibtex  RDF graph -> .bib text
    validate   check records without converting them
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from rdflib import Graph

from bibobridge.application.services.batch_converter import BatchConverter
from bibobridge.application.workflows.bibo_conversion import BibliographicConverter
from bibobridge.infrastructure.bibtex.bibtex_writer import format_records
from bibobridge.infrastructure.bibtex.record_loader import load_records
from bibobridge.infrastructure.rdf.rdf_formats import RdfFormat, load_graph, serialize_graph
from bibobridge.utils.logging_config import Logger, LogFiles, set_trace_id
from bibobridge.utils.settings import load_settings

VERSION = "0.1.0"

# Load local .env so BIBOBRIDGE_* settings apply to CLI runs.
load_dotenv(find_dotenv(usecwd=True), override=False)

_FORMAT_CHOICES = [fmt.value for fmt in RdfFormat]


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bibobridge",
        description="bibobridge - BibTeX <-> BIBO RDF converter",
    )
    parser.add_argument("--config", "-c", help="YAML settings file")
    parser.add_argument("--version", "-v", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    to_rdf = subparsers.add_parser("to-rdf", help="Convert JSON records to RDF")
    to_rdf.add_argument("records", help="JSON file with tokenized BibTeX records")
    to_rdf.add_argument("--format", "-f", default=RdfFormat.TURTLE.value, choices=_FORMAT_CHOICES)
    to_rdf.add_argument("--output", "-o", help="Output file (default: stdout)")

    to_bibtex = subparsers.add_parser("to-bibtex", help="Convert an RDF graph to BibTeX")
    to_bibtex.add_argument("graph", help="RDF file")
    to_bibtex.add_argument("--format", "-f", choices=_FORMAT_CHOICES, help="Input format (default: from suffix)")
    to_bibtex.add_argument("--output", "-o", help="Output file (default: stdout)")

    validate = subparsers.add_parser("validate", help="Validate JSON records")
    validate.add_argument("records", help="JSON file with tokenized BibTeX records")
    validate.add_argument("--json", action="store_true", help="Print the report as JSON")

    return parser


def _emit(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Wrote {output}", file=sys.stderr)
    else:
        sys.stdout.write(text)


def _print_failures(batch) -> None:
    for failure in batch.failures:
        print(f"#{failure.index}: {failure.error}", file=sys.stderr)


def _run_to_rdf(parsed: argparse.Namespace, converter: BibliographicConverter) -> int:
    records = load_records(parsed.records)
    batch = BatchConverter(converter).convert_records(records)

    graph = Graph()
    for document in batch.successes:
        converter.to_graph(document, graph)
    _emit(serialize_graph(graph, parsed.format), parsed.output)

    _print_failures(batch)
    stats = batch.statistics
    print(f"converted {stats.succeeded}/{stats.total} records", file=sys.stderr)
    return 1 if batch.has_failures else 0


def _run_to_bibtex(parsed: argparse.Namespace, converter: BibliographicConverter) -> int:
    graph = load_graph(parsed.graph, parsed.format)
    documents = converter.documents_from_graph(graph)
    batch = BatchConverter(converter).convert_documents(documents)
    _emit(format_records(batch.successes), parsed.output)

    _print_failures(batch)
    print(f"exported {batch.statistics.succeeded} of {len(documents)} documents", file=sys.stderr)
    return 1 if batch.has_failures else 0


def _run_validate(parsed: argparse.Namespace, converter: BibliographicConverter) -> int:
    records = load_records(parsed.records)
    report = []
    for index, record in enumerate(records):
        errors = converter.mapper.validate_record(record)
        report.append(
            {
                "index": index,
                "key": record.key,
                "valid": not errors,
                "errors": [e.to_dict() for e in errors],
            }
        )

    invalid = sum(1 for row in report if not row["valid"])
    if parsed.json:
        print(json.dumps(report, ensure_ascii=False, indent=2))
    else:
        for row in report:
            status = "ok" if row["valid"] else "invalid"
            print(f"#{row['index']} {row['key'] or '-'}: {status}")
            for error in row["errors"]:
                print(f"    {error['error']}: {error['message']}")
        print(f"{len(report) - invalid}/{len(report)} records valid")
    return 1 if invalid else 0


def run_cli(args: Optional[list] = None) -> int:
    """
    Run the CLI.

    Args:
        args: command line arguments (default: sys.argv)

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"bibobridge v{VERSION}")
        return 0

    if not parsed.command:
        parser.print_help()
        return 0

    trace_id = set_trace_id()
    Logger.info(f"Command {parsed.command} started", file=LogFiles.CLI)
    try:
        converter = BibliographicConverter(load_settings(parsed.config))
        if parsed.command == "to-rdf":
            return _run_to_rdf(parsed, converter)
        if parsed.command == "to-bibtex":
            return _run_to_bibtex(parsed, converter)
        if parsed.command == "validate":
            return _run_validate(parsed, converter)
        return 0

    except Exception as e:
        Logger.error(f"Command {parsed.command} failed: {e}", file=LogFiles.ERROR)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        Logger.info(f"Command {parsed.command} finished ({trace_id})", file=LogFiles.CLI)


if __name__ == "__main__":
    sys.exit(run_cli())
