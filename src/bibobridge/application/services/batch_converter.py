# src/bibobridge/application/services/batch_converter.py
"""
Parallel batch conversion.

Record and document conversions share no mutable state, so a batch is
fanned out over a thread pool. Results keep input order; failures are
collected with their index and never stop the batch.

Citation keys are assigned after the parallel phase, in input order, so a
batch always produces the same keys.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from bibobridge.application.services.citation_keys import CitationKeyRegistry
from bibobridge.application.workflows.bibo_conversion import BibliographicConverter
from bibobridge.domain.document import BibliographicDocument
from bibobridge.domain.errors import ConversionError
from bibobridge.domain.record import BibTeXRecord
from bibobridge.domain.result import ConversionResult
from bibobridge.utils.logging_config import Logger, LogFiles, set_trace_id

logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")


@dataclass
class ConversionStatistics:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    errors_by_kind: Dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def success_rate(self) -> float:
        return self.succeeded / self.total if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "success_rate": round(self.success_rate, 4),
            "by_type": dict(self.by_type),
            "errors_by_kind": dict(self.errors_by_kind),
            "duration_seconds": round(self.duration_seconds, 4),
        }


@dataclass(frozen=True)
class BatchFailure:
    index: int
    error: ConversionError

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, **self.error.to_dict()}


@dataclass
class BatchConversionResult(Generic[T]):
    successes: List[T] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)
    statistics: ConversionStatistics = field(default_factory=ConversionStatistics)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


class BatchConverter:
    """
    Thread-pool fan-out over a BibliographicConverter.

    Args:
        converter: converter to use; a default one when omitted
        max_workers: pool size; the converter settings' value when omitted
    """

    def __init__(self, converter: Optional[BibliographicConverter] = None, max_workers: Optional[int] = None):
        self.converter = converter or BibliographicConverter()
        self.max_workers = max_workers or self.converter.settings.max_workers

    def _run(
        self,
        items: Sequence[S],
        convert: Callable[[S], ConversionResult],
        type_of: Callable[[Any], str],
        label: str,
    ) -> BatchConversionResult:
        trace_id = set_trace_id()
        started = time.perf_counter()
        Logger.info(f"{label} batch of {len(items)} started", file=LogFiles.CONVERSION)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(convert, items))

        batch: BatchConversionResult = BatchConversionResult()
        by_type: Counter = Counter()
        errors: Counter = Counter()
        for index, result in enumerate(results):
            if result.success:
                batch.successes.append(result.value)
                by_type[type_of(result.value)] += 1
            else:
                batch.failures.append(BatchFailure(index, result.error))
                errors[type(result.error).__name__] += 1
                Logger.error(f"{label} item #{index} failed: {result.error}", file=LogFiles.ERROR)

        batch.statistics = ConversionStatistics(
            total=len(items),
            succeeded=len(batch.successes),
            failed=len(batch.failures),
            by_type=dict(by_type),
            errors_by_kind=dict(errors),
            duration_seconds=time.perf_counter() - started,
        )
        Logger.info(
            f"{label} batch finished: {batch.statistics.succeeded}/{batch.statistics.total} succeeded "
            f"in {batch.statistics.duration_seconds:.3f}s",
            file=LogFiles.CONVERSION,
        )
        logger.info(f"[{trace_id}] {label}: {batch.statistics.to_dict()}")
        return batch

    def convert_records(self, records: Sequence[BibTeXRecord]) -> BatchConversionResult[BibliographicDocument]:
        return self._run(
            list(records),
            self.converter.convert_to_bibo,
            lambda document: document.document_type.value,
            "to-bibo",
        )

    def convert_documents(self, documents: Sequence[BibliographicDocument]) -> BatchConversionResult[BibTeXRecord]:
        documents = list(documents)
        # Per-item registries in the pool; the shared registry assigns final keys below.
        batch = self._run(
            documents,
            lambda document: self.converter.convert_from_bibo(document, self.converter.new_registry()),
            lambda record: record.entry_type,
            "from-bibo",
        )
        failed = {failure.index for failure in batch.failures}
        registry: CitationKeyRegistry = self.converter.new_registry()
        rekeyed = []
        converted = iter(batch.successes)
        for index, document in enumerate(documents):
            if index in failed:
                continue
            record = next(converted)
            key = registry.resolve(document, document.identifier)
            rekeyed.append(record.model_copy(update={"key": key}))
        batch.successes = rekeyed
        return batch
