# src/bibobridge/utils/logging_config.py
"""
Rotating per-topic log files for conversion batches and CLI runs.

Each line carries the trace id of the batch that wrote it, so one run can be
followed across conversion/, cli/ and errors/.

    from bibobridge.utils.logging_config import Logger, LogFiles

    Logger.info("Batch started", file=LogFiles.CONVERSION)
    Logger.error("Record #3 failed", file=LogFiles.ERROR)

Environment:
    BIBOBRIDGE_LOG_LEVEL         minimum level written (default INFO)
    BIBOBRIDGE_LOG_DIR           root directory of the log tree (default logs/)
    BIBOBRIDGE_LOG_MAX_BYTES     rotation threshold per file (default 10 MB)
    BIBOBRIDGE_LOG_BACKUP_COUNT  rotated copies kept per file (default 5)
"""

from __future__ import annotations

import inspect
import logging
import os
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

import yaml

logger = logging.getLogger(__name__)

_trace_id_var: ContextVar[Optional[str]] = ContextVar("bibobridge_trace_id", default=None)

FALLBACK_FILE = "bibobridge.log"
LINE_TEMPLATE = "{when} [{level}] [{trace}] {source}:{line} - {text}"
TOPIC_FILE = Path(__file__).parent / "log_config.yaml"

_BUILTIN_TOPICS = {
    "conversion": "conversion/conversion.log",
    "cli": "cli/cli.log",
    "error": "errors/error.log",
}


def _read_topics() -> Dict[str, str]:
    topics = dict(_BUILTIN_TOPICS)
    if not TOPIC_FILE.exists():
        return topics
    try:
        with open(TOPIC_FILE, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"Ignoring unreadable log config {TOPIC_FILE}: {exc}")
        return topics
    if isinstance(loaded.get("files"), dict):
        topics.update(loaded["files"])
    return topics


class _TopicLookup(type):
    _topics: Optional[Dict[str, str]] = None

    def __getattr__(cls, name: str) -> str:
        if cls._topics is None:
            cls._topics = _read_topics()
        try:
            return cls._topics[name.lower()]
        except KeyError:
            raise AttributeError(f"No log file named '{name}' in {TOPIC_FILE.name}") from None


class LogFiles(metaclass=_TopicLookup):
    """Relative log paths by topic: ``LogFiles.CONVERSION``, ``LogFiles.CLI``, ``LogFiles.ERROR``."""


class _FileSink:
    """Settings plus the open handlers, one per relative path."""

    def __init__(self) -> None:
        self.ready = False
        self.threshold = logging.INFO
        self.root = Path("logs")
        self.max_bytes = 10 * 1024 * 1024
        self.backups = 5
        self.handlers: Dict[Path, RotatingFileHandler] = {}

    def configure(self, level, base_dir, max_bytes, backup_count) -> None:
        env = os.environ
        level_name = (level or env.get("BIBOBRIDGE_LOG_LEVEL", "INFO")).upper()
        threshold = logging.getLevelName(level_name)
        self.threshold = threshold if isinstance(threshold, int) else logging.INFO
        self.root = Path(base_dir or env.get("BIBOBRIDGE_LOG_DIR", "logs"))
        self.max_bytes = max_bytes or int(env.get("BIBOBRIDGE_LOG_MAX_BYTES", self.max_bytes))
        self.backups = backup_count or int(env.get("BIBOBRIDGE_LOG_BACKUP_COUNT", self.backups))
        self.ready = True

    def handler_for(self, file: Optional[str]) -> RotatingFileHandler:
        path = self.root / (file or FALLBACK_FILE)
        if path not in self.handlers:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.handlers[path] = RotatingFileHandler(
                str(path), maxBytes=self.max_bytes, backupCount=self.backups, encoding="utf-8"
            )
        return self.handlers[path]

    def emit(self, level: int, text: str, file: Optional[str], caller) -> None:
        if not self.ready:
            self.configure(None, None, None, None)
        if level < self.threshold:
            return
        line = LINE_TEMPLATE.format(
            when=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            level=logging.getLevelName(level),
            trace=_trace_id_var.get() or "-",
            source=os.path.basename(caller.f_code.co_filename) if caller else "unknown",
            line=caller.f_lineno if caller else 0,
            text=text,
        )
        handler = self.handler_for(file)
        handler.stream.write(line + "\n")
        handler.stream.flush()

    def shutdown(self) -> None:
        for handler in self.handlers.values():
            handler.close()
        self.handlers.clear()
        self.ready = False


_sink = _FileSink()


def _caller():
    frame = inspect.currentframe()
    # this helper, then the Logger method
    return frame.f_back.f_back if frame and frame.f_back else None


class Logger:
    """Writes to the topic files; the first write configures from the environment."""

    @staticmethod
    def init(
        level: Optional[str] = None,
        base_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        """Explicit settings win over the BIBOBRIDGE_LOG_* variables. A second call is a no-op."""
        if not _sink.ready:
            _sink.configure(level, base_dir, max_bytes, backup_count)

    @staticmethod
    def info(message: str, file: Optional[str] = None) -> None:
        _sink.emit(logging.INFO, message, file, _caller())

    @staticmethod
    def error(message: str, file: Optional[str] = None) -> None:
        _sink.emit(logging.ERROR, message, file, _caller())

    @staticmethod
    def close() -> None:
        """Close every handler; the next init or write starts fresh."""
        _sink.shutdown()


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Bind a trace id to the current context, minting ``conv-<12 hex>`` when none is given."""
    tid = trace_id or f"conv-{uuid.uuid4().hex[:12]}"
    _trace_id_var.set(tid)
    return tid


def clear_trace_id() -> None:
    _trace_id_var.set(None)
