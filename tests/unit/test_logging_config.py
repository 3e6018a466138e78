"""
File logger and trace id tests.
"""

import pytest

from bibobridge.utils.logging_config import (
    Logger,
    LogFiles,
    clear_trace_id,
    set_trace_id,
)


class TestLogFiles:
    def test_configured_names(self):
        assert LogFiles.CONVERSION == "conversion/conversion.log"
        assert LogFiles.error == "errors/error.log"

    def test_unknown_name_raises(self):
        with pytest.raises(AttributeError):
            LogFiles.AUDIT


class TestLogger:
    """Writes go to the per-test directory set up in conftest."""

    def test_message_written_with_trace_id(self, tmp_path):
        set_trace_id("conv-test")
        Logger.info("batch started", file=LogFiles.CONVERSION)
        text = (tmp_path / "logs" / "conversion" / "conversion.log").read_text(encoding="utf-8")
        assert "[INFO] [conv-test]" in text
        assert "batch started" in text
        assert "test_logging_config.py" in text

    def test_level_filter(self, tmp_path):
        Logger.close()
        Logger.init(level="error", base_dir=str(tmp_path / "logs"))
        Logger.info("quiet")
        Logger.error("loud")
        text = (tmp_path / "logs" / "bibobridge.log").read_text(encoding="utf-8")
        assert "quiet" not in text
        assert "[ERROR] [-]" in text
        assert "loud" in text


class TestTraceId:
    def test_generated_and_cleared(self, tmp_path):
        trace_id = set_trace_id()
        assert trace_id.startswith("conv-")
        assert len(trace_id) == len("conv-") + 12
        clear_trace_id()
        Logger.info("after clear")
        text = (tmp_path / "logs" / "bibobridge.log").read_text(encoding="utf-8")
        assert "[INFO] [-]" in text
