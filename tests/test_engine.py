"""
Tests for the diagnostic engine.

Run: python3 -m pytest tests/test_engine.py -v
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostscope.core.diagnostics.engine import STAGES, CollectionResult, DiagnosticEngine
from hostscope.utils.logging_config import LoggingContext

from conftest import FIXED_NOW, FULL_HOST_RESPONSES, access_denied


def make_engine(make_executor, responses, **kwargs):
    return DiagnosticEngine(executor=make_executor(responses), use_local_probe=False, **kwargs)


class TestDiagnosticEngine:
    """End-to-end collection with a scripted provider."""

    def test_full_run(self, make_executor):
        result = make_engine(make_executor, FULL_HOST_RESPONSES).run(days=3, now=FIXED_NOW)
        assert isinstance(result, CollectionResult)
        data = result.data
        assert data.hardware.computer_name == "HOST1"
        assert len(data.reliability) == 2
        assert len(data.events) == 3
        assert data.collected_at == FIXED_NOW
        assert data.performance.critical_issues_count == 1
        assert result.event_analysis.error_count == 2
        # Network adapters have no WMI tier and fall back without a probe
        assert [w.domain for w in result.warnings] == ["network adapters"]

    def test_progress_callbacks(self, make_executor):
        engine = make_engine(make_executor, FULL_HOST_RESPONSES)
        calls = []
        engine.register_progress_callback(lambda stage, i, n: calls.append((stage, i, n)))
        engine.run(days=1, now=FIXED_NOW)
        assert calls == [(stage, i + 1, len(STAGES)) for i, stage in enumerate(STAGES)]

    def test_callback_errors_ignored(self, make_executor):
        engine = make_engine(make_executor, FULL_HOST_RESPONSES)

        def broken(stage, i, n):
            raise RuntimeError("display gone")

        engine.register_progress_callback(broken)
        result = engine.run(days=1, now=FIXED_NOW)
        assert result.data.performance is not None

    def test_everything_unavailable(self, make_executor):
        """Test a host with no working queries still yields a full snapshot."""
        result = make_engine(make_executor, {'reliability_records': access_denied}).run(days=3, now=FIXED_NOW)
        assert result.degraded
        assert result.access_denied
        assert len(result.data.hardware.usb_devices) == 2
        assert len(result.data.reliability) == 3
        assert len(result.data.events) == 6
        assert 0 <= result.data.performance.system_health_score <= 100

    def test_negative_days(self, make_executor):
        with pytest.raises(ValueError):
            make_engine(make_executor, {}).run(days=-1)

    def test_logging_context(self, make_executor, tmp_path):
        """Test components log through the supplied context."""
        log_file = tmp_path / "engine.log"
        with LoggingContext(level="DEBUG", log_file=log_file, console=False) as ctx:
            make_engine(make_executor, FULL_HOST_RESPONSES, logging_context=ctx).run(days=1, now=FIXED_NOW)
        text = log_file.read_text(encoding="utf-8")
        assert "Collection complete" in text
