"""
Tests for HTML and JSON report writing.

Run: python3 -m pytest tests/test_report.py -v
"""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostscope.core.diagnostics.models import LogEvent, Severity
from hostscope.core.diagnostics.report import (
    HTML_FILENAME,
    JSON_FILENAME,
    MAX_EVENT_ROWS,
    ReportError,
    SerializationError,
    WriteError,
    render_html,
    truncate_message,
    write_reports,
)

from conftest import FIXED_NOW
from test_models import sample_snapshot


class TestTruncateMessage:
    """Tests for truncate_message."""

    def test_short(self):
        assert truncate_message("short") == "short"

    def test_long(self):
        text = "x" * 150
        assert truncate_message(text) == "x" * 100 + "..."

    def test_none(self):
        assert truncate_message(None) == ""


class TestRenderHtml:
    """Tests for render_html."""

    def test_contains_summary(self):
        html = render_html(sample_snapshot())
        assert "<!DOCTYPE html>" in html
        assert "HOST" in html
        assert "Logitech" in html

    def test_grade_color(self):
        data = sample_snapshot()
        html = render_html(data)
        assert data.performance.health_color in html
        assert data.performance.health_grade in html

    def test_escapes_markup(self):
        """Test untrusted text is HTML-escaped."""
        data = sample_snapshot()
        data.hardware.computer_name = "<script>alert(1)</script>"
        html = render_html(data)
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html

    def test_event_rows_capped(self):
        data = sample_snapshot()
        data.events = [
            LogEvent(FIXED_NOW, "System", "Src", Severity.WARNING, i, f"event-marker-{i:04d}")
            for i in range(MAX_EVENT_ROWS + 20)
        ]
        html = render_html(data)
        assert "event-marker-0099" in html
        assert "event-marker-0100" not in html

    def test_render_failure(self):
        data = sample_snapshot()
        with patch('hostscope.core.diagnostics.report._environment', side_effect=RuntimeError("broken")):
            with pytest.raises(SerializationError):
                render_html(data)


class TestWriteReports:
    """Tests for write_reports."""

    def test_html(self, tmp_path):
        written = write_reports(sample_snapshot(), "html", tmp_path)
        assert written == [tmp_path / HTML_FILENAME]
        assert (tmp_path / HTML_FILENAME).read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

    def test_json(self, tmp_path):
        write_reports(sample_snapshot(), "json", tmp_path)
        data = json.loads((tmp_path / JSON_FILENAME).read_text(encoding="utf-8"))
        assert data["hardware"]["computerName"] == "HOST"

    def test_both(self, tmp_path):
        written = write_reports(sample_snapshot(), "both", tmp_path / "out")
        assert [p.name for p in written] == [HTML_FILENAME, JSON_FILENAME]

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ValueError):
            write_reports(sample_snapshot(), "pdf", tmp_path)

    def test_unwritable_target(self, tmp_path):
        """Test a file in place of the output directory is a WriteError."""
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory")
        with pytest.raises(WriteError) as exc_info:
            write_reports(sample_snapshot(), "json", blocker)
        assert isinstance(exc_info.value, ReportError)

    def test_html_failure_aborts_json(self, tmp_path):
        """Test combined mode stops after a failed HTML write."""
        with patch('hostscope.core.diagnostics.report.render_html', side_effect=SerializationError("boom")):
            with pytest.raises(SerializationError) as exc_info:
                write_reports(sample_snapshot(), "both", tmp_path)
        assert exc_info.value.path == tmp_path / HTML_FILENAME
        assert not (tmp_path / JSON_FILENAME).exists()
