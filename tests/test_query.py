"""
Query Layer Tests

Tests the bounded query executor, the WMIC provider and the outcome types.

Run: python3 -m pytest tests/test_query.py -v
"""

import subprocess
import sys
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostscope.commands.base import (
    AccessDeniedError,
    ExecutionFailedError,
    QueryError,
    QueryOutcome,
    QueryStatus,
    QueryTimeoutError,
    SystemQuery,
    is_access_denied,
)
from hostscope.commands.query import QueryExecutor, WmicQueryProvider, decode_output

from conftest import FakeQueryProvider, access_denied, hang_until_cancelled

CPU_QUERY = SystemQuery(name="processor", command="wmic", args=("cpu", "get", "Name", "/format:csv"),
                        columns=("Name",))


class TestSystemQuery:
    """Test SystemQuery descriptor."""

    def test_argv(self):
        """Test argv joins command and args."""
        assert CPU_QUERY.argv == ["wmic", "cpu", "get", "Name", "/format:csv"]

    def test_empty_args_rejected(self):
        """Test a query without arguments is invalid."""
        with pytest.raises(ValueError):
            SystemQuery(name="bad", command="wmic", args=())


class TestQueryOutcome:
    """Test QueryOutcome constructors and conversion to exceptions."""

    def test_ok(self):
        """Test a successful outcome carries text only."""
        outcome = QueryOutcome.ok("q", "data")
        assert outcome.success is True
        assert bool(outcome) is True
        assert outcome.text == "data"
        assert outcome.error is None

    def test_fail(self):
        """Test a failed outcome carries an error only."""
        outcome = QueryOutcome.fail("q", "boom")
        assert outcome.success is False
        assert outcome.status == QueryStatus.EXECUTION_FAILED
        assert outcome.text is None

    def test_text_and_error_exclusive(self):
        """Test an outcome cannot carry both text and error."""
        with pytest.raises(ValueError):
            QueryOutcome(query="q", status=QueryStatus.SUCCESS, text="x", error="y")

    def test_timeout_message(self):
        """Test the timeout outcome mentions the bound."""
        outcome = QueryOutcome.timeout("q", 30)
        assert outcome.status == QueryStatus.TIMEOUT
        assert "30" in outcome.error

    @pytest.mark.parametrize("outcome,exc_type", [
        (QueryOutcome.access_denied("q", "Access is denied"), AccessDeniedError),
        (QueryOutcome.timeout("q", 1), QueryTimeoutError),
        (QueryOutcome.fail("q", "exit code 1"), ExecutionFailedError),
        (QueryOutcome.cancelled("q"), QueryTimeoutError),
    ])
    def test_raise_for_status(self, outcome, exc_type):
        """Test each failure status raises its own exception type."""
        with pytest.raises(exc_type) as exc_info:
            outcome.raise_for_status()
        assert exc_info.value.outcome is outcome
        assert exc_info.value.status == outcome.status

    def test_raise_for_status_success(self):
        """Test a success passes through unchanged."""
        outcome = QueryOutcome.ok("q", "text")
        assert outcome.raise_for_status() is outcome


class TestAccessDeniedDetection:
    """Test access-denial marker matching."""

    @pytest.mark.parametrize("text", [
        "ERROR:\r\nDescription = Access is denied.",
        "ACCESS DENIED",
        "wmic: access denied for namespace root\\cimv2",
    ])
    def test_markers_match_case_insensitively(self, text):
        assert is_access_denied(text) is True

    @pytest.mark.parametrize("text", ["", None, "Invalid class", "Node - HOST1"])
    def test_other_errors_do_not_match(self, text):
        assert is_access_denied(text) is False


class TestDecodeOutput:
    """Test decoding of command output."""

    def test_utf16_with_bom(self):
        """Test UTF-16 output as WMIC writes it when redirected."""
        data = "Node,Name\r\nHOST1,CPU\r\n".encode("utf-16")
        assert decode_output(data) == "Node,Name\r\nHOST1,CPU\r\n"

    def test_utf8(self):
        assert decode_output("Größe".encode("utf-8")) == "Größe"

    def test_latin1_fallback(self):
        assert decode_output(b"caf\xe9") == "café"

    def test_empty(self):
        assert decode_output(b"") == ""


class TestWmicQueryProvider:
    """Test the subprocess-backed provider."""

    def _proc(self, stdout=b"", stderr=b"", returncode=0):
        proc = MagicMock()
        proc.communicate.return_value = (stdout, stderr)
        proc.returncode = returncode
        return proc

    def test_success(self):
        """Test a zero exit returns stdout."""
        proc = self._proc(stdout=b"Node,Name\r\nHOST1,CPU\r\n")
        with patch('hostscope.commands.query.subprocess.Popen', return_value=proc) as popen:
            outcome = WmicQueryProvider().run(CPU_QUERY, threading.Event())
        assert outcome.success
        assert "HOST1,CPU" in outcome.text
        assert popen.call_args[0][0] == CPU_QUERY.argv

    def test_custom_executable(self):
        """Test the configured executable replaces the query command."""
        proc = self._proc(stdout=b"x")
        with patch('hostscope.commands.query.subprocess.Popen', return_value=proc) as popen:
            WmicQueryProvider(executable=r"C:\Windows\System32\wbem\WMIC.exe").run(CPU_QUERY, threading.Event())
        assert popen.call_args[0][0][0] == r"C:\Windows\System32\wbem\WMIC.exe"

    def test_access_denied(self):
        """Test denial text on stderr maps to ACCESS_DENIED."""
        proc = self._proc(stderr=b"ERROR:\r\nDescription = Access is denied.\r\n", returncode=1)
        with patch('hostscope.commands.query.subprocess.Popen', return_value=proc):
            outcome = WmicQueryProvider().run(CPU_QUERY, threading.Event())
        assert outcome.status == QueryStatus.ACCESS_DENIED

    def test_nonzero_exit(self):
        """Test other failures map to EXECUTION_FAILED."""
        proc = self._proc(stderr=b"Invalid class\r\n", returncode=2147749911)
        with patch('hostscope.commands.query.subprocess.Popen', return_value=proc):
            outcome = WmicQueryProvider().run(CPU_QUERY, threading.Event())
        assert outcome.status == QueryStatus.EXECUTION_FAILED
        assert outcome.error == "Invalid class"

    def test_nonzero_exit_without_stderr(self):
        proc = self._proc(returncode=3)
        with patch('hostscope.commands.query.subprocess.Popen', return_value=proc):
            outcome = WmicQueryProvider().run(CPU_QUERY, threading.Event())
        assert outcome.error == "exit code 3"

    def test_missing_executable(self):
        """Test a missing tool is a launch failure, not an exception."""
        with patch('hostscope.commands.query.subprocess.Popen', side_effect=FileNotFoundError):
            outcome = WmicQueryProvider().run(CPU_QUERY, threading.Event())
        assert outcome.status == QueryStatus.EXECUTION_FAILED
        assert "not found" in outcome.error

    def test_cancel_kills_process(self):
        """Test a set cancellation event kills the child process."""
        proc = MagicMock()
        proc.communicate.side_effect = [
            subprocess.TimeoutExpired(cmd="wmic", timeout=0.01),
            (b"", b""),
        ]
        cancel = threading.Event()
        cancel.set()
        with patch('hostscope.commands.query.subprocess.Popen', return_value=proc):
            outcome = WmicQueryProvider(poll_interval=0.01).run(CPU_QUERY, cancel)
        proc.kill.assert_called_once()
        assert outcome.status == QueryStatus.CANCELLED

    def test_keeps_polling_until_done(self):
        """Test the provider waits through poll timeouts when not cancelled."""
        proc = MagicMock()
        proc.communicate.side_effect = [
            subprocess.TimeoutExpired(cmd="wmic", timeout=0.01),
            subprocess.TimeoutExpired(cmd="wmic", timeout=0.01),
            (b"done", b""),
        ]
        proc.returncode = 0
        with patch('hostscope.commands.query.subprocess.Popen', return_value=proc):
            outcome = WmicQueryProvider(poll_interval=0.01).run(CPU_QUERY, threading.Event())
        assert outcome.text == "done"
        proc.kill.assert_not_called()


class TestQueryExecutor:
    """Test timeout-bounded execution."""

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            QueryExecutor(FakeQueryProvider(), timeout=0)

    def test_success_records_duration(self):
        """Test a successful query returns its text with a duration."""
        executor = QueryExecutor(FakeQueryProvider({'processor': "Node,Name\nH,CPU\n"}), timeout=2)
        outcome = executor.execute(CPU_QUERY)
        assert outcome.success
        assert outcome.duration_ms is not None

    def test_run_returns_text(self):
        executor = QueryExecutor(FakeQueryProvider({'processor': "text"}), timeout=2)
        assert executor.run(CPU_QUERY) == "text"

    def test_run_raises_on_failure(self):
        """Test run() converts a failed outcome into a QueryError."""
        executor = QueryExecutor(FakeQueryProvider({'processor': access_denied}), timeout=2)
        with pytest.raises(AccessDeniedError):
            executor.run(CPU_QUERY)

    def test_timeout_returns_promptly(self):
        """Test a hung provider yields TIMEOUT within the bound."""
        executor = QueryExecutor(FakeQueryProvider({'processor': hang_until_cancelled}), timeout=0.1)
        start = time.monotonic()
        outcome = executor.execute(CPU_QUERY)
        assert outcome.status == QueryStatus.TIMEOUT
        assert time.monotonic() - start < 2

    def test_timeout_signals_cancellation(self):
        """Test the worker's cancellation event is set on timeout."""
        seen = {}
        released = threading.Event()

        def slow(query, cancel_event):
            seen['event'] = cancel_event
            cancel_event.wait(5)
            released.set()
            return QueryOutcome.ok(query.name, "late")

        executor = QueryExecutor(FakeQueryProvider({'processor': slow}), timeout=0.1)
        outcome = executor.execute(CPU_QUERY)
        assert outcome.status == QueryStatus.TIMEOUT
        assert released.wait(2)
        assert seen['event'].is_set()

    def test_timeout_raises_through_run(self):
        executor = QueryExecutor(FakeQueryProvider({'processor': hang_until_cancelled}), timeout=0.1)
        with pytest.raises(QueryTimeoutError):
            executor.run(CPU_QUERY)

    def test_provider_exception_becomes_failure(self):
        """Test an exception inside the provider is an EXECUTION_FAILED outcome."""
        executor = QueryExecutor(FakeQueryProvider({'processor': RuntimeError("kaput")}), timeout=2)
        outcome = executor.execute(CPU_QUERY)
        assert outcome.status == QueryStatus.EXECUTION_FAILED
        assert "kaput" in outcome.error

    def test_query_error_is_base(self):
        """Test all query exceptions share the QueryError base."""
        executor = QueryExecutor(FakeQueryProvider(), timeout=2)
        with pytest.raises(QueryError):
            executor.run(CPU_QUERY)
