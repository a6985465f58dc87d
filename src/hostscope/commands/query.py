"""
Bounded execution of external system queries.

A QueryProvider knows how to run one SystemQuery against the operating
system. The QueryExecutor runs the provider on a dedicated worker thread
and waits on a bounded receive, so a hung command never blocks the
caller past the configured timeout.

Usage:
    executor = QueryExecutor(WmicQueryProvider(), timeout=30)
    outcome = executor.execute(query)
    if outcome:
        print(outcome.text)
"""

import logging
import queue
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from .base import QueryOutcome, SystemQuery, is_access_denied

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 30.0

# How often a running child process checks the cancellation signal
POLL_INTERVAL = 0.25


class QueryProvider(ABC):
    """Runs a SystemQuery against the host and returns its raw outcome."""

    @abstractmethod
    def run(self, query: SystemQuery, cancel_event: threading.Event) -> QueryOutcome:
        """
        Execute the query.

        Implementations should return promptly once ``cancel_event`` is set
        and release any resources (child processes, handles) they hold.
        """


class WmicQueryProvider(QueryProvider):
    """Runs queries through the WMIC command-line tool."""

    def __init__(self, executable: Optional[str] = None, poll_interval: float = POLL_INTERVAL):
        self.executable = executable
        self.poll_interval = poll_interval

    def _argv(self, query: SystemQuery) -> list:
        argv = query.argv
        if self.executable:
            argv[0] = self.executable
        return argv

    def run(self, query: SystemQuery, cancel_event: threading.Event) -> QueryOutcome:
        argv = self._argv(query)
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError:
            return QueryOutcome.fail(query.name, f"{argv[0]} not found")
        except OSError as e:
            return QueryOutcome.fail(query.name, f"Failed to launch {argv[0]}: {e}")

        while True:
            try:
                stdout, stderr = proc.communicate(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel_event.is_set():
                    proc.kill()
                    proc.communicate()
                    logger.debug(f"Killed {argv[0]} for cancelled query {query.name}")
                    return QueryOutcome.cancelled(query.name)

        out_text = decode_output(stdout)
        err_text = decode_output(stderr).strip()

        if proc.returncode != 0:
            if is_access_denied(err_text):
                return QueryOutcome.access_denied(query.name, err_text)
            return QueryOutcome.fail(query.name, err_text or f"exit code {proc.returncode}")

        return QueryOutcome.ok(query.name, out_text)


def decode_output(data: bytes) -> str:
    """Decode command output, honouring the UTF-16 BOM WMIC emits when redirected."""
    if not data:
        return ""
    if data.startswith((b"\xff\xfe", b"\xfe\xff")):
        return data.decode("utf-16", errors="replace")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1", errors="replace")


class QueryExecutor:
    """
    Runs one query at a time under a hard timeout.

    Each call spawns a worker thread and waits on a single-slot queue. When
    the bound expires the caller gets a TIMEOUT outcome immediately and the
    worker is told to stop through its cancellation event. Results that
    arrive after the deadline are discarded.

    No retries happen here; substitution of sample data is the
    collector's job.
    """

    def __init__(
        self,
        provider: Optional[QueryProvider] = None,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.provider = provider or WmicQueryProvider()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def execute(self, query: SystemQuery) -> QueryOutcome:
        """Run a query and return its outcome within ``self.timeout`` seconds."""
        results: "queue.Queue[QueryOutcome]" = queue.Queue(maxsize=1)
        cancel_event = threading.Event()

        worker = threading.Thread(
            target=self._worker,
            args=(query, cancel_event, results),
            name=f"query-{query.name}",
            daemon=True,
        )

        self.logger.debug(f"Running query {query.name}: {query.describe()}")
        start = time.monotonic()
        worker.start()

        try:
            outcome = results.get(timeout=self.timeout)
        except queue.Empty:
            cancel_event.set()
            self.logger.warning(f"Query {query.name} timed out after {self.timeout:g}s")
            return QueryOutcome.timeout(query.name, self.timeout)

        duration = (time.monotonic() - start) * 1000
        outcome = replace(outcome, duration_ms=duration)

        if outcome.success:
            self.logger.debug(f"Query {query.name} finished in {duration:.0f}ms")
        else:
            self.logger.info(f"Query {query.name} failed ({outcome.status.value}): {outcome.error}")
        return outcome

    def run(self, query: SystemQuery) -> str:
        """Run a query and return its text, raising QueryError on failure."""
        return self.execute(query).raise_for_status().text

    def _worker(self, query: SystemQuery, cancel_event: threading.Event, results: queue.Queue):
        try:
            outcome = self.provider.run(query, cancel_event)
        except Exception as e:
            outcome = QueryOutcome.fail(query.name, f"{type(e).__name__}: {e}")

        if cancel_event.is_set():
            self.logger.debug(f"Discarding late result for query {query.name}")
            return

        try:
            results.put_nowait(outcome)
        except queue.Full:
            self.logger.debug(f"Dropping duplicate result for query {query.name}")
