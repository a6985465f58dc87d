"""
Base classes for the query layer.

SystemQuery describes one external system-information command and
QueryOutcome is the uniform result every query execution produces.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# Phrase emitted on stderr by WMIC when the caller lacks privileges
ACCESS_DENIED_MARKERS = (
    "access is denied",
    "access denied",
)


class QueryStatus(Enum):
    """Query execution status."""
    SUCCESS = "success"
    ACCESS_DENIED = "access_denied"
    TIMEOUT = "timeout"
    EXECUTION_FAILED = "execution_failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SystemQuery:
    """
    Descriptor for a single external diagnostic query.

    Attributes:
        name: Short identifier used in logs and warnings (e.g. "usb_devices")
        command: Executable to launch (e.g. "wmic")
        args: Fixed argument list passed to the executable
        columns: Column names the query requests, in request order
    """
    name: str
    command: str
    args: Tuple[str, ...]
    columns: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.args:
            raise ValueError(f"Query '{self.name}' requires a non-empty argument list")

    @property
    def argv(self) -> list:
        """Full argument vector for subprocess."""
        return [self.command, *self.args]

    def describe(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class QueryOutcome:
    """
    Raw result of executing a SystemQuery.

    Exactly one of ``text`` or ``error`` is populated.

    Attributes:
        query: Name of the query that produced this outcome
        status: Detailed status enum
        text: Captured standard output (success only)
        error: Failure detail (failure only)
        duration_ms: Wall time spent waiting for the result
    """
    query: str
    status: QueryStatus
    text: Optional[str] = None
    error: Optional[str] = None
    duration_ms: Optional[float] = None

    def __post_init__(self):
        if (self.text is None) == (self.error is None):
            raise ValueError("QueryOutcome needs exactly one of text or error")

    @property
    def success(self) -> bool:
        return self.status == QueryStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, query: str, text: str, duration_ms: float = None) -> 'QueryOutcome':
        """Create a successful outcome."""
        return cls(query=query, status=QueryStatus.SUCCESS, text=text, duration_ms=duration_ms)

    @classmethod
    def fail(cls, query: str, error: str, duration_ms: float = None) -> 'QueryOutcome':
        """Create a generic execution failure."""
        return cls(query=query, status=QueryStatus.EXECUTION_FAILED, error=error or "unknown error",
                   duration_ms=duration_ms)

    @classmethod
    def access_denied(cls, query: str, error: str, duration_ms: float = None) -> 'QueryOutcome':
        """Create an access-denied outcome."""
        return cls(query=query, status=QueryStatus.ACCESS_DENIED, error=error or "access denied",
                   duration_ms=duration_ms)

    @classmethod
    def timeout(cls, query: str, seconds: float) -> 'QueryOutcome':
        """Create a timeout outcome."""
        return cls(
            query=query,
            status=QueryStatus.TIMEOUT,
            error=f"timed out after {seconds:g} seconds",
            duration_ms=seconds * 1000,
        )

    @classmethod
    def cancelled(cls, query: str) -> 'QueryOutcome':
        """Create an outcome for a query abandoned by its caller."""
        return cls(query=query, status=QueryStatus.CANCELLED, error="cancelled")

    def raise_for_status(self) -> 'QueryOutcome':
        """Raise the matching QueryError if this outcome is a failure."""
        if self.success:
            return self
        exc_type = _ERROR_TYPES.get(self.status, ExecutionFailedError)
        raise exc_type(f"{self.query}: {self.error}", outcome=self)


def is_access_denied(stderr: str) -> bool:
    """Check failure text for an access-denial marker (case-insensitive)."""
    if not stderr:
        return False
    lowered = stderr.lower()
    return any(marker in lowered for marker in ACCESS_DENIED_MARKERS)


class QueryError(Exception):
    """Exception raised for a failed query."""

    def __init__(self, message: str, outcome: QueryOutcome = None):
        super().__init__(message)
        self.outcome = outcome

    @property
    def status(self) -> QueryStatus:
        if self.outcome is not None:
            return self.outcome.status
        return QueryStatus.EXECUTION_FAILED


class AccessDeniedError(QueryError):
    """The query was refused for lack of privileges."""


class QueryTimeoutError(QueryError):
    """The query did not complete within its bound."""


class ExecutionFailedError(QueryError):
    """The query could not be launched or exited non-zero."""


_ERROR_TYPES = {
    QueryStatus.ACCESS_DENIED: AccessDeniedError,
    QueryStatus.TIMEOUT: QueryTimeoutError,
    QueryStatus.CANCELLED: QueryTimeoutError,
    QueryStatus.EXECUTION_FAILED: ExecutionFailedError,
}
