"""
hostscope Query Layer

Bounded execution of external system-information commands.

Usage:
    from hostscope.commands import QueryExecutor, WmicQueryProvider, SystemQuery

    executor = QueryExecutor(WmicQueryProvider(), timeout=30)
    outcome = executor.execute(SystemQuery(
        name="cpu",
        command="wmic",
        args=("cpu", "get", "Name", "/format:csv"),
        columns=("Name",),
    ))
"""

from .base import (
    SystemQuery,
    QueryOutcome,
    QueryStatus,
    QueryError,
    AccessDeniedError,
    QueryTimeoutError,
    ExecutionFailedError,
    is_access_denied,
)
from .query import QueryProvider, WmicQueryProvider, QueryExecutor, DEFAULT_QUERY_TIMEOUT

__all__ = [
    'SystemQuery',
    'QueryOutcome',
    'QueryStatus',
    'QueryError',
    'AccessDeniedError',
    'QueryTimeoutError',
    'ExecutionFailedError',
    'is_access_denied',
    'QueryProvider',
    'WmicQueryProvider',
    'QueryExecutor',
    'DEFAULT_QUERY_TIMEOUT',
]
