"""
Log Event Classification

Tallies log events by severity, ranks sources and channels by frequency,
and picks out the critical ones.

An event is critical when it is an Error and either its source or its
message matches one of the tables below (case-insensitive substring).
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import EventAnalysis, LogEvent, Severity

logger = logging.getLogger(__name__)


# =============================================================================
# Classification tables
# =============================================================================

CRITICAL_SOURCES = (
    "BugCheck",
    "Microsoft-Windows-WER-SystemErrorReporting",
    "Microsoft-Windows-Eventlog",
    "Kernel-Power",
    "Disk",
    "NTFS",
)

CRITICAL_KEYWORDS = (
    "stop",
    "crash",
    "blue screen",
    "fatal",
    "exception",
    "dump",
    "corrupt",
    "failure",
    "timeout",
    "unreachable",
)

TOP_SOURCES_LIMIT = 10
TOP_CHANNELS_LIMIT = 5


def _contains_any(text: Optional[str], needles: Iterable[str]) -> bool:
    lowered = (text or "").lower()
    return any(needle.lower() in lowered for needle in needles)


def rank_by_frequency(values: Iterable[str], limit: int) -> List[Tuple[str, int]]:
    """
    Count values and return the ``limit`` most frequent as (value, count).

    Ties keep first-seen order. Empty values are not counted.
    """
    counts = Counter(v for v in values if v)
    # Counter preserves insertion order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


class EventClassifier:
    """Produces an EventAnalysis from a LogEvent collection."""

    def __init__(
        self,
        critical_sources: Sequence[str] = CRITICAL_SOURCES,
        critical_keywords: Sequence[str] = CRITICAL_KEYWORDS,
        top_sources: int = TOP_SOURCES_LIMIT,
        top_channels: int = TOP_CHANNELS_LIMIT,
        logger: Optional[logging.Logger] = None,
    ):
        self.critical_sources = tuple(critical_sources)
        self.critical_keywords = tuple(critical_keywords)
        self.top_sources = top_sources
        self.top_channels = top_channels
        self.logger = logger or logging.getLogger(__name__)

    def is_critical(self, event: LogEvent) -> bool:
        if event.event_type != Severity.ERROR:
            return False
        return (
            _contains_any(event.source_name, self.critical_sources)
            or _contains_any(event.message, self.critical_keywords)
        )

    def classify(self, events: Sequence[LogEvent]) -> EventAnalysis:
        errors = sum(1 for e in events if e.event_type == Severity.ERROR)
        warnings = sum(1 for e in events if e.event_type == Severity.WARNING)
        critical = [e for e in events if self.is_critical(e)]

        analysis = EventAnalysis(
            total_events=len(events),
            error_count=errors,
            warning_count=warnings,
            top_sources=rank_by_frequency((e.source_name for e in events), self.top_sources),
            top_channels=rank_by_frequency((e.log_file for e in events), self.top_channels),
            critical_events=critical,
        )
        self.logger.info(
            f"Classified {analysis.total_events} events: {errors} errors, "
            f"{warnings} warnings, {analysis.critical_count} critical"
        )
        return analysis


def classify_events(events: Sequence[LogEvent]) -> EventAnalysis:
    """Classify with the default tables"""
    return EventClassifier().classify(events)
