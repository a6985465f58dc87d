"""
Diagnostic Engine for hostscope

Runs one collection pass and produces the DiagnosticData aggregate.

Stages run sequentially so console progress is deterministic:
hardware -> reliability -> events -> scoring. Collection stages never
fail; degraded domains are reported as warnings on the result.

Usage:
    with LoggingContext(level="INFO").start() as log_ctx:
        engine = DiagnosticEngine(logging_context=log_ctx)
        engine.register_progress_callback(lambda stage, i, n: print(stage, i, n))
        result = engine.run(days=3)
        print(result.data.performance.health_grade)
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ...commands.query import QueryExecutor
from ...utils.logging_config import LoggingContext
from .collector import CollectionWarning, FallbackChain
from .events import EventClassifier
from .hardware import LocalHardwareProbe
from .models import DiagnosticData, EventAnalysis, utc_now
from .scoring import ScoreEngine

ProgressCallback = Callable[[str, int, int], None]  # (stage, current, total)

STAGES = ("hardware", "reliability", "events", "scoring")

DEFAULT_DAYS = 3


@dataclass
class CollectionResult:
    """
    Outcome of a collection pass.

    Attributes:
        data: The complete snapshot, possibly containing sample data
        warnings: One entry per domain that fell back to sample data
        event_analysis: Event tallies the scores were computed from
    """
    data: DiagnosticData
    warnings: List[CollectionWarning] = field(default_factory=list)
    event_analysis: Optional[EventAnalysis] = None

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

    @property
    def access_denied(self) -> bool:
        return any(w.access_denied for w in self.warnings)


class DiagnosticEngine:
    """
    Orchestrates collection, classification and scoring.

    Args:
        executor: Query executor; defaults to a WMIC-backed executor
        logging_context: Shared logging context; components log through it
        use_local_probe: Try the local hardware probe before sample data
    """

    def __init__(
        self,
        executor: Optional[QueryExecutor] = None,
        logging_context: Optional[LoggingContext] = None,
        use_local_probe: bool = True,
        classifier: Optional[EventClassifier] = None,
        scorer: Optional[ScoreEngine] = None,
    ):
        self.logging_context = logging_context
        self.logger = self._get_logger(__name__)
        self.executor = executor or QueryExecutor(logger=self._get_logger('hostscope.query'))
        self.use_local_probe = use_local_probe
        self.classifier = classifier or EventClassifier(logger=self._get_logger('hostscope.events'))
        self.scorer = scorer or ScoreEngine(logger=self._get_logger('hostscope.scoring'))

        self._progress_callbacks: List[ProgressCallback] = []
        self._callbacks_lock = threading.Lock()

    def _get_logger(self, name: str) -> logging.Logger:
        if self.logging_context is not None:
            return self.logging_context.get_logger(name)
        return logging.getLogger(name)

    # === Callback Registration ===

    def register_progress_callback(self, callback: ProgressCallback):
        """Register callback for stage progress updates."""
        with self._callbacks_lock:
            self._progress_callbacks.append(callback)

    def _notify_progress(self, stage: str, current: int, total: int):
        with self._callbacks_lock:
            callbacks = list(self._progress_callbacks)
        for cb in callbacks:
            try:
                cb(stage, current, total)
            except Exception as e:
                self.logger.error(f"Progress callback error: {e}")

    # === Collection ===

    def _build_chain(self, now: datetime) -> FallbackChain:
        probe = None
        if self.use_local_probe:
            probe = LocalHardwareProbe(logger=self._get_logger('hostscope.hardware'))
        return FallbackChain(
            self.executor,
            local_probe=probe,
            logger=self._get_logger('hostscope.collector'),
            now=now,
        )

    def run(self, days: int = DEFAULT_DAYS, now: Optional[datetime] = None) -> CollectionResult:
        """
        Run one full collection pass.

        Args:
            days: Lookback window for log events
            now: Collection time; defaults to the current UTC time

        Returns:
            CollectionResult with the snapshot and any fallback warnings
        """
        if days < 0:
            raise ValueError("days must be >= 0")

        now = now or utc_now()
        chain = self._build_chain(now)
        total = len(STAGES)
        self.logger.info(f"Starting collection (event window: {days} day(s))")

        self._notify_progress(STAGES[0], 1, total)
        hardware = chain.collect_hardware()

        self._notify_progress(STAGES[1], 2, total)
        reliability = chain.collect_reliability_records()

        self._notify_progress(STAGES[2], 3, total)
        events = chain.collect_log_events(days)
        analysis = self.classifier.classify(events)

        self._notify_progress(STAGES[3], 4, total)
        performance = self.scorer.analyze(hardware, analysis, len(reliability))

        data = DiagnosticData(
            hardware=hardware,
            reliability=reliability,
            events=events,
            performance=performance,
            collected_at=now,
        )
        self.logger.info(
            f"Collection complete: {len(reliability)} reliability records, "
            f"{len(events)} events, {len(chain.warnings)} warning(s)"
        )
        return CollectionResult(data=data, warnings=list(chain.warnings), event_analysis=analysis)
