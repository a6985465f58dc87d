"""
Diagnostic Pipeline for hostscope

Collection -> classification -> scoring -> DiagnosticData.

Usage:
    from hostscope.core.diagnostics import DiagnosticEngine

    engine = DiagnosticEngine()
    result = engine.run(days=3)
    for warning in result.warnings:
        print(warning.message())
    print(result.data.to_json())
"""

from .models import (
    Severity,
    DiskRecord,
    NetworkAdapter,
    UsbDevice,
    UsbController,
    GpuInfo,
    HardwareSnapshot,
    ReliabilityRecord,
    LogEvent,
    EventAnalysis,
    PerformanceAnalysis,
    DiagnosticData,
)
from .parser import ParseError, TableRow, parse_table
from .collector import CollectionWarning, FallbackChain
from .events import EventClassifier, classify_events
from .scoring import ScoreEngine
from .engine import CollectionResult, DiagnosticEngine
from .report import ReportError, WriteError, SerializationError, write_reports

__all__ = [
    'DiagnosticEngine',
    'CollectionResult',
    'CollectionWarning',
    'FallbackChain',
    'EventClassifier',
    'classify_events',
    'ScoreEngine',
    'ParseError',
    'TableRow',
    'parse_table',
    'ReportError',
    'WriteError',
    'SerializationError',
    'write_reports',
    'Severity',
    'DiskRecord',
    'NetworkAdapter',
    'UsbDevice',
    'UsbController',
    'GpuInfo',
    'HardwareSnapshot',
    'ReliabilityRecord',
    'LogEvent',
    'EventAnalysis',
    'PerformanceAnalysis',
    'DiagnosticData',
]
