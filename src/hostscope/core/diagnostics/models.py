"""
Diagnostic Data Models

Canonical data structures for one collection run:
- Every entity is created fresh per invocation and not mutated afterwards
- JSON serialization built-in (lower-camel-case field names)
- ``DiagnosticData`` is the aggregate handed to report renderers
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


GIB = 1024 ** 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with a trailing Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def from_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# === Enums ===

class Severity(Enum):
    """Severity kind of a log entry."""
    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"

    @classmethod
    def from_label(cls, label: Optional[str]) -> 'Severity':
        """Map a raw type label to a severity; unknown labels are informational."""
        text = (label or "").strip().lower()
        if text.startswith("err"):
            return cls.ERROR
        if text.startswith("warn"):
            return cls.WARNING
        return cls.INFORMATION


# === Hardware ===

@dataclass
class DiskRecord:
    """One storage volume. ``available_space`` never exceeds ``total_space``."""
    name: str
    file_system: str
    total_space: int
    available_space: int

    def __post_init__(self):
        self.total_space = max(int(self.total_space or 0), 0)
        self.available_space = min(max(int(self.available_space or 0), 0), self.total_space)

    @property
    def free_percent(self) -> float:
        if self.total_space <= 0:
            return 0.0
        return self.available_space / self.total_space * 100.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "fileSystem": self.file_system,
            "totalSpace": self.total_space,
            "availableSpace": self.available_space,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'DiskRecord':
        return cls(
            name=data.get('name', ''),
            file_system=data.get('fileSystem', ''),
            total_space=data.get('totalSpace', 0),
            available_space=data.get('availableSpace', 0),
        )


@dataclass
class NetworkAdapter:
    name: str
    mac_address: str
    ip_addresses: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "macAddress": self.mac_address,
            "ipAddresses": list(self.ip_addresses),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'NetworkAdapter':
        return cls(
            name=data.get('name', ''),
            mac_address=data.get('macAddress', ''),
            ip_addresses=list(data.get('ipAddresses') or []),
        )


@dataclass
class UsbDevice:
    device_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    pnp_device_id: Optional[str] = None
    status: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "deviceId": self.device_id,
            "name": self.name,
            "description": self.description,
            "manufacturer": self.manufacturer,
            "pnpDeviceId": self.pnp_device_id,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'UsbDevice':
        return cls(
            device_id=data.get('deviceId', ''),
            name=data.get('name'),
            description=data.get('description'),
            manufacturer=data.get('manufacturer'),
            pnp_device_id=data.get('pnpDeviceId'),
            status=data.get('status'),
        )


@dataclass
class UsbController:
    device_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    caption: Optional[str] = None
    protocol_version: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "deviceId": self.device_id,
            "name": self.name,
            "description": self.description,
            "manufacturer": self.manufacturer,
            "caption": self.caption,
            "protocolVersion": self.protocol_version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'UsbController':
        return cls(
            device_id=data.get('deviceId', ''),
            name=data.get('name'),
            description=data.get('description'),
            manufacturer=data.get('manufacturer'),
            caption=data.get('caption'),
            protocol_version=data.get('protocolVersion'),
        )


@dataclass
class GpuInfo:
    name: str
    driver_version: Optional[str] = None
    video_memory: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "driverVersion": self.driver_version,
            "videoMemory": self.video_memory,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GpuInfo':
        return cls(
            name=data.get('name', ''),
            driver_version=data.get('driverVersion'),
            video_memory=data.get('videoMemory'),
        )


@dataclass
class HardwareSnapshot:
    """
    Point-in-time hardware facts.

    Attributes:
        computer_name: Host name
        os_version: Human-readable OS name and version
        cpu_brand: CPU model string
        cpu_cores: Logical core count (>= 0)
        total_memory: Physical memory in bytes (>= 0)
    """
    computer_name: str
    os_version: str
    cpu_brand: str
    cpu_cores: int
    total_memory: int
    disks: List[DiskRecord] = field(default_factory=list)
    network_adapters: List[NetworkAdapter] = field(default_factory=list)
    usb_devices: List[UsbDevice] = field(default_factory=list)
    usb_controllers: List[UsbController] = field(default_factory=list)
    gpus: List[GpuInfo] = field(default_factory=list)

    def __post_init__(self):
        self.cpu_cores = max(int(self.cpu_cores or 0), 0)
        self.total_memory = max(int(self.total_memory or 0), 0)

    @property
    def total_memory_gb(self) -> float:
        return self.total_memory / GIB

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "computerName": self.computer_name,
            "osVersion": self.os_version,
            "cpuBrand": self.cpu_brand,
            "cpuCores": self.cpu_cores,
            "totalMemory": self.total_memory,
            "disks": [d.to_dict() for d in self.disks],
            "networkAdapters": [n.to_dict() for n in self.network_adapters],
            "usbDevices": [u.to_dict() for u in self.usb_devices],
            "usbControllers": [u.to_dict() for u in self.usb_controllers],
            "gpus": [g.to_dict() for g in self.gpus],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'HardwareSnapshot':
        """Deserialize from dict."""
        return cls(
            computer_name=data.get('computerName', ''),
            os_version=data.get('osVersion', ''),
            cpu_brand=data.get('cpuBrand', ''),
            cpu_cores=data.get('cpuCores', 0),
            total_memory=data.get('totalMemory', 0),
            disks=[DiskRecord.from_dict(d) for d in data.get('disks') or []],
            network_adapters=[NetworkAdapter.from_dict(n) for n in data.get('networkAdapters') or []],
            usb_devices=[UsbDevice.from_dict(u) for u in data.get('usbDevices') or []],
            usb_controllers=[UsbController.from_dict(u) for u in data.get('usbControllers') or []],
            gpus=[GpuInfo.from_dict(g) for g in data.get('gpus') or []],
        )


# === Records ===

@dataclass
class ReliabilityRecord:
    """
    One OS-logged stability event.

    ``event_type`` is the label derived from the numeric record type
    ("Error", "Warning", "Information" or "Unknown").
    """
    timestamp: datetime
    source_name: str
    message: str
    event_type: str
    record_type: Optional[int] = None
    computer_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "timestamp": to_iso(self.timestamp),
            "sourceName": self.source_name,
            "message": self.message,
            "eventType": self.event_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ReliabilityRecord':
        return cls(
            timestamp=from_iso(data['timestamp']),
            source_name=data.get('sourceName', ''),
            message=data.get('message', ''),
            event_type=data.get('eventType', 'Unknown'),
        )


@dataclass
class LogEvent:
    """One error/warning log entry."""
    time_generated: datetime
    log_file: str
    source_name: str
    event_type: Severity
    event_id: int
    message: str

    @property
    def is_error(self) -> bool:
        return self.event_type == Severity.ERROR

    def to_dict(self) -> dict:
        return {
            "timeGenerated": to_iso(self.time_generated),
            "logFile": self.log_file,
            "sourceName": self.source_name,
            "eventType": self.event_type.value,
            "eventId": self.event_id,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LogEvent':
        return cls(
            time_generated=from_iso(data['timeGenerated']),
            log_file=data.get('logFile', ''),
            source_name=data.get('sourceName', ''),
            event_type=Severity.from_label(data.get('eventType')),
            event_id=int(data.get('eventId') or 0),
            message=data.get('message', ''),
        )


# === Derived results ===

@dataclass
class EventAnalysis:
    """
    Aggregate over a LogEvent collection.

    ``top_sources`` and ``top_channels`` are (name, count) pairs sorted by
    descending count, ties kept in first-seen order.
    """
    total_events: int
    error_count: int
    warning_count: int
    top_sources: List[Tuple[str, int]] = field(default_factory=list)
    top_channels: List[Tuple[str, int]] = field(default_factory=list)
    critical_events: List[LogEvent] = field(default_factory=list)

    @property
    def critical_count(self) -> int:
        return len(self.critical_events)


@dataclass
class PerformanceAnalysis:
    """
    Heuristic health verdict.

    All scores lie in [0, 100]; higher is better.
    """
    system_health_score: float = 0.0
    stability_score: float = 0.0
    performance_score: float = 0.0
    memory_usage_score: float = 0.0
    disk_health_score: float = 0.0
    critical_issues_count: int = 0
    warnings_count: int = 0
    recommendations: List[str] = field(default_factory=list)
    health_grade: str = "Unknown"
    health_color: str = "#808080"

    def scores(self) -> Dict[str, float]:
        return {
            "systemHealthScore": self.system_health_score,
            "stabilityScore": self.stability_score,
            "performanceScore": self.performance_score,
            "memoryUsageScore": self.memory_usage_score,
            "diskHealthScore": self.disk_health_score,
        }

    def to_dict(self) -> dict:
        data: Dict[str, Any] = dict(self.scores())
        data.update({
            "criticalIssuesCount": self.critical_issues_count,
            "warningsCount": self.warnings_count,
            "recommendations": list(self.recommendations),
            "healthGrade": self.health_grade,
            "healthColor": self.health_color,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'PerformanceAnalysis':
        return cls(
            system_health_score=float(data.get('systemHealthScore', 0.0)),
            stability_score=float(data.get('stabilityScore', 0.0)),
            performance_score=float(data.get('performanceScore', 0.0)),
            memory_usage_score=float(data.get('memoryUsageScore', 0.0)),
            disk_health_score=float(data.get('diskHealthScore', 0.0)),
            critical_issues_count=int(data.get('criticalIssuesCount', 0)),
            warnings_count=int(data.get('warningsCount', 0)),
            recommendations=list(data.get('recommendations') or []),
            health_grade=data.get('healthGrade', 'Unknown'),
            health_color=data.get('healthColor', '#808080'),
        )


@dataclass
class DiagnosticData:
    """
    Complete snapshot of one collection run.

    Serialized with the canonical schema consumed by the report renderer
    and the JSON writer.
    """
    hardware: HardwareSnapshot
    reliability: List[ReliabilityRecord]
    events: List[LogEvent]
    performance: PerformanceAnalysis
    collected_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "hardware": self.hardware.to_dict(),
            "reliability": [r.to_dict() for r in self.reliability],
            "events": [e.to_dict() for e in self.events],
            "performance": self.performance.to_dict(),
            "collectedAt": to_iso(self.collected_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'DiagnosticData':
        """Deserialize from dict."""
        return cls(
            hardware=HardwareSnapshot.from_dict(data.get('hardware') or {}),
            reliability=[ReliabilityRecord.from_dict(r) for r in data.get('reliability') or []],
            events=[LogEvent.from_dict(e) for e in data.get('events') or []],
            performance=PerformanceAnalysis.from_dict(data.get('performance') or {}),
            collected_at=from_iso(data['collectedAt']) if data.get('collectedAt') else utc_now(),
        )

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> 'DiagnosticData':
        return cls.from_dict(json.loads(text))
