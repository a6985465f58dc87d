"""
Mapping of parsed query rows into domain records.

All mappers are pure. Numeric and timestamp fields are parsed leniently:
a value that does not parse becomes absent instead of failing the row.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import (
    DiskRecord,
    GpuInfo,
    HardwareSnapshot,
    LogEvent,
    ReliabilityRecord,
    Severity,
    UsbController,
    UsbDevice,
    utc_now,
)
from .parser import TableRow


# yyyymmddHHMMSS.ffffff+UUU where UUU is the UTC offset in minutes
WMI_TIMESTAMP_RE = re.compile(
    r'^(?P<base>\d{14})(?:\.(?P<frac>\d{1,6}))?(?:(?P<sign>[+-])(?P<offset>\d{1,4}))?'
)

PLAIN_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
)

# Reliability record-type codes
RELIABILITY_TYPE_LABELS = {
    1: "Error",
    2: "Warning",
    3: "Information",
}

# Controller name fragment -> protocol version; first match wins
USB_VERSION_HINTS = (
    (("usb 3", "xhci"), "USB 3.0"),
    (("usb 2", "ehci"), "USB 2.0"),
    (("usb 1", "uhci"), "USB 1.1"),
)


# === Field helpers ===

def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse an integer field; empty or malformed values become None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        try:
            return int(float(text))
        except ValueError:
            return None


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None


def parse_wmi_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a WMI CIM_DATETIME string into an aware UTC datetime.

    Also accepts a few plain formats that appear in exported logs.
    Returns None when nothing matches.
    """
    if not value:
        return None
    text = value.strip()

    match = WMI_TIMESTAMP_RE.match(text)
    if match:
        try:
            base = datetime.strptime(match.group('base'), "%Y%m%d%H%M%S")
        except ValueError:
            return None
        frac = match.group('frac')
        if frac:
            base = base.replace(microsecond=int(frac.ljust(6, '0')))
        offset_minutes = int(match.group('offset') or 0)
        if match.group('sign') == '-':
            offset_minutes = -offset_minutes
        tz = timezone(timedelta(minutes=offset_minutes))
        return base.replace(tzinfo=tz).astimezone(timezone.utc)

    for fmt in PLAIN_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def format_wmi_timestamp(value: datetime) -> str:
    """Format a datetime as a CIM_DATETIME string in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y%m%d%H%M%S") + f".{value.microsecond:06d}+000"


def usb_protocol_version(controller_name: Optional[str]) -> Optional[str]:
    """Guess the USB protocol version from a controller name."""
    lowered = (controller_name or "").lower()
    for hints, version in USB_VERSION_HINTS:
        if any(h in lowered for h in hints):
            return version
    return None


def reliability_label(record_type: Optional[int]) -> str:
    return RELIABILITY_TYPE_LABELS.get(record_type, "Unknown")


# === Mappers ===

def map_usb_device(row: TableRow) -> UsbDevice:
    return UsbDevice(
        device_id=row.get('DeviceID'),
        name=optional_text(row.get('Name')),
        description=optional_text(row.get('Description')),
        manufacturer=optional_text(row.get('Manufacturer')),
        pnp_device_id=optional_text(row.get('PNPDeviceID')),
        status=optional_text(row.get('Status')),
    )


def map_usb_controller(row: TableRow) -> UsbController:
    name = optional_text(row.get('Name'))
    return UsbController(
        device_id=row.get('DeviceID'),
        name=name,
        description=optional_text(row.get('Description')),
        manufacturer=optional_text(row.get('Manufacturer')),
        caption=optional_text(row.get('Caption')),
        protocol_version=usb_protocol_version(name),
    )


def map_reliability_record(row: TableRow, collected_at: Optional[datetime] = None) -> ReliabilityRecord:
    """Unparsable timestamps fall back to ``collected_at``."""
    record_type = parse_int(row.get('RecordType'))
    return ReliabilityRecord(
        timestamp=parse_wmi_timestamp(row.get('TimeGenerated')) or collected_at or utc_now(),
        source_name=row.get('ProductName'),
        message=row.get('Message'),
        event_type=reliability_label(record_type),
        record_type=record_type,
        computer_name=optional_text(row.get('ComputerName')),
    )


def map_log_event(row: TableRow, collected_at: Optional[datetime] = None) -> LogEvent:
    return LogEvent(
        time_generated=parse_wmi_timestamp(row.get('TimeGenerated')) or collected_at or utc_now(),
        log_file=row.get('Logfile'),
        source_name=row.get('SourceName'),
        event_type=Severity.from_label(row.get('Type')),
        event_id=parse_int(row.get('EventCode')) or 0,
        message=row.get('Message'),
    )


def map_disk(row: TableRow) -> Optional[DiskRecord]:
    """Volumes without a reported size (empty card readers, optical drives) are skipped."""
    total = parse_int(row.get('Size'))
    if not total:
        return None
    return DiskRecord(
        name=row.get('DeviceID'),
        file_system=row.get('FileSystem'),
        total_space=total,
        available_space=parse_int(row.get('FreeSpace')) or 0,
    )


def map_gpu(row: TableRow) -> Optional[GpuInfo]:
    name = optional_text(row.get('Name'))
    if not name:
        return None
    return GpuInfo(
        name=name,
        driver_version=optional_text(row.get('DriverVersion')),
        video_memory=parse_int(row.get('AdapterRAM')),
    )


def map_hardware_facts(
    system_row: TableRow,
    os_row: Optional[TableRow] = None,
    cpu_row: Optional[TableRow] = None,
) -> HardwareSnapshot:
    """
    Build the identity part of a HardwareSnapshot from the computer-system,
    operating-system and processor rows. Collections are left empty.
    """
    os_version = ""
    if os_row is not None:
        caption = os_row.get('Caption')
        version = os_row.get('Version')
        os_version = " ".join(part for part in (caption, version) if part)

    cpu_brand = cpu_row.get('Name') if cpu_row is not None else ""
    cores = parse_int(system_row.get('NumberOfLogicalProcessors'))
    if cores is None and cpu_row is not None:
        cores = parse_int(cpu_row.get('NumberOfCores'))

    return HardwareSnapshot(
        computer_name=system_row.get('Name'),
        os_version=os_version,
        cpu_brand=cpu_brand,
        cpu_cores=cores or 0,
        total_memory=parse_int(system_row.get('TotalPhysicalMemory')) or 0,
    )
