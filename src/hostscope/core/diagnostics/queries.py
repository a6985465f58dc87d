"""
Catalog of the WMIC queries used for collection.

Each query requests a fixed column set in CSV form. Columns are matched by
header name when parsed, so the order here only affects the command line.
"""

from datetime import datetime, timedelta
from typing import Optional

from ...commands.base import SystemQuery
from .models import utc_now
from .records import format_wmi_timestamp

WMIC = "wmic"
CSV_FORMAT = "/format:csv"


def _wmic_get(name: str, alias: tuple, columns: tuple, where: Optional[str] = None) -> SystemQuery:
    args = list(alias)
    if where:
        args += ["where", where]
    args += ["get", ",".join(columns), CSV_FORMAT]
    return SystemQuery(name=name, command=WMIC, args=tuple(args), columns=columns)


USB_DEVICES = _wmic_get(
    "usb_devices",
    ("path", "win32_usbdevice"),
    ("DeviceID", "Name", "Description", "Manufacturer", "PNPDeviceID", "Status"),
)

USB_CONTROLLERS = _wmic_get(
    "usb_controllers",
    ("path", "win32_usbcontroller"),
    ("DeviceID", "Name", "Description", "Manufacturer", "Caption"),
)

RELIABILITY_RECORDS = _wmic_get(
    "reliability_records",
    ("path", "win32_reliabilityrecords"),
    ("TimeGenerated", "ProductName", "Message", "RecordType", "ComputerName"),
)

COMPUTER_SYSTEM = _wmic_get(
    "computer_system",
    ("computersystem",),
    ("Name", "NumberOfLogicalProcessors", "TotalPhysicalMemory"),
)

OPERATING_SYSTEM = _wmic_get(
    "operating_system",
    ("os",),
    ("Caption", "Version"),
)

PROCESSOR = _wmic_get(
    "processor",
    ("cpu",),
    ("Name", "NumberOfCores"),
)

LOGICAL_DISKS = _wmic_get(
    "logical_disks",
    ("logicaldisk",),
    ("DeviceID", "FileSystem", "Size", "FreeSpace"),
)

VIDEO_CONTROLLERS = _wmic_get(
    "video_controllers",
    ("path", "win32_videocontroller"),
    ("Name", "DriverVersion", "AdapterRAM"),
)

LOG_EVENT_COLUMNS = ("TimeGenerated", "SourceName", "Message", "Type", "Logfile", "EventCode", "ComputerName")


def log_events_query(days: int, now: Optional[datetime] = None) -> SystemQuery:
    """Error and warning log entries generated within the last ``days`` days."""
    if days < 0:
        raise ValueError("days must be >= 0")
    start = (now or utc_now()) - timedelta(days=days)
    where = (
        f"(TimeGenerated>='{format_wmi_timestamp(start)}' "
        f"and (Type='Error' or Type='Warning'))"
    )
    return _wmic_get("log_events", ("path", "win32_ntlogevent"), LOG_EVENT_COLUMNS, where=where)
