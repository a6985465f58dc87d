"""
Deterministic sample collections.

Substituted by the collector when a live query fails or returns nothing,
so a report can always be produced. Timestamps are relative to the
collection time passed in; everything else is fixed.
"""

from datetime import datetime, timedelta
from typing import List

from .models import (
    GIB,
    DiskRecord,
    GpuInfo,
    HardwareSnapshot,
    LogEvent,
    NetworkAdapter,
    ReliabilityRecord,
    Severity,
    UsbController,
    UsbDevice,
)


def sample_usb_devices() -> List[UsbDevice]:
    return [
        UsbDevice(
            device_id="USB\\VID_046D&PID_C52B\\6&2ABBF678&0&2",
            name="USB Input Device",
            description="HID-compliant mouse",
            manufacturer="Logitech",
            pnp_device_id="USB\\VID_046D&PID_C52B\\6&2ABBF678&0&2",
            status="OK",
        ),
        UsbDevice(
            device_id="USB\\VID_1B71&PID_3002\\6&2ABBF678&0&3",
            name="USB Composite Device",
            description="USB Composite Device",
            manufacturer="Generic",
            pnp_device_id="USB\\VID_1B71&PID_3002\\6&2ABBF678&0&3",
            status="OK",
        ),
    ]


def sample_usb_controllers() -> List[UsbController]:
    return [
        UsbController(
            device_id="USB\\ROOT_HUB30\\4&2ABBF678&0&0",
            name="USB Root Hub (xHCI)",
            description="USB 3.0 Root Hub",
            manufacturer="(Generic USB xHCI Host Controller)",
            caption="USB Root Hub (xHCI)",
            protocol_version="USB 3.0",
        ),
        UsbController(
            device_id="USB\\ROOT_HUB20\\4&2A947B75&0&0",
            name="USB Root Hub (EHCI)",
            description="USB 2.0 Root Hub",
            manufacturer="(Standard USB Host Controller)",
            caption="USB Root Hub (EHCI)",
            protocol_version="USB 2.0",
        ),
    ]


def sample_reliability_records(host_name: str, now: datetime) -> List[ReliabilityRecord]:
    entries = (
        (24, "Windows Explorer", "Application crashed unexpectedly", 1),
        (48, "Microsoft Edge", "Browser encountered rendering error", 1),
        (72, "Windows Update", "System update completed successfully", 3),
    )
    labels = {1: "Error", 3: "Information"}
    return [
        ReliabilityRecord(
            timestamp=now - timedelta(hours=hours),
            source_name=product,
            message=message,
            event_type=labels[record_type],
            record_type=record_type,
            computer_name=host_name,
        )
        for hours, product, message, record_type in entries
    ]


def sample_log_events(days: int, now: datetime) -> List[LogEvent]:
    """``days * 2`` entries, twelve hours apart, newest first."""
    events = []
    for i in range(max(days, 0) * 2):
        even = i % 2 == 0
        events.append(LogEvent(
            time_generated=now - timedelta(hours=12 * i),
            log_file="Application" if even else "System",
            source_name="Application Error" if even else "System",
            event_type=Severity.ERROR if i % 3 == 0 else Severity.WARNING,
            event_id=1000 + i,
            message=f"Sample error message #{i}",
        ))
    return events


def sample_disks() -> List[DiskRecord]:
    return [
        DiskRecord(name="C:", file_system="NTFS", total_space=256 * GIB, available_space=96 * GIB),
    ]


def sample_network_adapters() -> List[NetworkAdapter]:
    return [
        NetworkAdapter(
            name="Ethernet",
            mac_address="00:15:5D:01:02:03",
            ip_addresses=["192.168.1.100"],
        ),
    ]


def sample_gpus() -> List[GpuInfo]:
    return [
        GpuInfo(name="Microsoft Basic Display Adapter", driver_version="10.0.19041.1", video_memory=None),
    ]


def sample_hardware(host_name: str) -> HardwareSnapshot:
    """Identity facts only; collections are filled separately."""
    return HardwareSnapshot(
        computer_name=host_name,
        os_version="Unknown OS",
        cpu_brand="Unknown CPU",
        cpu_cores=4,
        total_memory=8 * GIB,
    )
