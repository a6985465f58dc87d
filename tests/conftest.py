"""
Shared fixtures for the hostscope test suite.

FakeQueryProvider stands in for the WMIC provider so the pipeline can be
exercised on any host without launching external commands.
"""

import os
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostscope.commands.base import QueryOutcome, SystemQuery
from hostscope.commands.query import QueryExecutor, QueryProvider


FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# Captured WMIC /format:csv output (leading blank line included)
USB_DEVICES_CSV = """
Node,Description,DeviceID,Manufacturer,Name,PNPDeviceID,Status
HOST1,USB Composite Device,USB\\VID_046D&PID_C52B\\5&1,(Standard USB Host Controller),USB Composite Device,USB\\VID_046D&PID_C52B\\5&1,OK
HOST1,USB Mass Storage Device,USB\\VID_0781&PID_5567\\4C53,Compatible USB storage device,USB Mass Storage Device,USB\\VID_0781&PID_5567\\4C53,OK
HOST1,truncated
"""

USB_CONTROLLERS_CSV = """
Node,Caption,Description,DeviceID,Manufacturer,Name
HOST1,Intel(R) USB 3.1 eXtensible Host Controller,USB xHCI Compliant Host Controller,PCI\\VEN_8086&DEV_A36D\\3&1,Generic USB xHCI Host Controller,Intel(R) USB 3.1 eXtensible Host Controller - 1.10 (Microsoft)
"""

RELIABILITY_CSV = """
Node,ComputerName,Message,ProductName,RecordType,TimeGenerated
HOST1,HOST1,Windows Explorer stopped working,Windows Explorer,1,20240430100000.000000-000
HOST1,HOST1,Installation Successful,Windows Update,3,20240429080000.000000-000
"""

LOG_EVENTS_CSV = """
Node,ComputerName,EventCode,Logfile,Message,SourceName,TimeGenerated,Type
HOST1,HOST1,41,System,The system has rebooted without cleanly shutting down first,Microsoft-Windows-Kernel-Power,20240430230000.000000-000,Error
HOST1,HOST1,10016,System,DCOM permission settings,DistributedCOM,20240430220000.000000-000,Warning
HOST1,HOST1,1000,Application,Faulting application name: app.exe,Application Error,20240430210000.000000-000,Error
"""

COMPUTER_SYSTEM_CSV = """
Node,Name,NumberOfLogicalProcessors,TotalPhysicalMemory
HOST1,HOST1,8,17179869184
"""

OPERATING_SYSTEM_CSV = """
Node,Caption,Version
HOST1,Microsoft Windows 11 Pro,10.0.22631
"""

PROCESSOR_CSV = """
Node,Name,NumberOfCores
HOST1,Intel(R) Core(TM) i7-10700 CPU @ 2.90GHz,8
"""

LOGICAL_DISKS_CSV = """
Node,DeviceID,FileSystem,FreeSpace,Size
HOST1,C:,NTFS,107374182400,214748364800
HOST1,D:,,,
"""

VIDEO_CONTROLLERS_CSV = """
Node,AdapterRAM,DriverVersion,Name
HOST1,4293918720,31.0.15.3623,NVIDIA GeForce RTX 3060
"""

FULL_HOST_RESPONSES = {
    'usb_devices': USB_DEVICES_CSV,
    'usb_controllers': USB_CONTROLLERS_CSV,
    'reliability_records': RELIABILITY_CSV,
    'log_events': LOG_EVENTS_CSV,
    'computer_system': COMPUTER_SYSTEM_CSV,
    'operating_system': OPERATING_SYSTEM_CSV,
    'processor': PROCESSOR_CSV,
    'logical_disks': LOGICAL_DISKS_CSV,
    'video_controllers': VIDEO_CONTROLLERS_CSV,
}


class FakeQueryProvider(QueryProvider):
    """
    Scripted provider keyed by query name.

    A response may be a str (stdout of a successful run), a QueryOutcome,
    an exception instance to raise, or a callable taking
    (query, cancel_event) and returning one of those.
    Unknown queries fail with EXECUTION_FAILED.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def run(self, query: SystemQuery, cancel_event: threading.Event) -> QueryOutcome:
        self.calls.append(query.name)
        response = self.responses.get(query.name)
        if callable(response):
            response = response(query, cancel_event)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return QueryOutcome.fail(query.name, "no scripted response")
        if isinstance(response, str):
            return QueryOutcome.ok(query.name, response)
        return response


def hang_until_cancelled(query, cancel_event):
    """Response that blocks like a stuck command until the executor gives up."""
    cancel_event.wait(5)
    return QueryOutcome.cancelled(query.name)


def access_denied(query, cancel_event):
    return QueryOutcome.access_denied(query.name, "ERROR:\r\nDescription = Access is denied.")


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def make_executor():
    """Build a QueryExecutor over a FakeQueryProvider."""
    def _make(responses=None, timeout=2.0):
        return QueryExecutor(FakeQueryProvider(responses), timeout=timeout)
    return _make


@pytest.fixture
def clean_env():
    """Strip HOSTSCOPE_* variables and restore the environment afterwards."""
    saved = dict(os.environ)
    for key in list(os.environ):
        if key.startswith('HOSTSCOPE_'):
            del os.environ[key]
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(saved)
