"""
Per-domain collection with fallback.

For every collection domain the chain tries its sources in order (live
query first, then any local probe) and substitutes deterministic sample
data when all of them error or come back empty. Collection functions never
raise; every substitution is recorded as a CollectionWarning so the
operator is told the report contains sample data.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from ...commands.base import QueryError, QueryStatus, SystemQuery
from ...commands.query import QueryExecutor
from . import queries, samples
from .hardware import LocalHardwareProbe, get_host_name
from .models import (
    DiskRecord,
    GpuInfo,
    HardwareSnapshot,
    LogEvent,
    NetworkAdapter,
    ReliabilityRecord,
    UsbController,
    UsbDevice,
    utc_now,
)
from .parser import TableRow, parse_table
from .records import (
    map_disk,
    map_gpu,
    map_hardware_facts,
    map_log_event,
    map_reliability_record,
    map_usb_controller,
    map_usb_device,
)

T = TypeVar('T')

# Columns a row must reach to be kept, per record kind
REQUIRED_COLUMNS = {
    'usb_devices': ("DeviceID", "Name", "Description", "Manufacturer", "PNPDeviceID"),
    'usb_controllers': ("DeviceID", "Name", "Description", "Manufacturer"),
    'reliability_records': ("TimeGenerated", "ProductName", "Message", "RecordType"),
    'log_events': ("TimeGenerated", "SourceName", "Message", "Type", "Logfile"),
    'computer_system': ("Name",),
    'operating_system': ("Caption",),
    'processor': ("Name",),
    'logical_disks': ("DeviceID", "Size"),
    'video_controllers': ("Name",),
}

ADMIN_HINT = "Run hostscope from an elevated (administrator) prompt for complete data."


@dataclass(frozen=True)
class CollectionWarning:
    """A degraded collection step reported to the operator."""
    domain: str
    reason: str
    status: Optional[QueryStatus] = None
    used_sample: bool = False

    @property
    def access_denied(self) -> bool:
        return self.status == QueryStatus.ACCESS_DENIED

    def message(self) -> str:
        text = f"{self.domain}: {self.reason}"
        if self.used_sample:
            text += " (using sample data)"
        if self.access_denied:
            text += f". {ADMIN_HINT}"
        return text


Source = Tuple[str, Callable[[], List[T]]]


class FallbackChain:
    """
    Collects each domain through its fallback tiers.

    Args:
        executor: Bounded query executor for the live tier
        local_probe: Optional probe for the local tier (hardware only);
            None skips that tier
        logger: Logger for progress and degradation messages
        now: Collection time used for sample timestamps and lenient mapping
    """

    def __init__(
        self,
        executor: QueryExecutor,
        local_probe: Optional[LocalHardwareProbe] = None,
        logger: Optional[logging.Logger] = None,
        now: Optional[datetime] = None,
        host_name: Optional[str] = None,
    ):
        self.executor = executor
        self.local_probe = local_probe
        self.logger = logger or logging.getLogger(__name__)
        self.now = now or utc_now()
        self._host_name = host_name
        self.warnings: List[CollectionWarning] = []

    @property
    def host_name(self) -> str:
        if self._host_name is None:
            self._host_name = get_host_name()
        return self._host_name

    # === Tier machinery ===

    def _rows(self, query: SystemQuery) -> List[TableRow]:
        text = self.executor.run(query)
        return parse_table(text, REQUIRED_COLUMNS.get(query.name, query.columns), log=self.logger)

    def _degrade(self, domain: str, reason: str, status: QueryStatus = None, used_sample: bool = False):
        warning = CollectionWarning(domain=domain, reason=reason, status=status, used_sample=used_sample)
        self.warnings.append(warning)
        self.logger.warning(warning.message())

    def _first_available(self, domain: str, sources: Sequence[Source], sample: Callable[[], List[T]]) -> List[T]:
        last_reason = "no sources"
        last_status = None
        for label, source in sources:
            try:
                records = source()
            except QueryError as e:
                last_reason, last_status = f"{label} failed: {e}", e.status
                self.logger.info(f"{domain}: {last_reason}")
                continue
            except Exception as e:
                last_reason, last_status = f"{label} failed: {type(e).__name__}: {e}", None
                self.logger.debug(f"{domain}: {label} raised", exc_info=True)
                continue

            if records:
                self.logger.info(f"{domain}: {len(records)} record(s) from {label}")
                return records
            last_reason, last_status = f"{label} returned no records", None
            self.logger.info(f"{domain}: {last_reason}")

        self._degrade(domain, last_reason, last_status, used_sample=True)
        return sample()

    # === Domains ===

    def collect_usb_devices(self) -> List[UsbDevice]:
        def live():
            return [map_usb_device(r) for r in self._rows(queries.USB_DEVICES)]
        return self._first_available("USB devices", [("WMI query", live)], samples.sample_usb_devices)

    def collect_usb_controllers(self) -> List[UsbController]:
        def live():
            return [map_usb_controller(r) for r in self._rows(queries.USB_CONTROLLERS)]
        return self._first_available("USB controllers", [("WMI query", live)], samples.sample_usb_controllers)

    def collect_reliability_records(self) -> List[ReliabilityRecord]:
        def live():
            return [map_reliability_record(r, self.now) for r in self._rows(queries.RELIABILITY_RECORDS)]
        return self._first_available(
            "reliability records",
            [("WMI query", live)],
            lambda: samples.sample_reliability_records(self.host_name, self.now),
        )

    def collect_log_events(self, days: int) -> List[LogEvent]:
        def live():
            query = queries.log_events_query(days, now=self.now)
            return [map_log_event(r, self.now) for r in self._rows(query)]
        return self._first_available(
            "log events",
            [("WMI query", live)],
            lambda: samples.sample_log_events(days, self.now),
        )

    def collect_identity(self) -> HardwareSnapshot:
        def live():
            system_rows = self._rows(queries.COMPUTER_SYSTEM)
            if not system_rows:
                return []
            os_row = self._optional_row(queries.OPERATING_SYSTEM)
            cpu_row = self._optional_row(queries.PROCESSOR)
            return [map_hardware_facts(system_rows[0], os_row, cpu_row)]

        sources: List[Source] = [("WMI query", live)]
        if self.local_probe is not None:
            sources.append(("local probe", lambda: [self.local_probe.identity()]))
        return self._first_available(
            "hardware facts", sources, lambda: [samples.sample_hardware(self.host_name)]
        )[0]

    def collect_disks(self) -> List[DiskRecord]:
        def live():
            return [d for d in (map_disk(r) for r in self._rows(queries.LOGICAL_DISKS)) if d]

        sources: List[Source] = [("WMI query", live)]
        if self.local_probe is not None:
            sources.append(("local probe", self.local_probe.disks))
        return self._first_available("disks", sources, samples.sample_disks)

    def collect_gpus(self) -> List[GpuInfo]:
        def live():
            return [g for g in (map_gpu(r) for r in self._rows(queries.VIDEO_CONTROLLERS)) if g]
        return self._first_available("GPUs", [("WMI query", live)], samples.sample_gpus)

    def collect_network_adapters(self) -> List[NetworkAdapter]:
        sources: List[Source] = []
        if self.local_probe is not None:
            sources.append(("local probe", self.local_probe.network_adapters))
        return self._first_available("network adapters", sources, samples.sample_network_adapters)

    def collect_hardware(self) -> HardwareSnapshot:
        """Assemble the full hardware snapshot; each field group falls back independently."""
        identity = self.collect_identity()
        return HardwareSnapshot(
            computer_name=identity.computer_name or self.host_name,
            os_version=identity.os_version,
            cpu_brand=identity.cpu_brand,
            cpu_cores=identity.cpu_cores,
            total_memory=identity.total_memory,
            disks=self.collect_disks(),
            network_adapters=self.collect_network_adapters(),
            usb_devices=self.collect_usb_devices(),
            usb_controllers=self.collect_usb_controllers(),
            gpus=self.collect_gpus(),
        )

    def _optional_row(self, query: SystemQuery) -> Optional[TableRow]:
        try:
            rows = self._rows(query)
        except QueryError as e:
            self.logger.info(f"Optional query {query.name} failed: {e}")
            return None
        return rows[0] if rows else None
