"""Local hardware probe backed by psutil, distro and platform"""

import logging
import platform
import socket
import sys
from pathlib import Path
from typing import List, Optional

import distro
import psutil

from .models import DiskRecord, HardwareSnapshot, NetworkAdapter

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESSES = {'127.0.0.1', '::1'}


def get_host_name() -> str:
    """Get the host name, or an empty string"""
    try:
        return socket.gethostname()
    except OSError:
        return platform.node()


def get_os_version() -> str:
    """Get a human-readable OS name and version"""
    if sys.platform.startswith('linux'):
        name = distro.name(pretty=True)
        if name:
            return name
    system = platform.system() or 'Unknown OS'
    release = platform.release()
    version = platform.version()
    return " ".join(part for part in (system, release, version) if part)


def get_cpu_brand() -> str:
    """Get the CPU model string"""
    cpuinfo = Path('/proc/cpuinfo')
    if cpuinfo.exists():
        try:
            for line in cpuinfo.read_text(errors='replace').splitlines():
                if line.lower().startswith('model name'):
                    return line.split(':', 1)[1].strip()
        except OSError:
            pass
    return platform.processor() or ''


class LocalHardwareProbe:
    """Reads hardware facts directly from the running host."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def identity(self) -> HardwareSnapshot:
        """Host, OS, CPU and memory facts with empty collections"""
        return HardwareSnapshot(
            computer_name=get_host_name(),
            os_version=get_os_version(),
            cpu_brand=get_cpu_brand(),
            cpu_cores=psutil.cpu_count(logical=True) or 0,
            total_memory=psutil.virtual_memory().total,
        )

    def disks(self) -> List[DiskRecord]:
        """Mounted volumes; partitions that cannot be read are skipped"""
        disks = []
        for part in psutil.disk_partitions(all=False):
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except (PermissionError, OSError) as e:
                self.logger.debug(f"Skipping {part.mountpoint}: {e}")
                continue
            if usage.total <= 0:
                continue
            disks.append(DiskRecord(
                name=part.device or part.mountpoint,
                file_system=part.fstype,
                total_space=usage.total,
                available_space=usage.free,
            ))
        return disks

    def network_adapters(self) -> List[NetworkAdapter]:
        """Interfaces with their MAC and IP addresses, loopback excluded"""
        adapters = []
        for name, addrs in psutil.net_if_addrs().items():
            mac = ''
            ips = []
            for addr in addrs:
                if addr.family == psutil.AF_LINK:
                    mac = addr.address
                elif addr.family in (socket.AF_INET, socket.AF_INET6):
                    ips.append(addr.address.split('%')[0])
            if ips and all(ip in LOOPBACK_ADDRESSES for ip in ips):
                continue
            adapters.append(NetworkAdapter(name=name, mac_address=mac, ip_addresses=ips))
        return adapters
