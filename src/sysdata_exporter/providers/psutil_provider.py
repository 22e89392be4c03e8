"""
Live stats provider.

Reads current host state through psutil, with distro for Linux
distribution identity and /proc/cpuinfo for per-core descriptors.
"""

from __future__ import annotations

import os
import platform
import socket
import time
from typing import Any

import distro
import psutil

from sysdata_exporter.host_id import get_host_id
from sysdata_exporter.providers.base import StatsProvider
from sysdata_exporter.snapshot import (
    CpuInfo,
    DiskPartition,
    DiskUsage,
    HostInfo,
    LoadAverage,
    MemoryStats,
    NetAddress,
    NetInterface,
    PlatformInfo,
)

CPUINFO_PATH = "/proc/cpuinfo"


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class PsutilProvider(StatsProvider):
    """Reads host state from the running OS."""

    name = "psutil"
    description = "Live host state via psutil"

    def __init__(self, state_dir: str | None = None):
        super().__init__()
        self.state_dir = state_dir

    def platform(self) -> PlatformInfo:
        return PlatformInfo(os=platform.system().lower(), arch=platform.machine())

    def virtual_memory(self) -> MemoryStats:
        mem = psutil.virtual_memory()
        return MemoryStats(
            total=mem.total,
            available=mem.available,
            used=mem.used,
            free=mem.free,
            used_percent=mem.percent,
        )

    def host_info(self) -> HostInfo:
        """Get host identity information."""
        platform_id, family, version = self._get_platform_identity()

        return HostInfo(
            hostname=socket.gethostname(),
            uptime=self.uptime(),
            boot_time=int(psutil.boot_time()),
            procs=len(psutil.pids()),
            os=platform.system().lower(),
            platform=platform_id,
            platform_family=family,
            platform_version=version,
            kernel_version=platform.release(),
            kernel_arch=platform.machine(),
            host_id=get_host_id(self.state_dir),
            virtualization_system=self._get_virtualization_system(),
        )

    def _get_platform_identity(self) -> tuple[str, str, str]:
        """Return (platform, family, version), preferring distro on Linux."""
        system = platform.system().lower()
        if system != "linux":
            return system, system, platform.version()

        return (
            distro.id() or system,
            distro.like() or distro.id(),
            distro.version() or platform.version(),
        )

    def _get_virtualization_system(self) -> str:
        stdout, _, rc = self.run_command(["systemd-detect-virt"])
        value = stdout.strip()
        if rc == 0 and value and value != "none":
            return value
        return ""

    def disk_partitions(self) -> list[DiskPartition]:
        return [
            DiskPartition(
                device=part.device,
                mountpoint=part.mountpoint,
                fstype=part.fstype,
                opts=part.opts,
            )
            for part in psutil.disk_partitions(all=False)
        ]

    def disk_usage(self, partition: DiskPartition) -> DiskUsage:
        usage = psutil.disk_usage(partition.mountpoint)
        return DiskUsage(
            device_name=partition.device,
            mountpoint=partition.mountpoint,
            fstype=partition.fstype,
            total=usage.total,
            used=usage.used,
            free=usage.free,
            used_percent=usage.percent,
        )

    def cpu_percent(self, interval: float) -> float:
        return float(psutil.cpu_percent(interval=interval))

    def cpu_info(self) -> list[CpuInfo]:
        """Get per-core CPU descriptors."""
        cores = self._parse_cpuinfo(self.read_file_lines(CPUINFO_PATH))
        if cores:
            return cores

        # No /proc/cpuinfo (macOS, Windows, BSD)
        count = psutil.cpu_count(logical=True) or 1
        physical = psutil.cpu_count(logical=False) or count
        freq = psutil.cpu_freq()
        model_name = platform.processor()

        return [
            CpuInfo(
                cpu=index,
                model_name=model_name,
                cores=physical,
                mhz=freq.current if freq else 0.0,
            )
            for index in range(count)
        ]

    def _parse_cpuinfo(self, lines: list[str]) -> list[CpuInfo]:
        """Parse /proc/cpuinfo into one CpuInfo per processor block."""
        cores = []
        block: dict[str, str] = {}

        for line in [*lines, ""]:
            if not line.strip():
                if "processor" in block:
                    cores.append(self._cpu_from_block(block))
                block = {}
                continue

            key, sep, value = line.partition(":")
            if sep:
                block[key.strip()] = value.strip()

        return cores

    @staticmethod
    def _cpu_from_block(block: dict[str, str]) -> CpuInfo:
        cache = block.get("cache size", "").split()
        # ARM kernels report Features instead of flags
        flags = block.get("flags") or block.get("Features", "")

        return CpuInfo(
            cpu=_to_int(block.get("processor")),
            vendor_id=block.get("vendor_id") or block.get("CPU implementer", ""),
            family=block.get("cpu family", ""),
            model=block.get("model", ""),
            stepping=_to_int(block.get("stepping")),
            physical_id=block.get("physical id", ""),
            core_id=block.get("core id", ""),
            cores=_to_int(block.get("cpu cores")),
            model_name=block.get("model name", ""),
            mhz=_to_float(block.get("cpu MHz")),
            cache_size=_to_int(cache[0]) if cache else 0,
            flags=tuple(flags.split()),
            microcode=block.get("microcode", ""),
        )

    def load_average(self) -> LoadAverage | None:
        if not hasattr(os, "getloadavg"):
            return None

        load = os.getloadavg()
        return LoadAverage(load1=load[0], load5=load[1], load15=load[2])

    def net_interfaces(self) -> list[NetInterface]:
        """Get network interface information."""
        interfaces = []

        addrs = psutil.net_if_addrs()
        stats = psutil.net_if_stats()

        for iface_name, addr_list in addrs.items():
            hardware_addr = ""
            addresses = []

            for addr in addr_list:
                if addr.family == socket.AF_INET:
                    addresses.append(
                        NetAddress(
                            family="ipv4",
                            address=addr.address,
                            netmask=addr.netmask,
                            broadcast=addr.broadcast,
                        )
                    )
                elif addr.family == socket.AF_INET6:
                    addresses.append(
                        NetAddress(family="ipv6", address=addr.address, netmask=addr.netmask)
                    )
                elif addr.family == psutil.AF_LINK:
                    hardware_addr = addr.address

            mtu = 0
            is_up = False
            flags: tuple[str, ...] = ()
            if iface_name in stats:
                s = stats[iface_name]
                mtu = s.mtu
                is_up = s.isup
                flags = tuple(f for f in getattr(s, "flags", "").split(",") if f)

            interfaces.append(
                NetInterface(
                    name=iface_name,
                    hardware_addr=hardware_addr,
                    mtu=mtu,
                    is_up=is_up,
                    flags=flags,
                    addresses=tuple(addresses),
                )
            )

        return interfaces

    def processes(self) -> list[int]:
        return sorted(psutil.pids())

    def uptime(self) -> int:
        return int(time.time() - psutil.boot_time())
