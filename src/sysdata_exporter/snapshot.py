"""
Snapshot records and their canonical JSON form.

A Snapshot is built once per run by the collector, serialized once, and
delivered once. All records are frozen; sequences are stored as tuples.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any

from sysdata_exporter.errors import SerializationError

# Canonical top-level keys of the JSON document
KEY_PLATFORM = "platform"
KEY_CPU_PERCENT = "cpu_percent"
KEY_CPU_INFO = "cpu_info"
KEY_MEMORY = "virtual_memory_info"
KEY_DISK_PARTITIONS = "disk_info"
KEY_DISK_USAGE = "disk_usage_info"
KEY_LOAD_AVERAGE = "cpu_load_average_info"
KEY_NETWORK = "network_interfaces_info"
KEY_HOST = "host_info"
KEY_UPTIME = "uptime_seconds"
KEY_PROCESSES = "processes"


def _plain(value: Any) -> Any:
    """Turn tuples into lists so the output matches what json.loads gives back."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


class _Record:
    """Mixin giving frozen dataclasses a dict form and a tolerant constructor."""

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))  # type: ignore[call-overload]

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        return cls(**{k: _freeze(v) for k, v in data.items() if k in known})


@dataclass(frozen=True)
class PlatformInfo(_Record):
    """OS family and CPU architecture of the running interpreter."""

    os: str
    arch: str


@dataclass(frozen=True)
class MemoryStats(_Record):
    """Point-in-time virtual memory statistics, in bytes."""

    total: int
    available: int
    used: int
    free: int
    used_percent: float


@dataclass(frozen=True)
class CpuInfo(_Record):
    """Descriptor of one logical core."""

    cpu: int
    vendor_id: str = ""
    family: str = ""
    model: str = ""
    stepping: int = 0
    physical_id: str = ""
    core_id: str = ""
    cores: int = 0
    model_name: str = ""
    mhz: float = 0.0
    cache_size: int = 0
    flags: tuple[str, ...] = ()
    microcode: str = ""


@dataclass(frozen=True)
class DiskPartition(_Record):
    device: str
    mountpoint: str
    fstype: str
    opts: str = ""


@dataclass(frozen=True)
class DiskUsage(_Record):
    """Usage statistics of one mounted filesystem."""

    device_name: str
    mountpoint: str
    fstype: str
    total: int
    used: int
    free: int
    used_percent: float


@dataclass(frozen=True)
class LoadAverage(_Record):
    load1: float
    load5: float
    load15: float


@dataclass(frozen=True)
class NetAddress(_Record):
    family: str
    address: str
    netmask: str | None = None
    broadcast: str | None = None


@dataclass(frozen=True)
class NetInterface(_Record):
    """A network interface with its link state and addresses."""

    name: str
    hardware_addr: str = ""
    mtu: int = 0
    is_up: bool = False
    flags: tuple[str, ...] = ()
    addresses: tuple[NetAddress, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NetInterface:
        return cls(
            name=data["name"],
            hardware_addr=data.get("hardware_addr", ""),
            mtu=data.get("mtu", 0),
            is_up=data.get("is_up", False),
            flags=tuple(data.get("flags", ())),
            addresses=tuple(NetAddress.from_dict(a) for a in data.get("addresses", ())),
        )


@dataclass(frozen=True)
class HostInfo(_Record):
    """Static host identity."""

    hostname: str
    uptime: int
    boot_time: int
    procs: int
    os: str
    platform: str
    platform_family: str
    platform_version: str
    kernel_version: str
    kernel_arch: str
    host_id: str
    virtualization_system: str = ""


@dataclass(frozen=True)
class Snapshot:
    """Everything collected from the host in one run."""

    platform: PlatformInfo
    cpu_percent: float
    cpu_info: tuple[CpuInfo, ...]
    memory: MemoryStats
    disk_partitions: tuple[DiskPartition, ...]
    disk_usage: tuple[DiskUsage, ...]
    load_average: LoadAverage | None
    network_interfaces: tuple[NetInterface, ...]
    host_info: HostInfo
    uptime_seconds: int
    processes: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert the snapshot to its canonical document structure."""
        return {
            KEY_PLATFORM: self.platform.to_dict(),
            KEY_CPU_PERCENT: self.cpu_percent,
            KEY_CPU_INFO: [c.to_dict() for c in self.cpu_info],
            KEY_MEMORY: self.memory.to_dict(),
            KEY_DISK_PARTITIONS: [p.to_dict() for p in self.disk_partitions],
            KEY_DISK_USAGE: {u.mountpoint: u.to_dict() for u in self.disk_usage},
            KEY_LOAD_AVERAGE: self.load_average.to_dict() if self.load_average else None,
            KEY_NETWORK: [n.to_dict() for n in self.network_interfaces],
            KEY_HOST: self.host_info.to_dict(),
            KEY_UPTIME: self.uptime_seconds,
            KEY_PROCESSES: list(self.processes),
        }

    def to_json(self) -> str:
        """
        Serialize the snapshot to a single-line JSON document.

        Raises:
            SerializationError: If any value cannot be represented in JSON.
        """
        try:
            return json.dumps(self.to_dict(), allow_nan=False, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Snapshot is not JSON serializable: {e}") from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        """Rebuild a snapshot from a parsed canonical document."""
        load = data.get(KEY_LOAD_AVERAGE)
        return cls(
            platform=PlatformInfo.from_dict(data[KEY_PLATFORM]),
            cpu_percent=data[KEY_CPU_PERCENT],
            cpu_info=tuple(CpuInfo.from_dict(c) for c in data[KEY_CPU_INFO]),
            memory=MemoryStats.from_dict(data[KEY_MEMORY]),
            disk_partitions=tuple(DiskPartition.from_dict(p) for p in data[KEY_DISK_PARTITIONS]),
            disk_usage=tuple(DiskUsage.from_dict(u) for u in data[KEY_DISK_USAGE].values()),
            load_average=LoadAverage.from_dict(load) if load is not None else None,
            network_interfaces=tuple(NetInterface.from_dict(n) for n in data[KEY_NETWORK]),
            host_info=HostInfo.from_dict(data[KEY_HOST]),
            uptime_seconds=data[KEY_UPTIME],
            processes=tuple(data[KEY_PROCESSES]),
        )

    @classmethod
    def from_json(cls, document: str) -> Snapshot:
        return cls.from_dict(json.loads(document))
