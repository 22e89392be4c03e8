"""
Snapshot collection for Sysdata Exporter.

Queries every subsystem once, in a fixed order, and stops at the first
failure. A partial snapshot is never returned.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from sysdata_exporter.errors import CollectionError, ConfigError
from sysdata_exporter.providers.base import StatsProvider
from sysdata_exporter.snapshot import DiskUsage, Snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CPU_SAMPLE_INTERVAL = 5.0

# Query order
SUBSYSTEMS = [
    "platform",
    "memory",
    "host",
    "disk",
    "cpu",
    "load",
    "network",
    "process",
    "uptime",
]


class Collector:
    """
    Assembles a Snapshot from a StatsProvider.

    The CPU usage query blocks for ``cpu_sample_interval`` seconds; this is
    the measurement window, and it dominates the run time.
    """

    def __init__(
        self,
        provider: StatsProvider,
        cpu_sample_interval: float = DEFAULT_CPU_SAMPLE_INTERVAL,
    ):
        if cpu_sample_interval < 0:
            raise ConfigError(f"cpu_sample_interval must be >= 0, got {cpu_sample_interval}")
        self.provider = provider
        self.cpu_sample_interval = cpu_sample_interval

    def collect(self) -> Snapshot:
        """
        Query all subsystems and build a snapshot.

        Returns:
            The assembled Snapshot.

        Raises:
            CollectionError: Tagged with the first subsystem that failed.
        """
        p = self.provider
        start = time.perf_counter()

        platform = self._query("platform", p.platform)
        memory = self._query("memory", p.virtual_memory)
        host_info = self._query("host", p.host_info)
        partitions = self._query("disk", p.disk_partitions)
        disk_usage = self._query("disk", self._collect_disk_usage, partitions)
        cpu_percent = self._query("cpu", p.cpu_percent, self.cpu_sample_interval)
        cpu_info = self._query("cpu", p.cpu_info)
        load_average = self._query("load", p.load_average)
        interfaces = self._query("network", p.net_interfaces)
        processes = self._query("process", p.processes)
        uptime = self._query("uptime", p.uptime)

        duration = (time.perf_counter() - start) * 1000
        logger.info(
            f"Collected {len(SUBSYSTEMS)} subsystems in {duration:.0f}ms "
            f"({len(partitions)} partitions, {len(interfaces)} interfaces, "
            f"{len(processes)} processes)"
        )

        return Snapshot(
            platform=platform,
            cpu_percent=cpu_percent,
            cpu_info=tuple(cpu_info),
            memory=memory,
            disk_partitions=tuple(partitions),
            disk_usage=tuple(disk_usage),
            load_average=load_average,
            network_interfaces=tuple(interfaces),
            host_info=host_info,
            uptime_seconds=uptime,
            processes=tuple(processes),
        )

    def _collect_disk_usage(self, partitions) -> list[DiskUsage]:
        """
        Read usage for every partition whose mountpoint is reachable.

        Usage is keyed by mountpoint, so only the first partition mounted
        at a given path is measured.
        """
        usage = []
        seen = set()
        for partition in partitions:
            if partition.mountpoint in seen:
                logger.debug(
                    f"Skipping {partition.device}: mountpoint {partition.mountpoint} already measured"
                )
                continue
            if not self.provider.mountpoint_accessible(partition.mountpoint):
                logger.debug(f"Skipping inaccessible mountpoint {partition.mountpoint}")
                continue
            seen.add(partition.mountpoint)
            usage.append(self.provider.disk_usage(partition))
        return usage

    def _query(self, subsystem: str, func: Callable[..., T], *args: Any) -> T:
        start = time.perf_counter()
        try:
            result = func(*args)
        except CollectionError:
            raise
        except Exception as e:
            logger.debug(f"Subsystem '{subsystem}' failed", exc_info=True)
            raise CollectionError(subsystem, e) from e

        duration = (time.perf_counter() - start) * 1000
        logger.debug(f"Subsystem '{subsystem}' queried in {duration:.2f}ms")
        return result
