"""
Base provider class that all stats providers inherit from.
"""

from __future__ import annotations

import logging
import os
import subprocess
from abc import ABC, abstractmethod

from sysdata_exporter.snapshot import (
    CpuInfo,
    DiskPartition,
    DiskUsage,
    HostInfo,
    LoadAverage,
    MemoryStats,
    NetInterface,
    PlatformInfo,
)


class StatsProvider(ABC):
    """
    Abstract source of current host state.

    Each method answers one subsystem query on demand. Implementations
    raise on failure; the collector decides what a failure means.
    """

    name: str = "base"
    description: str = "Base provider"

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @abstractmethod
    def platform(self) -> PlatformInfo:
        """Return the OS family and CPU architecture."""

    @abstractmethod
    def virtual_memory(self) -> MemoryStats:
        """Return current virtual memory statistics."""

    @abstractmethod
    def host_info(self) -> HostInfo:
        """Return static host identity."""

    @abstractmethod
    def disk_partitions(self) -> list[DiskPartition]:
        """Return mounted physical partitions."""

    @abstractmethod
    def disk_usage(self, partition: DiskPartition) -> DiskUsage:
        """Return usage statistics for a partition's mountpoint."""

    @abstractmethod
    def cpu_percent(self, interval: float) -> float:
        """
        Return total CPU utilisation.

        Blocks for ``interval`` seconds while sampling.
        """

    @abstractmethod
    def cpu_info(self) -> list[CpuInfo]:
        """Return one descriptor per logical core."""

    @abstractmethod
    def load_average(self) -> LoadAverage | None:
        """Return 1/5/15 minute load, or None where the OS has none."""

    @abstractmethod
    def net_interfaces(self) -> list[NetInterface]:
        """Return network interfaces with their addresses."""

    @abstractmethod
    def processes(self) -> list[int]:
        """Return live process ids in ascending order."""

    @abstractmethod
    def uptime(self) -> int:
        """Return seconds since boot."""

    def mountpoint_accessible(self, path: str) -> bool:
        """Return True if the mountpoint can currently be stat'ed."""
        try:
            os.stat(path)
        except OSError:
            return False
        return True

    def run_command(
        self,
        cmd: list[str],
        timeout: int = 30,
    ) -> tuple[str, str, int]:
        """
        Run a command and return output.

        Args:
            cmd: Command and arguments as list.
            timeout: Timeout in seconds.

        Returns:
            Tuple of (stdout, stderr, returncode).
        """
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
            return result.stdout, result.stderr, result.returncode
        except subprocess.TimeoutExpired:
            self.logger.warning(f"Command timed out: {' '.join(cmd)}")
            return "", "Command timed out", -1
        except FileNotFoundError:
            self.logger.debug(f"Command not found: {cmd[0]}")
            return "", f"Command not found: {cmd[0]}", -1

    def read_file(self, path: str, default: str = "") -> str:
        """
        Read a file and return its contents.

        Args:
            path: Path to the file.
            default: Default value if file cannot be read.

        Returns:
            File contents or default value.
        """
        try:
            with open(path) as f:
                return f.read()
        except OSError as e:
            self.logger.debug(f"Could not read {path}: {e}")
            return default

    def read_file_lines(self, path: str) -> list[str]:
        """Read a file and return lines as list."""
        content = self.read_file(path)
        if content:
            return content.strip().split("\n")
        return []

