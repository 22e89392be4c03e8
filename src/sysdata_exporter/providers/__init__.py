"""
Stats providers for Sysdata Exporter.

A provider answers subsystem queries (memory, CPU, disk, network, host,
process, load) on demand. The collector only talks to this interface.
"""

from __future__ import annotations

from sysdata_exporter.providers.base import StatsProvider
from sysdata_exporter.providers.psutil_provider import PsutilProvider

__all__ = [
    "StatsProvider",
    "PsutilProvider",
]
