"""
Sysdata Exporter - Host telemetry snapshot and delivery tool.

Collects memory, CPU, disk, network, process and host information in one
snapshot and prints it as JSON or POSTs it to an HTTP endpoint.
"""

__version__ = "0.4.0"
__author__ = "Sluggisty"

__all__ = ["__version__"]
