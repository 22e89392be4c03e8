"""
Error types for Sysdata Exporter.

Every error is terminal: it aborts the run and is reported once by the CLI.
The ``stage`` attribute names the pipeline stage that failed.
"""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for all exporter failures."""

    stage: str = "export"


class ConfigError(ExporterError):
    """Raised when configuration cannot be loaded or coerced."""

    stage = "configuration"


class ValidationError(ExporterError):
    """Raised when the destination is not a well-formed absolute URL."""

    stage = "validation"


class CollectionError(ExporterError):
    """Raised when an OS subsystem query fails."""

    stage = "collection"

    def __init__(self, subsystem: str, cause: BaseException | str):
        self.subsystem = subsystem
        self.cause = cause
        super().__init__(f"{subsystem} query failed: {cause}")


class SerializationError(ExporterError):
    """Raised when a snapshot cannot be converted to JSON."""

    stage = "serialization"


class TransportError(ExporterError):
    """Raised on network-level failures reaching the destination."""

    stage = "transport"


class OutputError(ExporterError):
    """Raised when writing to standard output fails."""

    stage = "output"
