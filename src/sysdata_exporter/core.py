"""
Core orchestration module for Sysdata Exporter.

Runs the collect, serialize, deliver pipeline once and tracks its state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sysdata_exporter.collector import Collector
from sysdata_exporter.config import Config
from sysdata_exporter.errors import ExporterError
from sysdata_exporter.providers import PsutilProvider, StatsProvider
from sysdata_exporter.sinks import DeliveryResult, Sink, build_sink
from sysdata_exporter.snapshot import Snapshot

logger = logging.getLogger(__name__)


class ExportState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    SERIALIZING = "serializing"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"


# Allowed transitions; any non-terminal state may also go to FAILED
TRANSITIONS = {
    ExportState.IDLE: {ExportState.COLLECTING},
    ExportState.COLLECTING: {ExportState.SERIALIZING},
    ExportState.SERIALIZING: {ExportState.DELIVERING},
    ExportState.DELIVERING: {ExportState.DONE},
    ExportState.DONE: set(),
    ExportState.FAILED: set(),
}


@dataclass
class ExportResult:
    """Outcome of a successful run."""

    snapshot: Snapshot
    document: str
    delivery: DeliveryResult | None = None


class Exporter:
    """
    Main orchestrator for one export run.

    Builds the sink first so a bad destination fails before the CPU
    sampling window is spent, then collects, serializes and delivers.
    """

    def __init__(self, config: Config | None = None, provider: StatsProvider | None = None):
        self.config = config or Config()
        self.provider = provider or PsutilProvider(state_dir=self.config.state_dir)
        self.state = ExportState.IDLE

    def run(self) -> ExportResult:
        """
        Run the pipeline.

        Returns:
            ExportResult with the snapshot, its document and the HTTP
            response when delivering over HTTP.

        Raises:
            ExporterError: The first failure of any stage; the state is FAILED.
            RuntimeError: If this exporter has already run.
        """
        if self.state is not ExportState.IDLE:
            raise RuntimeError(f"Exporter already ran (state: {self.state.value})")

        try:
            sink = build_sink(self.config)
            logger.debug(f"Delivering to {sink.name} sink")

            self._transition(ExportState.COLLECTING)
            snapshot = self._collect()

            self._transition(ExportState.SERIALIZING)
            document = snapshot.to_json()

            self._transition(ExportState.DELIVERING)
            delivery = self._deliver(sink, document)
        except ExporterError:
            self.state = ExportState.FAILED
            raise

        self._transition(ExportState.DONE)
        return ExportResult(snapshot=snapshot, document=document, delivery=delivery)

    def _collect(self) -> Snapshot:
        collector = Collector(
            self.provider,
            cpu_sample_interval=self.config.cpu_sample_interval,
        )
        logger.info(
            f"Collecting host telemetry (cpu sample window {self.config.cpu_sample_interval}s)"
        )
        return collector.collect()

    def _deliver(self, sink: Sink, document: str) -> DeliveryResult | None:
        logger.debug(f"Serialized snapshot is {len(document)} bytes")
        return sink.deliver(document)

    def _transition(self, new_state: ExportState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Export state {self.state.value} -> {new_state.value}")
        self.state = new_state


def run_export(config: Config | None = None, provider: StatsProvider | None = None) -> ExportResult:
    """
    Convenience function to run one export.

    Args:
        config: Optional configuration. Uses defaults if not provided.
        provider: Optional stats provider. Uses the live psutil provider if not provided.

    Returns:
        The export result.
    """
    return Exporter(config, provider).run()
