"""JSONL telemetry sink for simulator outputs."""

from .logger import TelemetryLogger

__all__ = ["TelemetryLogger"]
