from __future__ import annotations

from typing import Any, Dict, Optional, TextIO
import json
import os
import threading


class TelemetryLogger:
    """Structured JSONL sink for simulator outputs.

    Thread-safe, append-only logging of dict records, one JSON object per line.
    Robot records carry pose, last command, collision flag and, when the robot
    has a sensor, its last scan.
    """

    def __init__(self, path: str, include_scans: bool = True) -> None:
        self.path = path
        self.include_scans = include_scans
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._lock = threading.Lock()
        self._fp: Optional[TextIO] = open(self.path, "a", encoding="utf-8")

    def log_step(self, record: Dict[str, Any]) -> None:
        """Append a single telemetry record to the JSONL file."""
        if self._fp is None:
            return
        line = json.dumps(record, separators=(",", ":"))
        with self._lock:
            self._fp.write(line + "\n")
            self._fp.flush()

    def log_robot(self, tick: int, t: float, robot: Any) -> None:
        """Record one robot's committed state after a tick."""
        record: Dict[str, Any] = {
            "tick": tick,
            "t": t,
            "robot": robot.name,
            "id": robot.robot_id,
            "pose": robot.pose.to_dict(),
            "twist": robot.last_twist.to_dict(),
            "collided": robot.collided,
        }
        if self.include_scans and robot.last_scan is not None:
            record["scan"] = robot.last_scan.to_dict()
        self.log_step(record)

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def __enter__(self) -> "TelemetryLogger":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
