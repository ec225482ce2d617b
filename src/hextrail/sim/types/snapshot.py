from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    time: float
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    segments: List[Dict[str, Any]]
    brightness: Dict[int, float]
    fitness: Dict[str, Dict[str, Any]]
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotMetadata:
    width: float
    height: float
    hex_size: float
    line_width: float
    step_delay: float
    tick_rate: float
    seed: int
    config_version: str
    lifecycle: str
