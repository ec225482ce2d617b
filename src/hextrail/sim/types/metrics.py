from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    time: float
    population: int
    spawned: int
    retired: int
    moves: int
    conflicts: int
    head_on: int
    commit_races: int
    segments: int
    occupied_cells: int
    dead_traces: int
    pruned: int
    evicted: int
    tick_duration_ms: float = 0.0
