from __future__ import annotations

from typing import Tuple

from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    time: float,
    counts: Tuple[int, int, int, int, int, int, int, int],
    occupancy: Tuple[int, int, int, int],
    duration_ms: float,
) -> TickMetrics:
    population, spawned, retired, moves, conflicts, head_on, commit_races, pruned = counts
    segments, occupied_cells, dead_traces, evicted = occupancy
    return TickMetrics(
        tick=tick,
        time=time,
        population=population,
        spawned=spawned,
        retired=retired,
        moves=moves,
        conflicts=conflicts,
        head_on=head_on,
        commit_races=commit_races,
        segments=segments,
        occupied_cells=occupied_cells,
        dead_traces=dead_traces,
        pruned=pruned,
        evicted=evicted,
        tick_duration_ms=duration_ms,
    )
