from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.agent import Strategy
from ..sim.core.config import SimulationConfig
from ..sim.core.simulator import Simulator
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "time",
    "population",
    "spawned",
    "retired",
    "moves",
    "conflicts",
    "tick_ms",
]

_STRATEGY_COLUMNS = [kind.value.replace("-", "_") for kind in Strategy]

_DETAILED_HEADER = [
    "tick",
    "time",
    "population",
    "spawned",
    "retired",
    "moves",
    "conflicts",
    "head_on",
    "commit_races",
    "segments",
    "occupied_cells",
    "occupancy_ratio",
    "dead_traces",
    "pruned",
    "evicted",
    "tick_ms",
    "tick_ms_per_agent",
    *[f"{name}_count" for name in _STRATEGY_COLUMNS],
    *[f"{name}_weight" for name in _STRATEGY_COLUMNS],
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        f"{metrics.time:.4f}",
        metrics.population,
        metrics.spawned,
        metrics.retired,
        metrics.moves,
        metrics.conflicts,
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(sim: Simulator, metrics: TickMetrics, lattice_size: int, tick_ms: float) -> list[object]:
    population = metrics.population
    occupancy_ratio = 0.0 if lattice_size <= 0 else metrics.occupied_cells / lattice_size
    tick_ms_per_agent = 0.0 if population <= 0 else tick_ms / population
    weights = sim.fitness.weights()
    return [
        metrics.tick,
        f"{metrics.time:.4f}",
        population,
        metrics.spawned,
        metrics.retired,
        metrics.moves,
        metrics.conflicts,
        metrics.head_on,
        metrics.commit_races,
        metrics.segments,
        metrics.occupied_cells,
        f"{occupancy_ratio:.4f}",
        metrics.dead_traces,
        metrics.pruned,
        metrics.evicted,
        f"{tick_ms:.3f}",
        f"{tick_ms_per_agent:.4f}",
        *[sim.fitness[kind].count for kind in Strategy],
        *[f"{weights[kind]:.4f}" for kind in Strategy],
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    total = sum(values)
    count = len(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(total / count),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    config_path: Optional[Path] = None,
) -> Simulator:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    sim = Simulator(config)

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    lattice_size = sum(1 for _ in sim.grid.iter_lattice())
    tick_ms_series: list[float] = []
    population_series: list[int] = []
    segment_series: list[int] = []
    occupancy_series: list[float] = []
    retired_total = 0
    spawned_total = 0

    for tick in range(steps):
        metrics = sim.step(tick * config.step_delay)
        tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
        retired_total += metrics.retired
        spawned_total += metrics.spawned

        if summary_path:
            tick_ms_series.append(tick_ms)
            population_series.append(metrics.population)
            segment_series.append(metrics.segments)
            occupancy_series.append(0.0 if lattice_size <= 0 else metrics.occupied_cells / lattice_size)

        if writer:
            if log_mode == "detailed":
                writer.writerow(_format_detailed_row(sim, metrics, lattice_size, tick_ms))
            else:
                writer.writerow(_format_basic_row(metrics, tick_ms))

    if csv_file:
        csv_file.close()

    logger.info("ran %d ticks: %d spawned, %d retired", steps, spawned_total, retired_total)

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "lifecycle": "infinite" if config.infinite_lifetime else "fading",
            "spawned": spawned_total,
            "retired": retired_total,
            "tick_ms": _summary_stats(tick_ms_series),
            "population": _summary_stats([float(v) for v in population_series]),
            "segments": _summary_stats([float(v) for v in segment_series]),
            "occupancy_ratio": _summary_stats(occupancy_series),
            "fitness": sim.fitness.export(),
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "population": _summary_stats([float(v) for v in population_series[tail_slice]]),
                "segments": _summary_stats([float(v) for v in segment_series[tail_slice]]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return sim


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless hex trail simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default config")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=5000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="WARNING", help="Python logging level for diagnostics.")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
    )


if __name__ == "__main__":
    main()
