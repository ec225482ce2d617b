from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, List, Optional, Tuple

from .agent import Agent
from .config import SimulationConfig
from .hexgrid import DIRECTION_NAMES, HexGrid
from .rng import DeterministicRng
from .traces import TraceSegment, TraceStore
from ..systems import conflicts, lifecycle, metrics as metrics_system, movement, palette
from ..systems.fitness import FitnessTracker
from ..systems.population import PopulationManager
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata

logger = logging.getLogger(__name__)


class Simulator:
    """
    One independent run: grid, traces, fitness, population and the single RNG.

    Every tick is intend -> resolve -> commit. All agents choose their move against the
    same occupancy table, and only the commit phase writes cells or segments.
    """

    def __init__(self, config: SimulationConfig):
        self._config = config.validate()
        self._rng = DeterministicRng(config.seed)
        self._grid = HexGrid(config.hex_size, config.width, config.height)
        self._traces = TraceStore()
        self._fitness = FitnessTracker()
        self._population = PopulationManager(config.max_agents)
        self._tick = 0
        self._time = 0.0
        self._last_step_time: Optional[float] = None
        self._last_spawn_time: Optional[float] = None
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def rng(self) -> DeterministicRng:
        return self._rng

    @property
    def grid(self) -> HexGrid:
        return self._grid

    @property
    def traces(self) -> TraceStore:
        return self._traces

    @property
    def fitness(self) -> FitnessTracker:
        return self._fitness

    @property
    def population(self) -> PopulationManager:
        return self._population

    @property
    def agents(self) -> List[Agent]:
        return self._population.agents

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def time(self) -> float:
        return self._time

    def reset(self) -> None:
        self._rng.reset()
        self._grid.clear()
        self._traces.clear()
        self._fitness.reset()
        self._population.reset()
        self._tick = 0
        self._time = 0.0
        self._last_step_time = None
        self._last_spawn_time = None
        self._metrics = None
        self._bootstrap_population()

    def advance(self, now: float) -> Optional[TickMetrics]:
        """Run a tick if at least ``step_delay`` has passed since the previous one."""

        if self._last_step_time is not None and now - self._last_step_time < self._config.step_delay:
            return None
        return self.step(now)

    def step(self, now: float) -> TickMetrics:
        start = perf_counter()
        config = self._config
        self._tick += 1
        self._time = now
        self._last_step_time = now

        intents: List[conflicts.IntendedMove] = []
        stuck: List[Agent] = []
        for agent in self._population.agents:
            move = movement.find_move(self, agent)
            if move is None:
                stuck.append(agent)
            else:
                intents.append(move)

        resolution = conflicts.resolve_conflicts(intents)
        moves = 0
        commit_races = 0
        for move in resolution.accepted:
            if lifecycle.commit_move(self, move, now):
                moves += 1
            else:
                commit_races += 1
                stuck.append(move.agent)

        for agent in stuck:
            lifecycle.retire_agent(self, agent, now)

        pruned = 0
        if not config.infinite_lifetime and self._tick % config.prune_interval == 0:
            pruned = lifecycle.prune_faded_traces(self, now)

        spawned, evicted = self._spawn_if_due(now)

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            self._tick,
            now,
            (
                len(self._population),
                spawned,
                len(stuck),
                moves,
                resolution.conflicts,
                len(resolution.head_on),
                commit_races,
                pruned,
            ),
            self._occupancy_stats(evicted),
            elapsed_ms,
        )
        self._metrics = metrics
        return metrics

    def snapshot(self) -> Snapshot:
        now = self._time
        metrics = self._metrics if self._metrics is not None else self._snapshot_metrics_from_state()
        segments_payload = [self._segment_snapshot(segment, now) for segment in self._traces.segments]
        owners = set(self._traces.owners())
        owners.update(agent.id for agent in self._population.agents)
        brightness = {owner: lifecycle.owner_brightness(self, owner, now) for owner in sorted(owners)}
        config = self._config
        metadata = SnapshotMetadata(
            width=config.width,
            height=config.height,
            hex_size=config.hex_size,
            line_width=config.line_width,
            step_delay=config.step_delay,
            tick_rate=0.0 if config.step_delay <= 0 else 1.0 / config.step_delay,
            seed=config.seed,
            config_version=config.config_version,
            lifecycle="infinite" if config.infinite_lifetime else "fading",
        )
        return Snapshot(
            tick=self._tick,
            time=now,
            metrics=metrics,
            agents=[self._agent_snapshot(agent, now) for agent in self._population.agents],
            segments=segments_payload,
            brightness=brightness,
            fitness=self._fitness.export(),
            metadata=metadata,
        )

    def _bootstrap_population(self) -> None:
        for _ in range(self._config.initial_agents):
            if self._population.spawn(self, self._time) is None:
                logger.debug("initial population stopped early: grid is full")
                break

    def _spawn_if_due(self, now: float) -> Tuple[int, int]:
        if self._population.at_capacity():
            return 0, 0
        if self._last_spawn_time is not None and now - self._last_spawn_time < self._config.spawn_delay:
            return 0, 0
        self._last_spawn_time = now
        if self._population.spawn(self, now) is not None:
            return 1, 0
        if not self._config.infinite_lifetime:
            return 0, 0
        if lifecycle.evict_oldest_trace(self) is None:
            return 0, 0
        return (1 if self._population.spawn(self, now) is not None else 0), 1

    def _occupancy_stats(self, evicted: int) -> Tuple[int, int, int, int]:
        return (
            len(self._traces),
            self._grid.occupied_count,
            self._traces.dead_owner_count,
            evicted,
        )

    def _snapshot_metrics_from_state(self) -> TickMetrics:
        return metrics_system.create_metrics(
            self._tick,
            self._time,
            (len(self._population), 0, 0, 0, 0, 0, 0, 0),
            self._occupancy_stats(0),
            0.0,
        )

    def _agent_snapshot(self, agent: Agent, now: float) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "heading": agent.heading,
            "heading_name": DIRECTION_NAMES[agent.heading],
            "strategy": agent.strategy.value,
            "turn_preference": agent.turn_preference.value,
            "age": agent.lifetime(now),
            "distance": agent.distance_traveled,
            "cells": agent.cells_visited,
            "hue_seed": agent.hue_seed,
        }

    def _segment_snapshot(self, segment: TraceSegment, now: float) -> Dict[str, Any]:
        hue, saturation, lightness = palette.segment_color(
            segment, now, self._config.width, self._config.height, self._config.palette
        )
        return {
            "x1": segment.start[0],
            "y1": segment.start[1],
            "x2": segment.end[0],
            "y2": segment.end[1],
            "owner": segment.owner_id,
            "hue_seed": segment.hue_seed,
            "birth_time": segment.birth_time,
            "created_at": segment.created_at,
            "sequence": segment.sequence_index,
            "dot": segment.is_dot,
            "h": hue,
            "s": saturation,
            "l": lightness,
        }
