from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from pygame.math import Vector2

from ..core.agent import Agent, Strategy, TurnPreference
from ..core.hexgrid import DIRECTION_COUNT

if TYPE_CHECKING:
    from ..core.simulator import Simulator

logger = logging.getLogger(__name__)


class PopulationManager:
    """
    Owns the active agents, in evaluation order, until they retire.

    Spawning picks a strategy from the fitness tracker, then a free lattice point: random
    samples first, then an exhaustive row/column scan.
    """

    def __init__(self, max_agents: int) -> None:
        self._max_agents = max_agents
        self._agents: List[Agent] = []
        self._by_id: Dict[int, Agent] = {}
        self._next_id = 0
        self._spawned = 0
        self._retired = 0

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def max_agents(self) -> int:
        return self._max_agents

    @property
    def spawned_total(self) -> int:
        return self._spawned

    @property
    def retired_total(self) -> int:
        return self._retired

    def __len__(self) -> int:
        return len(self._agents)

    def get(self, agent_id: int) -> Optional[Agent]:
        return self._by_id.get(agent_id)

    def at_capacity(self) -> bool:
        return len(self._agents) >= self._max_agents

    def find_free_cell(self, sim: Simulator) -> Optional[Vector2]:
        grid = sim.grid
        rng = sim.rng
        row_span = grid.height / grid.row_height
        col_span = grid.width / grid.hex_size
        for _ in range(sim.config.spawn_attempts):
            row = int(rng.next_float() * row_span)
            col = int(rng.next_float() * col_span)
            point = grid.lattice_point(row, col)
            if grid.in_bounds(point) and not grid.is_occupied(point):
                return point
        for point in grid.iter_lattice():
            if not grid.is_occupied(point):
                return point
        return None

    def spawn(
        self,
        sim: Simulator,
        now: float,
        strategy: Optional[Strategy] = None,
        position: Optional[Vector2] = None,
        heading: Optional[int] = None,
        turn_preference: Optional[TurnPreference] = None,
    ) -> Optional[Agent]:
        if self.at_capacity():
            return None
        kind = strategy if strategy is not None else sim.fitness.select(sim.rng, sim.config.mutation_rate)
        if position is None:
            cell = self.find_free_cell(sim)
        else:
            cell = sim.grid.snap_to_grid(position)
            if not sim.grid.in_bounds(cell) or sim.grid.is_occupied(cell):
                cell = None
        if cell is None:
            logger.debug("spawn failed at t=%.3f: no free cell", now)
            return None

        rng = sim.rng
        agent = Agent(
            id=self._next_id,
            position=cell,
            heading=heading if heading is not None else rng.next_int(DIRECTION_COUNT),
            strategy=kind,
            turn_preference=(
                turn_preference
                if turn_preference is not None
                else (TurnPreference.RIGHT if rng.coin_flip() else TurnPreference.LEFT)
            ),
            birth_time=now,
            hue_seed=rng.next_range(0.0, 360.0),
        )
        self._next_id += 1
        sim.grid.occupy(cell, agent.id, now)
        sim.traces.register_owner(agent.id)
        self._agents.append(agent)
        self._by_id[agent.id] = agent
        self._spawned += 1
        logger.debug("spawned agent %d (%s) at %s", agent.id, kind.value, sim.grid.canonical_key(cell))
        return agent

    def remove(self, agent: Agent) -> None:
        if self._by_id.pop(agent.id, None) is None:
            return
        self._agents = [other for other in self._agents if other.id != agent.id]
        self._retired += 1

    def reset(self) -> None:
        self._agents.clear()
        self._by_id.clear()
        self._next_id = 0
        self._spawned = 0
        self._retired = 0
