from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..core.agent import Agent
from ..utils.math2d import _clamp_value
from .conflicts import IntendedMove
from .movement import apply_turn

if TYPE_CHECKING:
    from ..core.simulator import Simulator

logger = logging.getLogger(__name__)


def trace_brightness(elapsed_since_death: float, trace_lifetime: float, fade_duration: float) -> float:
    if elapsed_since_death <= trace_lifetime:
        return 1.0
    if fade_duration <= 0.0:
        return 0.0
    return _clamp_value(1.0 - (elapsed_since_death - trace_lifetime) / fade_duration, 0.0, 1.0)


def owner_brightness(sim: Simulator, owner_id: int, now: float) -> float:
    if sim.population.get(owner_id) is not None:
        return 1.0
    died = sim.traces.death_time(owner_id)
    if died is None:
        return 0.0
    if sim.config.infinite_lifetime:
        return 1.0
    return trace_brightness(now - died, sim.config.trace_lifetime, sim.config.fade_duration)


def commit_move(sim: Simulator, move: IntendedMove, now: float) -> bool:
    """
    Apply an accepted move. Returns False on a commit race, in which case the agent must
    be retired; the occupancy table is left untouched.
    """

    agent = move.agent
    grid = sim.grid
    if grid.is_key_occupied(move.key):
        record = grid.cells[move.key]
        logger.warning(
            "commit race: agent %d lost cell %s to agent %d at t=%.3f",
            agent.id,
            move.key,
            record.owner_id,
            now,
        )
        return False

    origin = agent.position
    from_key = grid.canonical_key(origin)
    grid.occupy(move.destination, agent.id, now)
    sim.traces.append(
        owner_id=agent.id,
        start=(origin.x, origin.y),
        end=(move.destination.x, move.destination.y),
        from_key=from_key,
        to_key=move.key,
        hue_seed=agent.hue_seed,
        birth_time=agent.birth_time,
        now=now,
    )
    agent.distance_traveled += origin.distance_to(move.destination)
    agent.cells_visited += 1
    agent.position = move.destination
    apply_turn(agent, move.direction)
    return True


def retire_agent(sim: Simulator, agent: Agent, now: float) -> None:
    agent.alive = False
    agent.death_time = now
    key = sim.grid.canonical_key(agent.position)
    point = (agent.position.x, agent.position.y)
    sim.traces.append(
        owner_id=agent.id,
        start=point,
        end=point,
        from_key=key,
        to_key=key,
        hue_seed=agent.hue_seed,
        birth_time=agent.birth_time,
        now=now,
    )
    sim.traces.mark_dead(agent.id, now)
    sim.fitness.record(agent.strategy, agent.lifetime(now), agent.distance_traveled, agent.cells_visited)
    sim.population.remove(agent)
    logger.debug(
        "agent %d (%s) retired at t=%.3f after %d cells",
        agent.id,
        agent.strategy.value,
        now,
        agent.cells_visited,
    )


def release_trace(sim: Simulator, owner_id: int) -> int:
    sim.grid.release_owner(owner_id)
    return sim.traces.remove_owner(owner_id)


def prune_faded_traces(sim: Simulator, now: float) -> int:
    if sim.config.infinite_lifetime:
        return 0
    full_interval = sim.config.trace_lifetime + sim.config.fade_duration
    expired = sim.traces.expired_owners(now, full_interval)
    for owner_id in expired:
        release_trace(sim, owner_id)
    if expired:
        logger.debug("pruned %d faded traces at t=%.3f", len(expired), now)
    return len(expired)


def evict_oldest_trace(sim: Simulator) -> Optional[int]:
    owner_id = sim.traces.oldest_dead_owner()
    if owner_id is None:
        return None
    segments = release_trace(sim, owner_id)
    logger.debug("evicted trace of agent %d (%d segments)", owner_id, segments)
    return owner_id
