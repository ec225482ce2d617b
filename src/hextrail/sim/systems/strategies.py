from __future__ import annotations

from typing import Dict, List

from ..core.agent import Agent, Strategy
from ..core.hexgrid import DIRECTION_COUNT
from ..core.rng import DeterministicRng

STRAIGHT = 0
REVERSE = 3


def _relative(agent: Agent, offsets: List[int]) -> List[int]:
    return [(agent.heading + offset) % DIRECTION_COUNT for offset in offsets]


class MovementStrategy:
    """Orders the six hex directions for one agent; the first legal one is taken."""

    kind: Strategy

    def propose_directions(self, agent: Agent, rng: DeterministicRng) -> List[int]:
        raise NotImplementedError


class WallFollower(MovementStrategy):
    kind = Strategy.WALL_FOLLOWER

    def propose_directions(self, agent: Agent, rng: DeterministicRng) -> List[int]:
        turn = agent.turn_preference.step
        return _relative(agent, [turn, STRAIGHT, 2 * turn, REVERSE, -2 * turn, -turn])


class Wanderer(MovementStrategy):
    kind = Strategy.WANDERER

    def propose_directions(self, agent: Agent, rng: DeterministicRng) -> List[int]:
        sharp = 1 if rng.coin_flip() else -1
        wide = 2 if rng.coin_flip() else -2
        # The two fixed last resorts may repeat an earlier pick.
        return _relative(agent, [STRAIGHT, sharp, wide, REVERSE, 1, -1])


class Spiral(MovementStrategy):
    kind = Strategy.SPIRAL

    def propose_directions(self, agent: Agent, rng: DeterministicRng) -> List[int]:
        turn = agent.turn_preference.step
        return _relative(agent, [turn, 2 * turn, STRAIGHT, REVERSE, -turn, -2 * turn])


class Explorer(MovementStrategy):
    kind = Strategy.EXPLORER

    def propose_directions(self, agent: Agent, rng: DeterministicRng) -> List[int]:
        return rng.shuffle(_relative(agent, list(range(DIRECTION_COUNT))))


_REGISTRY: Dict[Strategy, MovementStrategy] = {
    Strategy.WALL_FOLLOWER: WallFollower(),
    Strategy.WANDERER: Wanderer(),
    Strategy.EXPLORER: Explorer(),
    Strategy.SPIRAL: Spiral(),
}


def strategy_for(kind: Strategy) -> MovementStrategy:
    return _REGISTRY[kind]
