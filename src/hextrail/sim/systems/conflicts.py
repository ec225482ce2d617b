from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.hexgrid import DIRECTION_COUNT, CellKey

_OPPOSITE = DIRECTION_COUNT // 2


@dataclass(slots=True)
class IntendedMove:
    agent: Agent
    direction: int
    destination: Vector2
    key: CellKey

    @property
    def is_straight(self) -> bool:
        return self.direction == self.agent.heading


@dataclass(slots=True)
class ConflictResolution:
    accepted: List[IntendedMove] = field(default_factory=list)
    deferred: List[IntendedMove] = field(default_factory=list)
    head_on: List[Tuple[IntendedMove, IntendedMove]] = field(default_factory=list)

    @property
    def conflicts(self) -> int:
        return len(self.deferred)


def is_head_on(first: IntendedMove, second: IntendedMove) -> bool:
    headings_opposed = (first.agent.heading - second.agent.heading) % DIRECTION_COUNT == _OPPOSITE
    return headings_opposed and first.is_straight and second.is_straight


def resolve_conflicts(intents: List[IntendedMove]) -> ConflictResolution:
    """
    Arbitrate one tick of simultaneous moves.

    Intents are grouped by snapped destination key; in every group the claimant that
    comes first in ``intents`` wins and the rest are deferred to the next tick. Head-on
    pairs are reported but resolved by the same rule; killing both drained the
    population too fast.
    """

    claims: Dict[CellKey, List[IntendedMove]] = {}
    for intent in intents:
        claims.setdefault(intent.key, []).append(intent)

    resolution = ConflictResolution()
    for intent in intents:
        group = claims[intent.key]
        if group[0] is intent:
            resolution.accepted.append(intent)
        else:
            resolution.deferred.append(intent)

    for group in claims.values():
        if len(group) == 2 and is_head_on(group[0], group[1]):
            resolution.head_on.append((group[0], group[1]))
    return resolution
