from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pygame.math import Vector2


class Strategy(str, Enum):
    WALL_FOLLOWER = "wall-follower"
    WANDERER = "wanderer"
    EXPLORER = "explorer"
    SPIRAL = "spiral"


class TurnPreference(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def step(self) -> int:
        return 1 if self is TurnPreference.RIGHT else -1


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    heading: int
    strategy: Strategy
    turn_preference: TurnPreference
    birth_time: float
    hue_seed: float = 0.0
    distance_traveled: float = 0.0
    cells_visited: int = 0
    alive: bool = True
    death_time: Optional[float] = None

    def lifetime(self, now: float) -> float:
        end = self.death_time if self.death_time is not None else now
        return max(0.0, end - self.birth_time)
