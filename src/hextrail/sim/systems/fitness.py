from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from ..core.agent import Strategy
from ..core.rng import DeterministicRng

STRATEGY_ORDER: List[Strategy] = [
    Strategy.WALL_FOLLOWER,
    Strategy.WANDERER,
    Strategy.EXPLORER,
    Strategy.SPIRAL,
]

CELLS_WEIGHT = 2.0
DISTANCE_SCALE = 100.0
NEUTRAL_WEIGHT = 1.0


@dataclass(slots=True)
class StrategyFitness:
    total_lifetime: float = 0.0
    total_distance: float = 0.0
    total_cells: int = 0
    count: int = 0

    @property
    def average_lifetime(self) -> float:
        return 0.0 if self.count == 0 else self.total_lifetime / self.count

    @property
    def average_distance(self) -> float:
        return 0.0 if self.count == 0 else self.total_distance / self.count

    @property
    def average_cells(self) -> float:
        return 0.0 if self.count == 0 else self.total_cells / self.count

    @property
    def combined(self) -> float:
        # Cells visited dominate; raw pixel distances are scaled down to the same range.
        return CELLS_WEIGHT * self.average_cells + self.average_lifetime + self.average_distance / DISTANCE_SCALE

    @property
    def weight(self) -> float:
        if self.count == 0:
            return NEUTRAL_WEIGHT
        return self.combined * self.combined


class FitnessTracker:
    """Run-long aggregate of how well each strategy did, and the spawn draw it drives."""

    def __init__(self) -> None:
        self._stats: Dict[Strategy, StrategyFitness] = {kind: StrategyFitness() for kind in STRATEGY_ORDER}

    def __getitem__(self, kind: Strategy) -> StrategyFitness:
        return self._stats[kind]

    def record(self, kind: Strategy, lifetime: float, distance: float, cells: int) -> None:
        stats = self._stats[kind]
        stats.total_lifetime += max(0.0, lifetime)
        stats.total_distance += max(0.0, distance)
        stats.total_cells += max(0, cells)
        stats.count += 1

    def weights(self) -> Dict[Strategy, float]:
        return {kind: self._stats[kind].weight for kind in STRATEGY_ORDER}

    def select(self, rng: DeterministicRng, mutation_rate: float) -> Strategy:
        if rng.next_float() < mutation_rate:
            return STRATEGY_ORDER[rng.next_int(len(STRATEGY_ORDER))]

        weights = [self._stats[kind].weight for kind in STRATEGY_ORDER]
        total = sum(weights)
        if total <= 0.0:
            return STRATEGY_ORDER[rng.next_int(len(STRATEGY_ORDER))]

        pick = rng.next_float() * total
        cumulative = 0.0
        for kind, weight in zip(STRATEGY_ORDER, weights):
            cumulative += weight
            if pick <= cumulative:
                return kind
        return STRATEGY_ORDER[-1]

    def export(self) -> Dict[str, Dict[str, Any]]:
        payload: Dict[str, Dict[str, Any]] = {}
        for kind in STRATEGY_ORDER:
            stats = self._stats[kind]
            entry = asdict(stats)
            entry["combined"] = stats.combined
            entry["weight"] = stats.weight
            payload[kind.value] = entry
        return payload

    def reset(self) -> None:
        for kind in STRATEGY_ORDER:
            self._stats[kind] = StrategyFitness()
