from __future__ import annotations

import random
from typing import List, TypeVar

T = TypeVar("T")


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_int(self, max_value: int) -> int:
        return self._random.randrange(max_value)

    def coin_flip(self) -> bool:
        return self._random.random() < 0.5

    def shuffle(self, items: List[T]) -> List[T]:
        # Fisher-Yates, drawn from this stream so runs replay exactly.
        for i in range(len(items) - 1, 0, -1):
            j = self._random.randrange(i + 1)
            items[i], items[j] = items[j], items[i]
        return items
