from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .hexgrid import CellKey

Point = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class TraceSegment:
    start: Point
    end: Point
    from_key: CellKey
    to_key: CellKey
    owner_id: int
    hue_seed: float
    birth_time: float
    created_at: float
    sequence_index: int

    @property
    def is_dot(self) -> bool:
        return self.from_key == self.to_key

    @property
    def midpoint(self) -> Point:
        return ((self.start[0] + self.end[0]) * 0.5, (self.start[1] + self.end[1]) * 0.5)


class TraceStore:
    """
    Append-only log of committed path segments, pruned in bulk per owning agent.

    Segments are kept in commit order so the most recent ones (used for crossing checks)
    are always the tail of the list. Death times are tracked here rather than on the
    agent because a trace outlives the agent object that drew it.
    """

    def __init__(self) -> None:
        self._segments: List[TraceSegment] = []
        self._next_sequence: Dict[int, int] = {}
        self._death_times: Dict[int, float] = {}

    def __len__(self) -> int:
        return len(self._segments)

    @property
    def segments(self) -> Sequence[TraceSegment]:
        return tuple(self._segments)

    def append(
        self,
        owner_id: int,
        start: Point,
        end: Point,
        from_key: CellKey,
        to_key: CellKey,
        hue_seed: float,
        birth_time: float,
        now: float,
    ) -> TraceSegment:
        sequence_index = self._next_sequence.get(owner_id, 0)
        self._next_sequence[owner_id] = sequence_index + 1
        segment = TraceSegment(
            start=start,
            end=end,
            from_key=from_key,
            to_key=to_key,
            owner_id=owner_id,
            hue_seed=hue_seed,
            birth_time=birth_time,
            created_at=now,
            sequence_index=sequence_index,
        )
        self._segments.append(segment)
        return segment

    def recent(self, window: int) -> Sequence[TraceSegment]:
        if window <= 0:
            return ()
        return self._segments[-window:]

    def segments_for(self, owner_id: int) -> List[TraceSegment]:
        return [segment for segment in self._segments if segment.owner_id == owner_id]

    def owners(self) -> List[int]:
        return list(self._next_sequence)

    def has_owner(self, owner_id: int) -> bool:
        return owner_id in self._next_sequence

    def register_owner(self, owner_id: int) -> None:
        self._next_sequence.setdefault(owner_id, 0)

    def mark_dead(self, owner_id: int, now: float) -> None:
        self.register_owner(owner_id)
        self._death_times.setdefault(owner_id, now)

    def death_time(self, owner_id: int) -> Optional[float]:
        return self._death_times.get(owner_id)

    @property
    def dead_owner_count(self) -> int:
        return len(self._death_times)

    def expired_owners(self, now: float, full_interval: float) -> List[int]:
        return [owner for owner, died in self._death_times.items() if now - died >= full_interval]

    def oldest_dead_owner(self) -> Optional[int]:
        if not self._death_times:
            return None
        # Ties go to the owner that died first in insertion order.
        return min(self._death_times, key=self._death_times.__getitem__)

    def remove_owner(self, owner_id: int) -> int:
        before = len(self._segments)
        self._segments = [segment for segment in self._segments if segment.owner_id != owner_id]
        self._next_sequence.pop(owner_id, None)
        self._death_times.pop(owner_id, None)
        return before - len(self._segments)

    def clear(self) -> None:
        self._segments.clear()
        self._next_sequence.clear()
        self._death_times.clear()
