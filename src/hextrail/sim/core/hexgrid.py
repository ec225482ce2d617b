from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from pygame.math import Vector2

from ..utils.math2d import _round_half_up

CellKey = Tuple[int, int]

DIRECTION_COUNT = 6
EAST, SOUTH_EAST, SOUTH_WEST, WEST, NORTH_WEST, NORTH_EAST = range(DIRECTION_COUNT)
DIRECTION_NAMES = ("E", "SE", "SW", "W", "NW", "NE")

ROW_HEIGHT_FACTOR = math.sqrt(3.0) / 2.0


class CellOccupiedError(RuntimeError):
    def __init__(self, key: CellKey, owner_id: int):
        self.key = key
        self.owner_id = owner_id
        super().__init__(f"cell {key} is already owned by agent {owner_id}")


@dataclass(frozen=True, slots=True)
class CellRecord:
    owner_id: int
    occupied_at: float


class HexGrid:
    """
    Offset-row hexagonal lattice plus the cell-occupancy table.

    Lattice points sit at ``(col * hex_size + offset, row * row_height)`` where odd rows are
    shifted by half a hex. Screen y grows downward, so direction ``d + 1`` is a 60 degree
    right turn from ``d``.
    """

    def __init__(self, hex_size: float, width: float, height: float) -> None:
        self._hex_size = hex_size
        self._width = width
        self._height = height
        self._row_height = hex_size * ROW_HEIGHT_FACTOR
        self._steps: List[Tuple[float, float]] = [
            (hex_size, 0.0),
            (hex_size / 2, self._row_height),
            (-hex_size / 2, self._row_height),
            (-hex_size, 0.0),
            (-hex_size / 2, -self._row_height),
            (hex_size / 2, -self._row_height),
        ]
        self._cells: Dict[CellKey, CellRecord] = {}
        self._owned: Dict[int, List[CellKey]] = {}

    @property
    def hex_size(self) -> float:
        return self._hex_size

    @property
    def row_height(self) -> float:
        return self._row_height

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def rows(self) -> int:
        return int(math.ceil(self._height / self._row_height))

    @property
    def columns(self) -> int:
        return int(math.ceil(self._width / self._hex_size))

    # geometry

    def neighbor_of(self, cell: Vector2, direction: int) -> Vector2:
        dx, dy = self._steps[direction % DIRECTION_COUNT]
        return Vector2(cell.x + dx, cell.y + dy)

    def canonical_key(self, point: Vector2) -> CellKey:
        return self._cell_key(point.x, point.y)

    def snap_to_grid(self, point: Vector2) -> Vector2:
        row = _round_half_up(point.y / self._row_height)
        offset = self._row_offset(row)
        col = _round_half_up((point.x - offset) / self._hex_size)
        return Vector2(col * self._hex_size + offset, row * self._row_height)

    def in_bounds(self, point: Vector2) -> bool:
        return 0.0 <= point.x < self._width and 0.0 <= point.y < self._height

    def lattice_point(self, row: int, col: int) -> Vector2:
        return Vector2(col * self._hex_size + self._row_offset(row), row * self._row_height)

    def iter_lattice(self) -> Iterator[Vector2]:
        for row in range(self.rows):
            for col in range(self.columns):
                point = self.lattice_point(row, col)
                if self.in_bounds(point):
                    yield point

    def free_cells(self) -> List[Vector2]:
        return [point for point in self.iter_lattice() if not self.is_occupied(point)]

    # occupancy

    def is_occupied(self, point: Vector2) -> bool:
        return self._cell_key(point.x, point.y) in self._cells

    def is_key_occupied(self, key: CellKey) -> bool:
        return key in self._cells

    def record_at(self, point: Vector2) -> Optional[CellRecord]:
        return self._cells.get(self._cell_key(point.x, point.y))

    def occupy(self, point: Vector2, owner_id: int, now: float) -> CellKey:
        key = self._cell_key(point.x, point.y)
        existing = self._cells.get(key)
        if existing is not None:
            raise CellOccupiedError(key, existing.owner_id)
        self._cells[key] = CellRecord(owner_id=owner_id, occupied_at=now)
        self._owned.setdefault(owner_id, []).append(key)
        return key

    def cells_owned_by(self, owner_id: int) -> List[CellKey]:
        return list(self._owned.get(owner_id, ()))

    def release_owner(self, owner_id: int) -> int:
        keys = self._owned.pop(owner_id, None)
        if not keys:
            return 0
        released = 0
        for key in keys:
            record = self._cells.get(key)
            if record is not None and record.owner_id == owner_id:
                del self._cells[key]
                released += 1
        return released

    @property
    def occupied_count(self) -> int:
        return len(self._cells)

    @property
    def cells(self) -> Dict[CellKey, CellRecord]:
        return self._cells

    def clear(self) -> None:
        self._cells.clear()
        self._owned.clear()

    def _row_offset(self, row: int) -> float:
        return 0.0 if row % 2 == 0 else self._hex_size / 2

    @staticmethod
    def _cell_key(x: float, y: float) -> CellKey:
        return (_round_half_up(x), _round_half_up(y))
