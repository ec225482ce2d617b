from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

from pygame.math import Vector2

from ..core.agent import Agent, TurnPreference
from ..core.hexgrid import DIRECTION_COUNT, HexGrid
from ..core.traces import TraceSegment
from ..utils.math2d import _lerp, segments_cross
from .conflicts import IntendedMove
from .strategies import strategy_for

if TYPE_CHECKING:
    from ..core.simulator import Simulator

PATH_SAMPLE_FRACTIONS = (1.0 / 3.0, 2.0 / 3.0)
SNAP_TOLERANCE_FACTOR = 0.6
ENDPOINT_TOLERANCE_FACTOR = 0.15

_RIGHT_TURNS = (1, 2)
_LEFT_TURNS = (4, 5)


def path_blocked(grid: HexGrid, origin: Vector2, destination: Vector2) -> bool:
    """True when an interior sample of origin->destination snaps onto another occupied cell."""

    own_key = grid.canonical_key(origin)
    tolerance = grid.hex_size * SNAP_TOLERANCE_FACTOR
    for fraction in PATH_SAMPLE_FRACTIONS:
        sample = _lerp(origin, destination, fraction)
        snapped = grid.snap_to_grid(sample)
        if sample.distance_to(snapped) >= tolerance:
            continue
        key = grid.canonical_key(snapped)
        if key != own_key and grid.is_key_occupied(key):
            return True
    return False


def crosses_trace(
    origin: Vector2, destination: Vector2, segments: Iterable[TraceSegment], hex_size: float
) -> bool:
    tolerance = hex_size * ENDPOINT_TOLERANCE_FACTOR
    x1, y1, x2, y2 = origin.x, origin.y, destination.x, destination.y
    for segment in segments:
        (x3, y3), (x4, y4) = segment.start, segment.end
        if segments_cross(x1, y1, x2, y2, x3, y3, x4, y4, tolerance):
            return True
    return False


def try_direction(
    grid: HexGrid,
    recent_segments: Iterable[TraceSegment],
    agent: Agent,
    direction: int,
) -> Optional[IntendedMove]:
    origin = agent.position
    destination = grid.snap_to_grid(grid.neighbor_of(origin, direction))
    if not grid.in_bounds(destination):
        return None
    key = grid.canonical_key(destination)
    if grid.is_key_occupied(key):
        return None
    if path_blocked(grid, origin, destination):
        return None
    if crosses_trace(origin, destination, recent_segments, grid.hex_size):
        return None
    return IntendedMove(agent=agent, direction=direction, destination=destination, key=key)


def find_move(sim: Simulator, agent: Agent) -> Optional[IntendedMove]:
    grid = sim.grid
    recent = sim.traces.recent(sim.config.crossing_window)
    directions = strategy_for(agent.strategy).propose_directions(agent, sim.rng)
    for direction in directions:
        move = try_direction(grid, recent, agent, direction)
        if move is not None:
            return move
    return None


def turn_offset(heading: int, direction: int) -> int:
    return (direction - heading) % DIRECTION_COUNT


def apply_turn(agent: Agent, direction: int) -> None:
    """Commit a new heading, flipping the turn preference when the turn went against it."""

    offset = turn_offset(agent.heading, direction)
    if agent.turn_preference is TurnPreference.RIGHT and offset in _LEFT_TURNS:
        agent.turn_preference = TurnPreference.LEFT
    elif agent.turn_preference is TurnPreference.LEFT and offset in _RIGHT_TURNS:
        agent.turn_preference = TurnPreference.RIGHT
    agent.heading = direction % DIRECTION_COUNT


def legal_directions(grid: HexGrid, recent_segments: List[TraceSegment], agent: Agent) -> List[int]:
    return [d for d in range(DIRECTION_COUNT) if try_direction(grid, recent_segments, agent, d) is not None]
