from __future__ import annotations

import math

from pygame.math import Vector2

_PARALLEL_EPSILON = 1e-4
_INTERIOR_MIN = 0.05
_INTERIOR_MAX = 0.95


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _lerp(start: Vector2, end: Vector2, t: float) -> Vector2:
    return Vector2(start.x + (end.x - start.x) * t, start.y + (end.y - start.y) * t)


def _endpoints_touch(
    x1: float, y1: float, x2: float, y2: float, x3: float, y3: float, x4: float, y4: float, tolerance: float
) -> bool:
    for ax, ay in ((x1, y1), (x2, y2)):
        for bx, by in ((x3, y3), (x4, y4)):
            if abs(ax - bx) < tolerance and abs(ay - by) < tolerance:
                return True
    return False


def segments_cross(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    x3: float,
    y3: float,
    x4: float,
    y4: float,
    endpoint_tolerance: float,
) -> bool:
    """
    Parametric test for a proper crossing of (x1,y1)-(x2,y2) and (x3,y3)-(x4,y4).

    Segments sharing an endpoint (within `endpoint_tolerance` on both axes) never cross,
    parallel or degenerate segments never cross, and a crossing must fall strictly inside
    the (0.05, 0.95) band of both parameters.
    """

    if _endpoints_touch(x1, y1, x2, y2, x3, y3, x4, y4, endpoint_tolerance):
        return False
    denom = (y4 - y3) * (x2 - x1) - (x4 - x3) * (y2 - y1)
    if abs(denom) < _PARALLEL_EPSILON:
        return False
    ua = ((x4 - x3) * (y1 - y3) - (y4 - y3) * (x1 - x3)) / denom
    ub = ((x2 - x1) * (y1 - y3) - (y2 - y1) * (x1 - x3)) / denom
    return _INTERIOR_MIN < ua < _INTERIOR_MAX and _INTERIOR_MIN < ub < _INTERIOR_MAX
