from __future__ import annotations

import math
from typing import Tuple

from ..core.config import PaletteConfig
from ..core.traces import TraceSegment
from ..utils.math2d import _clamp_value

TAU = 2.0 * math.pi


def segment_color(
    segment: TraceSegment,
    now: float,
    width: float,
    height: float,
    palette: PaletteConfig,
) -> Tuple[float, float, float]:
    """
    Hue/saturation/lightness of a segment at time ``now``.

    Pure in its inputs: geometry stays put while the colour keeps drifting, so this is
    evaluated per frame and never stored on the segment.
    """

    mid_x, mid_y = segment.midpoint
    x_ratio = _clamp_value(mid_x / width, 0.0, 1.0) if width > 0 else 0.0
    y_ratio = _clamp_value(mid_y / height, 0.0, 1.0) if height > 0 else 0.0

    global_phase = (now % palette.global_period) / palette.global_period
    global_shift = math.sin(global_phase * TAU) * palette.global_hue_amplitude
    age = max(0.0, now - segment.birth_time)
    age_shift = math.sin(age * palette.age_hue_frequency) * palette.age_hue_amplitude
    flow_shift = (
        math.sin(now * palette.flow_speed - segment.sequence_index * palette.flow_spacing)
        * palette.flow_hue_amplitude
    )

    hue = (segment.hue_seed + x_ratio * palette.position_hue_span + global_shift + age_shift + flow_shift) % 360.0
    saturation = (
        palette.base_saturation
        + y_ratio * palette.saturation_span
        + math.cos(global_phase * TAU) * palette.saturation_wobble
    )
    lightness = (
        palette.base_lightness
        + y_ratio * palette.lightness_span
        + math.sin(global_phase * 2.0 * TAU) * palette.lightness_wobble
    )
    return hue, _clamp_value(saturation, 0.0, 100.0), _clamp_value(lightness, 0.0, 100.0)
