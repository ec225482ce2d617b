from __future__ import annotations

from hextrail.sim.core.config import PaletteConfig
from hextrail.sim.core.traces import TraceSegment
from hextrail.sim.systems.palette import segment_color


def _segment(x: float, y: float, hue_seed: float = 200.0, sequence_index: int = 0) -> TraceSegment:
    return TraceSegment(
        start=(x, y),
        end=(x + 10.0, y),
        from_key=(int(x), int(y)),
        to_key=(int(x) + 10, int(y)),
        owner_id=1,
        hue_seed=hue_seed,
        birth_time=0.0,
        created_at=0.0,
        sequence_index=sequence_index,
    )


def test_colour_is_a_pure_function_of_its_inputs():
    palette = PaletteConfig()
    segment = _segment(100.0, 50.0)
    assert segment_color(segment, 3.2, 400.0, 300.0, palette) == segment_color(segment, 3.2, 400.0, 300.0, palette)


def test_colour_drifts_over_time_but_stays_in_range():
    palette = PaletteConfig()
    segment = _segment(100.0, 50.0, hue_seed=350.0)
    colours = [segment_color(segment, t * 0.5, 400.0, 300.0, palette) for t in range(40)]
    assert len({round(hue, 6) for hue, _, _ in colours}) > 1
    for hue, saturation, lightness in colours:
        assert 0.0 <= hue <= 360.0
        assert 0.0 <= saturation <= 100.0
        assert 0.0 <= lightness <= 100.0


def test_position_and_order_shift_the_hue():
    palette = PaletteConfig()
    left = segment_color(_segment(0.0, 50.0), 1.0, 400.0, 300.0, palette)
    right = segment_color(_segment(300.0, 50.0), 1.0, 400.0, 300.0, palette)
    assert left[0] != right[0]

    early = segment_color(_segment(0.0, 50.0, sequence_index=0), 1.0, 400.0, 300.0, palette)
    later = segment_color(_segment(0.0, 50.0, sequence_index=5), 1.0, 400.0, 300.0, palette)
    assert early[0] != later[0]


def test_flat_palette_returns_the_seed_hue():
    palette = PaletteConfig(
        global_hue_amplitude=0.0,
        age_hue_amplitude=0.0,
        position_hue_span=0.0,
        flow_hue_amplitude=0.0,
        saturation_span=0.0,
        saturation_wobble=0.0,
        lightness_span=0.0,
        lightness_wobble=0.0,
    )
    hue, saturation, lightness = segment_color(_segment(70.0, 20.0, hue_seed=123.0), 7.7, 400.0, 300.0, palette)
    assert hue == 123.0
    assert saturation == palette.base_saturation
    assert lightness == palette.base_lightness
