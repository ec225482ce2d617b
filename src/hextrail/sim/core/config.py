from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields
from pathlib import Path
from typing import List

import yaml


class ConfigError(ValueError):
    """Raised when a configuration cannot drive a simulation."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("invalid simulation config: " + "; ".join(self.problems))


@dataclass
class PaletteConfig:
    global_period: float = 10.0
    global_hue_amplitude: float = 20.0
    age_hue_amplitude: float = 15.0
    age_hue_frequency: float = 0.5
    position_hue_span: float = 60.0
    flow_hue_amplitude: float = 10.0
    flow_speed: float = 2.0
    flow_spacing: float = 0.35
    base_saturation: float = 85.0
    saturation_span: float = 15.0
    saturation_wobble: float = 5.0
    base_lightness: float = 45.0
    lightness_span: float = 10.0
    lightness_wobble: float = 5.0


@dataclass
class SimulationConfig:
    hex_size: float = 100.0
    width: float = 2000.0
    height: float = 1500.0
    max_agents: int = 2
    initial_agents: int = 2
    trace_lifetime: float = 2.0
    fade_duration: float = 1.0
    line_width: float = 120.0
    step_delay: float = 0.025
    spawn_delay: float = 0.5
    mutation_rate: float = 0.1
    infinite_lifetime: bool = False
    # Only the most recent segments are tested for crossings.
    crossing_window: int = 100
    prune_interval: int = 10
    spawn_attempts: int = 100
    seed: int = 42
    config_version: str = "v1"
    palette: PaletteConfig = field(default_factory=PaletteConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> "SimulationConfig":
        problems = _type_problems(self)
        if not isinstance(self.palette, PaletteConfig):
            problems.append(f"palette must be a mapping (got {type(self.palette).__name__})")
        else:
            problems.extend(_type_problems(self.palette, "palette."))
        if problems:
            raise ConfigError(problems)

        if self.hex_size <= 0:
            problems.append(f"hex_size must be positive (got {self.hex_size})")
        if self.width <= 0 or self.height <= 0:
            problems.append(f"width and height must be positive (got {self.width}x{self.height})")
        if self.max_agents < 0:
            problems.append(f"max_agents must be >= 0 (got {self.max_agents})")
        if self.initial_agents < 0:
            problems.append(f"initial_agents must be >= 0 (got {self.initial_agents})")
        elif self.initial_agents > self.max_agents:
            problems.append(
                f"initial_agents ({self.initial_agents}) cannot exceed max_agents ({self.max_agents})"
            )
        for name in ("trace_lifetime", "fade_duration", "line_width", "step_delay", "spawn_delay"):
            value = getattr(self, name)
            if value < 0:
                problems.append(f"{name} must be >= 0 (got {value})")
        if not 0.0 <= self.mutation_rate <= 1.0:
            problems.append(f"mutation_rate must be within [0, 1] (got {self.mutation_rate})")
        if self.crossing_window < 0:
            problems.append(f"crossing_window must be >= 0 (got {self.crossing_window})")
        if self.prune_interval < 1:
            problems.append(f"prune_interval must be >= 1 (got {self.prune_interval})")
        if self.spawn_attempts < 0:
            problems.append(f"spawn_attempts must be >= 0 (got {self.spawn_attempts})")
        if self.palette.global_period <= 0:
            problems.append(f"palette.global_period must be positive (got {self.palette.global_period})")
        if problems:
            raise ConfigError(problems)
        return self


def _type_problems(section: object, prefix: str = "") -> List[str]:
    """Fields whose value does not have the type of their default."""

    problems: List[str] = []
    for f in fields(section):
        if f.default is MISSING:
            continue
        value = getattr(section, f.name)
        expected = type(f.default)
        if expected is float:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif expected is int:
            ok = isinstance(value, int) and not isinstance(value, bool)
        else:
            ok = isinstance(value, expected)
        if not ok:
            problems.append(f"{prefix}{f.name} must be {expected.__name__} (got {value!r})")
    return problems


def _unknown_keys(raw: dict, section: type, prefix: str = "") -> List[str]:
    known = {f.name for f in fields(section)}
    return [f"unknown option {prefix + str(name)!r}" for name in sorted((k for k in raw if k not in known), key=str)]


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigError([f"config must be a mapping (got {type(raw).__name__})"])
    palette_raw = raw.get("palette") or {}
    if not isinstance(palette_raw, dict):
        raise ConfigError([f"palette must be a mapping (got {type(palette_raw).__name__})"])
    unknown = _unknown_keys(raw, SimulationConfig) + _unknown_keys(palette_raw, PaletteConfig, "palette.")
    if unknown:
        raise ConfigError(unknown)
    palette = PaletteConfig(**palette_raw)
    sim_values = {k: v for k, v in raw.items() if k != "palette"}
    return SimulationConfig(palette=palette, **sim_values).validate()
