"""Bundled configuration for the Epoch engines.

Each engine owns a small dataclass config with hard defaults.
:class:`EngineConfig` groups them so tooling can build a whole simulation
from one object and tweak individual knobs with dotted overrides such as
``{"infestation.clear_threshold": 60}`` or, from a command line,
``["infestation.clear_threshold=60"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Mapping, Optional, Sequence

from .runtime.behavior import BehaviorConfig, NPCRole
from .runtime.cleansing import CleansingConfig
from .runtime.infestation import InfestationConfig
from .runtime.rebellion import RebellionConfig
from .runtime.resources import ResourceConfig
from .runtime.rng_service import RNGConfig
from .runtime.telemetry import TelemetryConfig


@dataclass(slots=True)
class EngineConfig:
    seed: int = 0
    rebellion: RebellionConfig = field(default_factory=RebellionConfig)
    infestation: InfestationConfig = field(default_factory=InfestationConfig)
    resources: ResourceConfig = field(default_factory=ResourceConfig)
    cleansing: CleansingConfig = field(default_factory=CleansingConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    rng: RNGConfig = field(default_factory=RNGConfig)

    @classmethod
    def build(cls, overrides: Optional[Mapping[str, object]] = None) -> "EngineConfig":
        config = cls()
        if overrides:
            config.apply_overrides(overrides)
        return config

    def apply_overrides(self, overrides: Mapping[str, object]) -> None:
        for key, value in overrides.items():
            section_name, _, field_name = key.partition(".")
            if not field_name:
                if section_name != "seed":
                    raise AttributeError(f"Config key '{key}' must be of the form section.field")
                self.seed = int(value)  # type: ignore[arg-type]
                continue
            sections = {f.name for f in fields(self)} - {"seed"}
            if section_name not in sections:
                raise AttributeError(f"Config '{type(self).__name__}' has no section '{section_name}'")
            section = getattr(self, section_name)
            known = {f.name for f in fields(section)}
            if field_name not in known:
                raise AttributeError(f"Config '{type(section).__name__}' has no field '{field_name}'")
            if isinstance(section, BehaviorConfig) and field_name == "default_role":
                value = NPCRole.parse(value)  # type: ignore[arg-type]
            setattr(section, field_name, value)


def parse_overrides(pairs: Sequence[str]) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Overrides must be of the form key=value, received '{pair}'")
        key, raw_value = pair.split("=", 1)
        overrides[key.strip()] = _coerce_value(raw_value.strip())
    return overrides


def _coerce_value(raw: str) -> object:
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    lowered = raw.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    return raw


__all__ = ["EngineConfig", "parse_overrides"]
