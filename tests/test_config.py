from __future__ import annotations

import pytest

from epoch_engine.config import EngineConfig, parse_overrides
from epoch_engine.runtime.behavior import NPCRole


def test_defaults_match_engine_constants() -> None:
    config = EngineConfig()

    assert config.seed == 0
    assert config.rebellion.halt_threshold == pytest.approx(0.35)
    assert config.infestation.clear_threshold == pytest.approx(75.0)
    assert config.resources.refinery_mineral_consumption == pytest.approx(10.0)
    assert config.cleansing.min_participants == 2
    assert config.telemetry.capacity == 500


def test_build_applies_dotted_overrides() -> None:
    config = EngineConfig.build(
        {
            "seed": "7",
            "infestation.clear_threshold": 60.0,
            "behavior.default_role": "guard",
        }
    )

    assert config.seed == 7
    assert config.infestation.clear_threshold == pytest.approx(60.0)
    assert config.behavior.default_role is NPCRole.GUARD


def test_builds_are_independent() -> None:
    tweaked = EngineConfig.build({"rebellion.base_probability": 0.2})

    assert tweaked.rebellion.base_probability == pytest.approx(0.2)
    assert EngineConfig().rebellion.base_probability == pytest.approx(0.05)


@pytest.mark.parametrize(
    "key",
    ["weather.rate", "infestation.speed", "clear_threshold", "seed.value"],
)
def test_unknown_keys_raise(key: str) -> None:
    with pytest.raises(AttributeError):
        EngineConfig.build({key: 1})


def test_parse_overrides_coerces_values() -> None:
    overrides = parse_overrides(
        [
            "seed=11",
            "infestation.throttle_amount=0.25",
            "telemetry.enabled=false",
            "behavior.default_role=warrior",
        ]
    )

    assert overrides == {
        "seed": 11,
        "infestation.throttle_amount": 0.25,
        "telemetry.enabled": False,
        "behavior.default_role": "warrior",
    }
    config = EngineConfig.build(overrides)
    assert config.telemetry.enabled is False
    assert config.behavior.default_role is NPCRole.WARRIOR


def test_parse_overrides_requires_equals() -> None:
    with pytest.raises(ValueError):
        parse_overrides(["seed"])
