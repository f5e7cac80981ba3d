from __future__ import annotations

import pytest

from epoch_engine.errors import PlagueHeartInactiveError, PreconditionFailedError
from epoch_engine.runtime.infestation import InfestationConfig, InfestationEngine
from epoch_engine.runtime.telemetry import Telemetry, TelemetrySeverity


def _hostile(engine: InfestationEngine, ticks: int, start: int = 1) -> None:
    for offset in range(ticks):
        engine.tick(0.5, 0.5, start + offset)


def _calm(engine: InfestationEngine, ticks: int, start: int = 1) -> None:
    for offset in range(ticks):
        engine.tick(0.0, 0.0, start + offset)


def test_plague_heart_activates_on_fiftieth_hostile_tick() -> None:
    engine = InfestationEngine()

    _hostile(engine, 49)
    state = engine.get_state()
    assert state.counter == pytest.approx(98.0)
    assert state.is_plague_heart is False
    assert state.throttle_multiplier == 1.0

    result = engine.tick(0.5, 0.5, 50)
    state = engine.get_state()
    assert result.plague_heart_changed is True
    assert result.plague_heart_active is True
    assert state.counter == pytest.approx(100.0)
    assert state.is_plague_heart is True
    assert state.throttle_multiplier == pytest.approx(0.5)
    assert state.last_tick == 50


def test_counter_is_capped_at_threshold() -> None:
    engine = InfestationEngine()
    _hostile(engine, 80)

    assert engine.get_state().counter == pytest.approx(100.0)


def test_hysteresis_keeps_plague_heart_until_below_clear_threshold() -> None:
    engine = InfestationEngine()
    _hostile(engine, 50)

    engine.tick(0.0, 0.0, 51)
    assert engine.get_state().counter == pytest.approx(99.0)
    assert engine.get_state().is_plague_heart is True

    _calm(engine, 24, start=52)
    state = engine.get_state()
    assert state.counter == pytest.approx(75.0)
    assert state.is_plague_heart is True
    assert state.throttle_multiplier == pytest.approx(0.5)

    result = engine.tick(0.0, 0.0, 76)
    state = engine.get_state()
    assert state.counter == pytest.approx(74.0)
    assert result.plague_heart_changed is True
    assert state.is_plague_heart is False
    assert state.throttle_multiplier == 1.0


def test_decay_never_goes_below_zero() -> None:
    engine = InfestationEngine()
    result = engine.tick(0.0, 0.0, 1)

    assert result.accumulated is False
    assert engine.get_state().counter == 0.0


def test_triggers_are_strict() -> None:
    engine = InfestationEngine()
    _hostile(engine, 3)

    engine.tick(0.35, 0.9, 4)
    assert engine.get_state().counter == pytest.approx(5.0)
    engine.tick(0.9, 0.40, 5)
    assert engine.get_state().counter == pytest.approx(4.0)


def test_cleanse_requires_active_plague_heart() -> None:
    engine = InfestationEngine()
    _hostile(engine, 10)

    with pytest.raises(PlagueHeartInactiveError) as excinfo:
        engine.cleanse()
    assert isinstance(excinfo.value, PreconditionFailedError)
    assert engine.get_state().counter == pytest.approx(20.0)


def test_cleanse_resets_state() -> None:
    engine = InfestationEngine()
    _hostile(engine, 50)

    engine.cleanse()
    state = engine.get_state()
    assert state.counter == 0.0
    assert state.is_plague_heart is False
    assert state.throttle_multiplier == 1.0
    assert state.last_tick == 50


def test_get_state_returns_a_copy() -> None:
    engine = InfestationEngine()
    snapshot = engine.get_state()
    snapshot.counter = 99.0
    snapshot.is_plague_heart = True

    assert engine.get_state().counter == 0.0
    assert engine.get_state().is_plague_heart is False


def test_custom_config_changes_pace() -> None:
    engine = InfestationEngine(InfestationConfig(accumulation_rate=25.0, throttle_amount=0.25))
    _hostile(engine, 4)

    state = engine.get_state()
    assert state.is_plague_heart is True
    assert state.throttle_multiplier == pytest.approx(0.25)


def test_telemetry_tracks_warning_activation_and_clear() -> None:
    telemetry = Telemetry()
    engine = InfestationEngine(telemetry=telemetry)
    _hostile(engine, 50)

    warnings = telemetry.recent(kinds=["INFESTATION_WARNING"])
    assert len(warnings) == 1
    assert warnings[0].tick == 26
    assert warnings[0].severity is TelemetrySeverity.WARNING

    activated = telemetry.recent(kinds=["PLAGUE_HEART_ACTIVATED"])
    assert len(activated) == 1
    assert activated[0].tick == 50
    assert activated[0].severity is TelemetrySeverity.CRITICAL
    assert telemetry.metric("infestation.plague_heart_activations") == 1.0
    assert telemetry.metric("infestation.throttle") == pytest.approx(0.5)

    _calm(engine, 26, start=51)
    cleared = telemetry.recent(kinds=["PLAGUE_HEART_CLEARED"])
    assert len(cleared) == 1
    assert cleared[0].tick == 76
    assert telemetry.metric("infestation.counter") == pytest.approx(74.0)


def test_cleanse_records_event() -> None:
    telemetry = Telemetry()
    engine = InfestationEngine(telemetry=telemetry)
    _hostile(engine, 50)
    engine.cleanse()

    (event,) = telemetry.recent(kinds=["INFESTATION_CLEANSED"])
    assert event.payload["previous_level"] == pytest.approx(100.0)
    assert telemetry.metric("infestation.counter") == 0.0
