"""Population-wide infestation counter with a hysteresis-gated Plague Heart.

The counter climbs while the population is both rebellious and
traumatised, and decays otherwise.  Reaching the ceiling activates the
Plague Heart, which throttles production; it only clears once the counter
falls strictly below ``clear_threshold``.  The gap between the two
thresholds keeps the state from flickering around a single value.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace

from epoch_engine.errors import PlagueHeartInactiveError
from epoch_engine.runtime.telemetry import Telemetry, TelemetrySeverity


@dataclass(slots=True)
class InfestationConfig:
    accumulation_rate: float = 2.0
    decay_rate: float = 1.0
    plague_heart_threshold: float = 100.0
    clear_threshold: float = 75.0
    throttle_amount: float = 0.50
    rebellion_trigger: float = 0.35
    trauma_trigger: float = 0.40
    warning_level: float = 50.0


@dataclass(slots=True)
class InfestationState:
    counter: float = 0.0
    is_plague_heart: bool = False
    throttle_multiplier: float = 1.0
    last_tick: int = 0


@dataclass(slots=True, frozen=True)
class InfestationTickResult:
    previous_counter: float
    new_counter: float
    accumulated: bool
    plague_heart_changed: bool
    plague_heart_active: bool


class InfestationEngine:
    def __init__(self, config: InfestationConfig | None = None, *, telemetry: Telemetry | None = None) -> None:
        self.config = config or InfestationConfig()
        self.telemetry = telemetry
        self._state = InfestationState()
        self._lock = threading.Lock()

    def tick(self, avg_rebellion: float, avg_trauma: float, tick_number: int) -> InfestationTickResult:
        cfg = self.config
        with self._lock:
            state = self._state
            previous = state.counter
            was_active = state.is_plague_heart

            accumulated = avg_rebellion > cfg.rebellion_trigger and avg_trauma > cfg.trauma_trigger
            if accumulated:
                state.counter += cfg.accumulation_rate
            else:
                state.counter -= cfg.decay_rate
            state.counter = max(0.0, min(cfg.plague_heart_threshold, state.counter))

            if not state.is_plague_heart and state.counter >= cfg.plague_heart_threshold:
                state.is_plague_heart = True
            elif state.is_plague_heart and state.counter < cfg.clear_threshold:
                state.is_plague_heart = False
            state.throttle_multiplier = cfg.throttle_amount if state.is_plague_heart else 1.0
            state.last_tick = int(tick_number)

            result = InfestationTickResult(
                previous_counter=previous,
                new_counter=state.counter,
                accumulated=accumulated,
                plague_heart_changed=was_active != state.is_plague_heart,
                plague_heart_active=state.is_plague_heart,
            )
            throttle = state.throttle_multiplier
        self._report_tick(result, throttle, int(tick_number))
        return result

    def _report_tick(self, result: InfestationTickResult, throttle: float, tick_number: int) -> None:
        telemetry = self.telemetry
        if telemetry is None:
            return
        telemetry.set_gauge("infestation.counter", result.new_counter)
        telemetry.set_gauge("infestation.throttle", throttle)
        warning_level = self.config.warning_level
        if result.previous_counter <= warning_level < result.new_counter:
            telemetry.record_event(
                "INFESTATION_WARNING",
                severity=TelemetrySeverity.WARNING,
                tick=tick_number,
                level=result.new_counter,
            )
        if not result.plague_heart_changed:
            return
        if result.plague_heart_active:
            telemetry.inc("infestation.plague_heart_activations")
            telemetry.record_event(
                "PLAGUE_HEART_ACTIVATED",
                severity=TelemetrySeverity.CRITICAL,
                tick=tick_number,
                level=result.new_counter,
                throttle=throttle,
            )
        else:
            telemetry.record_event(
                "PLAGUE_HEART_CLEARED",
                severity=TelemetrySeverity.INFO,
                tick=tick_number,
                level=result.new_counter,
                throttle=throttle,
            )

    def get_state(self) -> InfestationState:
        with self._lock:
            return replace(self._state)

    def cleanse(self) -> None:
        """Force-clear an active Plague Heart.

        Raises :class:`PlagueHeartInactiveError` without touching state when
        no Plague Heart is active.
        """

        with self._lock:
            if not self._state.is_plague_heart:
                raise PlagueHeartInactiveError()
            previous = self._state.counter
            self._state.counter = 0.0
            self._state.is_plague_heart = False
            self._state.throttle_multiplier = 1.0
            last_tick = self._state.last_tick
        if self.telemetry is not None:
            self.telemetry.set_gauge("infestation.counter", 0.0)
            self.telemetry.set_gauge("infestation.throttle", 1.0)
            self.telemetry.record_event(
                "INFESTATION_CLEANSED",
                severity=TelemetrySeverity.INFO,
                tick=last_tick,
                previous_level=previous,
            )


__all__ = [
    "InfestationConfig",
    "InfestationEngine",
    "InfestationState",
    "InfestationTickResult",
]
