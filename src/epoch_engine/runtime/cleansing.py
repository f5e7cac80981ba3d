"""Sheriff Protocol cleansing resolver.

A cleansing operation is one Bernoulli trial for the whole party: the
success rate is derived from the participants' mean morale, trauma and
confidence, clamped to ``[min_success_rate, max_success_rate]``, and a
single draw from the injected random source decides the outcome.  Clearing
the infestation on success is left to the caller.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from typing import Sequence

from epoch_engine.errors import InsufficientParticipantsError, PlagueHeartInactiveError
from epoch_engine.runtime.rng_service import RandomSource
from epoch_engine.runtime.telemetry import Telemetry, TelemetrySeverity


@dataclass(slots=True)
class CleansingConfig:
    base_success_rate: float = 0.50
    morale_weight: float = 0.25
    trauma_penalty_weight: float = 0.30
    confidence_weight: float = 0.15
    min_success_rate: float = 0.20
    max_success_rate: float = 0.85
    min_participants: int = 2


@dataclass(slots=True, frozen=True)
class CleansingParticipant:
    npc_id: str
    role: str
    avg_trauma: float = 0.0
    morale: float = 0.5
    confidence: float = 0.5


@dataclass(slots=True)
class CleansingFactors:
    base: float = 0.0
    avg_morale: float = 0.0
    morale_contribution: float = 0.0
    avg_trauma: float = 0.0
    trauma_penalty: float = 0.0
    avg_confidence: float = 0.0
    confidence_contribution: float = 0.0


@dataclass(slots=True)
class CleansingResult:
    success: bool
    success_rate: float
    participant_ids: list[str] = field(default_factory=list)
    participant_count: int = 0
    rolled_value: float = 0.0
    factors: CleansingFactors = field(default_factory=CleansingFactors)


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, float(value)))


class CleansingEngine:
    def __init__(
        self,
        config: CleansingConfig | None = None,
        *,
        random_source: RandomSource | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.config = config or CleansingConfig()
        self.telemetry = telemetry
        self._random_source: RandomSource = random_source or random.Random().random
        self._lock = threading.Lock()

    def set_random_source(self, source: RandomSource) -> None:
        """Swap the random source, e.g. for a fixed value in tests."""

        with self._lock:
            self._random_source = source

    def calculate_success_rate(self, participants: Sequence[CleansingParticipant]) -> tuple[float, CleansingFactors]:
        cfg = self.config
        if not participants:
            return cfg.min_success_rate, CleansingFactors(base=cfg.base_success_rate)

        n = float(len(participants))
        avg_morale = sum(_clamp(p.morale) for p in participants) / n
        avg_trauma = sum(_clamp(p.avg_trauma) for p in participants) / n
        avg_confidence = sum(_clamp(p.confidence) for p in participants) / n

        factors = CleansingFactors(
            base=cfg.base_success_rate,
            avg_morale=avg_morale,
            morale_contribution=avg_morale * cfg.morale_weight,
            avg_trauma=avg_trauma,
            trauma_penalty=avg_trauma * cfg.trauma_penalty_weight,
            avg_confidence=avg_confidence,
            confidence_contribution=avg_confidence * cfg.confidence_weight,
        )
        raw = factors.base + factors.morale_contribution - factors.trauma_penalty + factors.confidence_contribution
        return _clamp(raw, cfg.min_success_rate, cfg.max_success_rate), factors

    def execute(self, participants: Sequence[CleansingParticipant], is_plague_heart_active: bool) -> CleansingResult:
        if not is_plague_heart_active:
            raise PlagueHeartInactiveError()
        if len(participants) < self.config.min_participants:
            raise InsufficientParticipantsError(self.config.min_participants, len(participants))

        success_rate, factors = self.calculate_success_rate(participants)
        with self._lock:
            rolled = float(self._random_source())
        result = CleansingResult(
            success=rolled <= success_rate,
            success_rate=success_rate,
            participant_ids=[p.npc_id for p in participants],
            participant_count=len(participants),
            rolled_value=rolled,
            factors=factors,
        )
        self._report(result)
        return result

    def _report(self, result: CleansingResult) -> None:
        if self.telemetry is None:
            return
        self.telemetry.inc("cleansing.attempts")
        if result.success:
            self.telemetry.inc("cleansing.successes")
        self.telemetry.record_event(
            "CLEANSING_RESOLVED",
            severity=TelemetrySeverity.INFO if result.success else TelemetrySeverity.WARNING,
            success=result.success,
            success_rate=result.success_rate,
            rolled_value=result.rolled_value,
            participants=list(result.participant_ids),
        )


__all__ = [
    "CleansingConfig",
    "CleansingEngine",
    "CleansingFactors",
    "CleansingParticipant",
    "CleansingResult",
]
