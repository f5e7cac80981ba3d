from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Mapping

from epoch_engine.runtime.telemetry import Telemetry


class ActionType(str, Enum):
    COMMAND = "command"
    PUNISHMENT = "punishment"
    REWARD = "reward"
    DIALOGUE = "dialogue"
    ENVIRONMENT = "environment"
    RESOURCE_CHANGE = "resource_change"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: "ActionType | str | None") -> "ActionType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(slots=True, frozen=True)
class ActionEffect:
    work_efficiency: float = 0.0
    morale: float = 0.0
    avg_trauma: float = 0.0


# Per unit of intensity.
ACTION_EFFECTS: Mapping[ActionType, ActionEffect] = {
    ActionType.REWARD: ActionEffect(morale=0.15, avg_trauma=-0.05),
    ActionType.PUNISHMENT: ActionEffect(morale=-0.20, avg_trauma=0.15),
    ActionType.COMMAND: ActionEffect(work_efficiency=0.10, morale=-0.05),
    ActionType.DIALOGUE: ActionEffect(morale=0.10),
    ActionType.ENVIRONMENT: ActionEffect(avg_trauma=0.10),
}
NO_EFFECT = ActionEffect()


@dataclass(slots=True)
class RebellionConfig:
    base_probability: float = 0.05
    trauma_weight: float = 0.30
    efficiency_weight: float = 0.30
    morale_weight: float = 0.20
    consideration_threshold: float = 0.20
    halt_threshold: float = 0.35
    veto_threshold: float = 0.80


@dataclass(slots=True)
class NPCRebellionProfile:
    npc_id: str
    avg_trauma: float = 0.0
    work_efficiency: float = 0.5
    morale: float = 0.5
    memory_count: int = 0


@dataclass(slots=True)
class NPCAction:
    action_id: str
    npc_id: str
    action_type: ActionType = ActionType.UNKNOWN
    intensity: float = 0.0

    def __post_init__(self) -> None:
        self.action_type = ActionType.parse(self.action_type)


@dataclass(slots=True)
class RebellionFactors:
    base: float = 0.0
    trauma_modifier: float = 0.0
    efficiency_modifier: float = 0.0
    morale_modifier: float = 0.0

    @property
    def total(self) -> float:
        return self.base + self.trauma_modifier + self.efficiency_modifier + self.morale_modifier


@dataclass(slots=True)
class RebellionResult:
    npc_id: str
    probability: float
    threshold_exceeded: bool
    halt_triggered: bool
    veto_triggered: bool = False
    factors: RebellionFactors = field(default_factory=RebellionFactors)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class RebellionEngine:
    """Stateless rebellion-probability model.

    ``probability = clamp01(base + trauma*w_t + (1 - efficiency)*w_e + (1 - morale)*w_m)``
    with the profile scalars clamped to ``[0, 1]`` first.  The engine holds
    only its configuration, so it is safe to share between threads.
    """

    def __init__(self, config: RebellionConfig | None = None, *, telemetry: Telemetry | None = None) -> None:
        self.config = config or RebellionConfig()
        self.telemetry = telemetry

    def calculate_probability(self, profile: NPCRebellionProfile) -> RebellionResult:
        cfg = self.config
        factors = RebellionFactors(
            base=cfg.base_probability,
            trauma_modifier=_clamp01(profile.avg_trauma) * cfg.trauma_weight,
            efficiency_modifier=(1.0 - _clamp01(profile.work_efficiency)) * cfg.efficiency_weight,
            morale_modifier=(1.0 - _clamp01(profile.morale)) * cfg.morale_weight,
        )
        probability = _clamp01(factors.total)
        return RebellionResult(
            npc_id=profile.npc_id,
            probability=probability,
            threshold_exceeded=probability > cfg.consideration_threshold,
            halt_triggered=probability > cfg.halt_threshold,
            veto_triggered=probability > cfg.veto_threshold,
            factors=factors,
        )

    def process_action(self, profile: NPCRebellionProfile, action: NPCAction) -> NPCRebellionProfile:
        """Return a new profile with the action's effects applied and clamped.

        Unknown action types leave the scalars as they were (after clamping).
        """

        effect = ACTION_EFFECTS.get(ActionType.parse(action.action_type), NO_EFFECT)
        intensity = _clamp01(action.intensity)
        return replace(
            profile,
            avg_trauma=_clamp01(profile.avg_trauma + effect.avg_trauma * intensity),
            work_efficiency=_clamp01(profile.work_efficiency + effect.work_efficiency * intensity),
            morale=_clamp01(profile.morale + effect.morale * intensity),
        )

    def batch_calculate(self, profiles: Iterable[NPCRebellionProfile]) -> list[RebellionResult]:
        results = [self.calculate_probability(profile) for profile in profiles]
        if self.telemetry is not None:
            for result in results:
                self.telemetry.topk_add(
                    "rebellion.highest",
                    result.npc_id,
                    result.probability,
                    payload={"halt": result.halt_triggered},
                )
        return results


__all__ = [
    "ACTION_EFFECTS",
    "ActionEffect",
    "ActionType",
    "NPCAction",
    "NPCRebellionProfile",
    "RebellionConfig",
    "RebellionEngine",
    "RebellionFactors",
    "RebellionResult",
]
