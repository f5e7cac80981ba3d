"""Epoch engine public façade.

NPC rebellion modelling, the resource ledger with its infestation
throttle, and the Sheriff Protocol cleansing resolver.
"""

from .config import EngineConfig, parse_overrides
from .errors import (
    EpochEngineError,
    InsufficientParticipantsError,
    NPCNotFoundError,
    PlagueHeartInactiveError,
    PreconditionFailedError,
    UnknownRoleError,
)
from .runtime import (
    ActionType,
    BehaviorEngine,
    CleansingEngine,
    CleansingParticipant,
    CleansingResult,
    InfestationEngine,
    InfestationState,
    NPCAction,
    NPCBehavior,
    NPCRebellionProfile,
    NPCRole,
    RebellionEngine,
    RebellionResult,
    ResourceSimulationEngine,
    ResourceType,
    RNGService,
    SimulationStatus,
    Telemetry,
    TelemetrySeverity,
)
from .simulation import ActionOutcome, EpochSimulation

__all__ = [
    "ActionOutcome",
    "ActionType",
    "BehaviorEngine",
    "CleansingEngine",
    "CleansingParticipant",
    "CleansingResult",
    "EngineConfig",
    "EpochEngineError",
    "EpochSimulation",
    "InfestationEngine",
    "InfestationState",
    "InsufficientParticipantsError",
    "NPCAction",
    "NPCBehavior",
    "NPCNotFoundError",
    "NPCRebellionProfile",
    "NPCRole",
    "PlagueHeartInactiveError",
    "PreconditionFailedError",
    "RNGService",
    "RebellionEngine",
    "RebellionResult",
    "ResourceSimulationEngine",
    "ResourceType",
    "SimulationStatus",
    "Telemetry",
    "TelemetrySeverity",
    "UnknownRoleError",
    "parse_overrides",
]
