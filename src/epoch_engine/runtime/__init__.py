"""Tick-driven engines: rebellion, infestation, resources, cleansing and behaviour."""

from .behavior import BehaviorConfig, BehaviorEngine, NPCBehavior, NPCRole
from .cleansing import CleansingConfig, CleansingEngine, CleansingFactors, CleansingParticipant, CleansingResult
from .infestation import InfestationConfig, InfestationEngine, InfestationState, InfestationTickResult
from .rebellion import (
    ActionType,
    NPCAction,
    NPCRebellionProfile,
    RebellionConfig,
    RebellionEngine,
    RebellionFactors,
    RebellionResult,
)
from .resources import (
    Mine,
    Refinery,
    ResourceConfig,
    ResourceSimulationEngine,
    ResourceState,
    ResourceType,
    SimulationStatus,
)
from .rng_service import RNGConfig, RNGService, RandomSource
from .telemetry import Telemetry, TelemetryConfig, TelemetryEvent, TelemetrySeverity

__all__ = [
    "ActionType",
    "BehaviorConfig",
    "BehaviorEngine",
    "CleansingConfig",
    "CleansingEngine",
    "CleansingFactors",
    "CleansingParticipant",
    "CleansingResult",
    "InfestationConfig",
    "InfestationEngine",
    "InfestationState",
    "InfestationTickResult",
    "Mine",
    "NPCAction",
    "NPCBehavior",
    "NPCRebellionProfile",
    "NPCRole",
    "RNGConfig",
    "RNGService",
    "RandomSource",
    "RebellionConfig",
    "RebellionEngine",
    "RebellionFactors",
    "RebellionResult",
    "Refinery",
    "ResourceConfig",
    "ResourceSimulationEngine",
    "ResourceState",
    "ResourceType",
    "SimulationStatus",
    "Telemetry",
    "TelemetryConfig",
    "TelemetryEvent",
    "TelemetrySeverity",
]
