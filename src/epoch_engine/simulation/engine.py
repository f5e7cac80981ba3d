"""High level wiring of the Epoch engines into one simulation."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..config import EngineConfig
from ..errors import PlagueHeartInactiveError
from ..runtime.behavior import COMBAT_ROLES, BehaviorEngine, NPCBehavior
from ..runtime.cleansing import CleansingEngine, CleansingParticipant, CleansingResult
from ..runtime.infestation import InfestationState
from ..runtime.rebellion import NPCAction, NPCRebellionProfile, RebellionEngine, RebellionResult
from ..runtime.resources import ResourceSimulationEngine, SimulationStatus
from ..runtime.rng_service import RNGService
from ..runtime.telemetry import Telemetry, severity_from_intensity

CLEANSING_STREAM = "cleansing.roll"


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(slots=True)
class ActionOutcome:
    npc_id: str
    updated_profile: NPCRebellionProfile
    previous: RebellionResult
    current: RebellionResult
    applied: bool

    @property
    def rebellion_delta(self) -> float:
        return self.current.probability - self.previous.probability

    @property
    def rebellion_triggered(self) -> bool:
        return self.current.threshold_exceeded

    @property
    def halt_triggered(self) -> bool:
        return self.current.halt_triggered


@dataclass
class EpochSimulation:
    """Container wiring the rebellion, behaviour, resource and cleansing engines.

    The resource engine is the only caller of its infestation engine's
    ``tick``; this container only reaches the infestation engine to read
    state or to cleanse it after a successful operation.
    """

    config: EngineConfig = field(default_factory=EngineConfig)

    def __post_init__(self) -> None:
        cfg = self.config
        self.telemetry = Telemetry(cfg.telemetry)
        self.rng = RNGService(seed=cfg.seed, config=cfg.rng)
        self.rebellion = RebellionEngine(cfg.rebellion, telemetry=self.telemetry)
        self.behavior = BehaviorEngine(cfg.behavior)
        self.resources = ResourceSimulationEngine(
            cfg.resources,
            infestation_config=cfg.infestation,
            telemetry=self.telemetry,
        )
        self.cleansing = CleansingEngine(
            cfg.cleansing,
            random_source=self.rng.source(CLEANSING_STREAM),
            telemetry=self.telemetry,
        )
        self._trauma: Dict[str, float] = {}
        self._trauma_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Trauma store (stand-in for the memory graph)
    # ------------------------------------------------------------------
    def set_trauma(self, npc_id: str, value: float) -> None:
        with self._trauma_lock:
            self._trauma[npc_id] = _clamp01(value)

    def trauma_for(self, npc_id: str) -> float:
        with self._trauma_lock:
            return self._trauma.get(npc_id, 0.0)

    # ------------------------------------------------------------------
    # Rebellion
    # ------------------------------------------------------------------
    def _profile(self, npc: NPCBehavior) -> NPCRebellionProfile:
        return NPCRebellionProfile(
            npc_id=npc.npc_id,
            avg_trauma=self.trauma_for(npc.npc_id),
            work_efficiency=npc.work_efficiency,
            morale=npc.morale,
        )

    def get_rebellion_probability(self, npc_id: str) -> RebellionResult:
        npc = self.behavior.register_npc(npc_id)
        return self.rebellion.calculate_probability(self._profile(npc))

    def process_npc_action(self, action: NPCAction, *, dry_run: bool = False) -> ActionOutcome:
        npc = self.behavior.register_npc(action.npc_id)
        profile = self._profile(npc)
        previous = self.rebellion.calculate_probability(profile)
        updated = self.rebellion.process_action(profile, action)
        current = self.rebellion.calculate_probability(updated)

        if not dry_run:
            self.behavior.apply_work_efficiency_modifier(npc.npc_id, updated.work_efficiency - npc.work_efficiency)
            self.behavior.apply_morale_modifier(npc.npc_id, updated.morale - npc.morale)
            self.set_trauma(npc.npc_id, updated.avg_trauma)
            if current.halt_triggered:
                self.telemetry.record_event(
                    "REBELLION_TRIGGERED",
                    severity=severity_from_intensity(current.probability),
                    npc_id=npc.npc_id,
                    tick=self.resources.get_status().tick_count,
                    probability=current.probability,
                    trigger_action_id=action.action_id,
                )

        return ActionOutcome(
            npc_id=npc.npc_id,
            updated_profile=updated,
            previous=previous,
            current=current,
            applied=not dry_run,
        )

    # ------------------------------------------------------------------
    # Simulation ticks
    # ------------------------------------------------------------------
    def refresh_population(self) -> Tuple[float, float]:
        npcs = self.behavior.get_all_npcs()
        if not npcs:
            self.resources.set_population_stats(0.0, 0)
            return 0.0, 0.0
        results = self.rebellion.batch_calculate(self._profile(npc) for npc in npcs)
        avg_rebellion = sum(result.probability for result in results) / len(results)
        avg_trauma = sum(self.trauma_for(npc.npc_id) for npc in npcs) / len(npcs)
        self.resources.set_population_stats(avg_rebellion, len(npcs))
        return avg_rebellion, avg_trauma

    def advance(self, ticks: int = 1) -> SimulationStatus:
        _, avg_trauma = self.refresh_population()
        return self.resources.advance(ticks, avg_trauma=avg_trauma)

    def get_status(self) -> SimulationStatus:
        return self.resources.get_status()

    def get_infestation_state(self) -> InfestationState:
        return self.resources.get_infestation_state()

    # ------------------------------------------------------------------
    # Sheriff Protocol
    # ------------------------------------------------------------------
    def assemble_cleansing_party(self) -> List[CleansingParticipant]:
        party: List[CleansingParticipant] = []
        for role in COMBAT_ROLES:
            for npc in sorted(self.behavior.get_npcs_by_role(role), key=lambda n: n.npc_id):
                party.append(
                    CleansingParticipant(
                        npc_id=npc.npc_id,
                        role=npc.role.value,
                        avg_trauma=self.trauma_for(npc.npc_id),
                        morale=npc.morale,
                        # morale doubles as confidence until a confidence source exists
                        confidence=npc.morale,
                    )
                )
        return party

    def deploy_cleansing_operation(self, participants: Optional[List[CleansingParticipant]] = None) -> CleansingResult:
        state = self.get_infestation_state()
        if not state.is_plague_heart:
            raise PlagueHeartInactiveError()
        party = self.assemble_cleansing_party() if participants is None else list(participants)
        result = self.cleansing.execute(party, state.is_plague_heart)
        if result.success:
            try:
                self.resources.infestation.cleanse()
            except PlagueHeartInactiveError:
                # cleared by natural decay between the check and the roll
                pass
        return result


__all__ = ["ActionOutcome", "CLEANSING_STREAM", "EpochSimulation"]
