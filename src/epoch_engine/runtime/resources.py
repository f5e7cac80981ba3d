from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict

from epoch_engine.runtime.infestation import InfestationConfig, InfestationEngine, InfestationState
from epoch_engine.runtime.telemetry import Telemetry


class ResourceType(str, Enum):
    SIM = "sim"
    RAPIDLUM = "rapidlum"
    MINERAL = "mineral"


@dataclass(slots=True)
class ResourceConfig:
    base_sim_production: float = 1.0
    # per refinery, scaled by its efficiency
    refinery_mineral_consumption: float = 10.0
    refinery_rapidlum_production: float = 5.0


@dataclass(slots=True)
class ResourceState:
    type: ResourceType
    quantity: float = 0.0
    production_rate: float = 0.0
    consumption_rate: float = 0.0


@dataclass(slots=True, frozen=True)
class Mine:
    mine_id: str
    yield_rate: float


@dataclass(slots=True, frozen=True)
class Refinery:
    refinery_id: str
    efficiency: float


@dataclass(slots=True)
class SimulationStatus:
    resources: Dict[ResourceType, ResourceState] = field(default_factory=dict)
    mines: int = 0
    refineries: int = 0
    overall_rebellion_prob: float = 0.0
    active_npcs: int = 0
    tick_count: int = 0
    infestation_level: float = 0.0
    is_plague_heart: bool = False
    throttle_multiplier: float = 1.0

    def quantity(self, resource: ResourceType | str) -> float:
        return self.resources[ResourceType(resource)].quantity

    def to_dict(self) -> dict[str, object]:
        return {
            "resources": {
                rtype.value: {
                    "quantity": res.quantity,
                    "production_rate": res.production_rate,
                    "consumption_rate": res.consumption_rate,
                }
                for rtype, res in sorted(self.resources.items(), key=lambda itm: itm[0].value)
            },
            "mines": self.mines,
            "refineries": self.refineries,
            "overall_rebellion_prob": self.overall_rebellion_prob,
            "active_npcs": self.active_npcs,
            "tick_count": self.tick_count,
            "infestation_level": self.infestation_level,
            "is_plague_heart": self.is_plague_heart,
            "throttle_multiplier": self.throttle_multiplier,
        }


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _copy_status(status: SimulationStatus) -> SimulationStatus:
    resources = {rtype: replace(res) for rtype, res in status.resources.items()}
    return replace(status, resources=resources)


class ResourceSimulationEngine:
    """Per-tick mineral/rapidlum/sim ledger driven by mines and refineries.

    This engine is the single writer of its :class:`InfestationEngine`: each
    :meth:`tick` advances infestation first, then applies throttled
    production.  The infestation lock is acquired while the resource lock
    is held, always in that order.  The infestation lock is released before
    production is applied, so a direct reader of the infestation engine can
    observe the new infestation state before the matching resource update
    lands.
    """

    def __init__(
        self,
        config: ResourceConfig | None = None,
        *,
        infestation: InfestationEngine | None = None,
        infestation_config: InfestationConfig | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.config = config or ResourceConfig()
        self.telemetry = telemetry
        self._infestation = infestation or InfestationEngine(infestation_config, telemetry=telemetry)
        self._mines: list[Mine] = []
        self._refineries: list[Refinery] = []
        self._next_id = 1
        self._lock = threading.Lock()
        self._status = SimulationStatus(
            resources={
                ResourceType.SIM: ResourceState(ResourceType.SIM, production_rate=self.config.base_sim_production),
                ResourceType.RAPIDLUM: ResourceState(ResourceType.RAPIDLUM),
                ResourceType.MINERAL: ResourceState(ResourceType.MINERAL),
            }
        )

    @property
    def infestation(self) -> InfestationEngine:
        return self._infestation

    def tick(self, avg_trauma: float | None = None) -> SimulationStatus:
        """Advance one tick and return a copy of the resulting status.

        ``avg_trauma`` is the population trauma aggregate.  When it is not
        supplied, ``1 - overall_rebellion_prob`` stands in for it.
        """

        cfg = self.config
        with self._lock:
            status = self._status
            resources = status.resources
            mineral = resources[ResourceType.MINERAL]
            rapidlum = resources[ResourceType.RAPIDLUM]
            sim = resources[ResourceType.SIM]

            mineral.production_rate = sum(mine.yield_rate for mine in self._mines)
            mineral.consumption_rate = sum(ref.efficiency * cfg.refinery_mineral_consumption for ref in self._refineries)
            rapidlum.production_rate = sum(ref.efficiency * cfg.refinery_rapidlum_production for ref in self._refineries)
            sim.production_rate = cfg.base_sim_production

            trauma = 1.0 - status.overall_rebellion_prob if avg_trauma is None else _clamp01(avg_trauma)
            self._infestation.tick(status.overall_rebellion_prob, trauma, status.tick_count + 1)
            inf_state = self._infestation.get_state()
            status.infestation_level = inf_state.counter
            status.is_plague_heart = inf_state.is_plague_heart
            status.throttle_multiplier = inf_state.throttle_multiplier

            throttle = status.throttle_multiplier
            if throttle <= 0:
                throttle = 1.0
            for res in resources.values():
                res.quantity += res.production_rate * throttle

            consumed = mineral.consumption_rate
            if consumed > mineral.quantity:
                # Refineries run short: rapidlum follows actual mineral throughput.
                ratio = mineral.quantity / consumed
                consumed = mineral.quantity
                added = rapidlum.production_rate * throttle
                rapidlum.quantity -= added
                rapidlum.quantity += added * ratio
            mineral.quantity -= consumed

            for res in resources.values():
                if res.quantity < 0:
                    res.quantity = 0.0

            status.tick_count += 1
            snapshot = _copy_status(status)
        self._report_tick(snapshot)
        return snapshot

    def _report_tick(self, status: SimulationStatus) -> None:
        if self.telemetry is None:
            return
        self.telemetry.inc("simulation.ticks")
        for rtype, res in status.resources.items():
            self.telemetry.set_gauge(f"simulation.{rtype.value}", res.quantity)

    def advance(self, ticks: int = 1, *, avg_trauma: float | None = None) -> SimulationStatus:
        status = None
        for _ in range(max(1, int(ticks))):
            status = self.tick(avg_trauma)
        return status

    def get_status(self) -> SimulationStatus:
        with self._lock:
            return _copy_status(self._status)

    def add_mine(self, yield_rate: float) -> str:
        rate = max(0.0, float(yield_rate))
        with self._lock:
            mine_id = f"mine-{self._next_id}"
            self._next_id += 1
            self._mines.append(Mine(mine_id=mine_id, yield_rate=rate))
            self._status.mines = len(self._mines)
            tick = self._status.tick_count
        if self.telemetry is not None:
            self.telemetry.record_event("MINE_ADDED", tick=tick, mine_id=mine_id, yield_rate=rate)
        return mine_id

    def add_refinery(self, efficiency: float) -> str:
        efficiency = _clamp01(efficiency)
        with self._lock:
            refinery_id = f"refinery-{self._next_id}"
            self._next_id += 1
            self._refineries.append(Refinery(refinery_id=refinery_id, efficiency=efficiency))
            self._status.refineries = len(self._refineries)
            tick = self._status.tick_count
        if self.telemetry is not None:
            self.telemetry.record_event(
                "REFINERY_ADDED", tick=tick, refinery_id=refinery_id, efficiency=efficiency
            )
        return refinery_id

    def mines(self) -> list[Mine]:
        with self._lock:
            return list(self._mines)

    def refineries(self) -> list[Refinery]:
        with self._lock:
            return list(self._refineries)

    def set_population_stats(self, overall_rebellion_prob: float, active_npcs: int) -> None:
        with self._lock:
            self._status.overall_rebellion_prob = _clamp01(overall_rebellion_prob)
            self._status.active_npcs = max(0, int(active_npcs))

    def get_infestation_state(self) -> InfestationState:
        return self._infestation.get_state()


__all__ = [
    "Mine",
    "Refinery",
    "ResourceConfig",
    "ResourceSimulationEngine",
    "ResourceState",
    "ResourceType",
    "SimulationStatus",
]
