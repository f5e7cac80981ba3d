from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from enum import Enum

from epoch_engine.errors import NPCNotFoundError, UnknownRoleError


class NPCRole(str, Enum):
    WORKER = "worker"
    WARRIOR = "warrior"
    GUARD = "guard"

    @classmethod
    def parse(cls, value: "NPCRole | str") -> "NPCRole":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise UnknownRoleError(value) from exc


COMBAT_ROLES: tuple[NPCRole, ...] = (NPCRole.WARRIOR, NPCRole.GUARD)


@dataclass(slots=True)
class BehaviorConfig:
    default_work_efficiency: float = 0.5
    default_morale: float = 0.5
    default_role: NPCRole = NPCRole.WORKER


@dataclass(slots=True)
class NPCBehavior:
    npc_id: str
    role: NPCRole = NPCRole.WORKER
    work_efficiency: float = 0.5
    morale: float = 0.5
    assigned_task: str = ""


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class BehaviorEngine:
    """Registry of per-NPC behavioural scalars.

    Every accessor hands out copies; the only way to change an NPC is
    through the engine's own methods.
    """

    def __init__(self, config: BehaviorConfig | None = None) -> None:
        self.config = config or BehaviorConfig()
        self._npcs: dict[str, NPCBehavior] = {}
        self._lock = threading.Lock()

    def _create(self, npc_id: str, role: NPCRole) -> NPCBehavior:
        npc = NPCBehavior(
            npc_id=npc_id,
            role=role,
            work_efficiency=_clamp01(self.config.default_work_efficiency),
            morale=_clamp01(self.config.default_morale),
        )
        self._npcs[npc_id] = npc
        return npc

    def _require(self, npc_id: str) -> NPCBehavior:
        npc = self._npcs.get(npc_id)
        if npc is None:
            raise NPCNotFoundError(npc_id)
        return npc

    def register_npc(self, npc_id: str) -> NPCBehavior:
        """Register with defaults; an existing NPC is returned unchanged."""

        with self._lock:
            npc = self._npcs.get(npc_id)
            if npc is None:
                npc = self._create(npc_id, NPCRole.parse(self.config.default_role))
            return replace(npc)

    def register_npc_with_role(self, npc_id: str, role: NPCRole | str) -> NPCBehavior:
        """Register with ``role``; an existing NPC only has its role updated."""

        parsed = NPCRole.parse(role)
        with self._lock:
            npc = self._npcs.get(npc_id)
            if npc is None:
                npc = self._create(npc_id, parsed)
            else:
                npc.role = parsed
            return replace(npc)

    def get_npc(self, npc_id: str) -> NPCBehavior | None:
        with self._lock:
            npc = self._npcs.get(npc_id)
            return replace(npc) if npc is not None else None

    def get_all_npcs(self) -> list[NPCBehavior]:
        with self._lock:
            return [replace(npc) for npc in self._npcs.values()]

    def get_npcs_by_role(self, role: NPCRole | str) -> list[NPCBehavior]:
        parsed = NPCRole.parse(role)
        with self._lock:
            return [replace(npc) for npc in self._npcs.values() if npc.role is parsed]

    def apply_work_efficiency_modifier(self, npc_id: str, delta: float) -> NPCBehavior:
        with self._lock:
            npc = self._require(npc_id)
            npc.work_efficiency = _clamp01(npc.work_efficiency + delta)
            return replace(npc)

    def apply_morale_modifier(self, npc_id: str, delta: float) -> NPCBehavior:
        with self._lock:
            npc = self._require(npc_id)
            npc.morale = _clamp01(npc.morale + delta)
            return replace(npc)

    def assign_task(self, npc_id: str, task: str) -> NPCBehavior:
        with self._lock:
            npc = self._require(npc_id)
            npc.assigned_task = str(task or "")
            return replace(npc)

    def __len__(self) -> int:
        with self._lock:
            return len(self._npcs)


__all__ = [
    "BehaviorConfig",
    "BehaviorEngine",
    "COMBAT_ROLES",
    "NPCBehavior",
    "NPCRole",
]
