"""Error taxonomy shared by the Epoch engines.

Failures are small and local: an unknown NPC, an unknown role tag, or a
precondition that does not hold (no active plague heart, too few
participants).  Every raising path leaves engine state untouched.
"""

from __future__ import annotations


class EpochEngineError(RuntimeError):
    """Base class for all engine errors."""


class NPCNotFoundError(EpochEngineError, KeyError):
    def __init__(self, npc_id: str) -> None:
        self.npc_id = npc_id
        super().__init__(f"NPC {npc_id!r} not found")

    def __str__(self) -> str:
        return self.args[0]


class UnknownRoleError(EpochEngineError, ValueError):
    def __init__(self, role: object) -> None:
        self.role = role
        super().__init__(f"Unknown NPC role: {role!r}")


class PreconditionFailedError(EpochEngineError):
    """An operation was attempted while its precondition did not hold."""


class PlagueHeartInactiveError(PreconditionFailedError):
    def __init__(self, message: str = "cannot cleanse: Plague Heart is not active") -> None:
        super().__init__(message)


class InsufficientParticipantsError(PreconditionFailedError):
    def __init__(self, required: int, provided: int) -> None:
        self.required = required
        self.provided = provided
        super().__init__(
            f"cannot cleanse: insufficient participants (minimum {required} warriors/guards required, got {provided})"
        )


__all__ = [
    "EpochEngineError",
    "InsufficientParticipantsError",
    "NPCNotFoundError",
    "PlagueHeartInactiveError",
    "PreconditionFailedError",
    "UnknownRoleError",
]
