from .engine import ActionOutcome, EpochSimulation

__all__ = ["ActionOutcome", "EpochSimulation"]
