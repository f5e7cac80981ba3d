from __future__ import annotations

import json
import random
import threading
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Callable, Mapping, Protocol


class RandomSource(Protocol):
    """Zero-argument callable returning a uniform float in ``[0, 1)``."""

    def __call__(self) -> float: ...


def _scope_key(scope: Mapping[str, object] | None) -> str:
    if not scope:
        return "{}"
    return json.dumps({str(k): scope[k] for k in scope}, sort_keys=True, separators=(",", ":"))


@dataclass(slots=True)
class RNGConfig:
    salt: str = "epoch-rng-v1"


@dataclass
class RNGService:
    """Seeded random draws keyed by stream name.

    Draw ``n`` on a stream is seeded from ``(salt, seed, stream, scope, n)``,
    so one stream's sequence does not depend on how often others are used.
    """

    seed: int
    config: RNGConfig = field(default_factory=RNGConfig)
    counters: dict[str, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def rand(self, stream_key: str, *, scope: Mapping[str, object] | None = None) -> float:
        key = f"{stream_key}|{_scope_key(scope)}"
        with self._lock:
            draw = self.counters.get(key, 0)
            self.counters[key] = draw + 1
        digest = sha256(f"{self.config.salt}|{self.seed}|{key}|{draw}".encode()).digest()
        return random.Random(int.from_bytes(digest[:8], "big")).random()

    def source(self, stream_key: str, *, scope: Mapping[str, object] | None = None) -> Callable[[], float]:
        """Bind one stream as a :class:`RandomSource`."""

        bound = dict(scope) if scope else None
        return lambda: self.rand(stream_key, scope=bound)


__all__ = ["RNGConfig", "RNGService", "RandomSource"]
