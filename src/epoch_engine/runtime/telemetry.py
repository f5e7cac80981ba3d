from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, Mapping

SYSTEM_NPC_ID = "system"


class TelemetrySeverity(IntEnum):
    INFO = 1
    WARNING = 2
    CRITICAL = 3
    CATASTROPHIC = 4


def severity_from_intensity(intensity: float) -> TelemetrySeverity:
    if intensity >= 0.9:
        return TelemetrySeverity.CATASTROPHIC
    if intensity >= 0.7:
        return TelemetrySeverity.CRITICAL
    if intensity >= 0.4:
        return TelemetrySeverity.WARNING
    return TelemetrySeverity.INFO


@dataclass(slots=True)
class TelemetryConfig:
    enabled: bool = True
    capacity: int = 500
    default_recent_limit: int = 50
    topk: int = 10


@dataclass(slots=True)
class TopKEntry:
    key: str
    score: float
    payload: Mapping[str, object] | None = None


@dataclass(slots=True)
class TopK:
    k: int = 10
    entries: list[TopKEntry] = field(default_factory=list)

    def add(self, key: str, score: float, payload: Mapping[str, object] | None = None) -> None:
        # one entry per key; a later score replaces the earlier one
        self.entries = [entry for entry in self.entries if entry.key != key]
        self.entries.append(TopKEntry(key=key, score=float(score), payload=dict(payload or {})))
        self.entries.sort(key=lambda e: (-e.score, e.key))
        if len(self.entries) > max(1, int(self.k)):
            self.entries = self.entries[: int(self.k)]

    def snapshot(self) -> list[Mapping[str, object]]:
        return [
            {"key": entry.key, "score": entry.score, "payload": dict(entry.payload or {})}
            for entry in self.entries
        ]


@dataclass(slots=True)
class Metrics:
    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, Any] = field(default_factory=dict)
    topk: dict[str, TopK] = field(default_factory=dict)
    topk_size: int = 10

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def set_gauge(self, path: str, value: Any) -> Any:
        self.gauges[path] = value
        return value

    def get(self, path: str, default: float = 0.0) -> Any:
        if path in self.counters:
            return self.counters[path]
        return self.gauges.get(path, default)

    def topk_add(self, path: str, key: str, score: float, payload: Mapping[str, object] | None = None) -> None:
        bucket = self.topk.get(path)
        if bucket is None:
            bucket = TopK(k=self.topk_size)
            self.topk[path] = bucket
        bucket.add(key, score, payload=payload)

    def snapshot(self) -> dict[str, Any]:
        return {
            "counters": dict(sorted(self.counters.items())),
            "gauges": {k: self._to_jsonable(v) for k, v in sorted(self.gauges.items())},
            "topk": {k: bucket.snapshot() for k, bucket in sorted(self.topk.items())},
        }

    def _to_jsonable(self, value: Any) -> Any:
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, Mapping):
            return {str(k): self._to_jsonable(v) for k, v in sorted(value.items(), key=lambda itm: str(itm[0]))}
        if isinstance(value, (list, tuple, set)):
            return [self._to_jsonable(v) for v in value]
        return str(value)


@dataclass(slots=True, frozen=True)
class TelemetryEvent:
    seq: int
    kind: str
    severity: TelemetrySeverity
    npc_id: str = SYSTEM_NPC_ID
    tick: int = 0
    payload: Mapping[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "seq": self.seq,
            "kind": self.kind,
            "severity": self.severity.name,
            "npc_id": self.npc_id,
            "tick": self.tick,
            "payload": dict(self.payload),
        }


@dataclass(slots=True)
class EventRing:
    capacity: int = 500
    events: list[TelemetryEvent] = field(default_factory=list)
    total_emitted: int = 0

    def append(self, event: TelemetryEvent) -> None:
        self.events.append(event)
        self.total_emitted += 1
        if len(self.events) > max(1, int(self.capacity)):
            self.events = self.events[-int(self.capacity) :]


class Telemetry:
    """Thread-safe metrics plus a bounded ring of recent structured events.

    Engines record observations here; nothing they return depends on it.
    """

    def __init__(self, config: TelemetryConfig | None = None) -> None:
        self.config = config or TelemetryConfig()
        self._lock = threading.Lock()
        self._metrics = Metrics(topk_size=self.config.topk)
        self._ring = EventRing(capacity=max(1, int(self.config.capacity)))

    def record_event(
        self,
        kind: str,
        *,
        severity: TelemetrySeverity = TelemetrySeverity.INFO,
        npc_id: str = SYSTEM_NPC_ID,
        tick: int = 0,
        **payload: object,
    ) -> TelemetryEvent | None:
        if not self.config.enabled:
            return None
        with self._lock:
            event = TelemetryEvent(
                seq=self._ring.total_emitted + 1,
                kind=kind,
                severity=TelemetrySeverity(severity),
                npc_id=npc_id,
                tick=int(tick),
                payload=dict(payload),
            )
            self._ring.append(event)
        return event

    def inc(self, path: str, n: float = 1.0) -> float:
        with self._lock:
            return self._metrics.inc(path, n)

    def set_gauge(self, path: str, value: Any) -> Any:
        with self._lock:
            return self._metrics.set_gauge(path, value)

    def topk_add(self, path: str, key: str, score: float, payload: Mapping[str, object] | None = None) -> None:
        with self._lock:
            self._metrics.topk_add(path, key, score, payload=payload)

    def metric(self, path: str, default: float = 0.0) -> Any:
        with self._lock:
            return self._metrics.get(path, default)

    def metrics_snapshot(self) -> dict[str, Any]:
        with self._lock:
            return self._metrics.snapshot()

    @property
    def total_emitted(self) -> int:
        with self._lock:
            return self._ring.total_emitted

    def recent(
        self,
        limit: int | None = None,
        *,
        npc_id: str | None = None,
        min_severity: TelemetrySeverity | None = None,
        kinds: Iterable[str] | None = None,
    ) -> list[TelemetryEvent]:
        """Return the newest events first, filtered by NPC, severity and kind."""

        if limit is None or limit <= 0:
            limit = self.config.default_recent_limit
        limit = min(int(limit), self._ring.capacity)
        wanted = set(kinds) if kinds is not None else None
        with self._lock:
            events = list(self._ring.events)
        selected: list[TelemetryEvent] = []
        for event in reversed(events):
            if npc_id and event.npc_id != npc_id:
                continue
            if min_severity is not None and event.severity < min_severity:
                continue
            if wanted is not None and event.kind not in wanted:
                continue
            selected.append(event)
            if len(selected) >= limit:
                break
        return selected

    def clear(self) -> None:
        with self._lock:
            self._ring.events.clear()


__all__ = [
    "EventRing",
    "Metrics",
    "SYSTEM_NPC_ID",
    "Telemetry",
    "TelemetryConfig",
    "TelemetryEvent",
    "TelemetrySeverity",
    "TopK",
    "TopKEntry",
    "severity_from_intensity",
]
