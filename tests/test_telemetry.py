from __future__ import annotations

import pytest

from epoch_engine.runtime.telemetry import (
    EventRing,
    Metrics,
    Telemetry,
    TelemetryConfig,
    TelemetryEvent,
    TelemetrySeverity,
    severity_from_intensity,
)


@pytest.mark.parametrize(
    ("intensity", "expected"),
    [
        (0.95, TelemetrySeverity.CATASTROPHIC),
        (0.9, TelemetrySeverity.CATASTROPHIC),
        (0.7, TelemetrySeverity.CRITICAL),
        (0.4, TelemetrySeverity.WARNING),
        (0.39, TelemetrySeverity.INFO),
    ],
)
def test_severity_from_intensity(intensity: float, expected: TelemetrySeverity) -> None:
    assert severity_from_intensity(intensity) is expected


def test_event_ring_keeps_newest() -> None:
    ring = EventRing(capacity=3)
    for seq in range(1, 6):
        ring.append(TelemetryEvent(seq=seq, kind="X", severity=TelemetrySeverity.INFO))

    assert [event.seq for event in ring.events] == [3, 4, 5]
    assert ring.total_emitted == 5


def test_recent_is_newest_first_and_filtered() -> None:
    telemetry = Telemetry()
    telemetry.record_event("A", npc_id="n1", tick=1)
    telemetry.record_event("B", severity=TelemetrySeverity.CRITICAL, npc_id="n2", tick=2)
    telemetry.record_event("A", severity=TelemetrySeverity.WARNING, npc_id="n1", tick=3)

    assert [event.tick for event in telemetry.recent()] == [3, 2, 1]
    assert [event.tick for event in telemetry.recent(npc_id="n1")] == [3, 1]
    assert [event.kind for event in telemetry.recent(min_severity=TelemetrySeverity.WARNING)] == ["A", "B"]
    assert [event.tick for event in telemetry.recent(kinds=["B"])] == [2]
    assert [event.tick for event in telemetry.recent(1)] == [3]


def test_recent_defaults_and_caps_limit() -> None:
    telemetry = Telemetry(TelemetryConfig(capacity=80))
    for tick in range(100):
        telemetry.record_event("TICK", tick=tick)

    assert len(telemetry.recent()) == 50
    assert len(telemetry.recent(0)) == 50
    assert len(telemetry.recent(1000)) == 80
    assert telemetry.total_emitted == 100


def test_sequence_numbers_and_payload() -> None:
    telemetry = Telemetry()
    first = telemetry.record_event("MINE_ADDED", mine_id="mine-1")
    second = telemetry.record_event("MINE_ADDED", mine_id="mine-2")

    assert (first.seq, second.seq) == (1, 2)
    assert second.to_dict()["payload"] == {"mine_id": "mine-2"}
    assert second.to_dict()["severity"] == "INFO"
    assert second.npc_id == "system"


def test_disabled_telemetry_drops_events() -> None:
    telemetry = Telemetry(TelemetryConfig(enabled=False))

    assert telemetry.record_event("A") is None
    assert telemetry.recent() == []


def test_clear_keeps_total_count() -> None:
    telemetry = Telemetry()
    telemetry.record_event("A")
    telemetry.clear()

    assert telemetry.recent() == []
    assert telemetry.total_emitted == 1


def test_metrics_topk_replaces_key_and_trims() -> None:
    metrics = Metrics(topk_size=2)
    metrics.topk_add("rebellion.highest", "a", 0.4)
    metrics.topk_add("rebellion.highest", "b", 0.6)
    metrics.topk_add("rebellion.highest", "a", 0.9)
    metrics.topk_add("rebellion.highest", "c", 0.1)

    snapshot = metrics.snapshot()["topk"]["rebellion.highest"]
    assert [entry["key"] for entry in snapshot] == ["a", "b"]
    assert snapshot[0]["score"] == pytest.approx(0.9)


def test_metrics_counters_and_gauges() -> None:
    metrics = Metrics()
    metrics.inc("simulation.ticks")
    metrics.inc("simulation.ticks", 2)
    metrics.set_gauge("infestation.counter", 12.5)

    assert metrics.get("simulation.ticks") == 3.0
    assert metrics.get("infestation.counter") == 12.5
    assert metrics.get("missing", default=-1.0) == -1.0
    assert metrics.snapshot()["counters"] == {"simulation.ticks": 3.0}
    assert metrics.snapshot()["gauges"] == {"infestation.counter": 12.5}
