from __future__ import annotations

from responder.core.ledger import DedupLedger


class Clock:
    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


def test_record_and_seen_within_ttl():
    clock = Clock()
    ledger = DedupLedger(ttl=60.0, clock=clock)
    assert not ledger.seen("r1")
    ledger.record("r1")
    clock.value = 59.0
    assert ledger.seen("r1")
    assert "r1" in ledger


def test_entries_expire_after_ttl():
    clock = Clock()
    ledger = DedupLedger(ttl=60.0, clock=clock)
    ledger.record("r1")
    clock.value = 60.5
    assert not ledger.seen("r1")
    assert len(ledger) == 1  # only dropped on the next prune
    assert ledger.prune() == 1
    assert len(ledger) == 0


def test_prune_keeps_live_entries():
    clock = Clock()
    ledger = DedupLedger(ttl=10.0, clock=clock)
    ledger.record("old")
    clock.value = 8.0
    ledger.record("new")
    clock.value = 12.0
    assert ledger.prune() == 1
    assert ledger.seen("new")
    assert not ledger.seen("old")


def test_ledger_is_bounded():
    clock = Clock()
    ledger = DedupLedger(ttl=60.0, clock=clock, max_entries=3)
    for req in ("a", "b", "c", "d"):
        ledger.record(req)
    assert len(ledger) == 3
    assert not ledger.seen("a")
    assert ledger.seen("d")


def test_full_ledger_drops_expired_entries_before_live_ones(caplog):
    clock = Clock()
    ledger = DedupLedger(ttl=10.0, clock=clock, max_entries=2)
    ledger.record("old")
    clock.value = 8.0
    ledger.record("live")
    clock.value = 12.0
    ledger.record("new")
    assert len(ledger) == 2
    assert ledger.seen("live")
    assert ledger.seen("new")
    assert "evicted" not in caplog.text


def test_full_ledger_warns_when_evicting_live_entry(caplog):
    clock = Clock()
    ledger = DedupLedger(ttl=60.0, clock=clock, max_entries=2)
    for req in ("a", "b", "c"):
        ledger.record(req)
    assert not ledger.seen("a")
    assert "evicted unexpired req=a" in caplog.text
