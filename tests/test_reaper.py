import threading

import pytest

import chat_relay.server.reaper as reaper_module
from chat_relay.server.models import Message, Participant
from chat_relay.server.reaper import Reaper


@pytest.fixture
def reaper(session_factory, clock):
    return Reaper(session_factory=session_factory, clock=clock, interval=15, stale_after=10)


def names(client):
    return [p["name"] for p in client.get("/participants").json()]


def departures(client, name):
    return [
        m
        for m in client.get("/messages").json()
        if m["type"] == "status" and m["from"] == name and m["text"] == "sai da sala..."
    ]


def test_stale_participant_is_evicted_with_one_notice(client, clock, join, reaper):
    join("Ana")
    clock.advance(11)

    assert reaper.sweep() == ["Ana"]
    assert names(client) == []
    assert len(departures(client, "Ana")) == 1
    assert departures(client, "Ana")[0]["to"] == "Todos"

    # nothing left to do on the next sweep
    assert reaper.sweep() == []
    assert len(departures(client, "Ana")) == 1


def test_participant_at_threshold_is_kept(client, clock, join, reaper):
    join("Ana")
    clock.advance(10)
    assert reaper.sweep() == []
    assert names(client) == ["Ana"]


def test_heartbeat_keeps_participant_alive(client, clock, join, reaper):
    join("Ana")
    join("Bob")
    clock.advance(8)
    client.post("/status", headers={"user": "Ana"})
    clock.advance(8)

    assert reaper.sweep() == ["Bob"]
    assert names(client) == ["Ana"]
    assert departures(client, "Ana") == []


def test_refresh_after_snapshot_prevents_eviction(client, clock, join, reaper, monkeypatch):
    join("Ana")
    stale = Participant(id=1, name="Ana", last_status=clock.now())
    monkeypatch.setattr(reaper_module, "list_participants", lambda db: [stale])

    clock.advance(11)
    client.post("/status", headers={"user": "Ana"})

    assert reaper.sweep() == []
    assert names(client) == ["Ana"]
    assert departures(client, "Ana") == []


def test_failure_for_one_participant_does_not_stop_the_sweep(client, clock, join, reaper, monkeypatch):
    join("Ana")
    join("Bob")
    clock.advance(11)

    real_emit = reaper_module.emit_status

    def flaky_emit(db, sender, text, clock):
        if sender == "Ana":
            raise RuntimeError("boom")
        return real_emit(db, sender, text, clock)

    monkeypatch.setattr(reaper_module, "emit_status", flaky_emit)
    assert reaper.sweep() == ["Bob"]
    assert names(client) == ["Ana"]

    monkeypatch.setattr(reaper_module, "emit_status", real_emit)
    assert reaper.sweep() == ["Ana"]
    assert names(client) == []


def test_evicted_participant_can_join_again(client, clock, join, reaper):
    join("Ana")
    client.post("/messages", json={"to": "Todos", "text": "oi", "type": "message"}, headers={"user": "Ana"})
    clock.advance(11)
    reaper.sweep()

    # past messages survive eviction
    assert "oi" in [m["text"] for m in client.get("/messages").json()]
    assert client.post("/status", headers={"user": "Ana"}).status_code == 404
    join("Ana")
    assert names(client) == ["Ana"]


def test_snapshot_failure_is_not_fatal(clock):
    def broken_factory():
        raise RuntimeError("database unavailable")

    reaper = Reaper(session_factory=broken_factory, clock=clock)
    assert reaper.sweep() == []


def test_background_thread_sweeps_until_stopped(session_factory, clock, join, monkeypatch):
    join("Ana")
    clock.advance(11)

    reaper = Reaper(session_factory=session_factory, clock=clock, interval=0.01, stale_after=10)
    swept = threading.Event()
    real_sweep = reaper.sweep

    def sweep_and_signal():
        evicted = real_sweep()
        swept.set()
        return evicted

    monkeypatch.setattr(reaper, "sweep", sweep_and_signal)
    reaper.start()
    try:
        assert swept.wait(5)
    finally:
        reaper.stop(timeout=1)

    db = session_factory()
    try:
        assert db.query(Participant).count() == 0
        assert db.query(Message).filter(Message.text == "sai da sala...").count() == 1
    finally:
        db.close()
