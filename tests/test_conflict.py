# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tests/test_conflict.py

Band conflict detection and one-shot warning tracking.
"""

from civlan.core.conflict import ConflictTracker, compute_conflicts
from civlan.core.peers import PeerRecord, RemoteState


def make_peer(peer_id, band, name="", frequency_hz=None):
    return PeerRecord(
        id=peer_id,
        name=name,
        source_address="192.168.1.20",
        last_seen_at=0.0,
        remote_state=RemoteState(band=band, frequency_hz=frequency_hz, mode="USB"),
    )


def test_same_band_conflicts(radio_state):
    radio_state.set_frequency(14_250_000)
    peer = make_peer("peer-a", "20m", name="Shack-2", frequency_hz=14_074_000)
    assert compute_conflicts(radio_state, {peer.id: peer}) == [peer]


def test_other_band_no_conflict(radio_state):
    radio_state.set_frequency(7_100_000)
    peer = make_peer("peer-a", "20m")
    assert compute_conflicts(radio_state, {peer.id: peer}) == []


def test_unknown_local_band(radio_state):
    peer = make_peer("peer-a", None)
    assert compute_conflicts(radio_state, {peer.id: peer}) == []
    radio_state.set_frequency(100_000_000)
    assert compute_conflicts(radio_state, {peer.id: peer}) == []


def test_peer_without_state_ignored(radio_state):
    radio_state.set_frequency(14_250_000)
    peer = PeerRecord(id="peer-a", name="", source_address="10.0.0.2", last_seen_at=0.0)
    assert compute_conflicts(radio_state, {peer.id: peer}) == []


def test_multiple_peers(radio_state):
    radio_state.set_frequency(28_500_000)
    peers = {
        "b": make_peer("b", "10m"),
        "a": make_peer("a", "10m"),
        "c": make_peer("c", "6m"),
    }
    assert [p.id for p in compute_conflicts(radio_state, peers)] == ["b", "a"]


def test_tracker_reports_once(radio_state):
    tracker = ConflictTracker()
    radio_state.set_frequency(14_250_000)
    peers = {"a": make_peer("a", "20m")}

    conflicts, is_new = tracker.update(radio_state, peers)
    assert is_new and len(conflicts) == 1

    conflicts, is_new = tracker.update(radio_state, peers)
    assert not is_new and len(conflicts) == 1

    # A second peer joining is a different conflict
    peers["b"] = make_peer("b", "20m")
    _, is_new = tracker.update(radio_state, peers)
    assert is_new

    # Table order does not matter
    _, is_new = tracker.update(radio_state, {"b": peers["b"], "a": peers["a"]})
    assert not is_new


def test_tracker_rearms_after_clear(radio_state):
    tracker = ConflictTracker()
    radio_state.set_frequency(14_250_000)
    peers = {"a": make_peer("a", "20m")}
    assert tracker.update(radio_state, peers)[1]

    radio_state.set_frequency(7_100_000)
    conflicts, is_new = tracker.update(radio_state, peers)
    assert conflicts == [] and not is_new
    assert tracker.conflicts == []

    radio_state.set_frequency(14_250_000)
    assert tracker.update(radio_state, peers)[1]


def test_peer_label():
    assert make_peer("0123456789abcdef", "20m").label == "01234567"
    assert make_peer("0123456789abcdef", "20m", name="Shack-2").label == "Shack-2"


def test_remote_state_from_announcement():
    state = RemoteState.from_announcement({"band": "20m", "frequencyHz": 14074000, "mode": "USB"})
    assert state == RemoteState(band="20m", frequency_hz=14074000, mode="USB")

    loose = RemoteState.from_announcement({"band": 20, "frequencyHz": "14074000", "mode": None})
    assert loose == RemoteState()

    assert RemoteState.from_announcement("20m") is None
