# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tests/test_presence.py

LAN presence service: datagram validation, peer table upkeep, liveness
expiry and a real UDP round trip on the loopback interface.
"""

import asyncio
import json
from unittest.mock import Mock

import pytest

from civlan.exceptions import ConfigError
from civlan.interfaces.presence import PROTOCOL_TAG, PresenceService

PEER_ADDR = ("192.168.1.20", 41234)


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def datagram(kind="state", peer_id="peer-a", name="Shack-2", state=None, proto=PROTOCOL_TAG):
    envelope = {"proto": proto, "type": kind, "id": peer_id, "name": name, "timestampMs": 0}
    if state is not None:
        envelope["state"] = state
    return json.dumps(envelope).encode("utf-8")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(radio_state, clock):
    changes = []
    svc = PresenceService(radio_state, port=41234, on_change=changes.append, clock=clock)
    svc.transport = Mock()
    svc.changes = changes
    return svc


def sent_messages(service):
    return [
        (json.loads(call.args[0]), call.args[1])
        for call in service.transport.sendto.call_args_list
    ]


def test_state_inserts_peer(service):
    service.handle_datagram(
        datagram(state={"band": "20m", "frequencyHz": 14074000, "mode": "USB"}),
        PEER_ADDR
    )
    peer = service.peers["peer-a"]
    assert peer.name == "Shack-2"
    assert peer.source_address == "192.168.1.20"
    assert peer.last_seen_at == 100.0
    assert peer.remote_state.band == "20m"
    assert len(service.changes) == 1
    assert "peer-a" in service.changes[0]
    service.transport.sendto.assert_not_called()


def test_update_refreshes_peer(service, clock):
    service.handle_datagram(datagram(state={"band": "20m"}), PEER_ADDR)
    clock.now = 103.0
    service.handle_datagram(
        datagram(name="Renamed", state={"band": "40m"}),
        ("192.168.1.21", 41234)
    )
    peer = service.peers["peer-a"]
    assert peer.name == "Renamed"
    assert peer.source_address == "192.168.1.21"
    assert peer.last_seen_at == 103.0
    assert peer.remote_state.band == "40m"
    assert len(service.peers) == 1


def test_hello_keeps_state_and_gets_reply(service, radio_state):
    radio_state.set_frequency(7_074_000)
    radio_state.set_mode("USB")
    service.handle_datagram(datagram(state={"band": "20m"}), PEER_ADDR)
    service.handle_datagram(datagram(kind="hello"), PEER_ADDR)

    assert service.peers["peer-a"].remote_state.band == "20m"

    [(message, target)] = sent_messages(service)
    assert target == PEER_ADDR
    assert message["type"] == "state"
    assert message["proto"] == PROTOCOL_TAG
    assert message["id"] == radio_state.instance_id
    assert message["name"] == "shack-1"
    assert message["state"] == {"band": "40m", "frequencyHz": 7074000, "mode": "USB"}


def test_hello_from_new_peer(service):
    service.handle_datagram(datagram(kind="hello"), PEER_ADDR)
    assert service.peers["peer-a"].remote_state is None
    assert len(sent_messages(service)) == 1


@pytest.mark.parametrize("data", [
    datagram(peer_id="local-0000-id"),           # our own broadcast
    datagram(proto="other/1"),
    datagram(kind="bye"),
    datagram(peer_id=""),
    datagram(peer_id=42),
    b"not json",
    b"\xff\xfe",
    b"[1, 2, 3]",
    b"x" * 4096,
])
def test_ignored_datagrams(service, data):
    service.handle_datagram(data, PEER_ADDR)
    assert service.peers == {}
    assert service.changes == []
    service.transport.sendto.assert_not_called()


def test_bad_state_fields_tolerated(service):
    service.handle_datagram(datagram(name=7, state={"band": 20, "frequencyHz": "x"}), PEER_ADDR)
    peer = service.peers["peer-a"]
    assert peer.name == ""
    assert peer.remote_state.band is None
    assert peer.remote_state.frequency_hz is None


def test_sweep_expires_silent_peers(service, clock):
    service.handle_datagram(datagram(peer_id="peer-a"), PEER_ADDR)
    clock.now = 105.0
    service.handle_datagram(datagram(peer_id="peer-b"), PEER_ADDR)

    clock.now = 108.0
    assert service.sweep() == []

    clock.now = 108.5
    assert service.sweep() == ["peer-a"]
    assert list(service.peers) == ["peer-b"]
    assert list(service.changes[-1]) == ["peer-b"]

    assert service.sweep(now=200.0) == ["peer-b"]
    assert service.peers == {}


def test_sweep_without_expiry_does_not_notify(service, clock):
    service.handle_datagram(datagram(), PEER_ADDR)
    count = len(service.changes)
    clock.now = 101.0
    service.sweep()
    assert len(service.changes) == count


def test_snapshot_is_a_copy(service):
    service.handle_datagram(datagram(name="Before"), PEER_ADDR)
    snapshot = service.changes[-1]
    service.handle_datagram(datagram(name="After"), PEER_ADDR)
    assert snapshot["peer-a"].name == "Before"
    assert service.peers["peer-a"].name == "After"


def test_change_handler_error_logged(radio_state, clock):
    def broken(peers):
        raise RuntimeError("boom")

    svc = PresenceService(radio_state, on_change=broken, clock=clock)
    svc.transport = Mock()
    svc.handle_datagram(datagram(), PEER_ADDR)
    assert "peer-a" in svc.peers


def test_build_message(service, radio_state):
    hello = json.loads(service.build_message("hello"))
    assert hello["type"] == "hello"
    assert "state" not in hello
    assert isinstance(hello["timestampMs"], int)

    state = json.loads(service.build_message("state"))
    assert state["state"] == {"band": None, "frequencyHz": None, "mode": None}


def test_announce_state_broadcasts(service):
    service.announce_state()
    [(message, target)] = sent_messages(service)
    assert message["type"] == "state"
    assert target == ("255.255.255.255", 41234)


def test_send_error_logged(service):
    service.transport.sendto.side_effect = OSError("network unreachable")
    service.announce_state()


def test_send_without_transport(radio_state):
    PresenceService(radio_state).announce_state()


def test_timeout_must_cover_three_heartbeats(radio_state):
    with pytest.raises(ConfigError):
        PresenceService(radio_state, heartbeat_interval=2.0, peer_timeout=5.0)
    with pytest.raises(ConfigError):
        PresenceService(radio_state, heartbeat_interval=0)
    PresenceService(radio_state, heartbeat_interval=2.0, peer_timeout=6.0)


class _Collector(asyncio.DatagramProtocol):
    def __init__(self):
        self.received = asyncio.Queue()

    def datagram_received(self, data, addr):
        self.received.put_nowait((json.loads(data), addr))


@pytest.mark.asyncio
async def test_udp_round_trip(radio_state, free_udp_port):
    peers = []
    service = PresenceService(
        radio_state,
        port=free_udp_port,
        broadcast_address="127.0.0.1",
        heartbeat_interval=0.1,
        peer_timeout=0.3,
        on_change=peers.append
    )
    await service.start()
    assert service.running

    loop = asyncio.get_running_loop()
    client, collector = await loop.create_datagram_endpoint(
        _Collector, local_addr=("127.0.0.1", 0)
    )
    try:
        client.sendto(datagram(kind="hello", peer_id="remote-1", name="Remote"),
                      ("127.0.0.1", free_udp_port))
        message, _ = await asyncio.wait_for(collector.received.get(), 2.0)
        assert message["type"] == "state"
        assert message["id"] == radio_state.instance_id
        assert peers and "remote-1" in peers[-1]

        # Silent peer is dropped by the heartbeat sweep
        for _ in range(50):
            if "remote-1" not in service.peers:
                break
            await asyncio.sleep(0.05)
        assert "remote-1" not in service.peers
    finally:
        client.close()
        await service.stop()

    assert not service.running
    await service.stop()


@pytest.mark.parametrize("heartbeat,timeout", [(0.1, 0.3), (2.0, 6.0), (0.7, 2.1)])
def test_timeout_of_exactly_three_heartbeats(radio_state, heartbeat, timeout):
    service = PresenceService(radio_state, heartbeat_interval=heartbeat, peer_timeout=timeout)
    assert service.peer_timeout == timeout


def test_repr_after_rejected_config(radio_state):
    service = PresenceService.__new__(PresenceService)
    with pytest.raises(ConfigError):
        service.__init__(radio_state, heartbeat_interval=2.0, peer_timeout=1.0)
    assert "port=41234" in repr(service)
