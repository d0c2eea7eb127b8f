# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
LAN Presence Service

Announces this station on the local network over UDP broadcast and keeps
a table of peer stations with liveness expiry.

Wire format (JSON, one object per datagram):
    {"proto": "civlan/1", "type": "hello" | "state", "id": <uuid>,
     "name": <display name>, "timestampMs": <epoch ms>,
     "state": {"band": ..., "frequencyHz": ..., "mode": ...}}

"state" is only present on state messages. A hello is answered with a
unicast state message to the sender so a newly joined peer converges
without waiting for the next heartbeat.

Timing: state broadcast every HEARTBEAT_INTERVAL seconds; a peer not heard
from for PEER_TIMEOUT seconds is dropped on the next sweep.
"""

import asyncio
import json
import logging
import math
import socket
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from ..core.peers import PeerRecord, RemoteState
from ..core.state import RadioState
from ..exceptions import ConfigError, TransportError

logger = logging.getLogger(__name__)

PROTOCOL_TAG = "civlan/1"
DEFAULT_UDP_PORT = 41234
DEFAULT_BROADCAST = "255.255.255.255"
HEARTBEAT_INTERVAL = 2.0
PEER_TIMEOUT = 8.0
STATE_DELAY = 0.2
MAX_DATAGRAM = 2048

MSG_HELLO = "hello"
MSG_STATE = "state"


def check_liveness(heartbeat_interval: float, peer_timeout: float) -> None:
    """
    Reject a peer timeout shorter than three heartbeats.

    Exactly 3x is accepted even when the product rounds up (3 * 0.1).
    """
    if heartbeat_interval <= 0:
        raise ConfigError("Heartbeat interval must be positive")
    minimum = 3 * heartbeat_interval
    if peer_timeout < minimum and not math.isclose(peer_timeout, minimum):
        raise ConfigError(
            f"Peer timeout {peer_timeout}s must be at least 3x the "
            f"heartbeat interval ({heartbeat_interval}s)"
        )


class _PresenceProtocol(asyncio.DatagramProtocol):
    def __init__(self, service: "PresenceService"):
        self.service = service

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        self.service.handle_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        logger.warning(f"Presence socket error: {exc}")


class PresenceService:
    """
    UDP presence broadcaster/listener.

    Args:
        state: Local radio state announced to peers
        port: UDP port to bind and broadcast to
        broadcast_address: Destination for broadcasts
        heartbeat_interval: Seconds between state broadcasts
        peer_timeout: Seconds of silence before a peer is dropped
        on_change: Called with a snapshot of the peer table after every
            insert, update or eviction
        clock: Monotonic time source
    """

    def __init__(
        self,
        state: RadioState,
        port: int = DEFAULT_UDP_PORT,
        broadcast_address: str = DEFAULT_BROADCAST,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        peer_timeout: float = PEER_TIMEOUT,
        on_change: Optional[Callable[[Dict[str, PeerRecord]], None]] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.state = state
        self.port = port
        self.broadcast_address = broadcast_address
        self.heartbeat_interval = heartbeat_interval
        self.peer_timeout = peer_timeout
        self.on_change = on_change
        self.clock = clock

        self.peers: Dict[str, PeerRecord] = {}
        self.transport: Optional[asyncio.DatagramTransport] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._state_handle: Optional[asyncio.TimerHandle] = None

        check_liveness(heartbeat_interval, peer_timeout)

    @property
    def running(self) -> bool:
        return self.transport is not None

    def _make_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            # Several stations on one host share the port
            if hasattr(socket, 'SO_REUSEPORT'):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            sock.bind(("", self.port))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    async def start(self) -> None:
        """Bind, say hello, then start the heartbeat"""
        if self.running:
            return

        loop = asyncio.get_running_loop()
        try:
            sock = self._make_socket()
            self.transport, _ = await loop.create_datagram_endpoint(
                lambda: _PresenceProtocol(self),
                sock=sock
            )
        except OSError as e:
            raise TransportError(f"Presence bind on UDP {self.port} failed: {e}") from e

        logger.info(f"Presence listening on UDP {self.port}, broadcasting to {self.broadcast_address}")
        self._send(MSG_HELLO)
        self._state_handle = loop.call_later(STATE_DELAY, self.announce_state)
        self._heartbeat_task = asyncio.create_task(self._heartbeat(), name="presence-heartbeat")

    async def stop(self) -> None:
        """Stop the heartbeat before closing the socket"""
        if self._state_handle:
            self._state_handle.cancel()
            self._state_handle = None
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None
        if self.transport:
            self.transport.close()
            self.transport = None
            logger.info("Presence stopped")

    def build_message(self, kind: str) -> bytes:
        envelope = {
            "proto": PROTOCOL_TAG,
            "type": kind,
            "id": self.state.instance_id,
            "name": self.state.name,
            "timestampMs": int(time.time() * 1000),
        }
        if kind == MSG_STATE:
            envelope["state"] = self.state.announcement()
        return json.dumps(envelope, separators=(",", ":")).encode("utf-8")

    def _send(self, kind: str, addr: Optional[Tuple[str, int]] = None) -> None:
        if self.transport is None:
            return
        target = addr or (self.broadcast_address, self.port)
        try:
            self.transport.sendto(self.build_message(kind), target)
        except OSError as e:
            logger.warning(f"Presence send to {target[0]}:{target[1]} failed: {e}")

    def announce_state(self) -> None:
        """Broadcast the current radio state now"""
        self._send(MSG_STATE)

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            self.announce_state()
            self.sweep()

    def sweep(self, now: Optional[float] = None) -> List[str]:
        """
        Drop peers silent for longer than the liveness timeout.

        Returns:
            Ids of the evicted peers
        """
        now = self.clock() if now is None else now
        expired = [
            peer_id for peer_id, peer in self.peers.items()
            if now - peer.last_seen_at > self.peer_timeout
        ]
        for peer_id in expired:
            peer = self.peers.pop(peer_id)
            logger.info(f"Peer {peer.label} timed out")
        if expired:
            self._notify()
        return expired

    def handle_datagram(self, data: bytes, addr: Tuple[str, int]) -> None:
        """Validate a received datagram and upsert the sender"""
        if len(data) > MAX_DATAGRAM:
            logger.debug(f"Oversized datagram from {addr[0]} dropped")
            return
        try:
            envelope = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.debug(f"Unparseable datagram from {addr[0]} dropped")
            return

        if not isinstance(envelope, dict) or envelope.get("proto") != PROTOCOL_TAG:
            return
        kind = envelope.get("type")
        if kind not in (MSG_HELLO, MSG_STATE):
            return
        peer_id = envelope.get("id")
        if not isinstance(peer_id, str) or not peer_id:
            return
        if peer_id == self.state.instance_id:
            return

        name = envelope.get("name")
        name = name if isinstance(name, str) else ""
        remote = RemoteState.from_announcement(envelope.get("state"))
        now = self.clock()

        peer = self.peers.get(peer_id)
        if peer is None:
            peer = PeerRecord(
                id=peer_id,
                name=name,
                source_address=addr[0],
                last_seen_at=now,
                remote_state=remote
            )
            self.peers[peer_id] = peer
            logger.info(f"Peer {peer.label} joined from {addr[0]}")
        else:
            peer.name = name
            peer.source_address = addr[0]
            peer.last_seen_at = now
            if remote is not None:
                peer.remote_state = remote

        self._notify()

        if kind == MSG_HELLO:
            self._send(MSG_STATE, addr)

    def snapshot(self) -> Dict[str, PeerRecord]:
        """Copy of the peer table, safe to keep across later updates"""
        return {peer_id: replace(peer) for peer_id, peer in self.peers.items()}

    def _notify(self) -> None:
        if self.on_change:
            try:
                self.on_change(self.snapshot())
            except Exception as e:
                logger.error(f"Peer change handler error: {e}")

    def __repr__(self) -> str:
        return f"PresenceService(port={self.port}, peers={len(self.peers)}, running={self.running})"
