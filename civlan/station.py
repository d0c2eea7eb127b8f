# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.station

A station ties the radio controller, the serial link, the presence
service and conflict tracking together.

Every radio-state or peer-table change recomputes the conflict set. A
conflict is logged (and passed to on_conflict) once per distinct
(band, peers) combination; on_status fires after every change so a front
end can redraw.

Shutdown order: presence heartbeat stopped before its socket closes, the
command queue closed before the serial port.
"""

import logging
import uuid
from typing import Callable, Dict, List, Optional

from .config import StationConfig
from .core.conflict import ConflictTracker
from .core.controller import RadioController
from .core.peers import PeerRecord
from .core.state import RadioState
from .exceptions import ConfigError, TransportError
from .interfaces.presence import PresenceService
from .interfaces.serial_link import SerialLink
from .interfaces.transport import AsyncByteLink
from .utils import format_hz

logger = logging.getLogger(__name__)


class Station:
    """
    Application core for one operator position.

    Args:
        config: Station configuration
        link: Byte link to the radio (a SerialLink is built from the
            config when omitted and a serial port is configured)
        instance_id: Persisted identity; a new UUID when omitted
        presence: Presence service to use instead of building one
        on_status: Called with the station after every change
        on_conflict: Called with (band, peers) for each new conflict
    """

    def __init__(
        self,
        config: StationConfig,
        link: Optional[AsyncByteLink] = None,
        instance_id: Optional[str] = None,
        presence: Optional[PresenceService] = None,
        on_status: Optional[Callable[["Station"], None]] = None,
        on_conflict: Optional[Callable[[str, List[PeerRecord]], None]] = None
    ):
        self.config = config
        self.on_status = on_status
        self.on_conflict = on_conflict

        self.state = RadioState(
            instance_id=instance_id or str(uuid.uuid4()),
            name=config.name,
            rig_address=config.rig_address,
            controller_address=config.controller_address
        )

        if link is None and config.serial_port:
            link = SerialLink(
                config.serial_port,
                baudrate=config.baudrate,
                dtr=config.dtr,
                rts=config.rts
            )
        self.link = link

        self.controller = RadioController(
            self._write,
            state=self.state,
            baud=config.baudrate,
            ack_timeout=config.ack_timeout,
            on_state_change=self._on_radio_change
        )
        if self.link is not None:
            self.link.on_data = self.controller.feed
            self.link.on_error = self._on_link_error

        if presence is None and config.presence:
            presence = PresenceService(
                self.state,
                port=config.udp_port,
                broadcast_address=config.broadcast_address,
                heartbeat_interval=config.heartbeat_interval,
                peer_timeout=config.peer_timeout
            )
        self.presence = presence
        if self.presence is not None:
            self.presence.on_change = self._on_peers_change

        self.peers: Dict[str, PeerRecord] = {}
        self.tracker = ConflictTracker()
        self._announced_band = self.state.band

    @property
    def conflicts(self) -> List[PeerRecord]:
        return self.tracker.conflicts

    async def start(self) -> None:
        """
        Open the radio link (if any), then join the LAN.

        If presence cannot bind, the link is closed again before the error
        propagates.
        """
        if self.link is not None:
            await self.link.open()
        if self.presence is not None:
            try:
                await self.presence.start()
            except TransportError:
                await self.controller.reset()
                if self.link is not None:
                    await self.link.close()
                raise
        self._refresh()

    async def reopen(
        self,
        baudrate: Optional[int] = None,
        dtr: Optional[bool] = None,
        rts: Optional[bool] = None
    ) -> None:
        """
        Close and reopen the radio link with new line settings.

        Outstanding commands are aborted. Presence and the peer table are
        left running.

        Raises:
            ConfigError: Invalid baud rate
            TransportError: No link, or the link failed to reopen
        """
        if self.link is None:
            raise TransportError("No radio link configured")
        if baudrate is not None and (isinstance(baudrate, bool) or not isinstance(baudrate, int)
                                     or baudrate <= 0):
            raise ConfigError(f"Invalid baud rate: {baudrate!r}")

        await self.controller.reset(baud=baudrate)
        await self.link.close()

        if baudrate is not None:
            self.config.baudrate = baudrate
        if dtr is not None:
            self.config.dtr = bool(dtr)
        if rts is not None:
            self.config.rts = bool(rts)
        if isinstance(self.link, SerialLink):
            self.link.baudrate = self.config.baudrate
            self.link.dtr = self.config.dtr
            self.link.rts = self.config.rts

        await self.link.open()
        logger.info(f"Radio link reopened at {self.config.baudrate} baud")
        self._refresh()

    async def stop(self) -> None:
        if self.presence is not None:
            await self.presence.stop()
        await self.controller.close()
        if self.link is not None:
            await self.link.close()
        logger.info("Station stopped")

    async def _write(self, data: bytes) -> None:
        if self.link is None or not self.link.is_open:
            raise TransportError("Serial link not open")
        await self.link.write(data)

    def set_name(self, name: str) -> None:
        name = name.strip()
        if not name:
            return
        self.state.name = name
        if self.presence is not None and self.presence.running:
            self.presence.announce_state()
        self._refresh()

    def set_addresses(self, rig: Optional[int] = None, controller: Optional[int] = None) -> None:
        self.controller.set_addresses(rig=rig, controller=controller)
        self._refresh()

    def _on_radio_change(self, state: RadioState) -> None:
        if state.band != self._announced_band:
            self._announced_band = state.band
            if self.presence is not None and self.presence.running:
                self.presence.announce_state()
        self._refresh()

    def _on_peers_change(self, peers: Dict[str, PeerRecord]) -> None:
        self.peers = peers
        self._refresh()

    def _on_link_error(self, error: Exception) -> None:
        logger.error(f"Radio link failed: {error}")

    def _refresh(self) -> None:
        conflicts, is_new = self.tracker.update(self.state, self.peers)
        if is_new:
            names = ", ".join(peer.label for peer in conflicts)
            logger.warning(f"Band conflict on {self.state.band} with: {names}")
            if self.on_conflict:
                self.on_conflict(self.state.band, list(conflicts))
        if self.on_status:
            self.on_status(self)

    def status_line(self) -> str:
        """One-line summary: name, port, frequency, mode, band, peers, conflicts"""
        port = self.config.serial_port or "-"
        if self.conflicts:
            conflict = "CONFLICT " + ", ".join(peer.label for peer in self.conflicts)
        else:
            conflict = "OK"
        return (
            f" {self.state.name}  "
            f"Port:{port}@{self.config.baudrate}  "
            f"F:{format_hz(self.state.frequency_hz)}  "
            f"M:{self.state.mode or '-'}  "
            f"B:{self.state.band or '-'}  "
            f"Peers:{len(self.peers)}  "
            f"{conflict} "
        )

    def __repr__(self) -> str:
        return f"Station({self.state.name!r}, peers={len(self.peers)}, conflicts={len(self.conflicts)})"
