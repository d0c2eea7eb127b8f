# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.core.controller

Radio controller: owns the RadioState, the frame synchronizer and the
command queue for one CI-V link.

Inbound:  bytes -> FrameSynchronizer -> decode_frame -> ack to the queue,
          frequency/mode to the state
Outbound: command -> framing builder -> CommandQueue -> link write

Arguments are validated by the framing builders before anything is
queued, so an invalid request never reaches the line.
"""

import logging
from typing import Awaitable, Callable, Optional

from . import framing
from .framing import Ack, FrequencyReport, ModeReport, decode_frame
from .queue import DEFAULT_ACK_TIMEOUT, CommandQueue, CommandResult
from .state import RadioState
from .sync import FrameSynchronizer

logger = logging.getLogger(__name__)


class RadioController:
    """
    CI-V command/response engine for a single radio.

    Args:
        write: Coroutine function writing bytes to the serial line
        state: Radio state to maintain (a fresh one if omitted)
        baud: Line speed, used to size the power-on wake preamble
        ack_timeout: Seconds to wait for each ack
        on_state_change: Called with the state after every change
    """

    def __init__(
        self,
        write: Callable[[bytes], Awaitable[None]],
        state: Optional[RadioState] = None,
        baud: int = 9600,
        ack_timeout: float = DEFAULT_ACK_TIMEOUT,
        on_state_change: Optional[Callable[[RadioState], None]] = None
    ):
        self.state = state if state is not None else RadioState()
        self.baud = baud
        self._write = write
        self.queue = CommandQueue(write, default_timeout=ack_timeout)
        self.sync = FrameSynchronizer(on_frame=self._handle_frame)
        self.on_state_change = on_state_change
        self.raw_echo = False

    def feed(self, data: bytes) -> None:
        """Process bytes read from the serial line"""
        if self.raw_echo:
            logger.debug(f"raw {data.hex()}")
        self.sync.push(data)

    def _handle_frame(self, frame: bytes) -> None:
        message = decode_frame(frame)
        if message is None:
            logger.debug(f"Dropping malformed frame {frame.hex()}")
            return

        if isinstance(message, Ack):
            self.queue.handle_ack(message.ok)
            return

        if isinstance(message, (FrequencyReport, ModeReport)) and message.reply:
            # A read is answered with data instead of FB
            self.queue.handle_ack(True)

        if self.state.apply(message):
            logger.debug(f"State updated: {self.state}")
            if self.on_state_change:
                try:
                    self.on_state_change(self.state)
                except Exception as e:
                    logger.error(f"State change handler error: {e}")

    @property
    def _addresses(self):
        return self.state.rig_address, self.state.controller_address

    def set_addresses(
        self,
        rig: Optional[int] = None,
        controller: Optional[int] = None
    ) -> None:
        """Change the CI-V addresses used for subsequent commands"""
        self.state.set_addresses(rig=rig, controller=controller)
        logger.info(f"Addresses: rig=0x{self.state.rig_address:02x} "
                    f"controller=0x{self.state.controller_address:02x}")

    async def read_frequency(self) -> CommandResult:
        return await self.queue.send(framing.read_frequency(*self._addresses))

    async def read_mode(self) -> CommandResult:
        return await self.queue.send(framing.read_mode(*self._addresses))

    async def set_frequency(self, hz: int) -> CommandResult:
        return await self.queue.send(framing.set_frequency(*self._addresses, hz))

    async def set_mode(self, name: str, filter_width: int = framing.DEFAULT_FILTER) -> CommandResult:
        return await self.queue.send(framing.set_mode(*self._addresses, name, filter_width))

    async def set_split(self, on: bool) -> CommandResult:
        return await self.queue.send(framing.set_split(*self._addresses, on))

    async def set_vfo(self, which: str) -> CommandResult:
        return await self.queue.send(framing.set_vfo(*self._addresses, which))

    async def power_on(self) -> CommandResult:
        """Wake the radio; a powered-off radio cannot ack, so none is awaited"""
        frame = framing.power_on(*self._addresses, self.baud)
        return await self.queue.send(frame, expect_ack=False)

    async def power_off(self) -> CommandResult:
        return await self.queue.send(framing.power_off(*self._addresses))

    async def close(self) -> None:
        await self.queue.close()
        self.sync.reset()

    async def reset(self, baud: Optional[int] = None) -> None:
        """
        Abort outstanding commands and start over with an empty queue.

        Used when the link is reopened; baud resizes the power-on preamble.
        """
        timeout = self.queue.default_timeout
        await self.close()
        self.queue = CommandQueue(self._write, default_timeout=timeout)
        if baud is not None:
            self.baud = baud
        logger.debug(f"Controller reset (baud={self.baud})")

    def __repr__(self) -> str:
        return f"RadioController({self.state!r}, baud={self.baud})"
