# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
Serial CI-V Link

pyserial-backed byte link. A daemon thread reads the port and hands each
chunk to the event loop with call_soon_threadsafe; writes run in the
shared thread pool so the loop never blocks on the UART.
"""

import asyncio
import logging
import threading
from typing import Optional

import serial

from .transport import AsyncByteLink
from ..exceptions import TransportError
from ..utils.async_thread import run_in_thread

logger = logging.getLogger(__name__)


class SerialLink(AsyncByteLink):
    """
    Serial port link (8N1, no flow control).

    Args:
        port: Device path, e.g. /dev/ttyUSB0 or COM9
        baudrate: Line speed
        timeout: Read timeout in seconds; bounds how long close() waits
        dtr: Drive DTR high/low after opening (None leaves it alone)
        rts: Drive RTS high/low after opening (None leaves it alone)
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 9600,
        timeout: float = 0.1,
        dtr: Optional[bool] = None,
        rts: Optional[bool] = None
    ):
        super().__init__()
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.dtr = dtr
        self.rts = rts
        self._serial: Optional[serial.Serial] = None
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._running = False

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    async def open(self) -> None:
        """Open the serial port and start the reader thread"""
        if self._running:
            return

        self._loop = asyncio.get_running_loop()
        try:
            self._serial = await run_in_thread(
                serial.Serial,
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                rtscts=False,
                timeout=self.timeout
            )
        except (serial.SerialException, ValueError) as e:
            raise TransportError(f"Serial open failed: {e}") from e

        if self.dtr is not None:
            self._serial.dtr = bool(self.dtr)
        if self.rts is not None:
            self._serial.rts = bool(self.rts)

        self._running = True
        self._thread = threading.Thread(
            target=self._receive_loop,
            name="CIV-Receiver",
            daemon=True
        )
        self._thread.start()
        logger.info(f"Opened serial port {self.port}@{self.baudrate}")

    async def close(self) -> None:
        """Stop the reader thread, then close the port"""
        self._running = False
        if self._thread:
            await run_in_thread(self._thread.join, self.timeout + 1.0)
            self._thread = None
        if self._serial:
            self._serial.close()
            self._serial = None
            logger.info(f"Closed serial port {self.port}")

    async def write(self, data: bytes) -> None:
        port = self._serial
        if port is None or not port.is_open:
            raise TransportError("Serial port not open")
        try:
            await run_in_thread(self._write_all, port, data)
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Serial write failed: {e}") from e

    @staticmethod
    def _write_all(port: serial.Serial, data: bytes) -> None:
        port.write(data)
        port.flush()

    def _receive_loop(self) -> None:
        """Reader thread: forward every chunk to the event loop"""
        while self._running:
            port = self._serial
            if port is None:
                break
            try:
                data = port.read(port.in_waiting or 1)
            except (serial.SerialException, OSError, TypeError) as e:
                if self._running:
                    self._deliver(self._handle_error, TransportError(f"Serial read failed: {e}"))
                break
            if data:
                if not self._deliver(self._handle_data, bytes(data)):
                    break

    def _deliver(self, callback, arg) -> bool:
        try:
            self._loop.call_soon_threadsafe(callback, arg)
        except RuntimeError:
            # Event loop already closed
            return False
        return True

    def __repr__(self) -> str:
        return f"SerialLink({self.port}@{self.baudrate}, open={self.is_open})"
