# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
Base Link Interface

Defines the byte source/sink the CI-V engine consumes. A link delivers
received chunks in order, at most once per physical read, on the event
loop thread through on_data.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..exceptions import TransportError

logger = logging.getLogger(__name__)


class AsyncByteLink(ABC):
    """
    Abstract base class for asynchronous byte links.

    Attributes:
        on_data: Called with each received chunk
        on_error: Called when the link fails while reading
    """
    def __init__(self):
        self.on_data: Optional[Callable[[bytes], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the link can be written"""

    @abstractmethod
    async def open(self) -> None:
        """Open the link and start delivering data"""

    @abstractmethod
    async def close(self) -> None:
        """Stop reading and release the link"""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write bytes to the link.

        Raises:
            TransportError: Link closed or write failed
        """

    def _handle_data(self, data: bytes) -> None:
        """Deliver a chunk to the consumer"""
        if self.on_data:
            try:
                self.on_data(data)
            except Exception as e:
                logger.error(f"Data handler error: {e}")

    def _handle_error(self, error: Exception) -> None:
        """Internal error handling"""
        logger.error(f"Link error: {error}")
        if self.on_error:
            try:
                self.on_error(error)
            except Exception as e:
                logger.error(f"Error callback failed: {e}")

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(open={self.is_open})"


class LoopbackLink(AsyncByteLink):
    """
    In-memory link. Writes are recorded in `written`; inject() feeds bytes
    as if the radio had sent them. Used by tests and dry runs.
    """
    def __init__(self):
        super().__init__()
        self.written = bytearray()
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        self._open = True

    async def close(self) -> None:
        self._open = False

    async def write(self, data: bytes) -> None:
        if not self._open:
            raise TransportError("Not connected")
        self.written += data
        await asyncio.sleep(0)

    def inject(self, data: bytes) -> None:
        self._handle_data(data)
