# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.core.queue

Serialized command/acknowledgement queue for the half-duplex CI-V line.

CI-V acks carry no correlation id, so responses can only be matched by
order. The queue therefore keeps exactly one command in flight: a single
worker task drains an asyncio.Queue mailbox, writes one frame, waits for
the next ack (or the deadline), then moves on.

Outcomes:
- ack received        -> CommandResult(ok=True)
- NAK received        -> CommandResult(ok=False)
- deadline elapsed    -> CommandResult(ok=False, timed_out=True)
- queue closed        -> CommandResult(ok=False, aborted=True)
- write failed        -> TransportError raised to the caller
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, Optional

import async_timeout

from ..exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_ACK_TIMEOUT = 0.8


@dataclass(frozen=True)
class CommandResult:
    """Completion of one queued command"""
    ok: bool
    timed_out: bool = False
    aborted: bool = False

    @property
    def outcome(self) -> str:
        if self.ok:
            return "ack"
        if self.timed_out:
            return "timeout"
        if self.aborted:
            return "aborted"
        return "nak"


@dataclass
class PendingCommand:
    frame: bytes
    expect_ack: bool
    timeout: float
    done: asyncio.Future
    writing: bool = field(default=False)


class CommandQueue:
    """
    FIFO command queue with one command in flight.

    Args:
        write: Coroutine function writing raw bytes to the serial line
        default_timeout: Ack timeout in seconds when send() gets none
    """

    def __init__(
        self,
        write: Callable[[bytes], Awaitable[None]],
        default_timeout: float = DEFAULT_ACK_TIMEOUT
    ):
        self._write = write
        self.default_timeout = default_timeout
        self._mailbox: Optional[asyncio.Queue] = None
        self._waiters: Deque[asyncio.Future] = deque()
        self._worker: Optional[asyncio.Task] = None
        self._current: Optional[PendingCommand] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Commands queued or in flight"""
        queued = self._mailbox.qsize() if self._mailbox else 0
        return queued + (1 if self._current else 0)

    async def send(
        self,
        frame: bytes,
        expect_ack: bool = True,
        timeout: Optional[float] = None
    ) -> CommandResult:
        """
        Queue a frame and wait for its outcome.

        Args:
            frame: Complete CI-V frame
            expect_ack: False for fire-and-forget commands (power-on)
            timeout: Ack timeout in seconds

        Raises:
            TransportError: Write failed or queue closed
        """
        if self._closed:
            raise TransportError("Command queue closed")

        loop = asyncio.get_running_loop()
        pending = PendingCommand(
            frame=bytes(frame),
            expect_ack=expect_ack,
            timeout=self.default_timeout if timeout is None else timeout,
            done=loop.create_future()
        )
        self._ensure_worker()
        self._mailbox.put_nowait(pending)
        return await pending.done

    def handle_ack(self, ok: bool) -> bool:
        """
        Deliver an ack/NAK to the oldest waiting command.

        Returns:
            True if a waiter took it, False if it was stale and ignored
        """
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(ok)
                return True
        logger.debug(f"Ignoring unsolicited {'ack' if ok else 'NAK'}")
        return False

    async def close(self) -> None:
        """
        Stop the worker and settle everything outstanding.

        An in-flight ack wait resolves as aborted, a write in progress and
        any queued commands fail with TransportError.
        """
        if self._closed:
            return
        self._closed = True

        current = self._current
        if current and not current.done.done():
            if current.writing:
                current.done.set_exception(TransportError("Link closed during write"))
            else:
                current.done.set_result(CommandResult(ok=False, aborted=True))

        for waiter in self._waiters:
            if not waiter.done():
                waiter.cancel()
        self._waiters.clear()

        if self._mailbox:
            while not self._mailbox.empty():
                queued = self._mailbox.get_nowait()
                if not queued.done.done():
                    queued.done.set_exception(TransportError("Command queue closed"))

        if self._worker:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        logger.debug("Command queue closed")

    def _ensure_worker(self) -> None:
        if self._mailbox is None:
            self._mailbox = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="civ-command-queue")

    async def _run(self) -> None:
        """Worker loop: one command at a time, in submission order"""
        while True:
            pending = await self._mailbox.get()
            if pending.done.done():
                # Caller gave up before we got to it
                continue

            self._current = pending
            try:
                result = await self._execute(pending)
            except asyncio.CancelledError:
                if not pending.done.done():
                    pending.done.set_exception(TransportError("Command queue closed"))
                raise
            except Exception as e:
                if not pending.done.done():
                    pending.done.set_exception(e)
            else:
                if not pending.done.done():
                    pending.done.set_result(result)
            finally:
                self._current = None

    async def _execute(self, pending: PendingCommand) -> CommandResult:
        loop = asyncio.get_running_loop()
        waiter: Optional[asyncio.Future] = None
        if pending.expect_ack:
            # Registered before the write so a fast ack cannot be missed
            waiter = loop.create_future()
            self._waiters.append(waiter)

        pending.writing = True
        try:
            await self._write(pending.frame)
        except TransportError:
            self._discard(waiter)
            raise
        except OSError as e:
            self._discard(waiter)
            raise TransportError(f"Write failed: {e}") from e
        finally:
            pending.writing = False

        logger.debug(f"Sent {pending.frame.hex()}")
        if waiter is None:
            return CommandResult(ok=True)

        try:
            async with async_timeout.timeout(pending.timeout):
                ok = await waiter
        except asyncio.TimeoutError:
            self._discard(waiter)
            if waiter.done() and not waiter.cancelled():
                return CommandResult(ok=waiter.result())
            logger.info(f"No ack within {pending.timeout:.3f}s for {pending.frame.hex()}")
            return CommandResult(ok=False, timed_out=True)

        if not ok:
            logger.info(f"Radio rejected {pending.frame.hex()}")
        return CommandResult(ok=ok)

    def _discard(self, waiter: Optional[asyncio.Future]) -> None:
        if waiter is None:
            return
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass
        if not waiter.done():
            waiter.cancel()

    def __repr__(self) -> str:
        return f"CommandQueue(pending={self.pending}, closed={self._closed})"
