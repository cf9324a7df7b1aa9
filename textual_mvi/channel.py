"""Bounded one-shot effect channel."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Generic, TypeVar

from .config import DEFAULT_EFFECT_CAPACITY, OverflowPolicy
from .errors import EffectBufferOverflowError, EffectChannelClosed

E = TypeVar("E")

logger = logging.getLogger(__name__)


class EffectChannel(Generic[E]):
    """
    A bounded FIFO queue of one-shot effects.

    Effects sent while nobody is receiving wait in the buffer until a
    consumer arrives. Each effect is handed to exactly one receiver. When
    the buffer is full the channel applies its :class:`OverflowPolicy`.

    Closing the channel discards pending effects, wakes every waiting
    sender and receiver, and ends all iterations. Sends after close are
    ignored.

    The channel belongs to one event loop and is not thread-safe.

    Example:
        ```python
        channel = EffectChannel(capacity=8)
        await channel.send(ShowMessage("saved"))

        async for effect in channel:
            handle(effect)
        ```
    """

    __slots__ = (
        "_capacity",
        "_overflow",
        "_buffer",
        "_getters",
        "_putters",
        "_reserved",
        "_closed",
    )

    def __init__(
        self,
        capacity: int = DEFAULT_EFFECT_CAPACITY,
        overflow: OverflowPolicy = OverflowPolicy.SUSPEND,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._overflow = OverflowPolicy(overflow)
        self._buffer: deque[E] = deque()
        self._getters: deque[asyncio.Future[None]] = deque()
        self._putters: deque[asyncio.Future[None]] = deque()
        # Slots promised to woken senders that have not resumed yet
        self._reserved = 0
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def overflow(self) -> OverflowPolicy:
        return self._overflow

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._buffer)

    def full(self) -> bool:
        return len(self._buffer) >= self._capacity

    def _has_room(self) -> bool:
        # A new sender never overtakes one that is already waiting
        return (
            not self._putters
            and len(self._buffer) + self._reserved < self._capacity
        )

    @staticmethod
    def _wakeup_next(waiters: deque[asyncio.Future[None]]) -> None:
        while waiters:
            waiter = waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                break

    def _wakeup_putters(self) -> None:
        while self._putters and len(self._buffer) + self._reserved < self._capacity:
            putter = self._putters.popleft()
            if not putter.done():
                putter.set_result(None)
                self._reserved += 1

    def _append(self, effect: E) -> None:
        self._buffer.append(effect)
        self._wakeup_next(self._getters)

    def try_send(self, effect: E) -> bool:
        """
        Enqueue ``effect`` without waiting.

        Returns:
            True if the effect was enqueued. False if the channel is closed,
            or there is no room under SUSPEND or DROP_LATEST.

        Raises:
            EffectBufferOverflowError: The buffer is full under ERROR.
        """
        if self._closed:
            logger.debug("Ignoring %r sent to a closed channel", effect)
            return False

        if self._has_room():
            self._append(effect)
            return True

        match self._overflow:
            case OverflowPolicy.DROP_OLDEST:
                dropped = self._buffer.popleft()
                logger.warning("Effect buffer full, dropped oldest effect %r", dropped)
                self._append(effect)
                return True
            case OverflowPolicy.DROP_LATEST:
                logger.warning("Effect buffer full, dropped effect %r", effect)
                return False
            case OverflowPolicy.ERROR:
                raise EffectBufferOverflowError(effect, self._capacity)
        return False

    async def send(self, effect: E) -> bool:
        """
        Enqueue ``effect``, waiting for space under the SUSPEND policy.

        Waiting senders are served first come, first served: a slot freed by
        a receive is held for the longest-waiting sender.

        Returns:
            True if the effect was enqueued, False if it was dropped or the
            channel closed before space became available.

        Raises:
            EffectBufferOverflowError: The buffer is full under ERROR.
        """
        if (
            self._overflow is not OverflowPolicy.SUSPEND
            or self._closed
            or self._has_room()
        ):
            return self.try_send(effect)

        putter = asyncio.get_running_loop().create_future()
        self._putters.append(putter)
        try:
            await putter
        except BaseException:
            if putter.done() and not putter.cancelled():
                # Woken, then cancelled before taking the held slot
                self._reserved -= 1
                self._wakeup_putters()
            else:
                putter.cancel()
                try:
                    self._putters.remove(putter)
                except ValueError:
                    pass
            raise

        self._reserved -= 1
        if self._closed:
            logger.debug("Ignoring %r sent to a closed channel", effect)
            return False
        self._append(effect)
        return True

    async def wait(self) -> bool:
        """
        Wait until an effect is available without taking it.

        Returns:
            True if an effect is ready, False if the channel is closed.
        """
        while not self._buffer:
            if self._closed:
                return False
            getter = asyncio.get_running_loop().create_future()
            self._getters.append(getter)
            try:
                await getter
            except BaseException:
                getter.cancel()
                try:
                    self._getters.remove(getter)
                except ValueError:
                    pass
                if self._buffer and not getter.cancelled():
                    self._wakeup_next(self._getters)
                raise
        return True

    def receive_nowait(self) -> E:
        """
        Take the next effect if one is buffered.

        Raises:
            EffectChannelClosed: The channel was closed.
            asyncio.QueueEmpty: No effect is buffered.
        """
        if not self._buffer:
            if self._closed:
                raise EffectChannelClosed("effect channel is closed")
            raise asyncio.QueueEmpty()

        effect = self._buffer.popleft()
        self._wakeup_putters()
        return effect

    async def receive(self) -> E:
        """
        Take the next effect, waiting until one is available.

        Raises:
            EffectChannelClosed: The channel was closed.
        """
        if not await self.wait():
            raise EffectChannelClosed("effect channel is closed")
        return self.receive_nowait()

    def close(self) -> None:
        """Close the channel. Pending effects are discarded."""
        if self._closed:
            return
        self._closed = True
        if self._buffer:
            logger.debug("Discarding %d pending effects on close", len(self._buffer))
            self._buffer.clear()
        while self._getters:
            self._wakeup_next(self._getters)
        while self._putters:
            putter = self._putters.popleft()
            if not putter.done():
                putter.set_result(None)
                self._reserved += 1

    async def __aiter__(self) -> AsyncIterator[E]:
        while True:
            try:
                yield await self.receive()
            except EffectChannelClosed:
                return

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._buffer)}/{self._capacity}"
        return f"EffectChannel({state}, overflow={self._overflow.value})"
