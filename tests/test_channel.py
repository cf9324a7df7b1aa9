"""Tests for the effect channel."""

import asyncio
from dataclasses import dataclass

import pytest

from textual_mvi import (
    EffectBufferOverflowError,
    EffectChannel,
    EffectChannelClosed,
    OverflowPolicy,
    UiEffect,
)


@dataclass(frozen=True)
class Toast(UiEffect):
    text: str


async def drain(channel: EffectChannel) -> list:
    received = []
    async for effect in channel:
        received.append(effect)
    return received


class TestEffectChannel:
    """Tests for buffering and ordering."""

    async def test_fifo_order(self):
        channel = EffectChannel()
        for text in ("e1", "e2", "e3"):
            assert await channel.send(Toast(text))

        assert [await channel.receive() for _ in range(3)] == [
            Toast("e1"),
            Toast("e2"),
            Toast("e3"),
        ]

    async def test_effects_wait_for_a_consumer(self):
        channel = EffectChannel()
        channel.try_send(Toast("early"))
        assert len(channel) == 1

        consumer = asyncio.create_task(drain(channel))
        await asyncio.sleep(0)
        channel.close()

        # Closing after the consumer took the effect keeps what it received
        assert await consumer == [Toast("early")]

    async def test_receive_waits_for_send(self):
        channel = EffectChannel()
        receiver = asyncio.create_task(channel.receive())
        await asyncio.sleep(0)
        assert not receiver.done()

        channel.try_send(Toast("hello"))
        assert await receiver == Toast("hello")

    async def test_each_effect_delivered_once(self):
        channel = EffectChannel()
        first = asyncio.create_task(channel.receive())
        second = asyncio.create_task(channel.receive())
        await asyncio.sleep(0)

        channel.try_send(Toast("a"))
        channel.try_send(Toast("b"))

        assert {await first, await second} == {Toast("a"), Toast("b")}
        assert len(channel) == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            EffectChannel(capacity=0)


class TestOverflowPolicy:
    """Tests for a full buffer."""

    async def test_suspend_waits_for_space(self):
        channel = EffectChannel(capacity=1)
        await channel.send(Toast("1"))

        sender = asyncio.create_task(channel.send(Toast("2")))
        await asyncio.sleep(0)
        assert not sender.done()

        assert await channel.receive() == Toast("1")
        assert await sender is True
        assert await channel.receive() == Toast("2")

    async def test_try_send_under_suspend_refuses_when_full(self):
        channel = EffectChannel(capacity=1)
        assert channel.try_send(Toast("1"))
        assert channel.try_send(Toast("2")) is False

    async def test_drop_oldest(self):
        channel = EffectChannel(capacity=2, overflow=OverflowPolicy.DROP_OLDEST)
        for text in ("1", "2", "3"):
            assert await channel.send(Toast(text))

        assert await channel.receive() == Toast("2")
        assert await channel.receive() == Toast("3")

    async def test_drop_latest(self):
        channel = EffectChannel(capacity=2, overflow=OverflowPolicy.DROP_LATEST)
        assert await channel.send(Toast("1"))
        assert await channel.send(Toast("2"))
        assert await channel.send(Toast("3")) is False

        assert await channel.receive() == Toast("1")
        assert await channel.receive() == Toast("2")

    async def test_error(self):
        channel = EffectChannel(capacity=1, overflow=OverflowPolicy.ERROR)
        await channel.send(Toast("1"))

        with pytest.raises(EffectBufferOverflowError) as info:
            await channel.send(Toast("2"))
        assert info.value.capacity == 1
        assert info.value.effect == Toast("2")


class TestClose:
    """Tests for closing the channel."""

    async def test_close_ends_iteration(self):
        channel = EffectChannel()
        consumer = asyncio.create_task(drain(channel))
        await asyncio.sleep(0)

        channel.close()
        assert await consumer == []

    async def test_close_discards_pending(self):
        channel = EffectChannel()
        channel.try_send(Toast("lost"))
        channel.close()

        with pytest.raises(EffectChannelClosed):
            await channel.receive()

    async def test_send_after_close_is_ignored(self):
        channel = EffectChannel()
        channel.close()

        assert await channel.send(Toast("x")) is False
        assert channel.try_send(Toast("x")) is False
        assert len(channel) == 0

    async def test_close_releases_blocked_sender(self):
        channel = EffectChannel(capacity=1)
        await channel.send(Toast("1"))
        sender = asyncio.create_task(channel.send(Toast("2")))
        await asyncio.sleep(0)

        channel.close()
        assert await sender is False

    async def test_close_is_idempotent(self):
        channel = EffectChannel()
        channel.close()
        channel.close()
        assert channel.closed
        assert "closed" in repr(channel)


class TestSenderOrder:
    """Tests for senders waiting on a full buffer."""

    async def test_freed_slot_is_held_for_waiting_sender(self):
        channel = EffectChannel(capacity=1)
        await channel.send(Toast("1"))
        waiting = asyncio.create_task(channel.send(Toast("2")))
        await asyncio.sleep(0)

        assert await channel.receive() == Toast("1")
        assert channel.try_send(Toast("3")) is False

        assert await waiting is True
        assert await channel.receive() == Toast("2")
        assert len(channel) == 0

    async def test_waiting_senders_in_arrival_order(self):
        channel = EffectChannel(capacity=1)
        await channel.send(Toast("1"))
        senders = []
        for text in ("2", "3", "4"):
            senders.append(asyncio.create_task(channel.send(Toast(text))))
            await asyncio.sleep(0)

        received = [await channel.receive() for _ in range(4)]

        assert received == [Toast("1"), Toast("2"), Toast("3"), Toast("4")]
        assert all(await asyncio.gather(*senders))

    async def test_cancelled_sender_passes_its_slot_on(self):
        channel = EffectChannel(capacity=1)
        await channel.send(Toast("1"))
        cancelled = asyncio.create_task(channel.send(Toast("2")))
        await asyncio.sleep(0)
        later = asyncio.create_task(channel.send(Toast("3")))
        await asyncio.sleep(0)

        cancelled.cancel()
        assert await channel.receive() == Toast("1")
        assert await later is True
        assert await channel.receive() == Toast("3")


class TestWait:
    """Tests for waiting without taking."""

    async def test_wait_leaves_effect_buffered(self):
        channel = EffectChannel()
        waiter = asyncio.create_task(channel.wait())
        await asyncio.sleep(0)

        channel.try_send(Toast("x"))
        assert await waiter is True
        assert len(channel) == 1
        assert channel.receive_nowait() == Toast("x")

    async def test_receive_nowait_on_empty(self):
        channel = EffectChannel()
        with pytest.raises(asyncio.QueueEmpty):
            channel.receive_nowait()

        channel.close()
        assert await channel.wait() is False
        with pytest.raises(EffectChannelClosed):
            channel.receive_nowait()
