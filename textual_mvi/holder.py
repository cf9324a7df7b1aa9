"""State holder - owns the state cell, the effect channel and the task scope."""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Coroutine, Generic, TypeVar

from pydantic import BaseModel

from .channel import EffectChannel
from .config import HolderConfig, OverflowPolicy
from .contracts import UiEffect, UiIntent, UiState
from .scope import TaskScope
from .state import ModelState, State
from .types import IntentHandler, ReducerLike

S = TypeVar("S", bound=UiState)
A = TypeVar("A", bound=UiIntent)  # Intent type
E = TypeVar("E", bound=UiEffect)
R = TypeVar("R")

logger = logging.getLogger(__name__)


class StateHolder(ABC, Generic[S, A, E]):
    """
    Base class for Model-View-Intent state holders.

    A holder starts Active with its initial state. The UI reads ``state``
    (or subscribes to ``state_cell``), consumes ``effects`` and calls
    ``dispatch`` for every user action. Subclasses implement ``on_intent``
    and publish through ``set_state`` / ``send_effect``.

    ``destroy`` moves the holder to Destroyed for good: in-flight tasks are
    cancelled, the effect stream ends, and dispatch, publish and emit all
    become no-ops.

    Concurrent intents are not serialized. A subclass that does
    read-modify-write across an ``await`` must sequence its own work, for
    example with a private ``asyncio.Lock``.

    Example:
        ```python
        class CounterHolder(StateHolder[CounterState, CounterIntent, CounterEffect]):
            def on_intent(self, intent: CounterIntent) -> None:
                match intent:
                    case Increment():
                        self.reduce(counter_reducer, intent)
                    case Save():
                        self.launch(self._save())

            async def _save(self) -> None:
                match await run_catching(self.repository.save(self.state)):
                    case Failure() as failure:
                        self.send_effect(ShowError(failure.message))
        ```
    """

    def __init__(self, initial_state: S, *, config: HolderConfig | None = None) -> None:
        self._config = config or HolderConfig()
        self._name = self._config.name or type(self).__name__

        if isinstance(initial_state, BaseModel):
            self._state: State[S] = ModelState(initial_state, name=self._name)
        else:
            self._state = State(initial_state, name=self._name)

        self._effects: EffectChannel[E] = EffectChannel(
            self._config.effect_capacity, self._config.overflow
        )
        self._scope = TaskScope(self._name)
        self._deferred_sends = 0
        self._destroyed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> HolderConfig:
        return self._config

    @property
    def state(self) -> S:
        """The latest published state."""
        return self._state.value

    @property
    def state_cell(self) -> State[S]:
        """The underlying cell, for watchers and widget subscriptions."""
        return self._state

    @property
    def effects(self) -> EffectChannel[E]:
        """The one-shot effect stream. Iterate it with ``async for``."""
        return self._effects

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @abstractmethod
    def on_intent(self, intent: A) -> Awaitable[None] | None:
        """
        Handle one intent.

        Synchronous work (such as an optimistic ``reduce``) happens here.
        Returning a coroutine (or any other awaitable) launches it in the
        holder's task scope.
        """

    def dispatch(self, intent: A) -> None:
        """Submit an intent. Ignored once the holder is destroyed."""
        if self._destroyed:
            logger.debug("%s: ignoring %r after destroy", self._name, intent)
            return

        logger.debug("%s: dispatch %r", self._name, intent)
        result = self.on_intent(intent)
        if asyncio.iscoroutine(result):
            self.launch(result)
        elif inspect.isawaitable(result):
            self.launch(_await(result))

    def set_state(self, new_state: S) -> bool:
        """
        Publish ``new_state``.

        Returns:
            True if the published value changed. Always False after destroy.
        """
        if self._destroyed:
            logger.debug("%s: suppressed state %r after destroy", self._name, new_state)
            return False
        return self._state.set(new_state)

    def update_state(self, fn: Callable[[S], S]) -> bool:
        """Publish ``fn(current)``, computed under the state lock."""
        if self._destroyed:
            logger.debug("%s: suppressed state update after destroy", self._name)
            return False
        return self._state.set(fn)

    def reduce(self, reducer: ReducerLike, intent: A) -> S:
        """
        Apply ``reducer`` to the current state and publish the result.

        ``reducer`` is a :class:`~textual_mvi.types.Reducer` or a plain
        ``(state, intent) -> state`` function.

        Returns:
            The state after the transition.
        """
        reduce = getattr(reducer, "reduce", reducer)
        self.update_state(lambda state: reduce(state, intent))
        return self.state

    async def emit_effect(self, effect: E) -> bool:
        """
        Enqueue ``effect``, waiting for buffer space if the policy says so.

        Returns:
            True if the effect was enqueued.
        """
        if self._destroyed:
            logger.debug("%s: suppressed effect %r after destroy", self._name, effect)
            return False
        return await self._effects.send(effect)

    def send_effect(self, effect: E) -> None:
        """
        Enqueue ``effect`` without waiting.

        When the buffer is full under the SUSPEND policy the send continues
        in a scope task, behind any earlier deferred sends.
        """
        if self._destroyed:
            logger.debug("%s: suppressed effect %r after destroy", self._name, effect)
            return

        if self._effects.overflow is not OverflowPolicy.SUSPEND:
            self._effects.try_send(effect)
            return
        if self._deferred_sends == 0 and self._effects.try_send(effect):
            return

        self._deferred_sends += 1
        try:
            self.launch(self._send_deferred(effect))
        except RuntimeError:
            self._deferred_sends -= 1
            raise

    async def _send_deferred(self, effect: E) -> None:
        try:
            await self._effects.send(effect)
        finally:
            self._deferred_sends -= 1

    def launch(self, coro: Coroutine[Any, Any, R]) -> asyncio.Task[R] | None:
        """Run ``coro`` in the holder's task scope. Returns None after destroy."""
        if self._destroyed:
            logger.debug("%s: refusing task after destroy", self._name)
            coro.close()
            return None
        return self._scope.launch(coro)

    async def join(self) -> None:
        """Wait for every in-flight task of this holder."""
        await self._scope.join()

    def destroy(self) -> None:
        """Cancel in-flight work and close the effect stream. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        logger.debug("%s: destroyed", self._name)
        self._scope.cancel()
        self._effects.close()
        self.on_destroy()

    def on_destroy(self) -> None:
        """Hook called once when the holder is destroyed."""

    async def __aenter__(self) -> StateHolder[S, A, E]:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.destroy()

    def __repr__(self) -> str:
        lifecycle = "destroyed" if self._destroyed else "active"
        return f"{type(self).__name__}({self._state.value!r}, {lifecycle})"


async def _await(awaitable: Awaitable[R]) -> R:
    return await awaitable


class FunctionStateHolder(StateHolder[S, A, E]):
    """A state holder whose intent handling is an injected function."""

    def __init__(
        self,
        initial_state: S,
        handler: IntentHandler,
        *,
        config: HolderConfig | None = None,
    ) -> None:
        super().__init__(initial_state, config=config)
        self._handler = handler

    def on_intent(self, intent: A) -> Awaitable[None] | None:
        return self._handler(self, intent)


def create_holder(
    handler: IntentHandler,
    initial_state: S,
    *,
    config: HolderConfig | None = None,
    **settings: Any,
) -> FunctionStateHolder[S, Any, Any]:
    """
    Create a state holder from an intent handler function.

    Args:
        handler: Called as ``handler(holder, intent)``. May be ``async``.
        initial_state: The initial state.
        config: Holder settings.
        **settings: Overrides for individual ``HolderConfig`` fields.

    Returns:
        A FunctionStateHolder.

    Example:
        ```python
        async def handle(holder, intent):
            match intent:
                case Load():
                    posts = await repository.fetch_posts()
                    holder.set_state(FeedSuccess(posts=posts))

        feed = create_holder(handle, FeedLoading(), effect_capacity=16)
        ```
    """
    if settings:
        base = config or HolderConfig()
        config = HolderConfig(**{**base.model_dump(), **settings})
    return FunctionStateHolder(initial_state, handler, config=config)
