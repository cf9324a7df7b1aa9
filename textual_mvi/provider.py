"""Textual binding - mounts a state holder into a widget tree."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar
from weakref import WeakKeyDictionary

from textual.containers import Container
from textual.widget import Widget
from textual.worker import Worker

from .contracts import UiEffect, UiIntent, UiState
from .effects import EffectRegistration, collect_effect_handlers, route_effect
from .errors import HolderNotFoundError
from .holder import StateHolder
from .state import State

S = TypeVar("S", bound=UiState)
A = TypeVar("A", bound=UiIntent)  # Intent type
E = TypeVar("E", bound=UiEffect)
H = TypeVar("H", bound=StateHolder[Any, Any, Any])

logger = logging.getLogger(__name__)

Handlers = list[tuple[EffectRegistration, Callable[[Any], None]]]


class HolderHandle(Generic[S, A, E]):
    """
    Handle returned by use_holder() - provides access to state and dispatch.
    """

    __slots__ = ("_holder", "_provider", "_widget")

    def __init__(
        self,
        holder: StateHolder[S, A, E],
        provider: HolderProvider[S, A, E] | None = None,
        widget: Widget | None = None,
    ) -> None:
        self._holder = holder
        self._provider = provider
        self._widget = widget

    @property
    def value(self) -> S:
        """Get the current state value."""
        return self._holder.state

    def dispatch(self, intent: A) -> None:
        """Dispatch an intent to the holder."""
        self._holder.dispatch(intent)

    @property
    def state(self) -> State[S]:
        """Get the underlying state cell."""
        return self._holder.state_cell

    @property
    def holder(self) -> StateHolder[S, A, E]:
        """Get the holder this handle belongs to."""
        return self._holder

    def release(self) -> None:
        """Stop delivering state changes and effects to the widget."""
        if self._provider is not None and self._widget is not None:
            self._provider.remove_consumer(self._widget)

    def __call__(self) -> S:
        """Shorthand to get current value."""
        return self._holder.state


class HolderProvider(Container, Generic[S, A, E]):
    """
    Widget that owns a state holder for its descendants.

    Descendants attach with :func:`use_holder`. Effects are pumped to the
    ``@on_effect`` methods of attached widgets while at least one of them is
    attached. With no consumer (before the first attaches, or after the
    last is removed) effects wait in the holder's buffer. Unmounting the
    provider destroys the holder.
    """

    DEFAULT_CSS = """
    HolderProvider {
        width: 100%;
        height: auto;
    }
    """

    def __init__(
        self,
        holder: StateHolder[S, A, E],
        *children: Widget,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self._holder = holder
        self._compose_children = children
        self._consumers: WeakKeyDictionary[Widget, Handlers] = WeakKeyDictionary()
        self._pump: Worker[None] | None = None

    @property
    def holder(self) -> StateHolder[S, A, E]:
        """Get the state holder."""
        return self._holder

    @property
    def value(self) -> S:
        """Get current state value."""
        return self._holder.state

    @property
    def consumers(self) -> list[Widget]:
        """Attached widgets, whether or not they handle effects."""
        self._prune_consumers()
        return list(self._consumers)

    def dispatch(self, intent: A) -> None:
        """Dispatch an intent."""
        self._holder.dispatch(intent)

    def compose(self):
        yield from self._compose_children

    def add_consumer(self, widget: Widget) -> None:
        """Track ``widget`` and route effects to its ``@on_effect`` methods."""
        handlers = collect_effect_handlers(widget)
        self._consumers[widget] = handlers
        if handlers and self._pump is None:
            self._pump = self.run_worker(
                self._pump_effects(),
                name=f"{self._holder.name}-effects",
                group="effects",
                exclusive=True,
            )

    def remove_consumer(self, widget: Widget) -> None:
        """Detach ``widget`` from effects and state changes."""
        self._consumers.pop(widget, None)
        self._holder.state_cell.unsubscribe(widget)

    def _prune_consumers(self) -> None:
        for widget in list(self._consumers):
            if not widget.is_attached:
                logger.debug("%s: dropping detached consumer %r", self._holder.name, widget)
                self.remove_consumer(widget)

    async def _pump_effects(self) -> None:
        channel = self._holder.effects
        try:
            while await channel.wait():
                self._prune_consumers()
                if not any(self._consumers.values()):
                    # Leave the effect buffered for the next consumer
                    logger.debug("%s: no consumers, pausing effects", self._holder.name)
                    return
                self.deliver(channel.receive_nowait())
            logger.debug("%s: effect stream ended", self._holder.name)
        finally:
            self._pump = None

    def deliver(self, effect: E) -> int:
        """
        Hand one effect to the attached widgets.

        Returns:
            How many handlers ran.
        """
        calls = 0
        for handlers in list(self._consumers.values()):
            calls += route_effect(handlers, effect)
        return calls

    def on_unmount(self) -> None:
        """Tear down the holder together with this widget."""
        self._holder.destroy()


def use_holder(
    widget: Widget,
    key: StateHolder[S, A, E] | type[H],
    *,
    subscribe: bool = True,
) -> HolderHandle[Any, Any, Any]:
    """
    Attach a widget to the nearest provider of a state holder.

    The widget is detached automatically once it leaves the DOM, or
    explicitly with ``HolderHandle.release()``.

    Args:
        widget: The widget consuming the holder.
        key: A holder instance, or a holder class matched with isinstance.
        subscribe: Whether to receive StateChanged messages (default True).

    Returns:
        A HolderHandle with .value and .dispatch().

    Raises:
        HolderNotFoundError: If no matching provider is mounted above the widget.

    Example:
        ```python
        class FeedView(Widget):
            def on_mount(self):
                self.feed = use_holder(self, FeedHolder)
                self.feed.dispatch(Load())

            def on_state_changed(self, event: StateChanged) -> None:
                self.render_feed(event.new_value)
        ```
    """
    provider = _find_provider(widget, key)

    if provider is None:
        raise HolderNotFoundError(key, widget)

    if subscribe:
        provider.holder.state_cell.subscribe(widget)

    provider.add_consumer(widget)

    return HolderHandle(provider.holder, provider, widget)


def _find_provider(
    widget: Widget, key: StateHolder[Any, Any, Any] | type[Any]
) -> HolderProvider[Any, Any, Any] | None:
    """Find the nearest provider for a holder instance or class."""
    current: Widget | None = widget

    while current is not None:
        if isinstance(current, HolderProvider):
            holder = current.holder
            if holder is key or (isinstance(key, type) and isinstance(holder, key)):
                return current

        if hasattr(current, "parent") and current.parent is not None:
            current = current.parent
        else:
            break

    return None
