"""Observable state cell for textual-mvi."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, TypeVar, overload
from weakref import WeakSet

from pydantic import BaseModel
from textual.message import Message
from textual.widget import Widget

from .types import StateCallback

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

logger = logging.getLogger(__name__)


class StateChanged(Message, Generic[T]):
    """Message posted to subscribed widgets when a state is published."""

    def __init__(self, state: State[T], old_value: T, new_value: T) -> None:
        super().__init__()
        self.state = state
        self.old_value = old_value
        self.new_value = new_value


def _same(old_value: Any, new_value: Any) -> bool:
    # Pydantic variants with identical fields still differ by class
    if isinstance(old_value, BaseModel) and isinstance(new_value, BaseModel):
        return (
            type(old_value) is type(new_value)
            and old_value.model_dump() == new_value.model_dump()
        )
    return old_value == new_value


class State(Generic[T]):
    """
    The current-state cell of a state holder.

    A state always has a value. Publishing replaces it under a lock, so a
    value set by one caller is visible to every reader once ``set`` returns,
    and watchers see publications in the order they were made. Publishing a
    value equal to the current one is ignored.

    Example:
        ```python
        state = State(FeedState.Loading(), name="feed")
        state.watch(lambda old, new: print(old, "->", new))
        state.set(FeedState.Success(posts=[post]))
        ```
    """

    __slots__ = ("_value", "_subscribers", "_watchers", "_name", "_lock")

    def __init__(self, initial_value: T, *, name: str | None = None) -> None:
        """
        Initialize a new state cell.

        Args:
            initial_value: The initial value of the state.
            name: Optional name for debugging purposes.
        """
        self._value: T = initial_value
        self._subscribers: WeakSet[Widget] = WeakSet()
        self._watchers: list[StateCallback[T]] = []
        self._name = name
        self._lock = threading.RLock()

    @property
    def value(self) -> T:
        """Get the current state value."""
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        """Set the state value directly."""
        self._set_value(new_value)

    @property
    def name(self) -> str | None:
        return self._name

    def get(self) -> T:
        """Get the current state value."""
        return self._value

    @overload
    def set(self, value: T) -> bool: ...

    @overload
    def set(self, value: Callable[[T], T]) -> bool: ...

    def set(self, value: T | Callable[[T], T]) -> bool:
        """
        Publish a new state value.

        Args:
            value: Either a new value or a function that takes the current
                   value and returns the new value. The function runs under
                   the cell lock.

        Returns:
            True if the value changed.
        """
        with self._lock:
            if callable(value) and not isinstance(value, type):
                new_value = value(self._value)
            else:
                new_value = value
            return self._set_value(new_value)

    def _set_value(self, new_value: T) -> bool:
        """Internal method to set value and notify subscribers."""
        with self._lock:
            old_value = self._value
            if _same(old_value, new_value):
                return False

            self._value = new_value
            logger.debug(
                "State %s: %r -> %r", self._name or "unnamed", old_value, new_value
            )

            for watcher in list(self._watchers):
                watcher(old_value, new_value)

            message = StateChanged(self, old_value, new_value)
            for widget in list(self._subscribers):
                widget.post_message(message)
            return True

    def subscribe(self, widget: Widget) -> None:
        """
        Subscribe a widget to state changes.

        The widget will receive StateChanged messages when the state changes.
        """
        self._subscribers.add(widget)

    def unsubscribe(self, widget: Widget) -> None:
        """Unsubscribe a widget from state changes."""
        self._subscribers.discard(widget)

    def watch(self, callback: StateCallback[T]) -> Callable[[], None]:
        """
        Add a watcher callback for state changes.

        Args:
            callback: A function that receives (old_value, new_value).

        Returns:
            A function to remove the watcher.
        """
        with self._lock:
            self._watchers.append(callback)

        def unwatch() -> None:
            with self._lock:
                if callback in self._watchers:
                    self._watchers.remove(callback)

        return unwatch

    def __repr__(self) -> str:
        name = f" name={self._name!r}" if self._name else ""
        return f"State({self._value!r}{name})"


class ModelState(State[M], Generic[M]):
    """
    A state cell for pydantic model states with field-level updates.

    Example:
        ```python
        class Feed(UiState, BaseModel):
            posts: list[Post] = []
            is_refreshing: bool = False

        state = ModelState(Feed())
        state.update(is_refreshing=True)
        ```
    """

    __slots__ = ()

    def update(self, **fields: Any) -> bool:
        """
        Publish a copy of the current model with ``fields`` replaced.

        Returns:
            True if the value changed.
        """
        with self._lock:
            return self._set_value(self._value.model_copy(update=fields))

    def replace(self, new_model: M) -> bool:
        """Replace the entire model."""
        return self._set_value(new_model)

    @property
    def model(self) -> M:
        """Get the current model (alias for value)."""
        return self._value
