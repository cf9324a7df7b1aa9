"""Type definitions for textual-mvi."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

from .contracts import UiIntent, UiState

# Type variables
T = TypeVar("T")
S = TypeVar("S", bound=UiState)
A = TypeVar("A", bound=UiIntent)  # Intent type


class Reducer(Protocol[S, A]):
    """Protocol for pure state transitions."""

    def reduce(self, state: S, intent: A) -> S:
        """Return the next state. Inapplicable intents return ``state``."""
        ...


class FunctionReducer(Generic[S, A]):
    """Adapts a plain ``(state, intent) -> state`` function to :class:`Reducer`."""

    __slots__ = ("_fn",)

    def __init__(self, fn: Callable[[S, A], S]) -> None:
        self._fn = fn

    def reduce(self, state: S, intent: A) -> S:
        return self._fn(state, intent)

    def __call__(self, state: S, intent: A) -> S:
        return self._fn(state, intent)

    def __repr__(self) -> str:
        return f"FunctionReducer({getattr(self._fn, '__qualname__', self._fn)!r})"


def reducer(fn: Callable[[S, A], S]) -> FunctionReducer[S, A]:
    """
    Decorator turning a function into a :class:`Reducer`.

    Example:
        ```python
        @reducer
        def counter(state: CounterState, intent: CounterIntent) -> CounterState:
            match intent:
                case Increment():
                    return replace(state, count=state.count + 1)
            return state
        ```
    """
    return FunctionReducer(fn)


ReducerLike = Reducer[Any, Any] | Callable[[Any, Any], Any]


class StateCallback(Protocol[T]):
    """Protocol for state change callbacks."""

    def __call__(self, old_value: T, new_value: T) -> None:
        """Called when state changes."""
        ...


IntentHandler = Callable[[Any, Any], Awaitable[None] | None]
"""``(holder, intent)`` callable used by :func:`create_holder`."""
