"""Marker contracts for states, intents and effects."""

from __future__ import annotations


class UiState:
    """
    Marker for a rendering snapshot.

    Features usually declare a closed set of variants (Loading, Success,
    Error, ...) as frozen dataclasses or pydantic models that inherit from
    this class. Exactly one variant is current at any time.
    """

    __slots__ = ()


class UiIntent:
    """Marker for a discrete user or system action."""

    __slots__ = ()


class UiEffect:
    """
    Marker for a one-shot event that is not part of the state.

    Navigation requests and transient notifications are effects: each one
    is delivered once and never replayed.
    """

    __slots__ = ()
