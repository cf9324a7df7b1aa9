"""Exceptions raised by textual-mvi."""

from __future__ import annotations

from typing import Any


class MviError(Exception):
    """Base class for textual-mvi errors."""


class EffectBufferOverflowError(MviError):
    """Raised when an effect is sent to a full buffer under the ERROR policy."""

    def __init__(self, effect: Any, capacity: int) -> None:
        self.effect = effect
        self.capacity = capacity
        super().__init__(
            f"Effect buffer is full ({capacity} pending); "
            f"could not enqueue {effect.__class__.__name__}."
        )


class EffectChannelClosed(MviError):
    """Raised by a receive on a closed effect channel."""


class HolderNotFoundError(MviError):
    """Raised when no provider for a state holder is found in the widget tree."""

    def __init__(self, key: Any, widget: Any) -> None:
        self.key = key
        self.widget = widget
        name = key.__name__ if isinstance(key, type) else key.__class__.__name__
        super().__init__(
            f"State holder '{name}' not found in widget tree for "
            f"{widget.__class__.__name__}. "
            f"Make sure a HolderProvider is mounted above this widget."
        )
