"""Configuration for state holders."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, PositiveInt

# Matches the capacity of a default buffered coroutine channel.
DEFAULT_EFFECT_CAPACITY = 64


class OverflowPolicy(str, Enum):
    """What happens when an effect is sent to a full buffer."""

    SUSPEND = "suspend"
    """The sender waits until a consumer makes room."""

    DROP_OLDEST = "drop_oldest"
    """The oldest pending effect is discarded to make room."""

    DROP_LATEST = "drop_latest"
    """The effect being sent is discarded."""

    ERROR = "error"
    """:class:`~textual_mvi.errors.EffectBufferOverflowError` is raised."""


class HolderConfig(BaseModel):
    """
    Settings for a :class:`~textual_mvi.holder.StateHolder`.

    Example:
        ```python
        config = HolderConfig(effect_capacity=8, overflow=OverflowPolicy.DROP_OLDEST)
        holder = FeedHolder(FeedState.Loading(), config=config)
        ```
    """

    model_config = ConfigDict(frozen=True)

    effect_capacity: PositiveInt = DEFAULT_EFFECT_CAPACITY
    overflow: OverflowPolicy = OverflowPolicy.SUSPEND
    name: str | None = None
