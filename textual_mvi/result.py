"""Outcome values for calls into the business-logic layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, TypeVar

V = TypeVar("V")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Success(Generic[V]):
    """A business operation that completed with ``value``."""

    value: V

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    """A business operation that failed with ``error``."""

    error: BaseException

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error) or self.error.__class__.__name__


Outcome = Success[V] | Failure


async def run_catching(operation: Awaitable[V]) -> Outcome[V]:
    """
    Await ``operation`` and wrap its result.

    Exceptions become :class:`Failure`; cancellation is not caught.

    Example:
        ```python
        match await run_catching(self.repository.fetch_posts()):
            case Success(posts):
                self.set_state(FeedSuccess(posts=posts))
            case Failure() as failure:
                self.set_state(FeedError(message=failure.message))
        ```
    """
    try:
        return Success(await operation)
    except Exception as exc:
        logger.debug("Operation failed: %r", exc)
        return Failure(exc)


__all__ = ["Failure", "Outcome", "Success", "run_catching"]
