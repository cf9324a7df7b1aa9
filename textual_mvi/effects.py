"""Decorator for routing one-shot effects to widget methods."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from .contracts import UiEffect

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

# Attribute name to store handler metadata on methods
EFFECT_ATTR = "__textual_mvi_effects__"


class EffectRegistration:
    """Stores the effect types a method handles."""

    __slots__ = ("types",)

    def __init__(self) -> None:
        self.types: list[type[UiEffect]] = []

    def add(self, effect_type: type[UiEffect]) -> None:
        self.types.append(effect_type)

    def matches(self, effect: UiEffect) -> bool:
        return isinstance(effect, tuple(self.types))


def get_effect_registration(method: Callable[..., Any]) -> EffectRegistration | None:
    """Get effect registration from a method, if any."""
    return getattr(method, EFFECT_ATTR, None)


def on_effect(*effect_types: type[UiEffect]) -> Callable[[F], F]:
    """
    Decorator to mark a widget method as a handler for effects.

    Args:
        *effect_types: Effect classes to handle. Subclasses match too.

    Example:
        ```python
        class FeedView(Widget):
            def on_mount(self):
                self.feed = use_holder(self, FeedHolder)

            @on_effect(ShowError)
            def show_error(self, effect: ShowError):
                self.notify(effect.message, severity="error")

            @on_effect(OpenPost, OpenProfile)  # multiple types
            def navigate(self, effect):
                self.app.push_screen(screen_for(effect))
        ```
    """
    if not effect_types:
        raise ValueError("@on_effect requires at least one effect type")
    for effect_type in effect_types:
        if not isinstance(effect_type, type):
            raise TypeError(f"@on_effect expects classes, got {effect_type!r}")

    def decorator(method: F) -> F:
        registration = get_effect_registration(method)
        if registration is None:
            registration = EffectRegistration()
            setattr(method, EFFECT_ATTR, registration)

        for effect_type in effect_types:
            registration.add(effect_type)

        return method

    return decorator


def collect_effect_handlers(
    widget: Any,
) -> list[tuple[EffectRegistration, Callable[[Any], None]]]:
    """
    Find the ``@on_effect`` methods of a widget.

    Returns:
        (registration, bound method) pairs.
    """
    handlers: list[tuple[EffectRegistration, Callable[[Any], None]]] = []
    for attr_name in dir(type(widget)):
        if attr_name.startswith("__"):
            continue

        try:
            # Get from class first so widget properties are not evaluated
            class_attr = getattr(type(widget), attr_name, None)
        except (AttributeError, AssertionError, TypeError):
            continue
        if class_attr is None:
            continue

        registration = get_effect_registration(class_attr)
        if registration is None:
            continue

        method = getattr(widget, attr_name)
        if callable(method):
            handlers.append((registration, method))

    return handlers


def route_effect(
    handlers: list[tuple[EffectRegistration, Callable[[Any], None]]],
    effect: UiEffect,
) -> int:
    """
    Call every handler registered for the type of ``effect``.

    Returns:
        How many handlers ran.
    """
    calls = 0
    for registration, method in handlers:
        if registration.matches(effect):
            method(effect)
            calls += 1
    if calls == 0:
        logger.debug("No handler for effect %r", effect)
    return calls
