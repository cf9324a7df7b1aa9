"""Tests for reducers, outcomes and config."""

from dataclasses import dataclass, replace

import pytest
from pydantic import ValidationError

from textual_mvi import (
    DEFAULT_EFFECT_CAPACITY,
    Failure,
    FunctionReducer,
    HolderConfig,
    Outcome,
    OverflowPolicy,
    Success,
    UiIntent,
    UiState,
    create_holder,
    reducer,
    run_catching,
)


@dataclass(frozen=True)
class Toggle(UiState):
    on: bool = False


@dataclass(frozen=True)
class Flip(UiIntent):
    pass


@dataclass(frozen=True)
class Noop(UiIntent):
    pass


class ToggleReducer:
    """A class-based reducer."""

    def reduce(self, state: Toggle, intent: UiIntent) -> Toggle:
        match intent:
            case Flip():
                return replace(state, on=not state.on)
        return state


class TestReducers:
    """Tests for reducer adapters."""

    def test_decorator_wraps_function(self):
        @reducer
        def flip(state: Toggle, intent) -> Toggle:
            return replace(state, on=not state.on)

        assert isinstance(flip, FunctionReducer)
        assert flip.reduce(Toggle(), Flip()) == Toggle(on=True)
        assert "flip" in repr(flip)

    def test_class_reducer_with_holder(self):
        holder = create_holder(
            lambda h, intent: h.reduce(ToggleReducer(), intent), Toggle()
        )

        holder.dispatch(Flip())
        assert holder.state == Toggle(on=True)

        holder.dispatch(Noop())
        assert holder.state == Toggle(on=True)

    def test_repeated_calls_agree(self):
        r = ToggleReducer()
        assert r.reduce(Toggle(), Flip()) == r.reduce(Toggle(), Flip())


class TestRunCatching:
    """Tests for business call outcomes."""

    async def test_success(self):
        async def fetch():
            return [1, 2]

        result = await run_catching(fetch())
        assert result == Success([1, 2])
        assert result.ok

    async def test_failure(self):
        async def fetch():
            raise TimeoutError()

        result = await run_catching(fetch())
        assert isinstance(result, Failure)
        assert not result.ok
        assert result.message == "TimeoutError"

    async def test_outcome_covers_both_results(self):
        async def fetch(fail: bool):
            if fail:
                raise ValueError("boom")
            return 3

        outcomes: list[Outcome[int]] = [
            await run_catching(fetch(False)),
            await run_catching(fetch(True)),
        ]

        assert [isinstance(outcome, (Success, Failure)) for outcome in outcomes] == [True, True]
        assert [outcome.ok for outcome in outcomes] == [True, False]


class TestHolderConfig:
    """Tests for holder settings."""

    def test_defaults(self):
        config = HolderConfig()
        assert config.effect_capacity == DEFAULT_EFFECT_CAPACITY == 64
        assert config.overflow is OverflowPolicy.SUSPEND
        assert config.name is None

    def test_policy_from_string(self):
        assert HolderConfig(overflow="drop_oldest").overflow is OverflowPolicy.DROP_OLDEST

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            HolderConfig(effect_capacity=0)

    def test_frozen(self):
        config = HolderConfig()
        with pytest.raises(ValidationError):
            config.effect_capacity = 1
