"""
Textual MVI - Model-View-Intent state holders for Textual apps.

A state holder owns one immutable UI state, a buffered stream of one-shot
effects and a task scope for business calls. Widgets read the state,
consume effects and dispatch intents; nothing else mutates the state.

Key Features:
- UiState / UiIntent / UiEffect: marker contracts for feature types
- Reducer: pure (state, intent) -> state transitions
- StateHolder: observable state, effect channel, managed tasks
- create_holder: composition variant with an injected intent handler
- HolderProvider / use_holder: bind a holder to a Textual widget tree
- @on_effect: route effects to widget methods

Example:
    ```python
    from dataclasses import dataclass, replace
    from textual_mvi import (
        StateHolder, UiEffect, UiIntent, UiState, reducer, run_catching,
        Failure, Success,
    )

    @dataclass(frozen=True)
    class Counter(UiState):
        count: int = 0

    @dataclass(frozen=True)
    class Increment(UiIntent):
        pass

    @dataclass(frozen=True)
    class Saved(UiEffect):
        pass

    @reducer
    def counter_reducer(state: Counter, intent) -> Counter:
        match intent:
            case Increment():
                return replace(state, count=state.count + 1)
        return state

    class CounterHolder(StateHolder[Counter, Increment, Saved]):
        def on_intent(self, intent):
            self.reduce(counter_reducer, intent)
            self.send_effect(Saved())
    ```
"""

from .contracts import (
    UiState,
    UiIntent,
    UiEffect,
)

from .types import (
    Reducer,
    FunctionReducer,
    reducer,
    StateCallback,
    IntentHandler,
)

from .config import (
    HolderConfig,
    OverflowPolicy,
    DEFAULT_EFFECT_CAPACITY,
)

from .errors import (
    MviError,
    EffectBufferOverflowError,
    EffectChannelClosed,
    HolderNotFoundError,
)

from .state import (
    State,
    ModelState,
    StateChanged,
)

from .channel import (
    EffectChannel,
)

from .scope import (
    TaskScope,
)

from .result import (
    Success,
    Failure,
    Outcome,
    run_catching,
)

from .holder import (
    StateHolder,
    FunctionStateHolder,
    create_holder,
)

from .effects import (
    on_effect,
)

from .provider import (
    HolderHandle,
    HolderProvider,
    use_holder,
)

__version__ = "0.1.0a1"

__all__ = [
    # Contracts
    "UiState",
    "UiIntent",
    "UiEffect",
    # Types
    "Reducer",
    "FunctionReducer",
    "reducer",
    "StateCallback",
    "IntentHandler",
    # Config
    "HolderConfig",
    "OverflowPolicy",
    "DEFAULT_EFFECT_CAPACITY",
    # Errors
    "MviError",
    "EffectBufferOverflowError",
    "EffectChannelClosed",
    "HolderNotFoundError",
    # State
    "State",
    "ModelState",
    "StateChanged",
    # Effects
    "EffectChannel",
    "on_effect",
    # Tasks
    "TaskScope",
    # Results
    "Success",
    "Failure",
    "Outcome",
    "run_catching",
    # Holder
    "StateHolder",
    "FunctionStateHolder",
    "create_holder",
    # Textual binding
    "HolderHandle",
    "HolderProvider",
    "use_holder",
]
