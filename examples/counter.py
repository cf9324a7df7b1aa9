"""
Simple Counter Example - Demonstrates create_holder.

The smallest useful holder: a reducer for the state and an effect when
the count reaches a milestone.
"""

from dataclasses import dataclass, replace

from textual.app import App, ComposeResult
from textual.widgets import Button, Static

from textual_mvi import (
    HolderProvider,
    StateChanged,
    UiEffect,
    UiIntent,
    UiState,
    FunctionStateHolder,
    create_holder,
    on_effect,
    reducer,
    use_holder,
)


@dataclass(frozen=True)
class CounterState(UiState):
    count: int = 0


@dataclass(frozen=True)
class Increment(UiIntent):
    pass


@dataclass(frozen=True)
class Decrement(UiIntent):
    pass


@dataclass(frozen=True)
class Reset(UiIntent):
    pass


@dataclass(frozen=True)
class Milestone(UiEffect):
    count: int


@reducer
def counter_reducer(state: CounterState, intent: UiIntent) -> CounterState:
    match intent:
        case Increment():
            return replace(state, count=state.count + 1)
        case Decrement():
            return replace(state, count=state.count - 1)
        case Reset():
            return CounterState()
    return state


def handle(holder, intent: UiIntent) -> None:
    state = holder.reduce(counter_reducer, intent)
    if isinstance(intent, Increment) and state.count % 10 == 0:
        holder.send_effect(Milestone(state.count))


class CounterDisplay(Static):
    def on_mount(self) -> None:
        self.counter = use_holder(self, FunctionStateHolder)
        self.update("Count: 0")

    def on_state_changed(self, event: StateChanged[CounterState]) -> None:
        self.update(f"Count: {event.new_value.count}")

    @on_effect(Milestone)
    def celebrate(self, effect: Milestone) -> None:
        self.notify(f"Reached {effect.count}!")


class CounterApp(App):
    """A simple counter application using create_holder."""

    CSS = """
    Screen {
        align: center middle;
    }

    CounterDisplay {
        width: 100%;
        height: 3;
        text-align: center;
        text-style: bold;
        background: $primary;
        color: $text;
    }

    Button {
        margin: 1;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self.holder = create_holder(handle, CounterState(), name="counter")

    def compose(self) -> ComposeResult:
        yield HolderProvider(
            self.holder,
            CounterDisplay(),
            Button("Increment (+1)", id="inc"),
            Button("Decrement (-1)", id="dec"),
            Button("Reset", id="reset"),
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "inc":
                self.holder.dispatch(Increment())
            case "dec":
                self.holder.dispatch(Decrement())
            case "reset":
                self.holder.dispatch(Reset())


if __name__ == "__main__":
    CounterApp().run()
