"""
Feed Example - Demonstrates a StateHolder with optimistic updates.

Posts load from a fake repository that fails now and then. Likes are
applied immediately and rolled back when the repository refuses them;
failures show up as notifications through @on_effect.
"""

import asyncio
import random

from pydantic import BaseModel, ConfigDict
from textual.app import App, ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.widget import Widget
from textual.widgets import Button, Footer, Header, Static

from textual_mvi import (
    Failure,
    HolderProvider,
    Outcome,
    StateChanged,
    StateHolder,
    Success,
    UiEffect,
    UiIntent,
    UiState,
    on_effect,
    reducer,
    run_catching,
    use_holder,
)


# --- Models ---


class Post(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    liked: bool = False
    like_count: int = 0


# --- States ---


class FeedLoading(UiState, BaseModel):
    model_config = ConfigDict(frozen=True)


class FeedSuccess(UiState, BaseModel):
    model_config = ConfigDict(frozen=True)

    posts: list[Post]
    is_refreshing: bool = False


class FeedError(UiState, BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


FeedState = FeedLoading | FeedSuccess | FeedError


# --- Intents ---


class Load(UiIntent, BaseModel):
    """Load the feed from scratch."""


class Refresh(UiIntent, BaseModel):
    """Reload while keeping the current posts on screen."""


class Like(UiIntent, BaseModel):
    """Toggle the like on a post."""

    post_id: str


# --- Effects ---


class ShowError(UiEffect, BaseModel):
    message: str


# --- Reducer ---


@reducer
def feed_reducer(state: FeedState, intent: UiIntent) -> FeedState:
    """Process intents and return new state."""
    match state, intent:
        case _, Load():
            return FeedLoading()

        case FeedSuccess(), Refresh():
            return state.model_copy(update={"is_refreshing": True})

        case FeedSuccess(), Like(post_id=post_id):
            posts = [
                post.model_copy(
                    update={
                        "liked": not post.liked,
                        "like_count": post.like_count + (-1 if post.liked else 1),
                    }
                )
                if post.id == post_id
                else post
                for post in state.posts
            ]
            return state.model_copy(update={"posts": posts})

    return state


# --- Business layer ---


class FlakyRepository:
    """Pretends to be a network API."""

    def __init__(self, failure_rate: float = 0.3) -> None:
        self.failure_rate = failure_rate
        self.posts = [
            Post(id=str(i), title=f"Post #{i}", like_count=random.randint(0, 50))
            for i in range(1, 6)
        ]

    async def _roundtrip(self) -> None:
        await asyncio.sleep(0.5)
        if random.random() < self.failure_rate:
            raise ConnectionError("The server did not answer")

    async def fetch_posts(self) -> list[Post]:
        await self._roundtrip()
        return list(self.posts)

    async def like_post(self, post_id: str) -> None:
        await self._roundtrip()


# --- Holder ---


class FeedHolder(StateHolder[FeedState, UiIntent, ShowError]):
    def __init__(self, repository: FlakyRepository) -> None:
        super().__init__(FeedLoading())
        self.repository = repository

    def on_intent(self, intent: UiIntent) -> None:
        match intent:
            case Load():
                self.reduce(feed_reducer, intent)
                self.launch(self._load())

            case Refresh() if isinstance(self.state, FeedSuccess):
                self.reduce(feed_reducer, intent)
                self.launch(self._refresh())

            case Like(post_id=post_id) if isinstance(self.state, FeedSuccess):
                previous = next(
                    (post for post in self.state.posts if post.id == post_id), None
                )
                if previous is not None:
                    self.reduce(feed_reducer, intent)
                    self.launch(self._like(previous))

    async def _load(self) -> None:
        match await run_catching(self.repository.fetch_posts()):
            case Success(posts):
                self.set_state(FeedSuccess(posts=posts))
            case Failure() as failure:
                self.set_state(FeedError(message=failure.message))

    async def _refresh(self) -> None:
        match await run_catching(self.repository.fetch_posts()):
            case Success(posts):
                self.set_state(FeedSuccess(posts=posts))
            case Failure() as failure:
                self.update_state(
                    lambda state: state.model_copy(update={"is_refreshing": False})
                )
                await self.emit_effect(ShowError(message=failure.message))

    async def _like(self, previous: Post) -> None:
        result: Outcome[None] = await run_catching(self.repository.like_post(previous.id))
        if result.ok:
            return

        def rollback(state: FeedState) -> FeedState:
            if not isinstance(state, FeedSuccess):
                return state
            posts = [previous if post.id == previous.id else post for post in state.posts]
            return state.model_copy(update={"posts": posts})

        self.update_state(rollback)
        await self.emit_effect(ShowError(message=f"Could not like {previous.title}"))


# --- UI ---


class FeedView(Widget):
    DEFAULT_CSS = """
    FeedView {
        height: 1fr;
    }

    #status {
        height: 3;
        content-align: center middle;
        background: $primary;
    }

    .post {
        height: 3;
        margin: 0 1;
    }

    .post Static {
        width: 1fr;
        content-align: left middle;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("", id="status")
        yield VerticalScroll(id="posts")

    def on_mount(self) -> None:
        self.feed = use_holder(self, FeedHolder)
        self.feed.dispatch(Load())
        self.call_later(self._render_feed)

    def on_state_changed(self, event: StateChanged[FeedState]) -> None:
        self.call_later(self._render_feed)

    @on_effect(ShowError)
    def show_error(self, effect: ShowError) -> None:
        self.notify(effect.message, severity="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.name:
            self.feed.dispatch(Like(post_id=event.button.name))

    async def _render_feed(self) -> None:
        state = self.feed.value
        status = self.query_one("#status", Static)
        posts = self.query_one("#posts", VerticalScroll)
        await posts.remove_children()

        match state:
            case FeedLoading():
                status.update("Loading...")
            case FeedError(message=message):
                status.update(f"Error: {message} (press l to retry)")
            case FeedSuccess(posts=items, is_refreshing=refreshing):
                status.update("Refreshing..." if refreshing else f"{len(items)} posts")
                await posts.mount_all(
                    Horizontal(
                        Static(f"{post.title}  ♥ {post.like_count}"),
                        Button(
                            "Unlike" if post.liked else "Like",
                            name=post.id,
                            variant="primary" if post.liked else "default",
                        ),
                        classes="post",
                    )
                    for post in items
                )


class FeedApp(App):
    """Feed with optimistic likes."""

    BINDINGS = [
        ("l", "load", "Load"),
        ("r", "refresh", "Refresh"),
        ("q", "quit", "Quit"),
    ]

    def compose(self) -> ComposeResult:
        yield Header()
        yield HolderProvider(FeedHolder(FlakyRepository()), FeedView())
        yield Footer()

    def action_load(self) -> None:
        self.query_one(HolderProvider).dispatch(Load())

    def action_refresh(self) -> None:
        self.query_one(HolderProvider).dispatch(Refresh())


if __name__ == "__main__":
    FeedApp().run()
