"""Minimal state container with async middleware."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from undoable.core.types import Action
from undoable.history.actions import ActionTypes

logger = logging.getLogger(__name__)

RootReducer = Callable[[Any, Action], Any]
CallNext = Callable[[Action], Awaitable[Any]]


class StoreAPI(Protocol):
    """What a middleware may see of the store."""

    def get_state(self) -> Any: ...

    async def dispatch(self, action: Action) -> Any: ...


Middleware = Callable[[StoreAPI, CallNext, Action], Awaitable[Any]]


class Store:
    """Holds the root state and serializes it through a reducer.

    ``dispatch`` is a coroutine so middleware can await I/O.  The reducer
    step itself is synchronous.  Listener callbacks run after every reducer
    step; their exceptions are logged and never reach the dispatcher.
    """

    def __init__(
        self,
        reducer: RootReducer,
        middleware: tuple[Middleware, ...] | list[Middleware] = (),
    ) -> None:
        self._reducer = reducer
        self._middleware = tuple(middleware)
        self._listeners: list[Callable[[], Any]] = []
        self._state = reducer(None, {"type": ActionTypes.INIT})

    def get_state(self) -> Any:
        return self._state

    def subscribe(self, listener: Callable[[], Any]) -> Callable[[], None]:
        """Register *listener*.  Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def dispatch(self, action: Action) -> Any:
        return await self._dispatch_from(0, action)

    async def _dispatch_from(self, index: int, action: Action) -> Any:
        if index >= len(self._middleware):
            return self._reduce(action)
        middleware = self._middleware[index]

        async def call_next(next_action: Action) -> Any:
            return await self._dispatch_from(index + 1, next_action)

        return await middleware(self, call_next, action)

    def _reduce(self, action: Action) -> Action:
        self._state = self._reducer(self._state, action)
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Store listener error on '%s'", action.get("type"))
        return action


def combine_reducers(reducers: Mapping[str, RootReducer]) -> RootReducer:
    """Build a root reducer that delegates each key to its own reducer."""
    reducers = dict(reducers)

    def combined(state: Mapping[str, Any] | None, action: Action) -> dict[str, Any]:
        state = state or {}
        return {key: reducer(state.get(key), action) for key, reducer in reducers.items()}

    return combined
