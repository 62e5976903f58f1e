"""Observable container holding the current session snapshot."""

import asyncio
from collections.abc import Callable

from weather_finder.logging_config import logger
from weather_finder.models.session import SessionState

StateListener = Callable[[SessionState], None]


class SessionStateContainer:
    """Single source of truth for one session.

    Writers replace the whole snapshot; listeners are called synchronously,
    in subscription order, after every replacement. All access happens on the
    event loop thread, so a read followed by ``replace`` with no ``await`` in
    between cannot interleave with another writer.
    """

    def __init__(self, initial: SessionState | None = None):
        self._state = initial or SessionState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def replace(self, next_state: SessionState):
        """Install ``next_state`` and notify listeners."""
        self._state = next_state
        for listener in list(self._listeners):
            try:
                listener(next_state)
            except Exception:
                logger.exception("STATE_LISTENER_FAILED", listener=repr(listener))

    def update(self, **changes) -> SessionState:
        """Replace the snapshot with a copy carrying ``changes``.

        Returns:
            The new snapshot.
        """
        next_state = self._state.model_copy(update=changes)
        self.replace(next_state)
        return next_state

    def subscribe(self, listener: StateListener) -> StateListener:
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: StateListener):
        self._listeners = [cb for cb in self._listeners if cb is not listener]

    async def wait_for(
        self, predicate: Callable[[SessionState], bool], timeout: float | None = None
    ) -> SessionState:
        """Wait until a snapshot satisfies ``predicate``.

        Args:
            predicate: Condition checked against the current and every new
                snapshot.
            timeout: Seconds to wait before raising TimeoutError.

        Returns:
            The first matching snapshot.
        """
        if predicate(self._state):
            return self._state
        future: asyncio.Future[SessionState] = (
            asyncio.get_running_loop().create_future()
        )

        def _check(state: SessionState):
            if not future.done() and predicate(state):
                future.set_result(state)

        self.subscribe(_check)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            self.unsubscribe(_check)
