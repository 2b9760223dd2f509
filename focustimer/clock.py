"""Tick sources and deferred actions that drive the scheduler."""

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Any]
Action = Callable[[], Any]


class CountdownClock(Protocol):
    """Periodic tick source firing roughly once per second while subscribed."""

    def subscribe(self, callback: TickCallback) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class Dispatcher(Protocol):
    """Runs an action on a later turn, after the current handler returns."""

    def defer(self, action: Action) -> None:
        ...


class ManualClock:
    """Clock advanced explicitly by the caller.

    Used for headless runs and tests: ``advance(n)`` delivers ``n`` ticks to
    every live subscription. When a dispatcher with ``run_pending`` is
    attached, deferred work is drained after each tick, so one call behaves
    like ``n`` turns of an event loop.
    """

    def __init__(self, dispatcher: Any = None):
        self.dispatcher = dispatcher
        self._subscriptions: Dict[int, TickCallback] = {}
        self._next_handle = 1

    @property
    def active(self) -> int:
        """Number of live subscriptions."""
        return len(self._subscriptions)

    def subscribe(self, callback: TickCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._subscriptions[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._subscriptions.pop(handle, None)

    def advance(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            for handle, callback in list(self._subscriptions.items()):
                # A callback may cancel another subscription mid-round.
                if handle in self._subscriptions:
                    callback()
            run_pending = getattr(self.dispatcher, "run_pending", None)
            if run_pending is not None:
                run_pending()


class DeferredQueue:
    """FIFO of actions to run once the current turn is over."""

    def __init__(self):
        self._pending: Deque[Action] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def defer(self, action: Action) -> None:
        self._pending.append(action)

    def run_pending(self) -> int:
        """Run queued actions in order, including ones queued meanwhile.

        Returns:
            Number of actions run.
        """
        count = 0
        while self._pending:
            action = self._pending.popleft()
            action()
            count += 1
        if count:
            logger.debug("Ran %d deferred action(s)", count)
        return count

    def clear(self) -> None:
        self._pending.clear()
