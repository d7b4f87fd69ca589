from __future__ import annotations

"""Publish point fanning the decoded stream out to subscribers."""

import logging
import threading
from typing import List, Optional

from .types import OnCompleted, OnError, OnNext, StreamState


logger = logging.getLogger(__name__)


class Subscription:
    """Callbacks registered on a BroadcastHub.

    ``dispose()`` detaches them; it is safe to call more than once and from
    inside a callback.
    """

    def __init__(
        self,
        hub: "BroadcastHub",
        on_next: OnNext,
        on_error: Optional[OnError] = None,
        on_completed: Optional[OnCompleted] = None,
    ):
        self._hub = hub
        self.on_next = on_next
        self.on_error = on_error
        self.on_completed = on_completed
        self.active = True

    def dispose(self) -> None:
        if self.active:
            self.active = False
            self._hub._detach(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()


class BroadcastHub:
    """Terminal-state aware broadcaster.

    Every message goes to each current subscriber in publish order. The
    stream ends with exactly one of ``publish_error`` / ``complete``; the
    first one wins and everything after it is ignored. State changes and
    deliveries run under one re-entrant lock, so the receive loop and a
    shutdown coming from another thread never interleave.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._subs: List[Subscription] = []
        self._state = StreamState.ACTIVE
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def subscribe(
        self,
        on_next: OnNext,
        on_error: Optional[OnError] = None,
        on_completed: Optional[OnCompleted] = None,
    ) -> Subscription:
        sub = Subscription(self, on_next, on_error, on_completed)
        with self._lock:
            if not self._state.terminal:
                self._subs.append(sub)
                return sub
            # late subscriber: replay the terminal event only
            sub.active = False
            if self._state is StreamState.ERRORED:
                self._call(sub, sub.on_error, self._error)
            else:
                self._call(sub, sub.on_completed)
        return sub

    def publish(self, message: str) -> None:
        with self._lock:
            for sub in list(self._subs):
                if self._state.terminal:
                    break
                if sub.active:
                    self._call(sub, sub.on_next, message)

    def publish_error(self, error: BaseException) -> bool:
        with self._lock:
            if self._state.terminal:
                return False
            self._state = StreamState.ERRORED
            self._error = error
            subs, self._subs = self._subs, []
            for sub in subs:
                if sub.active:
                    sub.active = False
                    self._call(sub, sub.on_error, error)
        return True

    def complete(self) -> bool:
        with self._lock:
            if self._state.terminal:
                return False
            self._state = StreamState.COMPLETED
            subs, self._subs = self._subs, []
            for sub in subs:
                if sub.active:
                    sub.active = False
                    self._call(sub, sub.on_completed)
        return True

    def _detach(self, sub: Subscription) -> None:
        with self._lock:
            try:
                self._subs.remove(sub)
            except ValueError:
                pass

    def _call(self, sub: Subscription, fn, *args) -> None:
        if fn is None:
            return
        try:
            fn(*args)
        except Exception:
            logger.exception("subscriber callback %r raised; detaching it", fn)
            sub.dispose()
