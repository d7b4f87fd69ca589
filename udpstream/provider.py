from __future__ import annotations

"""UDP listener exposing received datagrams as a push stream."""

import asyncio
import codecs
import logging
import weakref
from typing import Optional

from .hub import BroadcastHub, Subscription
from .net.endpoint import UDPEndpoint
from .net.receiver import receive_loop
from .types import (
    DEFAULT_BUFSIZE,
    DEFAULT_ERRORS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    ListenerConfig,
    OnCompleted,
    OnError,
    OnNext,
    StreamState,
)


logger = logging.getLogger(__name__)

_NEXT, _ERROR, _DONE = "next", "error", "done"


def _teardown(
    endpoint: UDPEndpoint,
    hub: BroadcastHub,
    task: asyncio.Task,
    loop: asyncio.AbstractEventLoop,
) -> None:
    # Runs at most once per provider (weakref.finalize guarantees it), either
    # from dispose() or when the provider is garbage collected. The endpoint
    # is marked closed before the pending receive is cancelled.
    endpoint.close()
    if not task.done():
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            task.cancel()
        elif not loop.is_closed():
            loop.call_soon_threadsafe(task.cancel)
    hub.complete()
    logger.info("UDP provider on port %d disposed", endpoint.port)


class MessageStream:
    """Async iterator over a hub.

    The subscription is taken on the first iteration step, or on entry
    when used as ``async with``; an untouched stream holds nothing.
    """

    def __init__(self, hub: BroadcastHub):
        self._hub = hub
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._done = False
        self._sub: Optional[Subscription] = None

    @property
    def subscribed(self) -> bool:
        return self._sub is not None and self._sub.active

    def open(self) -> None:
        """Subscribe now instead of on the first iteration step."""
        if self._sub is None and not self._done:
            self._sub = self._hub.subscribe(
                lambda text: self._put(_NEXT, text),
                lambda err: self._put(_ERROR, err),
                lambda: self._put(_DONE),
            )

    def _put(self, kind: str, value=None) -> None:
        # callbacks may fire on another thread when dispose() is called there
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (kind, value))

    def __aiter__(self) -> "MessageStream":
        return self

    async def __anext__(self) -> str:
        if self._done:
            raise StopAsyncIteration
        self.open()
        kind, value = await self._queue.get()
        if kind == _NEXT:
            return value
        self.close()
        if kind == _ERROR:
            raise value
        raise StopAsyncIteration

    def close(self) -> None:
        self._done = True
        if self._sub is not None:
            self._sub.dispose()

    async def aclose(self) -> None:
        self.close()

    async def __aenter__(self) -> "MessageStream":
        self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        self.close()


class UDPProvider:
    """Listen on a UDP port and broadcast each datagram as text.

    Construct it inside a running event loop. The socket is bound right
    away (``BindError`` if that fails) and the receive loop starts as a
    task on that loop::

        async with UDPProvider(5000) as udp:
            udp.subscribe(print, on_error=log_error, on_completed=done)
            ...

    ``dispose()`` stops receiving, closes the socket and completes the
    stream. It is idempotent and may be called from any thread.
    """

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        *,
        host: str = DEFAULT_HOST,
        bufsize: int = DEFAULT_BUFSIZE,
        errors: str = DEFAULT_ERRORS,
    ):
        codecs.lookup_error(errors)
        self._loop = asyncio.get_running_loop()
        self._hub = BroadcastHub()
        self._endpoint = UDPEndpoint(host, port, bufsize)
        self._task = self._loop.create_task(receive_loop(self._endpoint, self._hub, errors))
        self._finalizer = weakref.finalize(
            self, _teardown, self._endpoint, self._hub, self._task, self._loop
        )

    @classmethod
    def from_config(cls, cfg: ListenerConfig) -> "UDPProvider":
        return cls(cfg.port, host=cfg.host, bufsize=cfg.bufsize, errors=cfg.errors)

    @property
    def host(self) -> str:
        return self._endpoint.host

    @property
    def port(self) -> int:
        return self._endpoint.port

    @property
    def state(self) -> StreamState:
        return self._hub.state

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def subscribe(
        self,
        on_next: OnNext,
        on_error: Optional[OnError] = None,
        on_completed: Optional[OnCompleted] = None,
    ) -> Subscription:
        return self._hub.subscribe(on_next, on_error, on_completed)

    def messages(self) -> "MessageStream":
        """Async iterator over the messages published on this provider.

        Subscribes on first use (see MessageStream). Iteration stops when
        the stream completes and raises the ReceiveError if it fails.
        """
        return MessageStream(self._hub)

    def dispose(self) -> None:
        self._finalizer()

    close = dispose

    async def wait_closed(self) -> None:
        """Wait until the receive loop has exited."""
        await asyncio.wait({self._task})

    def __enter__(self) -> "UDPProvider":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()

    async def __aenter__(self) -> "UDPProvider":
        return self

    async def __aexit__(self, *exc) -> None:
        self.dispose()
        await self.wait_closed()

    def __repr__(self) -> str:
        return f"<UDPProvider {self.host}:{self.port} {self.state.value}>"
