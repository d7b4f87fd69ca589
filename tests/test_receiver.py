import asyncio

from udpstream import BroadcastHub, ReceiveError, ShutdownError, StreamState
from udpstream.net import receive_loop

from .conftest import Recorder


class ScriptedEndpoint:
    """Stand-in endpoint replaying a fixed list of datagrams and failures."""

    port = 9999

    def __init__(self, *steps):
        self.steps = list(steps)

    async def receive(self):
        await asyncio.sleep(0)
        step = self.steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step, ("127.0.0.1", 40000)


async def test_messages_are_published_then_error_ends_the_loop():
    hub = BroadcastHub()
    rec = Recorder()
    rec.attach(hub)
    err = ReceiveError("network down")
    ep = ScriptedEndpoint(b"one", b"two", err, b"never")

    await asyncio.wait_for(receive_loop(ep, hub), 2.0)

    assert rec.messages == ["one", "two"]
    assert rec.errors == [err]
    assert hub.state is StreamState.ERRORED
    assert ep.steps == [b"never"]


async def test_shutdown_ends_the_loop_without_an_event():
    hub = BroadcastHub()
    rec = Recorder()
    rec.attach(hub)
    ep = ScriptedEndpoint(b"one", ShutdownError("closed"))

    await asyncio.wait_for(receive_loop(ep, hub), 2.0)

    assert rec.messages == ["one"]
    assert rec.terminal_events == 0
    assert hub.state is StreamState.ACTIVE


async def test_invalid_utf8_is_not_fatal():
    hub = BroadcastHub()
    rec = Recorder()
    rec.attach(hub)
    ep = ScriptedEndpoint(b"\xff\xfe", b"after", ShutdownError("closed"))

    await receive_loop(ep, hub)

    assert rec.messages == ["��", "after"]


async def test_strict_handler_falls_back_to_replacement():
    hub = BroadcastHub()
    rec = Recorder()
    rec.attach(hub)
    ep = ScriptedEndpoint(b"a\xffb", ShutdownError("closed"))

    await receive_loop(ep, hub, errors="strict")

    assert rec.messages == ["a�b"]
