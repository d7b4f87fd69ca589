import asyncio
import json

import pytest
from websockets.asyncio.server import serve

from app.forward import ForwardConfig, WSForwarder
from udpstream import ReceiveError, UDPProvider

from .conftest import eventually


async def _next(frames):
    return await asyncio.wait_for(frames.get(), 2.0)


@pytest.fixture
async def sink():
    """Local WebSocket server collecting every frame the forwarder sends."""
    frames: asyncio.Queue = asyncio.Queue()

    async def handler(ws):
        async for txt in ws:
            await frames.put(json.loads(txt))

    server = await serve(handler, "127.0.0.1", 0)
    port = list(server.sockets)[0].getsockname()[1]
    yield f"ws://127.0.0.1:{port}", frames
    server.close()
    await server.wait_closed()


@pytest.fixture
async def forwarder(sink):
    uri, _ = sink
    udp = UDPProvider(0, host="127.0.0.1")
    fwd = WSForwarder(udp, ForwardConfig(uri=uri))
    await fwd.start()
    yield fwd
    udp.dispose()
    await udp.wait_closed()
    await fwd.close()


async def test_forwards_messages_then_completion(forwarder, sink, sender):
    _, frames = sink
    port = forwarder.provider.port
    assert await _next(frames) == {"type": "hello", "udp_port": port}

    sender(port, "grüße".encode("utf-8"))
    assert await _next(frames) == {"type": "message", "text": "grüße"}

    sender(port, b"\xff")
    assert await _next(frames) == {"type": "message", "text": "�"}

    forwarder.provider.dispose()
    assert await _next(frames) == {"type": "complete"}


async def test_forwards_receive_error(forwarder, sink):
    _, frames = sink
    await _next(frames)

    forwarder.provider._hub.publish_error(ReceiveError("link lost"))
    assert await _next(frames) == {"type": "error", "error": "link lost"}


async def test_run_returns_once_the_stream_ends(sink):
    uri, frames = sink
    udp = UDPProvider(0, host="127.0.0.1")
    fwd = WSForwarder(udp, ForwardConfig(uri=uri))
    runner = asyncio.create_task(fwd.run())
    await _next(frames)

    udp.dispose()
    await asyncio.wait_for(runner, 2.0)
    await udp.wait_closed()
    assert await _next(frames) == {"type": "complete"}


async def test_unreachable_peer_fails_start_without_subscribing(free_port):
    udp = UDPProvider(0, host="127.0.0.1")
    fwd = WSForwarder(udp, ForwardConfig(uri=f"ws://127.0.0.1:{free_port}", open_timeout=1.0))
    try:
        with pytest.raises(OSError):
            await fwd.start()
        assert udp._hub.subscriber_count == 0
    finally:
        udp.dispose()
        await udp.wait_closed()


async def test_peer_going_away_stops_forwarding(sink, sender):
    uri, frames = sink
    udp = UDPProvider(0, host="127.0.0.1")
    fwd = WSForwarder(udp, ForwardConfig(uri=uri))
    await fwd.start()
    await _next(frames)
    try:
        await fwd._ws.close()
        sender(udp.port, b"after close")
        await eventually(lambda: fwd._pump_task.done())
        assert udp._hub.subscriber_count == 0
    finally:
        udp.dispose()
        await udp.wait_closed()
        await fwd.close()
