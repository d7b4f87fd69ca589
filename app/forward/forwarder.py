from __future__ import annotations

"""Push the UDP stream to a WebSocket server over one outbound connection."""

import asyncio
import json
import logging
from typing import Dict, Optional

import websockets
from websockets.asyncio.client import ClientConnection, connect

from udpstream import MessageStream, ReceiveError, UDPProvider

from .types import ForwardConfig


logger = logging.getLogger(__name__)


class WSForwarder:
    def __init__(self, provider: UDPProvider, config: ForwardConfig):
        self.provider = provider
        self.config = config
        self._ws: Optional[ClientConnection] = None
        self._messages: Optional[MessageStream] = None
        self._pump_task: Optional[asyncio.Task] = None

    async def start(self):
        """Connect, greet the peer and start forwarding.

        Connection failures (OSError, TimeoutError, websockets errors) are
        raised to the caller; nothing is subscribed in that case.
        """
        self._ws = await connect(
            self.config.uri,
            open_timeout=self.config.open_timeout,
            ping_interval=None,
            max_size=self.config.max_size,
        )
        await self._send({"type": "hello", "udp_port": self.provider.port})
        self._messages = self.provider.messages()
        self._messages.open()
        self._pump_task = asyncio.create_task(self._pump(self._messages))
        logger.info("forwarding UDP port %d to %s", self.provider.port, self.config.uri)

    async def run(self):
        await self.start()
        try:
            await self._pump_task
        finally:
            await self.close()

    async def close(self, drain_timeout: float = 1.0):
        if self._pump_task is not None and not self._pump_task.done():
            if self.provider.closed or self.provider.state.terminal:
                # stream is over; let the final complete/error frame go out
                await asyncio.wait({self._pump_task}, timeout=drain_timeout)
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
        if self._messages is not None:
            self._messages.close()
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def _send(self, obj: Dict) -> bool:
        try:
            await self._ws.send(json.dumps(obj, separators=(",", ":"), ensure_ascii=False))
            return True
        except websockets.ConnectionClosed as e:
            logger.warning("forward connection to %s closed: %s", self.config.uri, e)
            return False

    async def _pump(self, messages: MessageStream):
        try:
            async for text in messages:
                if not await self._send({"type": "message", "text": text}):
                    return
        except ReceiveError as e:
            await self._send({"type": "error", "error": str(e)})
        else:
            await self._send({"type": "complete"})
        finally:
            messages.close()
