# ======================================
# FILE: udpstream/net/endpoint.py
# ======================================
"""Bound UDP socket used by the receive loop."""

from __future__ import annotations

import asyncio
import logging
import socket
import threading
from typing import Optional, Tuple

from ..errors import BindError, ReceiveError, ShutdownError
from ..types import DEFAULT_BUFSIZE, DEFAULT_HOST


logger = logging.getLogger(__name__)

Address = Tuple[str, int]

MAX_DATAGRAM = 65535


class UDPEndpoint:
    def __init__(self, host: str = DEFAULT_HOST, port: int = 0, bufsize: int = DEFAULT_BUFSIZE):
        bufsize = int(bufsize)
        if not 1 <= bufsize <= MAX_DATAGRAM:
            raise ValueError(f"bufsize must be between 1 and {MAX_DATAGRAM}, got {bufsize}")
        self.host = host
        self.bufsize = bufsize
        self._lock = threading.Lock()
        self._closed = False
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.bind((host, port))
        except (OSError, OverflowError, TypeError) as e:
            self._sock.close()
            self._closed = True
            raise BindError(host, port, str(e)) from e
        self._sock.setblocking(False)
        self.port: int = self._sock.getsockname()[1]
        logger.info("UDP endpoint bound on %s:%d", self.host, self.port)

    @property
    def closed(self) -> bool:
        return self._closed

    async def receive(self) -> Tuple[bytes, Address]:
        """Wait for the next datagram.

        Raises ShutdownError if the endpoint was closed while waiting (or
        before the call), ReceiveError for any other failure.
        """
        if self._closed:
            raise ShutdownError("endpoint is closed")
        loop = asyncio.get_running_loop()
        try:
            return await loop.sock_recvfrom(self._sock, self.bufsize)
        except asyncio.CancelledError:
            if self._closed:
                raise ShutdownError("receive cancelled by close") from None
            raise
        except Exception as e:
            if self._closed:
                raise ShutdownError("receive interrupted by close") from e
            raise ReceiveError(f"UDP receive on port {self.port} failed: {e}") from e

    def close(self) -> bool:
        """Close the socket. Returns True only for the call that closed it."""
        with self._lock:
            if self._closed:
                return False
            self._closed = True
        self._sock.close()
        logger.info("UDP endpoint on %s:%d closed", self.host, self.port)
        return True

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<UDPEndpoint {self.host}:{getattr(self, 'port', '?')} {state}>"
