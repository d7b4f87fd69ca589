from __future__ import annotations

"""Exceptions raised by the UDP stream."""

from typing import Optional


class UDPStreamError(Exception):
    """Base class for every error raised by udpstream."""


class BindError(UDPStreamError):
    """The listening socket could not be bound (port in use or invalid)."""

    def __init__(self, host: str, port: int, reason: Optional[str] = None):
        self.host = host
        self.port = port
        msg = f"cannot bind UDP socket to {host}:{port}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ReceiveError(UDPStreamError):
    """A receive on the listening socket failed; the stream is over."""


class ShutdownError(UDPStreamError):
    """A receive was interrupted because the endpoint was closed on purpose."""
