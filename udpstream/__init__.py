"""Receive UDP datagrams as a push-based stream of text messages."""

from .errors import BindError, ReceiveError, ShutdownError, UDPStreamError
from .hub import BroadcastHub, Subscription
from .provider import MessageStream, UDPProvider
from .types import DEFAULT_PORT, ListenerConfig, StreamState
from .utils import decode_payload

__all__ = [
    "BindError",
    "BroadcastHub",
    "DEFAULT_PORT",
    "ListenerConfig",
    "MessageStream",
    "ReceiveError",
    "ShutdownError",
    "StreamState",
    "Subscription",
    "UDPProvider",
    "UDPStreamError",
    "decode_payload",
]
