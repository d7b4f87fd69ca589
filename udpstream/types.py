from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000
DEFAULT_BUFSIZE = 65535
DEFAULT_ERRORS = "replace"


class StreamState(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ERRORED = "errored"

    @property
    def terminal(self) -> bool:
        return self is not StreamState.ACTIVE


OnNext = Callable[[str], None]
OnError = Callable[[BaseException], None]
OnCompleted = Callable[[], None]


@dataclass
class ListenerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    bufsize: int = DEFAULT_BUFSIZE
    # codecs error handler used when a datagram is not valid UTF-8
    errors: str = DEFAULT_ERRORS
    # ws:// URI the stream is forwarded to, if any
    forward_uri: Optional[str] = None
