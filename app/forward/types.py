from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ForwardEvent(TypedDict, total=False):
    type: str  # hello | message | error | complete
    text: str
    error: str
    udp_port: int


@dataclass
class ForwardConfig:
    uri: str
    open_timeout: float = 5.0
    max_size: int = 1024 * 1024
