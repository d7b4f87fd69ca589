from __future__ import annotations

from .types import DEFAULT_ERRORS


def decode_payload(data: bytes, errors: str = DEFAULT_ERRORS) -> str:
    """Decode one datagram as UTF-8 text.

    Malformed byte sequences go through the ``errors`` handler ("replace"
    by default, so they show up as U+FFFD) instead of raising.
    """
    return bytes(data).decode("utf-8", errors=errors)
