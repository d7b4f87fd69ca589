from __future__ import annotations

import logging

from ..errors import ReceiveError, ShutdownError
from ..hub import BroadcastHub
from ..types import DEFAULT_ERRORS
from ..utils import decode_payload
from .endpoint import UDPEndpoint


logger = logging.getLogger(__name__)


async def receive_loop(endpoint: UDPEndpoint, hub: BroadcastHub, errors: str = DEFAULT_ERRORS) -> None:
    """Pull datagrams from ``endpoint`` and publish them on ``hub``.

    Runs until the first failure. A genuine receive failure is forwarded to
    the hub as an error; a close of the endpoint ends the loop quietly and
    leaves completion to whoever closed it. Nothing is retried.
    """
    while True:
        try:
            data, addr = await endpoint.receive()
        except ShutdownError:
            logger.debug("receive loop on port %d stopped by shutdown", endpoint.port)
            return
        except ReceiveError as e:
            logger.error("receive loop on port %d failed: %s", endpoint.port, e)
            hub.publish_error(e)
            return

        logger.debug("datagram from %s:%d (%d bytes)", addr[0], addr[1], len(data))
        try:
            text = decode_payload(data, errors)
        except UnicodeDecodeError:
            # a strict handler was configured; payload content is never fatal
            logger.warning("undecodable datagram from %s:%d, using replacement", addr[0], addr[1])
            text = decode_payload(data, DEFAULT_ERRORS)
        hub.publish(text)
