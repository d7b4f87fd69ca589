import asyncio
import socket

import pytest


async def eventually(predicate, timeout: float = 2.0, interval: float = 0.01):
    """Poll ``predicate`` until it is truthy or fail after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met within %.1fs" % timeout)
        await asyncio.sleep(interval)


class Recorder:
    """Subscriber that records every event it sees."""

    def __init__(self):
        self.messages = []
        self.errors = []
        self.completions = 0

    def on_next(self, text):
        self.messages.append(text)

    def on_error(self, err):
        self.errors.append(err)

    def on_completed(self):
        self.completions += 1

    def attach(self, source):
        return source.subscribe(self.on_next, self.on_error, self.on_completed)

    @property
    def terminal_events(self):
        return len(self.errors) + self.completions


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def sender():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(port, payload: bytes):
        sock.sendto(payload, ("127.0.0.1", port))

    yield send
    sock.close()


@pytest.fixture
def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
