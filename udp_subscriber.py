# =========================
# FILE: udp_subscriber.py
# =========================
import argparse
import asyncio
import logging
import signal
import sys
import threading

from websockets.exceptions import WebSocketException

from app.forward import ForwardConfig, WSForwarder
from udpstream import BindError, ListenerConfig, UDPProvider
from udpstream.types import DEFAULT_BUFSIZE, DEFAULT_ERRORS, DEFAULT_HOST, DEFAULT_PORT


def parse_args(argv=None) -> ListenerConfig:
    ap = argparse.ArgumentParser(description="Print UDP datagrams received on a port as text.")
    ap.add_argument("--host", default=DEFAULT_HOST)
    ap.add_argument("--port", type=int, default=DEFAULT_PORT)
    ap.add_argument("--bufsize", type=int, default=DEFAULT_BUFSIZE, help="Largest datagram accepted.")
    ap.add_argument("--errors", default=DEFAULT_ERRORS, help="Codec error handler for non UTF-8 bytes.")
    ap.add_argument("--forward", default=None, metavar="URI", help="Also push messages to this ws:// server.")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    return ListenerConfig(
        host=args.host,
        port=args.port,
        bufsize=args.bufsize,
        errors=args.errors,
        forward_uri=args.forward,
    )


def _wait_for_enter(loop: asyncio.AbstractEventLoop, stop: asyncio.Event):
    # daemon thread so a blocked readline never holds up interpreter exit
    def _read():
        sys.stdin.readline()
        if not loop.is_closed():
            loop.call_soon_threadsafe(stop.set)

    threading.Thread(target=_read, daemon=True).start()


async def run(cfg: ListenerConfig) -> int:
    loop = asyncio.get_running_loop()
    try:
        udp = UDPProvider.from_config(cfg)
    except (BindError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    forwarder = None
    with udp:
        udp.subscribe(
            lambda text: print(f"📨 {text}"),
            lambda err: print(f"[ERROR] {err}", file=sys.stderr),
            lambda: print("✅ Receive completed."),
        )
        if cfg.forward_uri:
            forwarder = WSForwarder(udp, ForwardConfig(uri=cfg.forward_uri))
            try:
                await forwarder.start()
            except (OSError, TimeoutError, WebSocketException) as e:
                print(f"[ERROR] cannot connect to {cfg.forward_uri}: {e}", file=sys.stderr)
                return 1
            print(f"[udp-subscriber] forwarding to {cfg.forward_uri}")

        stop = asyncio.Event()
        installed = []
        for s in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(s, stop.set)
                installed.append(s)
            except (NotImplementedError, RuntimeError):
                pass
        _wait_for_enter(loop, stop)

        print(f"📡 Listening for UDP datagrams on {udp.host}:{udp.port} ... press Enter to stop.")
        try:
            await stop.wait()
        finally:
            for s in installed:
                loop.remove_signal_handler(s)

    await udp.wait_closed()
    if forwarder is not None:
        await forwarder.close()
    return 0


def main(argv=None) -> int:
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
