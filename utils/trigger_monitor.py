#!/usr/bin/env python3
"""Listen for show triggers on a UDP port and print each decoded message."""

from __future__ import annotations

import argparse
import json
import socket
import sys
import textwrap
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from show_engine.osc_codec import OscDecodeError, OscMessage, decode_message  # noqa: E402
from show_engine.trigger_transport import DEFAULT_TRIGGER_HOST, DEFAULT_TRIGGER_PORT  # noqa: E402

MAX_DATAGRAM = 65535


def _pretty_payload(raw: str) -> str:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    return json.dumps(value, indent=2, ensure_ascii=False)


def format_message(message: OscMessage, sender: Optional[tuple] = None) -> str:
    """Render one message: a header line, then any payload arguments indented below it."""

    stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    origin = f" from {sender[0]}:{sender[1]}" if sender else ""
    header = f"{stamp} {message.address}"
    if message.args:
        header += f" {message.args[0]!r}"
    lines = [header + origin]
    for arg in message.args[1:]:
        lines.append(textwrap.indent(_pretty_payload(arg), "    "))
    return "\n".join(lines)


def monitor(sock: socket.socket, count: Optional[int] = None) -> int:
    """Print decoded triggers until ``count`` valid messages arrive; return how many were shown."""

    shown = 0
    while count is None or shown < count:
        data, sender = sock.recvfrom(MAX_DATAGRAM)
        try:
            message = decode_message(data)
        except OscDecodeError as exc:
            print(f"ignored {len(data)} byte datagram from {sender[0]}:{sender[1]}: {exc}", file=sys.stderr)
            continue
        print(format_message(message, sender), flush=True)
        shown += 1
    return shown


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Print show triggers received over UDP.")
    parser.add_argument("--host", default=DEFAULT_TRIGGER_HOST, help="Address to bind")
    parser.add_argument("--port", type=int, default=DEFAULT_TRIGGER_PORT, help="UDP port to bind")
    parser.add_argument("--count", type=int, help="Exit after this many valid messages")
    args = parser.parse_args(argv)

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind((args.host, args.port))
    except OSError as exc:
        sock.close()
        print(f"Unable to bind {args.host}:{args.port}: {exc}", file=sys.stderr)
        return 1
    print(f"Listening for triggers on {args.host}:{args.port} (Ctrl+C to stop)", file=sys.stderr)
    try:
        monitor(sock, args.count)
    except KeyboardInterrupt:
        pass
    finally:
        sock.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
