"""UDP transport for show trigger messages."""
from __future__ import annotations

import logging
import socket
from typing import Any, Callable, Optional

from show_engine.cue_model import Tile, TileKind
from show_engine.errors import TransportError
from show_engine.osc_codec import CUSTOM_ADDRESS, SLIDE_ADDRESS, TAKE_ADDRESS, encode_message

LOGGER = logging.getLogger("ShowControl.Engine.Triggers")

DEFAULT_TRIGGER_HOST = "127.0.0.1"
DEFAULT_TRIGGER_PORT = 18888

SocketFactory = Callable[[], Any]


def _udp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM)


class TriggerTransport:
    """Own one outbound datagram socket aimed at a fixed destination.

    Sends are fire-and-forget: failures surface as :class:`TransportError` and
    are never retried or queued. ``close`` is idempotent.
    """

    def __init__(
        self,
        host: str = DEFAULT_TRIGGER_HOST,
        port: int = DEFAULT_TRIGGER_PORT,
        *,
        socket_factory: Optional[SocketFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._host = host
        self._port = int(port)
        self._socket_factory = socket_factory or _udp_socket
        self._logger = logger or LOGGER
        self._sock: Optional[Any] = None
        self._closed = False

    @property
    def destination(self) -> tuple[str, int]:
        return self._host, self._port

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> None:
        if self._closed:
            raise TransportError("trigger transport is closed")
        if self._sock is not None:
            return
        try:
            self._sock = self._socket_factory()
        except OSError as exc:
            raise TransportError(f"unable to open trigger socket: {exc}") from exc
        self._logger.debug("Trigger socket opened for %s:%s", self._host, self._port)

    def send(self, data: bytes) -> None:
        self.open()
        try:
            self._sock.sendto(data, (self._host, self._port))
        except OSError as exc:
            raise TransportError(f"send to {self._host}:{self._port} failed: {exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as exc:
            self._logger.debug("Trigger socket close raised: %s", exc)
        self._logger.debug("Trigger socket closed")

    def __enter__(self) -> "TriggerTransport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class TriggerSender:
    """Build the console's trigger messages and push them through a transport."""

    def __init__(self, transport: TriggerTransport, logger: Optional[logging.Logger] = None) -> None:
        self._transport = transport
        self._logger = logger or LOGGER
        self.sent_count = 0
        self.failed_count = 0
        self.last_error: Optional[str] = None

    def send_slide(self, tile: Tile) -> bool:
        return self._send(SLIDE_ADDRESS, tile.title, tile.payload_json())

    def send_custom(self, tile: Tile) -> bool:
        return self._send(CUSTOM_ADDRESS, tile.title, tile.payload_json())

    def send_tile(self, tile: Tile) -> bool:
        if tile.kind is TileKind.CUSTOM:
            return self.send_custom(tile)
        return self.send_slide(tile)

    def send_take(self) -> bool:
        return self._send(TAKE_ADDRESS)

    def _send(self, address: str, *args: str) -> bool:
        label = f"{address} {args[0]}" if args else address
        try:
            self._transport.send(encode_message(address, *args))
        except TransportError as exc:
            self.failed_count += 1
            self.last_error = str(exc)
            self._logger.warning("Trigger %s failed: %s", label, exc)
            return False
        self.sent_count += 1
        self.last_error = None
        self._logger.info("Trigger sent: %s", label)
        return True
