"""OSC-style wire codec for show trigger messages.

Only the subset the console speaks is supported: an address pattern followed
by zero or more string arguments. Every block (address, type tag, argument) is
NUL-terminated and NUL-padded to a four byte boundary, so encoded messages are
always a multiple of four bytes long. Packing and parsing are delegated to
python-osc; this module pins the message shape to strings only.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from pythonosc import osc_message
from pythonosc.osc_message_builder import OscMessageBuilder

SLIDE_ADDRESS = "/slide"
CUSTOM_ADDRESS = "/custom"
TAKE_ADDRESS = "/take"

_ALIGNMENT = 4


class OscDecodeError(ValueError):
    """Raised when a datagram does not follow the supported wire layout."""


@dataclass(frozen=True)
class OscMessage:
    address: str
    args: Tuple[str, ...] = ()


def encode_message(address: str, *args: str) -> bytes:
    """Encode ``address`` and string ``args`` into one trigger datagram."""

    if not address:
        raise ValueError("OSC address must be a non-empty string")
    # Addresses travel as ASCII; anything else degrades to '?'.
    builder = OscMessageBuilder(address=address.encode("ascii", errors="replace").decode("ascii"))
    for arg in args:
        builder.add_arg(str(arg), OscMessageBuilder.ARG_TYPE_STRING)
    return builder.build().dgram


def decode_message(data: bytes) -> OscMessage:
    """Decode a datagram produced by :func:`encode_message`.

    Anything python-osc accepts but :func:`encode_message` would not have
    produced byte for byte (stray padding, trailing bytes, non-string
    arguments) is rejected.
    """

    if not data or len(data) % _ALIGNMENT:
        raise OscDecodeError(f"message length {len(data)} is not a positive multiple of {_ALIGNMENT}")
    raw = bytes(data)
    try:
        parsed = osc_message.OscMessage(raw)
    except osc_message.ParseError as exc:
        raise OscDecodeError(f"malformed message: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise OscDecodeError(f"message is not valid UTF-8: {exc}") from exc

    address = parsed.address
    if not address:
        raise OscDecodeError("address is empty")
    params = list(parsed.params)
    for index, value in enumerate(params):
        if not isinstance(value, str):
            raise OscDecodeError(f"argument {index} is {type(value).__name__}; only strings are supported")
    if encode_message(address, *params) != raw:
        raise OscDecodeError("message is not in canonical string-only form")
    return OscMessage(address=address, args=tuple(params))
