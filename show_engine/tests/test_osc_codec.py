from __future__ import annotations

import pytest

from show_engine import osc_codec
from show_engine.osc_codec import OscDecodeError, OscMessage, decode_message, encode_message


def test_take_message_is_address_and_empty_tag_block():
    data = encode_message(osc_codec.TAKE_ADDRESS)
    assert data == b"/take\x00\x00\x00,\x00\x00\x00"
    assert len(data) == 12


def test_slide_message_layout_and_padding():
    data = encode_message("/slide", "Intro", "{}")
    assert data == (
        b"/slide\x00\x00"
        b",ss\x00"
        b"Intro\x00\x00\x00"
        b"{}\x00\x00"
    )


@pytest.mark.parametrize(
    "text, block",
    [
        ("", b"\x00\x00\x00\x00"),
        ("abc", b"abc\x00"),
        ("abcd", b"abcd\x00\x00\x00\x00"),
        ("abcdefg", b"abcdefg\x00"),
    ],
)
def test_argument_blocks_are_nul_terminated_and_aligned(text, block):
    data = encode_message("/custom", text)
    assert len(data) % 4 == 0
    assert data.endswith(block)


def test_type_tag_has_one_s_per_argument():
    assert encode_message("/x", "a", "b", "c", "d")[4:12] == b",ssss\x00\x00\x00"


def test_argument_order_is_preserved():
    message = decode_message(encode_message("/slide", "second", "first"))
    assert message.args == ("second", "first")


def test_non_ascii_address_degrades_to_question_marks():
    assert encode_message("/slïde").startswith(b"/sl?de\x00\x00")


def test_arguments_are_utf8():
    data = encode_message("/slide", "Café ☃", '{"k":"ü"}')
    assert "Café ☃".encode("utf-8") in data
    assert decode_message(data).args == ("Café ☃", '{"k":"ü"}')


def test_decode_returns_address_and_args():
    message = decode_message(encode_message("/custom", "Lower third", '{"name":"Ada"}'))
    assert message == OscMessage(address="/custom", args=("Lower third", '{"name":"Ada"}'))


def test_decode_take_has_no_args():
    assert decode_message(encode_message("/take")) == OscMessage("/take")


def test_encode_rejects_empty_address():
    with pytest.raises(ValueError):
        encode_message("")


@pytest.mark.parametrize("data", [b"", b"/take", b"/take\x00\x00"])
def test_decode_rejects_unaligned_lengths(data):
    with pytest.raises(OscDecodeError) as excinfo:
        decode_message(data)
    assert "multiple of 4" in str(excinfo.value)


@pytest.mark.parametrize(
    "data",
    [
        b"/tak",
        b"/take\x00\x00\x00",
        b"/a\x00x,\x00\x00\x00",
        b"/a\x00\x00,i\x00\x00\x00\x00\x00\x01",
        b"/take\x00\x00\x00,\x00\x00\x00\x00\x00\x00\x00",
        b"/a\x00\x00,s\x00\x00",
        b"/a\x00\x00,s\x00\x00\xff\xfe\x00\x00",
        b"\x00\x00\x00\x00,\x00\x00\x00",
    ],
)
def test_decode_rejects_malformed_datagrams(data):
    with pytest.raises(OscDecodeError):
        decode_message(data)


def test_decode_error_is_value_error():
    assert issubclass(OscDecodeError, ValueError)
