import pytest

from gevnet.protocol import RingBuffer
from gevnet.websocket.frame import Header, OpCode, StatusCode, new_close_frame_body
from gevnet.websocket.read import (
    HeaderLengthMSBError,
    HeaderNotReadyError,
    parse_close_frame_data,
    virtual_read_header,
)
from gevnet.websocket.write import write_header


@pytest.mark.parametrize("length", [6, 125, 126, 200, 70000])
@pytest.mark.parametrize("masked", [False, True])
def test_header_round_trip(length, masked):
    header = Header(fin=True, rsv=0x4, op_code=OpCode.BINARY, masked=masked,
                    mask=b"wxyz" if masked else b"\x00\x00\x00\x00", length=length)
    payload = bytes(length)
    buffer = RingBuffer(write_header(header) + payload)
    assert virtual_read_header(buffer) == header
    assert buffer.virtual_length() == length


def test_virtual_read_can_be_reverted():
    data = write_header(Header(fin=True, op_code=OpCode.TEXT, length=5)) + b"Hello"
    buffer = RingBuffer(data)
    virtual_read_header(buffer)
    buffer.virtual_revert()
    assert buffer.virtual_length() == len(data)
    assert buffer.peek_all() == data


def test_virtual_read_then_flush_leaves_payload():
    data = write_header(Header(fin=True, op_code=OpCode.TEXT, length=5)) + b"Hello"
    buffer = RingBuffer(data)
    virtual_read_header(buffer)
    buffer.virtual_flush()
    assert buffer.peek_all() == b"Hello"


def test_not_ready_when_short():
    with pytest.raises(HeaderNotReadyError):
        virtual_read_header(RingBuffer(b"\x81\x05Hel"))


def test_not_ready_when_extended_length_missing():
    header = write_header(Header(masked=True, mask=b"abcd", length=70000))
    buffer = RingBuffer(header[:7])
    with pytest.raises(HeaderNotReadyError):
        virtual_read_header(buffer)
    assert buffer.virtual_length() == 7


def test_msb_of_64_bit_length_must_be_zero():
    buffer = RingBuffer(b"\x82\x7f\x80" + bytes(7))
    with pytest.raises(HeaderLengthMSBError):
        virtual_read_header(buffer)


@pytest.mark.parametrize("payload", [b"", b"\x03"])
def test_parse_close_without_code(payload):
    assert parse_close_frame_data(payload) == (StatusCode(0), "")


def test_parse_close_code_only():
    code, reason = parse_close_frame_data(new_close_frame_body(StatusCode.GOING_AWAY, ""))
    assert code == StatusCode.GOING_AWAY
    assert reason == ""


def test_parse_close_invalid_utf8_round_trips():
    body = b"\x03\xe8\xff\xfe"
    code, reason = parse_close_frame_data(body)
    assert code == StatusCode.NORMAL_CLOSURE
    assert new_close_frame_body(code, reason) == body