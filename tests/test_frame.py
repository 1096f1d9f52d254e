import pytest

from gevnet.websocket.frame import (
    MAX_CONTROL_FRAME_PAYLOAD_SIZE,
    STATUS_RANGE_PROTOCOL,
    Header,
    MessageType,
    OpCode,
    StatusCode,
    frame_to_bytes,
    new_binary_frame,
    new_close_frame,
    new_close_frame_body,
    new_frame,
    new_ping_frame,
    new_pong_frame,
    new_text_frame,
)
from gevnet.websocket.read import parse_close_frame_data


def test_message_types():
    assert MessageType(1) is MessageType.TEXT
    assert MessageType(2) is MessageType.BINARY
    with pytest.raises(ValueError):
        MessageType(3)


@pytest.mark.parametrize("op", [OpCode.CLOSE, OpCode.PING, OpCode.PONG])
def test_control_opcodes(op):
    assert op.is_control()
    assert not op.is_data()


@pytest.mark.parametrize("op", [OpCode.CONTINUATION, OpCode.TEXT, OpCode.BINARY])
def test_data_opcodes(op):
    assert op.is_data()
    assert not op.is_control()


@pytest.mark.parametrize("value", [0x3, 0x7, 0xB, 0xF])
def test_reserved_opcodes(value):
    assert OpCode(value).is_reserved()


@pytest.mark.parametrize("op", [OpCode.TEXT, OpCode.CLOSE, OpCode.PONG])
def test_known_opcodes_not_reserved(op):
    assert not op.is_reserved()


def test_status_code_ranges():
    assert StatusCode(500).is_not_used()
    assert StatusCode(3000).is_application_spec()
    assert StatusCode(4999).is_private_spec()
    assert StatusCode.NORMAL_CLOSURE.is_protocol_spec()
    assert StatusCode(2999).in_range(STATUS_RANGE_PROTOCOL)
    assert not StatusCode(3000).in_range(STATUS_RANGE_PROTOCOL)


def test_status_code_empty():
    assert StatusCode(0).empty()
    assert not StatusCode.NORMAL_CLOSURE.empty()


def test_status_code_defined_and_reserved():
    assert StatusCode.GOING_AWAY.is_protocol_defined()
    assert not StatusCode.NO_MEANING_YET.is_protocol_defined()
    assert StatusCode.NO_STATUS_RCVD.is_protocol_reserved()
    assert StatusCode.ABNORMAL_CLOSURE.is_protocol_reserved()
    assert StatusCode.TLS_HANDSHAKE.is_protocol_reserved()
    assert not StatusCode.NORMAL_CLOSURE.is_protocol_reserved()


def test_header_rsv_bits():
    assert Header(rsv=0x4).rsv1()
    assert not Header(rsv=0x4).rsv2()
    assert Header(rsv=0x2).rsv2()
    assert Header(rsv=0x1).rsv3()
    assert not Header(rsv=0x1).rsv1()


@pytest.mark.parametrize(
    "factory, op",
    [
        (new_text_frame, OpCode.TEXT),
        (new_binary_frame, OpCode.BINARY),
        (new_ping_frame, OpCode.PING),
        (new_pong_frame, OpCode.PONG),
        (new_close_frame, OpCode.CLOSE),
    ],
)
def test_frame_factories(factory, op):
    frame = factory(b"abc")
    assert frame.header.op_code == op
    assert frame.header.fin is True
    assert frame.header.length == 3
    assert frame.payload == b"abc"


def test_new_frame_not_final():
    frame = new_frame(OpCode.CONTINUATION, False, b"xy")
    assert frame.header.fin is False
    assert frame.header.length == 2


def test_frame_to_bytes_rfc_example():
    assert frame_to_bytes(new_text_frame(b"Hello")) == b"\x81\x05Hello"


def test_close_frame_body_round_trip():
    body = new_close_frame_body(StatusCode.NORMAL_CLOSURE, "bye")
    assert parse_close_frame_data(body) == (StatusCode.NORMAL_CLOSURE, "bye")


def test_close_frame_body_crops_reason():
    body = new_close_frame_body(StatusCode.GOING_AWAY, "x" * 300)
    assert len(body) == MAX_CONTROL_FRAME_PAYLOAD_SIZE
    code, reason = parse_close_frame_data(body)
    assert code == StatusCode.GOING_AWAY
    assert reason == "x" * (MAX_CONTROL_FRAME_PAYLOAD_SIZE - 2)