"""Building data frames and answering control frames."""

from __future__ import annotations

from gevnet.websocket.errors import (
    ERR_PROTOCOL_INVALID_UTF8,
    ERR_PROTOCOL_STATUS_CODE_APPLICATION_LEVEL,
    ERR_PROTOCOL_STATUS_CODE_NO_MEANING,
    ERR_PROTOCOL_STATUS_CODE_NOT_IN_USE,
    ERR_PROTOCOL_STATUS_CODE_UNKNOWN,
    ProtocolError,
)
from gevnet.websocket.frame import (
    Header,
    MessageType,
    OpCode,
    StatusCode,
    frame_to_bytes,
    new_binary_frame,
    new_close_frame,
    new_close_frame_body,
    new_ping_frame,
    new_pong_frame,
    new_text_frame,
)
from gevnet.websocket.read import parse_close_frame_data
from gevnet.websocket.write import write_header


def pack_data(message_type: MessageType, data: bytes) -> bytes:
    """Encode ``data`` as a single text or binary frame."""
    if message_type == MessageType.BINARY:
        frame = new_binary_frame(data)
    elif message_type == MessageType.TEXT:
        frame = new_text_frame(data)
    else:
        raise ValueError(f"unknown message type {message_type!r}")
    return frame_to_bytes(frame)


def pack_close_data(reason: str) -> bytes:
    """Encode a normal-closure close frame carrying ``reason``."""
    body = new_close_frame_body(StatusCode.NORMAL_CLOSURE, reason)
    return frame_to_bytes(new_close_frame(body))


def handle_close(header: Header, payload: bytes) -> bytes:
    """Return the close frame that answers a received one."""
    if header.length == 0:
        return write_header(Header(fin=True, op_code=OpCode.CLOSE))

    code, reason = parse_close_frame_data(payload)
    try:
        check_close_frame_data(code, reason)
    except ProtocolError as err:
        body = new_close_frame_body(StatusCode.PROTOCOL_ERROR, str(err))
        return frame_to_bytes(new_close_frame(body))
    return frame_to_bytes(new_close_frame(new_close_frame_body(code, reason)))


def handle_ping(payload: bytes) -> bytes:
    """Answer a ping with a pong carrying the same payload."""
    return frame_to_bytes(new_pong_frame(payload))


def handle_pong(payload: bytes) -> bytes:
    """Answer a pong with a ping carrying the same payload."""
    return frame_to_bytes(new_ping_frame(payload))


def check_close_frame_data(code: int, reason: str) -> None:
    """Raise ProtocolError unless code and reason form valid close information."""
    status = StatusCode(code)
    if status.is_not_used():
        raise ERR_PROTOCOL_STATUS_CODE_NOT_IN_USE
    if status.is_protocol_reserved():
        raise ERR_PROTOCOL_STATUS_CODE_APPLICATION_LEVEL
    if status == StatusCode.NO_MEANING_YET:
        raise ERR_PROTOCOL_STATUS_CODE_NO_MEANING
    if status.is_protocol_spec() and not status.is_protocol_defined():
        raise ERR_PROTOCOL_STATUS_CODE_UNKNOWN
    try:
        reason.encode("utf-8")
    except UnicodeEncodeError:
        raise ERR_PROTOCOL_INVALID_UTF8 from None