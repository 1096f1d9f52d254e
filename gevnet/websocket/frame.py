"""WebSocket frames, operation codes and close status codes."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar

from gevnet.websocket.write import BIT5, BIT6, BIT7, write_header

MAX_CONTROL_FRAME_PAYLOAD_SIZE = 125


class MessageType(IntEnum):
    """Kind of a WebSocket message."""

    TEXT = 1
    BINARY = 2


class OpCode(int):
    """A 4-bit frame operation code."""

    CONTINUATION: ClassVar["OpCode"]
    TEXT: ClassVar["OpCode"]
    BINARY: ClassVar["OpCode"]
    CLOSE: ClassVar["OpCode"]
    PING: ClassVar["OpCode"]
    PONG: ClassVar["OpCode"]

    def __repr__(self) -> str:
        return f"OpCode({int(self):#x})"

    def is_control(self) -> bool:
        return self & 0x8 != 0

    def is_data(self) -> bool:
        return self & 0x8 == 0

    def is_reserved(self) -> bool:
        return 0x3 <= self <= 0x7 or 0xB <= self <= 0xF


OpCode.CONTINUATION = OpCode(0x0)
OpCode.TEXT = OpCode(0x1)
OpCode.BINARY = OpCode(0x2)
OpCode.CLOSE = OpCode(0x8)
OpCode.PING = OpCode(0x9)
OpCode.PONG = OpCode(0xA)


@dataclass(frozen=True)
class StatusCodeRange:
    """An inclusive range of close status codes."""

    min: int
    max: int


STATUS_RANGE_NOT_IN_USE = StatusCodeRange(0, 999)
STATUS_RANGE_PROTOCOL = StatusCodeRange(1000, 2999)
STATUS_RANGE_APPLICATION = StatusCodeRange(3000, 3999)
STATUS_RANGE_PRIVATE = StatusCodeRange(4000, 4999)


class StatusCode(int):
    """The encoded reason for closing a WebSocket connection."""

    NORMAL_CLOSURE: ClassVar["StatusCode"]
    GOING_AWAY: ClassVar["StatusCode"]
    PROTOCOL_ERROR: ClassVar["StatusCode"]
    UNSUPPORTED_DATA: ClassVar["StatusCode"]
    NO_MEANING_YET: ClassVar["StatusCode"]
    NO_STATUS_RCVD: ClassVar["StatusCode"]
    ABNORMAL_CLOSURE: ClassVar["StatusCode"]
    INVALID_FRAME_PAYLOAD_DATA: ClassVar["StatusCode"]
    POLICY_VIOLATION: ClassVar["StatusCode"]
    MESSAGE_TOO_BIG: ClassVar["StatusCode"]
    MANDATORY_EXT: ClassVar["StatusCode"]
    INTERNAL_SERVER_ERROR: ClassVar["StatusCode"]
    TLS_HANDSHAKE: ClassVar["StatusCode"]

    def __repr__(self) -> str:
        return f"StatusCode({int(self)})"

    def in_range(self, code_range: StatusCodeRange) -> bool:
        return code_range.min <= self <= code_range.max

    def empty(self) -> bool:
        return self == 0

    def is_not_used(self) -> bool:
        return self.in_range(STATUS_RANGE_NOT_IN_USE)

    def is_application_spec(self) -> bool:
        return self.in_range(STATUS_RANGE_APPLICATION)

    def is_private_spec(self) -> bool:
        return self.in_range(STATUS_RANGE_PRIVATE)

    def is_protocol_spec(self) -> bool:
        return self.in_range(STATUS_RANGE_PROTOCOL)

    def is_protocol_defined(self) -> bool:
        return int(self) in _PROTOCOL_DEFINED

    def is_protocol_reserved(self) -> bool:
        """Codes that must never be sent in a close frame."""
        return int(self) in _PROTOCOL_RESERVED


StatusCode.NORMAL_CLOSURE = StatusCode(1000)
StatusCode.GOING_AWAY = StatusCode(1001)
StatusCode.PROTOCOL_ERROR = StatusCode(1002)
StatusCode.UNSUPPORTED_DATA = StatusCode(1003)
StatusCode.NO_MEANING_YET = StatusCode(1004)
StatusCode.NO_STATUS_RCVD = StatusCode(1005)
StatusCode.ABNORMAL_CLOSURE = StatusCode(1006)
StatusCode.INVALID_FRAME_PAYLOAD_DATA = StatusCode(1007)
StatusCode.POLICY_VIOLATION = StatusCode(1008)
StatusCode.MESSAGE_TOO_BIG = StatusCode(1009)
StatusCode.MANDATORY_EXT = StatusCode(1010)
StatusCode.INTERNAL_SERVER_ERROR = StatusCode(1011)
StatusCode.TLS_HANDSHAKE = StatusCode(1015)

_PROTOCOL_DEFINED = frozenset({
    1000, 1001, 1002, 1003, 1007, 1008, 1009, 1010, 1011, 1005, 1006, 1015,
})
_PROTOCOL_RESERVED = frozenset({1005, 1006, 1015})


@dataclass
class Header:
    """A WebSocket frame header."""

    fin: bool = False
    rsv: int = 0
    op_code: OpCode = OpCode.CONTINUATION
    masked: bool = False
    mask: bytes = b"\x00\x00\x00\x00"
    length: int = 0

    def rsv1(self) -> bool:
        return self.rsv & BIT5 != 0

    def rsv2(self) -> bool:
        return self.rsv & BIT6 != 0

    def rsv3(self) -> bool:
        return self.rsv & BIT7 != 0


@dataclass
class Frame:
    """A header and its payload."""

    header: Header = field(default_factory=Header)
    payload: bytes = b""


def new_frame(op: int, fin: bool, payload: bytes) -> Frame:
    return Frame(Header(fin=fin, op_code=OpCode(op), length=len(payload)), payload)


def new_text_frame(payload: bytes) -> Frame:
    return new_frame(OpCode.TEXT, True, payload)


def new_binary_frame(payload: bytes) -> Frame:
    return new_frame(OpCode.BINARY, True, payload)


def new_ping_frame(payload: bytes) -> Frame:
    return new_frame(OpCode.PING, True, payload)


def new_pong_frame(payload: bytes) -> Frame:
    return new_frame(OpCode.PONG, True, payload)


def new_close_frame(payload: bytes) -> Frame:
    return new_frame(OpCode.CLOSE, True, payload)


def new_close_frame_body(code: int, reason: str) -> bytes:
    """Encode a close code and reason, cropping the reason to fit a control frame."""
    encoded = reason.encode("utf-8", errors="surrogateescape")
    encoded = encoded[: MAX_CONTROL_FRAME_PAYLOAD_SIZE - 2]
    return struct.pack(">H", int(code) & 0xFFFF) + encoded


def frame_to_bytes(frame: Frame) -> bytes:
    """Return the frame's header followed by its payload."""
    return write_header(frame.header) + bytes(frame.payload)