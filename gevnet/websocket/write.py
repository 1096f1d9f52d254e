"""Encoding of WebSocket frame headers."""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gevnet.websocket.frame import Header

MAX_HEADER_SIZE = 14

BIT0 = 0x80
BIT5 = 0x04
BIT6 = 0x02
BIT7 = 0x01

LEN7 = 125
LEN16 = 0xFFFF
LEN64 = (1 << 63) - 1


class FrameHeaderError(ValueError):
    """A frame header cannot be encoded or decoded."""


class HeaderLengthUnexpectedError(FrameHeaderError):
    def __init__(self) -> None:
        super().__init__("header error: unexpected payload length bits")


class HeaderLengthMSBError(FrameHeaderError):
    def __init__(self) -> None:
        super().__init__("header error: the most significant bit must be 0")


def write_header(header: "Header") -> bytes:
    """Return the wire representation of ``header``."""
    first = BIT0 if header.fin else 0
    first |= (header.rsv << 4) & 0xFF
    first |= int(header.op_code) & 0xFF

    length = header.length
    if length < 0:
        raise HeaderLengthUnexpectedError()
    if length <= LEN7:
        second = length
        extended = b""
    elif length <= LEN16:
        second = 126
        extended = struct.pack(">H", length)
    elif length <= LEN64:
        second = 127
        extended = struct.pack(">Q", length)
    else:
        raise HeaderLengthUnexpectedError()

    mask = b""
    if header.masked:
        second |= BIT0
        mask = bytes(header.mask[:4])

    return bytes((first, second)) + extended + mask