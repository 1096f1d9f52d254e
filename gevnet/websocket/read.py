"""Decoding of WebSocket frame headers and close payloads."""

from __future__ import annotations

import struct

from gevnet.protocol import RingBuffer
from gevnet.websocket.frame import Header, OpCode, StatusCode
from gevnet.websocket.write import (
    BIT0,
    FrameHeaderError,
    HeaderLengthMSBError,
    HeaderLengthUnexpectedError,
)

__all__ = [
    "HeaderLengthMSBError",
    "HeaderLengthUnexpectedError",
    "HeaderNotReadyError",
    "parse_close_frame_data",
    "virtual_read_header",
]


class HeaderNotReadyError(FrameHeaderError):
    """Not enough bytes are buffered to read a frame header."""

    def __init__(self) -> None:
        super().__init__("header error: not enough")


def virtual_read_header(buffer: RingBuffer) -> Header:
    """Read a frame header with virtual reads, leaving the payload unread.

    On success the bytes read stay pending until the caller flushes or
    reverts them; on error the virtual reads are reverted.
    """
    if len(buffer) < 6:
        raise HeaderNotReadyError()

    first, second = buffer.virtual_read(2)
    header = Header(
        fin=first & BIT0 != 0,
        rsv=(first & 0x70) >> 4,
        op_code=OpCode(first & 0x0F),
    )

    extra = 0
    if second & BIT0:
        header.masked = True
        extra += 4

    length = second & 0x7F
    if length < 126:
        header.length = length
    elif length == 126:
        extra += 2
    else:
        extra += 8

    if extra == 0:
        return header

    rest = buffer.virtual_read(extra)
    if len(rest) < extra:
        buffer.virtual_revert()
        raise HeaderNotReadyError()

    if length == 126:
        (header.length,) = struct.unpack(">H", rest[:2])
        rest = rest[2:]
    elif length == 127:
        if rest[0] & 0x80:
            buffer.virtual_revert()
            raise HeaderLengthMSBError()
        (header.length,) = struct.unpack(">Q", rest[:8])
        rest = rest[8:]

    if header.masked:
        header.mask = bytes(rest[:4])
    return header


def parse_close_frame_data(payload: bytes) -> tuple[StatusCode, str]:
    """Return the close code and reason; an empty code and reason if none is given.

    Invalid UTF-8 in the reason is kept as surrogate escapes so it can be
    detected and re-encoded unchanged.
    """
    if len(payload) < 2:
        return StatusCode(0), ""
    (code,) = struct.unpack(">H", payload[:2])
    reason = bytes(payload[2:]).decode("utf-8", errors="surrogateescape")
    return StatusCode(code), reason