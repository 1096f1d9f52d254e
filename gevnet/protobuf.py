"""Length-prefixed, typed message framing for protobuf payloads.

Wire format: a big-endian uint32 length of what follows, a big-endian
uint16 type-name length, the type name, then the payload.
"""

from __future__ import annotations

import struct
from typing import Any, Optional

from gevnet.protocol import Protocol, RingBuffer

_HEADER = struct.Struct(">IH")


def pack_message(msg_type: str, data: bytes) -> bytes:
    """Frame ``data`` tagged with ``msg_type``."""
    type_bytes = msg_type.encode()
    length = len(data) + len(type_bytes) + 2
    return _HEADER.pack(length, len(type_bytes)) + type_bytes + bytes(data)


class ProtobufProtocol(Protocol):
    """Unpacks frames made by :func:`pack_message`; the context is the type name."""

    def unpacket(self, conn: Any, buffer: RingBuffer) -> tuple[Optional[str], Optional[bytes]]:
        if len(buffer) <= 6:
            return None, None
        length = buffer.peek_uint32()
        if len(buffer) < length + 4:
            return None, None
        buffer.retrieve(4)
        type_len = buffer.peek_uint16()
        buffer.retrieve(2)
        data_len = length - 2 - type_len
        if data_len < 0:
            raise ValueError("malformed message: type longer than frame")
        msg_type = buffer.read(type_len).decode()
        return msg_type, buffer.read(data_len)

    def packet(self, conn: Any, data: Any) -> bytes:
        return bytes(data)