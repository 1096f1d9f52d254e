"""Byte buffer for incoming data and the protocol interface that frames it."""

from __future__ import annotations

import abc
from typing import Any


class RingBuffer:
    """FIFO byte buffer with a separate tentative ("virtual") read position.

    Virtual reads advance only the virtual position; ``virtual_flush``
    commits them and ``virtual_revert`` discards them. Ordinary reads reset
    the virtual position to the real one.
    """

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytearray(data)
        self._virtual = 0

    def __len__(self) -> int:
        return len(self._data)

    def write(self, data: bytes) -> int:
        self._data += data
        return len(data)

    def peek(self, n: int) -> bytes:
        return bytes(self._data[:n])

    def peek_all(self) -> bytes:
        return bytes(self._data)

    def peek_uint16(self) -> int:
        """Big-endian 16-bit value at the front, or 0 if too few bytes."""
        if len(self._data) < 2:
            return 0
        return int.from_bytes(self._data[:2], "big")

    def peek_uint32(self) -> int:
        """Big-endian 32-bit value at the front, or 0 if too few bytes."""
        if len(self._data) < 4:
            return 0
        return int.from_bytes(self._data[:4], "big")

    def read(self, n: int) -> bytes:
        chunk = bytes(self._data[:n])
        del self._data[:n]
        self._virtual = 0
        return chunk

    def retrieve(self, n: int) -> None:
        del self._data[:n]
        self._virtual = 0

    def retrieve_all(self) -> None:
        self._data.clear()
        self._virtual = 0

    def is_empty(self) -> bool:
        return not self._data

    def reset(self) -> None:
        self.retrieve_all()

    def virtual_read(self, n: int) -> bytes:
        chunk = bytes(self._data[self._virtual : self._virtual + n])
        self._virtual += len(chunk)
        return chunk

    def virtual_length(self) -> int:
        return len(self._data) - self._virtual

    def virtual_flush(self) -> None:
        del self._data[: self._virtual]
        self._virtual = 0

    def virtual_revert(self) -> None:
        self._virtual = 0


class Protocol(abc.ABC):
    """Splits incoming bytes into messages and encodes outgoing ones."""

    @abc.abstractmethod
    def unpacket(self, conn: Any, buffer: RingBuffer) -> tuple[Any, bytes | None]:
        """Take one message from ``buffer``; return ``(ctx, data)``, both empty if none."""

    @abc.abstractmethod
    def packet(self, conn: Any, data: Any) -> bytes:
        """Encode ``data`` for sending."""


class DefaultProtocol(Protocol):
    """Passes bytes through unframed: every read is one message."""

    def unpacket(self, conn: Any, buffer: RingBuffer) -> tuple[Any, bytes]:
        data = buffer.peek_all()
        buffer.retrieve_all()
        return None, data

    def packet(self, conn: Any, data: Any) -> bytes:
        return bytes(data)