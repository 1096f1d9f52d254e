"""Byte-string helpers for parsing HTTP request lines and headers."""

from __future__ import annotations

from typing import Union

_BLANKS = b" \t"


def ascii_to_int(data: bytes) -> int:
    """Convert ASCII digits to an int; raises ValueError on empty or non-numeric input."""
    if not data:
        raise ValueError("converting empty bytes to int")
    result = 0
    for byte in data:
        if byte & 0xF0 != 0x30:
            raise ValueError(f"{chr(byte)} is not a numeric character")
        result = result * 10 + (byte & 0x0F)
    return result


def bsplit3(data: bytes, sep: Union[int, bytes]) -> tuple[bytes, bytes, bytes]:
    """Split at the first two ``sep`` bytes; if there are fewer, return ``(data, b"", b"")``."""
    separator = bytes((sep,)) if isinstance(sep, int) else bytes(sep)
    first = data.find(separator)
    if first == -1:
        return bytes(data), b"", b""
    second = data.find(separator, first + 1)
    if second == -1:
        return bytes(data), b"", b""
    return bytes(data[:first]), bytes(data[first + 1:second]), bytes(data[second + 1:])


def btrim(data: bytes) -> bytes:
    """Strip spaces and tabs from both ends."""
    return bytes(data).strip(_BLANKS)


def canonicalize_header_key(key: bytes) -> bytes:
    """Capitalise the first letter and every letter after '-', lower-case the rest."""
    out = bytearray(key)
    upper = True
    for position, byte in enumerate(key):
        if upper and 0x61 <= byte <= 0x7A:
            out[position] = byte & ~0x20
        elif not upper and 0x41 <= byte <= 0x5A:
            out[position] = byte | 0x20
        upper = byte == 0x2D
    return bytes(out)