"""WebSocket payload masking."""

from __future__ import annotations


def cipher(payload: bytes, mask: bytes, offset: int = 0) -> bytes:
    """Return ``payload`` XOR-ed with the 4-byte ``mask``.

    ``offset`` is the number of payload bytes already processed, so chunked
    data can be (un)masked piece by piece. Applying it twice restores the input.
    """
    if len(mask) != 4:
        raise ValueError("mask must be 4 bytes long")
    n = len(payload)
    if n == 0:
        return b""
    start = offset % 4
    rotated = bytes(mask[start:]) + bytes(mask[:start])
    key = (rotated * (n // 4 + 1))[:n]
    value = int.from_bytes(payload, "big") ^ int.from_bytes(key, "big")
    return value.to_bytes(n, "big")