"""Computation of the Sec-WebSocket-Accept value from a client nonce."""

from __future__ import annotations

import base64
import hashlib

NONCE_SIZE = 24
ACCEPT_SIZE = 28

_MAGIC = b"258EAFA5-E914-47DA-95CA-C5AB0DC85B11"


def accept_from_nonce(nonce: bytes) -> bytes:
    """Return the base64 SHA-1 of ``nonce`` joined with the WebSocket GUID.

    Raises ValueError unless ``nonce`` is exactly 24 bytes long.
    """
    nonce = bytes(nonce)
    if len(nonce) != NONCE_SIZE:
        raise ValueError("nonce is invalid")
    accept = base64.b64encode(hashlib.sha1(nonce + _MAGIC).digest())
    if len(accept) != ACCEPT_SIZE:
        raise ValueError("accept buffer is invalid")
    return accept