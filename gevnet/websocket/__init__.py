"""WebSocket framing, handshake parsing and control frame helpers."""

__all__ = [
    "cipher",
    "control",
    "errors",
    "frame",
    "http",
    "nonce",
    "read",
    "textutil",
    "write",
]