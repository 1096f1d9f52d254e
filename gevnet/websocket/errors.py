"""Errors raised while checking WebSocket frames and handshakes."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

HEADER_HOST = "Host"
HEADER_UPGRADE = "Upgrade"
HEADER_CONNECTION = "Connection"
HEADER_SEC_VERSION = "Sec-WebSocket-Version"
HEADER_SEC_PROTOCOL = "Sec-WebSocket-Protocol"
HEADER_SEC_EXTENSIONS = "Sec-WebSocket-Extensions"
HEADER_SEC_KEY = "Sec-WebSocket-Key"
HEADER_SEC_ACCEPT = "Sec-WebSocket-Accept"


class ProtocolError(Exception):
    """A frame or close payload breaks the WebSocket protocol."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.message == self.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class RejectConnectionError(Exception):
    """Rejects an upgrade with an HTTP status code, extra headers and a reason.

    A code of 0 lets the upgrader choose (500 Internal Server Error).
    """

    def __init__(self, reason: str = "", code: int = 0, header: Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.code = int(code)
        self.header = header

    def __str__(self) -> str:
        return self.reason

    def __eq__(self, other: object) -> bool:
        return (type(other) is type(self)
                and (other.reason, other.code, other.header)
                == (self.reason, self.code, self.header))

    def __hash__(self) -> int:
        return hash((type(self), self.reason, self.code))


def _bad_header(name: str) -> str:
    return f'handshake error: bad "{name}" header'


ERR_PROTOCOL_STATUS_CODE_NOT_IN_USE = ProtocolError("status code is not in use")
ERR_PROTOCOL_STATUS_CODE_APPLICATION_LEVEL = ProtocolError("status code is only application level")
ERR_PROTOCOL_STATUS_CODE_NO_MEANING = ProtocolError("status code has no meaning yet")
ERR_PROTOCOL_STATUS_CODE_UNKNOWN = ProtocolError("status code is not defined in spec")
ERR_PROTOCOL_INVALID_UTF8 = ProtocolError("invalid utf8 sequence in close reason")

ERR_HANDSHAKE_BAD_PROTOCOL = RejectConnectionError(
    "handshake error: bad HTTP protocol version", HTTPStatus.HTTP_VERSION_NOT_SUPPORTED)
ERR_HANDSHAKE_BAD_METHOD = RejectConnectionError(
    "handshake error: bad HTTP request method", HTTPStatus.METHOD_NOT_ALLOWED)
ERR_HANDSHAKE_BAD_HOST = RejectConnectionError(
    _bad_header(HEADER_HOST), HTTPStatus.BAD_REQUEST)
ERR_HANDSHAKE_BAD_UPGRADE = RejectConnectionError(
    _bad_header(HEADER_UPGRADE), HTTPStatus.BAD_REQUEST)
ERR_HANDSHAKE_BAD_CONNECTION = RejectConnectionError(
    _bad_header(HEADER_CONNECTION), HTTPStatus.BAD_REQUEST)
ERR_HANDSHAKE_BAD_SEC_ACCEPT = RejectConnectionError(
    _bad_header(HEADER_SEC_ACCEPT), HTTPStatus.BAD_REQUEST)
ERR_HANDSHAKE_BAD_SEC_KEY = RejectConnectionError(
    _bad_header(HEADER_SEC_KEY), HTTPStatus.BAD_REQUEST)
ERR_HANDSHAKE_BAD_SEC_VERSION = RejectConnectionError(
    _bad_header(HEADER_SEC_VERSION), HTTPStatus.BAD_REQUEST)

ERR_MALFORMED_REQUEST = RejectConnectionError("malformed HTTP request", HTTPStatus.BAD_REQUEST)

# The version(s) this server understands are announced with 426 Upgrade Required.
ERR_HANDSHAKE_UPGRADE_REQUIRED = RejectConnectionError(
    _bad_header(HEADER_SEC_VERSION),
    HTTPStatus.UPGRADE_REQUIRED,
    f"{HEADER_SEC_VERSION}: 13\r\n",
)