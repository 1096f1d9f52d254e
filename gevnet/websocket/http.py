"""HTTP parsing and response writing for the WebSocket handshake."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Iterator, Optional

from gevnet.websocket.errors import (
    ERR_MALFORMED_REQUEST,
    HEADER_SEC_ACCEPT,
    HEADER_SEC_EXTENSIONS,
    HEADER_SEC_PROTOCOL,
)
from gevnet.websocket.nonce import accept_from_nonce
from gevnet.websocket.textutil import ascii_to_int, bsplit3, btrim, canonicalize_header_key

CRLF = b"\r\n"
_COLON_AND_SPACE = b": "
_HEAD_UPGRADE = (
    b"HTTP/1.1 101 Switching Protocols\r\nUpgrade: websocket\r\nConnection: Upgrade\r\n"
)
_HTTP_VERSION_10 = b"HTTP/1.0"
_HTTP_VERSION_11 = b"HTTP/1.1"
_HTTP_VERSION_PREFIX = b"HTTP/"

_TCHARS = frozenset(
    b"!#$%&'*+-.^_`|~0123456789"
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


@dataclass
class Option:
    """A header option such as an extension: a name and its parameters."""

    name: bytes
    parameters: dict[bytes, bytes] = field(default_factory=dict)

    def copy(self) -> "Option":
        return Option(bytes(self.name), dict(self.parameters))


@dataclass
class Handshake:
    """Result of a handshake: the chosen subprotocol and extensions."""

    protocol: str = ""
    extensions: list[Option] = field(default_factory=list)


@dataclass(frozen=True)
class RequestLine:
    """A parsed HTTP request line."""

    method: bytes
    uri: bytes
    major: int
    minor: int


def parse_request_line(line: bytes) -> RequestLine:
    """Parse a line like ``GET / HTTP/1.1``; raises ERR_MALFORMED_REQUEST."""
    method, uri, proto = bsplit3(line, b" ")
    try:
        major, minor = parse_version(proto)
    except ValueError:
        raise ERR_MALFORMED_REQUEST from None
    return RequestLine(method, uri, major, minor)


def parse_version(data: bytes) -> tuple[int, int]:
    """Return the major and minor HTTP version; raises ValueError if malformed."""
    data = bytes(data)
    if data == _HTTP_VERSION_10:
        return 1, 0
    if data == _HTTP_VERSION_11:
        return 1, 1
    if len(data) < 8 or not data.startswith(_HTTP_VERSION_PREFIX):
        raise ValueError(f"malformed HTTP version {data!r}")
    rest = data[len(_HTTP_VERSION_PREFIX):]
    major, dot, minor = rest.partition(b".")
    if not dot:
        raise ValueError(f"malformed HTTP version {data!r}")
    return ascii_to_int(major), ascii_to_int(minor)


def parse_header_line(line: bytes) -> tuple[bytes, bytes]:
    """Split a header line into a canonical key and a trimmed value."""
    key, colon, value = bytes(line).partition(b":")
    if not colon:
        raise ValueError("header line has no colon")
    return canonicalize_header_key(btrim(key)), btrim(value)


def _is_token(data: bytes) -> bool:
    return bool(data) and all(byte in _TCHARS for byte in data)


def _split_unquoted(data: bytes, sep: int) -> list[bytes]:
    """Split at ``sep`` bytes that are outside quoted strings."""
    parts: list[bytes] = []
    current = bytearray()
    quoted = False
    escaped = False
    for byte in data:
        if quoted:
            current.append(byte)
            if escaped:
                escaped = False
            elif byte == 0x5C:
                escaped = True
            elif byte == 0x22:
                quoted = False
        elif byte == 0x22:
            quoted = True
            current.append(byte)
        elif byte == sep:
            parts.append(bytes(current))
            current = bytearray()
        else:
            current.append(byte)
    if quoted:
        raise ValueError("unterminated quoted string")
    parts.append(bytes(current))
    return parts


def _unquote(value: bytes) -> bytes:
    if value.startswith(b'"'):
        if len(value) < 2 or not value.endswith(b'"'):
            raise ValueError("malformed quoted string")
        out = bytearray()
        escaped = False
        for byte in value[1:-1]:
            if escaped:
                out.append(byte)
                escaped = False
            elif byte == 0x5C:
                escaped = True
            else:
                out.append(byte)
        return bytes(out)
    if not _is_token(value):
        raise ValueError(f"malformed token {value!r}")
    return value


def _parse_option(element: bytes) -> Option:
    name, *params = _split_unquoted(element, ord(";"))
    name = btrim(name)
    if not _is_token(name):
        raise ValueError(f"malformed option name {name!r}")
    option = Option(name)
    for param in params:
        key, eq, value = btrim(param).partition(b"=")
        key = btrim(key)
        if not _is_token(key):
            raise ValueError(f"malformed parameter {param!r}")
        option.parameters[key] = _unquote(btrim(value)) if eq else b""
    return option


def _scan_options(value: bytes) -> Iterator[Option]:
    for element in _split_unquoted(bytes(value), ord(",")):
        if btrim(element):
            yield _parse_option(element)


def select_protocol(value: bytes, check: Callable[[bytes], bool]) -> Optional[str]:
    """Return the first comma-separated token accepted by ``check``, or None.

    Raises ValueError if a token met before the match is malformed.
    """
    for item in bytes(value).split(b","):
        token = btrim(item)
        if not token:
            continue
        if not _is_token(token):
            raise ValueError(f"malformed token {token!r}")
        if check(token):
            return token.decode("ascii")
    return None


def select_extensions(value: bytes, selected: list[Option],
                      check: Callable[[Option], bool]) -> list[Option]:
    """Return ``selected`` plus copies of the accepted options, one per name.

    Raises ValueError if the header value is malformed.
    """
    result = list(selected)
    for option in list(_scan_options(value)):
        if any(chosen.name == option.name for chosen in result):
            continue
        if check(option):
            result.append(option.copy())
    return result


def _token_or_quoted(value: bytes) -> bytes:
    if _is_token(value):
        return value
    escaped = value.replace(b"\\", b"\\\\").replace(b'"', b'\\"')
    return b'"' + escaped + b'"'


def _write_options(options: list[Option]) -> bytes:
    rendered = []
    for option in options:
        text = _token_or_quoted(option.name)
        for key, value in option.parameters.items():
            text += b";" + _token_or_quoted(key)
            if value:
                text += b"=" + _token_or_quoted(value)
        rendered.append(text)
    return b", ".join(rendered)


def _render_header(header: Any) -> bytes:
    """Render extra response headers given as text, a mapping, a callable or a sequence."""
    if header is None:
        return b""
    if isinstance(header, (bytes, bytearray, memoryview)):
        return bytes(header)
    if isinstance(header, str):
        return header.encode()
    if isinstance(header, Mapping):
        out = bytearray()
        for key in sorted(header):
            values = header[key]
            if isinstance(values, (str, bytes)):
                values = [values]
            for value in values:
                text = value.decode() if isinstance(value, bytes) else str(value)
                out += f"{key}: {text}\r\n".encode()
        return bytes(out)
    if callable(header):
        return _render_header(header())
    if isinstance(header, (list, tuple)):
        return b"".join(_render_header(item) for item in header)
    raise TypeError(f"unsupported header type {type(header).__name__}")


def _header_line(key: str, value: bytes) -> bytes:
    return key.encode() + _COLON_AND_SPACE + value + CRLF


def write_response_upgrade(nonce: bytes, handshake: Handshake, header: Any = None) -> bytes:
    """Return the ``101 Switching Protocols`` response for ``nonce``."""
    out = bytearray(_HEAD_UPGRADE)
    out += _header_line(HEADER_SEC_ACCEPT, accept_from_nonce(nonce))
    if handshake.protocol:
        out += _header_line(HEADER_SEC_PROTOCOL, handshake.protocol.encode())
    if handshake.extensions:
        out += _header_line(HEADER_SEC_EXTENSIONS, _write_options(handshake.extensions))
    out += _render_header(header)
    out += CRLF
    return bytes(out)


def _status_text(code: int) -> bytes:
    try:
        phrase = HTTPStatus(code).phrase
    except ValueError:
        phrase = ""
    return (f"HTTP/1.1 {code} {phrase}\r\n"
            "Content-Type: text/plain; charset=utf-8\r\n").encode()


def write_response_error(err: Optional[BaseException], code: int, header: Any = None) -> bytes:
    """Return an error response with status ``code`` and ``err``'s message as body."""
    out = bytearray(_status_text(int(code)))
    out += _render_header(header)
    if err is None:
        out += CRLF
    else:
        body = str(err).encode()
        out += f"Content-Length: {len(body)}\r\n\r\n".encode()
        out += body
    return bytes(out)