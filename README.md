# gevnet

`gevnet` is a small, non-blocking TCP server library built on a
multi-reactor model: one listener loop accepts connections and hands
them to a pool of worker event loops, each running on its own thread
over the platform's default `selectors` implementation. Message framing
is pluggable through protocols. A set of WebSocket building blocks
(frame encoding and decoding, handshake parsing and responses, control
frame replies) is included.

## Installing

```
pip install gevnet
```

For running the test suite:

```
pip install "gevnet[test]"
pytest
```

## An echo server

A handler receives three callbacks. Whatever `on_message` returns (if it
is not `None`) is encoded by the server's protocol and written back to
the peer.

```python
import threading

from gevnet.options import Options
from gevnet.server import Handler, Server


class Echo(Handler):
    def on_connect(self, conn):
        print("connected:", conn.peer_addr())

    def on_message(self, conn, ctx, data):
        return data

    def on_close(self, conn):
        print("closed:", conn.peer_addr())


server = Server(Echo(), Options(address=":1833", num_loops=4))
threading.Timer(60, server.stop).start()
server.start()
```

`Server.start()` runs the timer, the worker loops and the listener and
blocks until `Server.stop()` is called from another thread.
`Server.listen_address` gives the host and port actually bound, which is
useful with port `0`. `Server.options()` returns a copy of the effective
options.

## Options

`gevnet.options.Options` is a dataclass holding the configuration;
anything left unset gets a default when the server is built:

- `network`: `"tcp"` (`"tcp4"` and `"tcp6"` are also accepted)
- `address`: `":1388"`
- `num_loops`: the number of CPUs when 0 or less
- `protocol`: `DefaultProtocol`, which passes raw bytes through
- `strategy`: `round_robin()`; `least_connection()` is also available
  from `gevnet.load_balance`
- `reuse_port`: `False`
- `idle_time`: 0 (off); when set, in seconds, connections that see no
  events for that long are closed
- `tick` and `wheel_size`: timer granularity (1 ms) and size (1000)

## Connections

Inside a callback, a `Connection` offers:

- `send(data, on_sent=None)` to queue data from any thread; it raises
  `ConnectionClosedError` once the connection is gone, and `on_sent`
  runs in the loop after the data has been written or buffered
- `close()` (also raises `ConnectionClosedError` when already closed)
  and `shutdown_write()`
- `connected()` and `peer_addr()`
- `read_buffer_length()` and `write_buffer_length()` to watch back-pressure
- a thread-safe key/value store (it is a `KeyValueContext`) with `set`,
  `get`, `delete`, `reset` and `in`, plus a free `context` attribute

## Timers

```python
server.run_after(1.0, lambda: print("once"))
timer = server.run_every(2.0, lambda: print("tick"))
timer.stop()
```

## Custom protocols

Subclass `gevnet.protocol.Protocol` and implement `unpacket(conn, buffer)`
and `packet(conn, data)`. `unpacket` reads from a `RingBuffer` and returns
a `(ctx, payload)` pair; returning no context and no payload means "wait
for more data". `RingBuffer` supports ordinary reads (`read`, `peek`,
`retrieve`) and tentative ones (`virtual_read`, then `virtual_flush` or
`virtual_revert`).

`gevnet.protobuf` ships a length-prefixed framing, `ProtobufProtocol`,
whose context is the message type name, and `pack_message(msg_type, data)`
to build frames on the sending side.

## WebSocket building blocks

`gevnet.websocket` holds the pieces of the WebSocket protocol:

- `frame`: `OpCode`, `StatusCode`, `Header`, `Frame`, `MessageType`, the
  `new_*_frame` constructors, `new_close_frame_body` and `frame_to_bytes`
- `write.write_header` and `read.virtual_read_header` to encode and decode
  frame headers (`read.HeaderNotReadyError` when too few bytes are buffered),
  and `read.parse_close_frame_data`
- `cipher.cipher(payload, mask, offset)` for (un)masking payloads
- `control`: `pack_data`, `pack_close_data`, and `handle_close`,
  `handle_ping`, `handle_pong` that build the reply to a control frame;
  `check_close_frame_data` raises `ProtocolError` for invalid close codes
  or reasons
- `http`: `parse_request_line`, `parse_header_line`, `select_protocol`,
  `select_extensions`, `write_response_upgrade` and `write_response_error`
  for the HTTP handshake; `nonce.accept_from_nonce` computes the
  `Sec-WebSocket-Accept` value
- `errors`: `ProtocolError`, `RejectConnectionError` and the predefined
  handshake errors, each carrying an HTTP status code

```python
from gevnet.websocket.control import pack_data
from gevnet.websocket.frame import MessageType

conn.send(pack_data(MessageType.TEXT, b"hello"))
```

### What is not included

There is no ready-made WebSocket server: nothing drives the upgrade
handshake on a connection, frames incoming bytes as a `Protocol`, or
wraps a message handler so that control frames are answered for you.
Those parts must be assembled from the building blocks above.

## Logging

`gevnet.log` has `debug`, `info`, `error` and `fatal` helpers (and `*f`
variants taking a %-format). A message is written when its level is at
or below the current one, in the order `FATAL`, `INFO`, `ERROR`, `DEBUG`.
The starting level comes from the `GEV_LOG_LEVEL` environment variable
(`debug`, `info`, `error`, `fatal`; default `info`) and can be changed
with `set_level`. `set_logger` installs your own logger, and
`set_prefix` or `name` change the `[Gev]` prefix.