"""Event-loop TCP server library with pluggable protocols."""

__version__ = "0.1.0"

__all__ = [
    "connection",
    "context",
    "eventloop",
    "listener",
    "load_balance",
    "log",
    "options",
    "poller",
    "protobuf",
    "protocol",
    "server",
    "timer",
    "websocket",
]