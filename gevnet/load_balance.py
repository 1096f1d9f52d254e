"""Strategies that pick the worker loop for a new connection."""

from __future__ import annotations

from typing import Callable, Sequence

from gevnet.eventloop import EventLoop

LoadBalanceStrategy = Callable[[Sequence[EventLoop]], EventLoop]


def round_robin() -> LoadBalanceStrategy:
    """Pick the loops in turn."""
    next_index = 0

    def choose(loops: Sequence[EventLoop]) -> EventLoop:
        nonlocal next_index
        loop = loops[next_index]
        next_index = (next_index + 1) % len(loops)
        return loop

    return choose


def least_connection() -> LoadBalanceStrategy:
    """Pick the first loop with the fewest connections."""

    def choose(loops: Sequence[EventLoop]) -> EventLoop:
        return min(loops, key=lambda loop: loop.connection_count())

    return choose