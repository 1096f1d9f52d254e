"""Server configuration."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional

from gevnet.load_balance import LoadBalanceStrategy, round_robin
from gevnet.protocol import DefaultProtocol, Protocol


@dataclass
class Options:
    """Server settings; empty values are filled in by :meth:`with_defaults`.

    ``idle_time`` and ``tick`` are in seconds; an ``idle_time`` of 0 disables
    the idle check and ``num_loops`` <= 0 means one loop per CPU.
    """

    network: str = ""
    address: str = ""
    num_loops: int = 0
    reuse_port: bool = False
    idle_time: float = 0
    protocol: Optional[Protocol] = None
    strategy: Optional[LoadBalanceStrategy] = None
    tick: float = 0
    wheel_size: int = 0
    metrics_path: str = ""
    metrics_address: str = ""

    def with_defaults(self) -> "Options":
        """Return a copy with every unset field given its default."""
        return dataclasses.replace(
            self,
            network=self.network or "tcp",
            address=self.address or ":1388",
            tick=self.tick or 0.001,
            wheel_size=self.wheel_size or 1000,
            protocol=self.protocol if self.protocol is not None else DefaultProtocol(),
            strategy=self.strategy if self.strategy is not None else round_robin(),
        )