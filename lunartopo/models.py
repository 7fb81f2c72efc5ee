"""Core data types shared by the parser, graph builder and consumers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import NamedTuple


class Position(NamedTuple):
    """Cartesian coordinates in meters within the shared topology frame."""

    x: float
    y: float
    z: float

    def distance_to(self, other: Position) -> float:
        """Return the Euclidean distance to ``other`` in meters."""
        return math.dist(self, other)


@dataclass
class NodeRecord:
    """One parsed network element.

    Attributes:
        name: Node identifier; uniqueness is handled by the graph builder.
        kind: Free-text category such as "Gateway" or "User Equipment".
        position: Coordinates in meters, or ``None`` when the block carried no
            ``Location:`` line and the parser ran in lenient mode.
        frequency_mhz: Transmit frequency in MHz.
        tx_power_dbm: Transmit power in dBm.
        tx_rate: Nominal transmit data-rate label, kept verbatim.
        rx_rate: Nominal receive data-rate label, kept verbatim.
        links: Outgoing neighbor names in declaration order.
    """

    name: str = ""
    kind: str = ""
    position: Position | None = None
    frequency_mhz: float | None = None
    tx_power_dbm: float | None = None
    tx_rate: str = ""
    rx_rate: str = ""
    links: list[str] = field(default_factory=list)

    @property
    def has_position(self) -> bool:
        return self.position is not None
