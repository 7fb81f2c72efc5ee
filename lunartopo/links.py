"""Link resolution and transmission simulator hand-off.

For every resolved directed link ``tx -> rx`` this module derives the distance
and the effective data-rate label, then hands them to a transmission simulator.
The simulator is an external collaborator; anything with a
``simulate_transmission`` method satisfying :class:`TransmissionSimulator`
will do.

The effective rate is the lexicographically smaller of the transmitter's
``tx_rate`` and the receiver's ``rx_rate``. This is a plain string comparison,
so ``"54Mbps"`` sorts before ``"6Mbps"``.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterator, Literal, Protocol

from lunartopo.graph import TopologyGraph
from lunartopo.log_config import get_logger

logger = get_logger(__name__)

FailureKind = Literal["unknown_node", "missing_radio_parameters", "simulator_error"]


class TransmissionSimulator(Protocol):
    """Physical-layer simulator collaborator."""

    def simulate_transmission(
        self, distance_m: float, frequency_mhz: float, tx_power_dbm: float, rate: str
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class LinkResolution:
    """Transmission parameters for one directed link."""

    tx: str
    rx: str
    distance_m: float
    effective_rate: str
    frequency_mhz: float | None
    tx_power_dbm: float | None


@dataclass(frozen=True, slots=True)
class LinkFailure:
    """A link that could not be simulated.

    Attributes:
        tx: Transmitting node name.
        rx: Target name as declared.
        kind: Failure category.
        message: Human-readable description naming the link.
    """

    tx: str
    rx: str
    kind: FailureKind
    message: str


def effective_rate(tx_rate: str, rx_rate: str) -> str:
    """Pick the lexicographically smaller rate label."""
    chosen = min(tx_rate, rx_rate)
    if tx_rate != rx_rate:
        logger.debug(
            f"Effective rate '{chosen}' chosen by string order from "
            f"tx '{tx_rate}' / rx '{rx_rate}'"
        )
    return chosen


def iter_link_resolutions(graph: TopologyGraph) -> Iterator[LinkResolution]:
    """Yield resolutions for every resolved link in enumeration order.

    Order is graph record order, then each node's neighbors as declared.
    """
    for tx_name, rx_name in graph.edges():
        tx = graph.records[tx_name]
        rx = graph.records[rx_name]
        yield LinkResolution(
            tx=tx_name,
            rx=rx_name,
            distance_m=graph.distance(tx_name, rx_name),
            effective_rate=effective_rate(tx.tx_rate, rx.rx_rate),
            frequency_mhz=tx.frequency_mhz,
            tx_power_dbm=tx.tx_power_dbm,
        )


def _unknown_target_failures(graph: TopologyGraph) -> list[LinkFailure]:
    failures = []
    for tx_name, targets in graph.unresolved.items():
        for target in targets:
            message = f"Link '{tx_name}' -> '{target}': target node not found"
            logger.warning(message)
            failures.append(LinkFailure(tx_name, target, "unknown_node", message))
    return failures


def _simulate(
    simulator: TransmissionSimulator, link: LinkResolution
) -> LinkFailure | None:
    if link.frequency_mhz is None or link.tx_power_dbm is None:
        message = (
            f"Link '{link.tx}' -> '{link.rx}': transmitter has no "
            "frequency or power configured"
        )
        logger.warning(message)
        return LinkFailure(link.tx, link.rx, "missing_radio_parameters", message)

    logger.info(
        f"[SIM] {link.tx} -> {link.rx} | Distance: {link.distance_m:.2f} m"
        f" | Freq: {link.frequency_mhz} MHz | Power: {link.tx_power_dbm} dBm"
        f" | Rate: {link.effective_rate}"
    )
    try:
        simulator.simulate_transmission(
            link.distance_m, link.frequency_mhz, link.tx_power_dbm, link.effective_rate
        )
    except Exception as exc:
        message = f"Link '{link.tx}' -> '{link.rx}': simulation failed: {exc}"
        logger.error(message)
        return LinkFailure(link.tx, link.rx, "simulator_error", message)
    return None


def resolve_links(
    graph: TopologyGraph, simulator: TransmissionSimulator, *, workers: int = 1
) -> list[LinkFailure]:
    """Simulate every resolved link and report the ones that failed.

    The graph is not modified. With ``workers == 1`` the simulator is called in
    enumeration order, so repeated runs produce identical call sequences.
    With more workers calls run on a thread pool in no particular order.

    Args:
        graph: Topology graph to walk.
        simulator: Transmission simulator collaborator.
        workers: Number of threads used for simulator calls.

    Returns:
        Unknown-target failures first, then per-link failures in enumeration
        order. Empty when every link was simulated.
    """
    failures = _unknown_target_failures(graph)
    links = list(iter_link_resolutions(graph))

    if workers > 1 and len(links) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda link: _simulate(simulator, link), links))
    else:
        outcomes = [_simulate(simulator, link) for link in links]

    failures.extend(f for f in outcomes if f is not None)
    logger.info(
        f"Resolved {len(links)} link(s): {outcomes.count(None)} simulated, "
        f"{len(failures)} failure(s)"
    )
    return failures


@dataclass
class LoggingTransmissionSimulator:
    """Default simulator that logs each call and remembers its arguments.

    Stands in for the physical-layer engine when none is attached.
    """

    calls: list[tuple[float, float, float, str]] = field(default_factory=list)

    def simulate_transmission(
        self, distance_m: float, frequency_mhz: float, tx_power_dbm: float, rate: str
    ) -> None:
        logger.debug(
            f"simulate_transmission(distance={distance_m:.3f}, freq={frequency_mhz}, "
            f"power={tx_power_dbm}, rate={rate})"
        )
        self.calls.append((distance_m, frequency_mhz, tx_power_dbm, rate))
