"""Shortest-path search over the topology graph.

Dijkstra with a lazy priority queue: a node is pushed again whenever its
tentative distance improves, and outdated heap entries are skipped when
popped. Edge weights are Euclidean distances between node positions.

Equal tentative distances are ordered by node name (``tie_break="name"``) so
results are reproducible, or by push order (``tie_break="insertion"``).
"""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass, field

from lunartopo.errors import PathReconstructionError
from lunartopo.graph import TopologyGraph
from lunartopo.log_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PathResult:
    """Outcome of a path query.

    Attributes:
        nodes: Node names from start to goal; empty when no path exists.
        distance_m: Total Euclidean length in meters (``inf`` when not found).
        reason: Why no path was returned, naming the offending node.
    """

    nodes: list[str] = field(default_factory=list)
    distance_m: float = math.inf
    reason: str | None = None

    @property
    def found(self) -> bool:
        return bool(self.nodes)

    def __str__(self) -> str:
        if not self.found:
            return self.reason or "no path"
        return " -> ".join(self.nodes)


def _not_found(reason: str) -> PathResult:
    logger.warning(reason)
    return PathResult(reason=reason)


def _reconstruct(prev: dict[str, str], start: str, goal: str) -> list[str]:
    path = [goal]
    at = goal
    while at in prev:
        at = prev[at]
        path.append(at)
    if at != start:
        raise PathReconstructionError(
            f"Predecessor walk from '{goal}' stopped at '{at}', expected '{start}'"
        )
    path.reverse()
    return path


def find_path(
    graph: TopologyGraph, start: str, goal: str, *, tie_break: str = "name"
) -> PathResult:
    """Find the shortest directed path between two named nodes.

    Args:
        graph: Topology graph to search.
        start: Name of the source node.
        goal: Name of the destination node.
        tie_break: ``"name"`` or ``"insertion"`` ordering for equal distances.

    Returns:
        The path and its length, or an empty result with ``reason`` set when
        either endpoint is unknown or the goal is unreachable.

    Raises:
        ValueError: If ``tie_break`` is not a known mode.
        PathReconstructionError: If predecessor links are inconsistent.
    """
    if tie_break not in ("name", "insertion"):
        raise ValueError(f"Unknown tie_break mode '{tie_break}'")
    if start not in graph:
        return _not_found(f"No path: start node '{start}' not found")
    if goal not in graph:
        return _not_found(f"No path: destination node '{goal}' not found")

    dist: dict[str, float] = {name: math.inf for name in graph}
    prev: dict[str, str] = {}
    dist[start] = 0.0

    counter = itertools.count()

    def _entry(d: float, name: str) -> tuple[float, object, str]:
        key = name if tie_break == "name" else next(counter)
        return (d, key, name)

    queue = [_entry(0.0, start)]
    while queue:
        d, _, u = heapq.heappop(queue)
        if d > dist[u]:
            continue
        if u == goal:
            break
        for v in graph.neighbors(u):
            alt = dist[u] + graph.distance(u, v)
            if alt < dist[v]:
                dist[v] = alt
                prev[v] = u
                heapq.heappush(queue, _entry(alt, v))

    if math.isinf(dist[goal]):
        return _not_found(f"No path from '{start}' to '{goal}'")

    nodes = _reconstruct(prev, start, goal)
    logger.info(
        f"Optimal path {' -> '.join(nodes)} ({dist[goal]:.2f} m, {len(nodes) - 1} hop(s))"
    )
    return PathResult(nodes=nodes, distance_m=dist[goal])


def path_length(graph: TopologyGraph, nodes: list[str]) -> float:
    """Sum the Euclidean lengths of consecutive hops along ``nodes``."""
    return sum(graph.distance(u, v) for u, v in zip(nodes, nodes[1:]))
