"""Topology graph construction.

Turns parsed node records into a caller-owned graph: a name to record map and
a directed, ordered adjacency of resolved neighbor names. Link targets that do
not name a positioned node are dropped with a warning and kept aside in
``unresolved`` so the link resolver can report them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator

import networkx as nx

from lunartopo.errors import DuplicateNodeNameError
from lunartopo.log_config import get_logger
from lunartopo.models import NodeRecord, Position

if TYPE_CHECKING:
    from lunartopo.config import GraphConfig

logger = get_logger(__name__)


def euclidean_distance(a: Position, b: Position) -> float:
    """Return the straight-line distance between two positions in meters."""
    return a.distance_to(b)


@dataclass
class TopologyGraph:
    """Directed topology graph keyed by node name.

    Attributes:
        records: Name to record map for positioned nodes, in first-seen order.
        adjacency: Name to resolved outgoing neighbor names, declaration order.
        unresolved: Name to link targets that were dropped.
        excluded: Names of records left out because they have no position.
    """

    records: dict[str, NodeRecord] = field(default_factory=dict)
    adjacency: dict[str, list[str]] = field(default_factory=dict)
    unresolved: dict[str, list[str]] = field(default_factory=dict)
    excluded: list[str] = field(default_factory=list)

    def __contains__(self, name: object) -> bool:
        return name in self.records

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[str]:
        return iter(self.records)

    def neighbors(self, name: str) -> list[str]:
        """Return resolved outgoing neighbors of ``name`` (empty if unknown)."""
        return self.adjacency.get(name, [])

    def position(self, name: str) -> Position:
        position = self.records[name].position
        assert position is not None
        return position

    def distance(self, u: str, v: str) -> float:
        """Euclidean distance between two nodes of the graph.

        Raises:
            KeyError: If either name is not in the graph.
        """
        return euclidean_distance(self.position(u), self.position(v))

    def edges(self) -> Iterator[tuple[str, str]]:
        """Yield directed ``(source, target)`` edges in enumeration order."""
        for source, targets in self.adjacency.items():
            for target in targets:
                yield source, target

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.adjacency.values())

    def to_networkx(self) -> nx.DiGraph:
        """Export as a NetworkX DiGraph.

        Nodes carry ``kind`` and ``position``; edges carry ``weight`` as the
        Euclidean distance in meters. Repeated declarations of the same link
        collapse into a single edge.
        """
        G = nx.DiGraph()
        for name, record in self.records.items():
            G.add_node(name, kind=record.kind, position=tuple(self.position(name)))
        for u, v in self.edges():
            G.add_edge(u, v, weight=self.distance(u, v))
        return G


def _index_records(
    nodes: Iterable[NodeRecord], policy: str
) -> tuple[dict[str, NodeRecord], list[str]]:
    records: dict[str, NodeRecord] = {}
    excluded: list[str] = []
    seen: set[str] = set()
    for record in nodes:
        if record.name in seen:
            if policy == "reject":
                raise DuplicateNodeNameError(record.name)
            logger.warning(
                f"Duplicate node name '{record.name}': later block replaces the earlier one"
            )
        seen.add(record.name)
        if record.position is None:
            logger.warning(
                f"Node '{record.name}' has no position; excluded from the graph"
            )
            records.pop(record.name, None)
            if record.name not in excluded:
                excluded.append(record.name)
            continue
        if record.name in excluded:
            excluded.remove(record.name)
        records[record.name] = record
    return records, excluded


def build_graph(
    nodes: Iterable[NodeRecord], *, config: GraphConfig | None = None
) -> TopologyGraph:
    """Build the directed topology graph from parsed records.

    Duplicate names follow the configured policy: ``last_wins`` (default)
    keeps the later record and logs a warning, ``reject`` raises.

    Args:
        nodes: Parsed node records.
        config: Graph options; defaults apply when omitted.

    Returns:
        Graph whose adjacency contains only resolvable targets.

    Raises:
        DuplicateNodeNameError: If a name repeats under the ``reject`` policy.
    """
    policy = config.duplicate_names if config else "last_wins"
    records, excluded = _index_records(nodes, policy)
    graph = TopologyGraph(records=records, excluded=excluded)

    for name, record in records.items():
        resolved: list[str] = []
        for target in record.links:
            if target in records:
                resolved.append(target)
                continue
            logger.warning(f"Link '{name}' -> '{target}': unknown node, link dropped")
            graph.unresolved.setdefault(name, []).append(target)
        graph.adjacency[name] = resolved

    logger.info(
        f"Built topology graph: {len(graph)} node(s), {graph.edge_count} link(s), "
        f"{sum(len(v) for v in graph.unresolved.values())} unresolved"
    )
    return graph
