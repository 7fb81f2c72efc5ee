"""Exception types raised by the topology engine.

Recoverable per-link and per-path problems (unknown link targets, unreachable
goals) are reported as values instead; see ``lunartopo.links.LinkFailure`` and
``lunartopo.path_finder.PathResult``.
"""

from __future__ import annotations


class TopologyError(Exception):
    """Base class for all topology engine errors."""


class ConfigFileNotFoundError(TopologyError, FileNotFoundError):
    """Topology configuration file is missing or unreadable."""

    def __init__(self, path: str, reason: str | None = None) -> None:
        self.path = path
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Topology file not found or unreadable: {path}{detail}")


class ParseError(TopologyError, ValueError):
    """A node block could not be parsed.

    Attributes:
        node: Name of the offending node, or ``None`` if the block had no name yet.
        field: Configuration label that failed (e.g. ``"Location"``).
        line_number: 1-based line number in the source, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        node: str | None = None,
        field: str | None = None,
        line_number: int | None = None,
    ) -> None:
        self.node = node
        self.field = field
        self.line_number = line_number
        subject = f"node '{node}'" if node else "unnamed node"
        where = f" (line {line_number})" if line_number is not None else ""
        super().__init__(f"{subject}: {message}{where}")


class DuplicateNodeNameError(TopologyError, ValueError):
    """Two node blocks share a name and the graph policy rejects duplicates."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Duplicate node name '{name}'")


class PathReconstructionError(TopologyError, RuntimeError):
    """Predecessor walk ended somewhere other than the start node."""
