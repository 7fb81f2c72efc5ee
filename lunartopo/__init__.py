"""Lunar Topology Graph Engine.

Parses lunar surface network configurations into directed topology graphs,
resolves per-link transmission parameters and finds Euclidean shortest paths.
"""

from .graph import TopologyGraph, build_graph
from .links import LinkFailure, LoggingTransmissionSimulator, resolve_links
from .map_export import JsonMapRenderer, export_map
from .models import NodeRecord, Position
from .parser import parse_lines, parse_topology
from .path_finder import PathResult, find_path

__version__ = "0.1.0"

__all__ = [
    "JsonMapRenderer",
    "LinkFailure",
    "LoggingTransmissionSimulator",
    "NodeRecord",
    "PathResult",
    "Position",
    "TopologyGraph",
    "__version__",
    "build_graph",
    "export_map",
    "find_path",
    "parse_lines",
    "parse_topology",
    "resolve_links",
]
