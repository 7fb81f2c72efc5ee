"""Node map export.

Marshals parsed node records into the payload a map renderer consumes: name,
kind, position and a category color. Rendering itself belongs to the
renderer; :class:`JsonMapRenderer` here and
``lunartopo.visualization.MatplotlibMapRenderer`` are the bundled ones.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, NamedTuple, Protocol, Sequence

from lunartopo.log_config import get_logger
from lunartopo.models import NodeRecord, Position

logger = get_logger(__name__)


class MapColor(NamedTuple):
    """RGB color, 0-255 per channel."""

    r: int
    g: int
    b: int

    def as_unit(self) -> tuple[float, float, float]:
        """Return the color scaled to 0-1 floats for plotting libraries."""
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0)

    def as_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


BASE_STATION_COLOR = MapColor(0, 128, 0)
USER_EQUIPMENT_COLOR = MapColor(255, 165, 0)
GATEWAY_COLOR = MapColor(0, 0, 255)
DEFAULT_COLOR = MapColor(200, 200, 200)

# Checked in order; first substring match wins
_CATEGORY_COLORS: tuple[tuple[tuple[str, ...], MapColor], ...] = (
    (("base station", "gnb"), BASE_STATION_COLOR),
    (("user equipment",), USER_EQUIPMENT_COLOR),
    (("gateway",), GATEWAY_COLOR),
)


def category_color(kind: str) -> MapColor:
    """Map a node kind to its display color by case-insensitive substring."""
    folded = kind.casefold()
    for needles, color in _CATEGORY_COLORS:
        if any(needle in folded for needle in needles):
            return color
    return DEFAULT_COLOR


@dataclass(frozen=True, slots=True)
class MapNode:
    """Renderer-facing view of one node."""

    name: str
    kind: str
    position: Position
    color: MapColor


class MapRenderer(Protocol):
    """Map renderer collaborator."""

    def render_map(self, nodes: Sequence[MapNode]) -> None: ...


def build_map_nodes(nodes: Iterable[NodeRecord]) -> list[MapNode]:
    """Convert records to map nodes, skipping those without a position."""
    out: list[MapNode] = []
    for record in nodes:
        if record.position is None:
            logger.warning(f"Node '{record.name}' has no position; not placed on map")
            continue
        out.append(
            MapNode(
                name=record.name,
                kind=record.kind,
                position=record.position,
                color=category_color(record.kind),
            )
        )
    return out


def export_map(nodes: Iterable[NodeRecord], renderer: MapRenderer) -> list[MapNode]:
    """Forward the node list to a map renderer.

    Args:
        nodes: Parsed node records.
        renderer: Map renderer collaborator.

    Returns:
        The map nodes handed to the renderer; empty if nothing was rendered.
    """
    map_nodes = build_map_nodes(nodes)
    if not map_nodes:
        logger.error("No node data provided to map export; nothing rendered")
        return []

    for node in map_nodes:
        x, y, z = node.position
        logger.debug(f"Map node {node.name} ({node.kind}) at ({x}, {y}, {z})")
    renderer.render_map(map_nodes)
    logger.info(f"Exported {len(map_nodes)} node(s) to map renderer")
    return map_nodes


class JsonMapRenderer:
    """Write the node map as JSON.

    Output shape::

        {"nodes": [{"name": ..., "kind": ..., "position": [x, y, z],
                    "color": "#rrggbb"}, ...]}
    """

    def __init__(self, output_path: Path, *, indent: int = 2) -> None:
        self.output_path = Path(output_path)
        self.indent = indent

    def render_map(self, nodes: Sequence[MapNode]) -> None:
        payload = {
            "nodes": [
                {
                    "name": n.name,
                    "kind": n.kind,
                    "position": [float(c) for c in n.position],
                    "color": n.color.as_hex(),
                }
                for n in nodes
            ]
        }
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with self.output_path.open("w") as f:
            json.dump(payload, f, indent=self.indent)
        logger.info(f"Node map written to {self.output_path}")
