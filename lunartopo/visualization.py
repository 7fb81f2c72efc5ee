"""Matplotlib node map renderer."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import matplotlib.pyplot as plt
import networkx as nx
import numpy as np

from lunartopo.log_config import get_logger

if TYPE_CHECKING:
    from lunartopo.graph import TopologyGraph
    from lunartopo.map_export import MapNode

logger = get_logger(__name__)


class MatplotlibMapRenderer:
    """Render the node layout as a static image.

    Nodes are drawn in the x/y plane at their configured coordinates, colored
    by category and labeled with their names. When a topology graph is given
    and ``draw_links`` is set, directed links are drawn as arrows.

    Args:
        output_path: Image path; the format follows the suffix (PNG or JPEG).
        graph: Optional topology graph providing links to draw.
        figure_size: Matplotlib figure size in inches (width, height).
        dpi: Output image dots-per-inch when saving.
        draw_links: Whether to draw links from ``graph``.
    """

    def __init__(
        self,
        output_path: Path,
        *,
        graph: TopologyGraph | None = None,
        figure_size: tuple[float, float] = (10.0, 8.0),
        dpi: int = 150,
        draw_links: bool = True,
    ) -> None:
        self.output_path = Path(output_path)
        self.graph = graph
        self.figure_size = figure_size
        self.dpi = dpi
        self.draw_links = draw_links

    def render_map(self, nodes: Sequence[MapNode]) -> None:
        """Draw ``nodes`` and save the image.

        Raises:
            ValueError: If ``nodes`` is empty.
            RuntimeError: If rendering or file output fails.
        """
        if not nodes:
            raise ValueError("Cannot create node map: no nodes provided")

        logger.info(f"Exporting node map to {self.output_path}")
        coords = np.array([[n.position.x, n.position.y] for n in nodes], dtype=float)
        colors = [n.color.as_unit() for n in nodes]
        pos = {n.name: (float(x), float(y)) for n, (x, y) in zip(nodes, coords)}

        fig = None
        try:
            try:
                fig, ax = plt.subplots(figsize=self.figure_size)
            except Exception as e:
                raise RuntimeError(f"Failed to create matplotlib figure: {e}") from e

            if self.draw_links and self.graph is not None:
                G = self.graph.to_networkx()
                edgelist = [(u, v) for u, v in G.edges() if u in pos and v in pos]
                if edgelist:
                    try:
                        nx.draw_networkx_edges(
                            G,
                            pos,
                            edgelist=edgelist,
                            ax=ax,
                            arrows=True,
                            arrowstyle="-|>",
                            edge_color="gray",
                            width=0.8,
                            alpha=0.7,
                        )
                    except Exception as e:
                        raise RuntimeError(f"Failed to draw links: {e}") from e
                    logger.debug(f"Drew {len(edgelist)} link(s)")

            ax.scatter(
                coords[:, 0],
                coords[:, 1],
                c=colors,
                s=80,
                edgecolors="black",
                linewidths=0.5,
                zorder=3,
            )
            for n, (x, y) in zip(nodes, coords):
                ax.annotate(
                    n.name,
                    (x, y),
                    textcoords="offset points",
                    xytext=(6, 6),
                    fontsize=8,
                )

            # Pad the extent so single-node or collinear layouts stay visible
            span = np.ptp(coords, axis=0)
            pad = np.maximum(span * 0.1, 10.0)
            lo = coords.min(axis=0) - pad
            hi = coords.max(axis=0) + pad
            ax.set_xlim(lo[0], hi[0])
            ax.set_ylim(lo[1], hi[1])
            ax.set_xlabel("x (m)")
            ax.set_ylabel("y (m)")
            ax.set_title(f"Lunar Node Map (n={len(nodes)})")
            ax.set_aspect("equal", adjustable="datalim")

            try:
                self.output_path.parent.mkdir(parents=True, exist_ok=True)
                fig.savefig(self.output_path, dpi=self.dpi, bbox_inches="tight")
            except Exception as e:
                raise RuntimeError(
                    f"Failed to save node map to {self.output_path}: {e}"
                ) from e
        finally:
            if fig is not None:
                plt.close(fig)

        if not self.output_path.exists():
            raise RuntimeError(f"Node map was not created at {self.output_path}")
        logger.info(f"Node map written to {self.output_path}")
