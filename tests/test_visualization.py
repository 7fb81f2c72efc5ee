"""Tests for the matplotlib node map renderer."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from lunartopo.graph import build_graph  # noqa: E402
from lunartopo.map_export import export_map  # noqa: E402
from lunartopo.parser import parse_lines  # noqa: E402
from lunartopo.visualization import MatplotlibMapRenderer  # noqa: E402


def test_export_node_map_png(tmp_path: Path, sample_topology_text) -> None:
    """Render the sample topology with links and verify a non-trivial PNG."""
    records = parse_lines(sample_topology_text.splitlines())
    graph = build_graph(records)
    out = tmp_path / "node_map.png"

    export_map(records, MatplotlibMapRenderer(out, graph=graph, dpi=72))

    assert out.exists()
    assert out.stat().st_size > 1000


def test_single_node_without_links(tmp_path: Path, record_factory) -> None:
    out = tmp_path / "nested" / "single.png"

    export_map(
        [record_factory("Solo", (5, 5, 0))],
        MatplotlibMapRenderer(out, draw_links=False, figure_size=(4, 3), dpi=72),
    )

    assert out.exists()


def test_empty_node_list_is_rejected(tmp_path: Path) -> None:
    renderer = MatplotlibMapRenderer(tmp_path / "empty.png")

    with pytest.raises(ValueError, match="no nodes"):
        renderer.render_map([])
