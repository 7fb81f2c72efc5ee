"""Command line interface for the lunar topology engine."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from lunartopo.config import EngineConfig
from lunartopo.errors import ConfigFileNotFoundError, TopologyError
from lunartopo.log_config import get_logger

logger = get_logger(__name__)


class Timer:
    """Context manager timing an operation with both print and log output.

    The elapsed wall-clock time in seconds is kept on ``elapsed`` once the
    block exits, whether it succeeded or raised.

    Args:
        description: Operation description for timing messages.
    """

    def __init__(self, description: str) -> None:
        self.description = description
        self.elapsed = 0.0
        self._start = 0.0

    def __enter__(self) -> Timer:
        print(f"🔄 {self.description}...")
        logger.info(f"Starting {self.description}")
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.elapsed = time.perf_counter() - self._start
        if exc_type is None:
            print(f"✅ {self.description} (completed in {self.elapsed:.2f}s)")
            logger.info(f"Completed {self.description} in {self.elapsed:.2f}s")
        else:
            print(f"❌ {self.description} (failed after {self.elapsed:.2f}s)")
            logger.error(
                f"Failed {self.description} after {self.elapsed:.2f}s: {exc}"
            )
        return False


def _apply_logging_settings(config: EngineConfig) -> None:
    """Reconfigure logging with the settings' layout, keeping the CLI level."""
    from lunartopo.log_config import set_global_log_level

    level = get_logger("lunartopo").getEffectiveLevel()
    set_global_log_level(
        level,
        fmt=config.logging.format,
        datefmt=config.logging.datefmt,
        log_file=config.logging.file,
    )


def _load_settings(settings_path: str | None) -> EngineConfig:
    """Load engine settings, or defaults when no file is given.

    Raises:
        SystemExit: If the settings file is missing or invalid.
    """
    if not settings_path:
        return EngineConfig()
    path = Path(settings_path)
    try:
        config = EngineConfig.from_yaml(path)
        _apply_logging_settings(config)
        logger.info(f"Loaded settings from {path}")
        return config
    except FileNotFoundError:
        print(f"❌ Settings file not found: {path}")
        logger.error(f"Settings file not found: {path}")
        sys.exit(2)
    except Exception as e:
        logger.error(f"Failed to load settings: {e}")
        print(f"❌ Settings error: {e}")
        print(f"💡 Check YAML syntax in: {path}")
        sys.exit(2)


def _load_graph(config_path: str, settings: EngineConfig):
    """Parse the topology file and build its graph.

    Returns:
        Tuple of (records, graph).

    Raises:
        SystemExit: On missing file (2) or malformed topology (3).
    """
    from lunartopo.graph import build_graph
    from lunartopo.parser import parse_topology

    try:
        records = parse_topology(config_path, config=settings.parser)
        graph = build_graph(records, config=settings.graph)
    except ConfigFileNotFoundError as e:
        print(f"❌ {e}")
        sys.exit(2)
    except TopologyError as e:
        logger.error(f"Invalid topology: {e}")
        print(f"❌ Invalid topology: {e}")
        sys.exit(3)
    print(f"📊 Parsed {len(records)} node(s); graph has {graph.edge_count} link(s)")
    return records, graph


def simulate_command(args: argparse.Namespace) -> None:
    """Resolve every configured link and hand it to the transmission simulator.

    Args:
        args: Parsed command line arguments.
    """
    from lunartopo.links import LoggingTransmissionSimulator, resolve_links

    settings = _load_settings(args.settings)
    _, graph = _load_graph(args.config, settings)
    workers = args.workers if args.workers else settings.links.workers

    simulator = LoggingTransmissionSimulator()
    with Timer("Link resolution") as timer:
        failures = resolve_links(graph, simulator, workers=workers)

    print(f"📡 Simulated {len(simulator.calls)} link(s) in {timer.elapsed:.2f}s")
    if failures:
        print(f"⚠️  {len(failures)} link(s) failed:")
        for failure in failures:
            print(f"   - {failure.message}")
        sys.exit(3)
    print("🎉 All transmissions complete")


def path_command(args: argparse.Namespace) -> None:
    """Find and print the shortest path between two nodes.

    Args:
        args: Parsed command line arguments.
    """
    from lunartopo.path_finder import find_path

    settings = _load_settings(args.settings)
    _, graph = _load_graph(args.config, settings)

    result = find_path(
        graph, args.start, args.goal, tie_break=settings.path_finder.tie_break
    )
    if not result.found:
        print(f"❌ {result.reason}")
        sys.exit(4)

    print("Optimal Path:")
    print(f"  {result}")
    print(f"Total distance: {result.distance_m:.3f} m")


def map_command(args: argparse.Namespace) -> None:
    """Render the node map.

    Args:
        args: Parsed command line arguments.
    """
    from lunartopo.map_export import JsonMapRenderer, export_map

    settings = _load_settings(args.settings)
    records, graph = _load_graph(args.config, settings)

    output_path = Path(args.output) if args.output else settings.map.output_path
    fmt = args.format or (
        "json" if output_path.suffix.lower() == ".json" else "image"
    )
    if fmt == "json" and not args.output:
        output_path = output_path.with_suffix(".json")
    if fmt == "json":
        renderer = JsonMapRenderer(output_path)
    else:
        from lunartopo.visualization import MatplotlibMapRenderer

        renderer = MatplotlibMapRenderer(
            output_path,
            graph=graph,
            figure_size=settings.map.figure_size,
            dpi=settings.map.dpi,
            draw_links=settings.map.draw_links,
        )

    try:
        with Timer(f"Render node map to {output_path}"):
            exported = export_map(records, renderer)
    except Exception as e:
        logger.error(f"Map rendering failed: {e}")
        print(f"❌ Map rendering failed: {e}")
        sys.exit(1)

    if not exported:
        print("❌ No nodes to map")
        sys.exit(3)
    print(f"🗺️  Node map written to: {output_path}")


def show_command(args: argparse.Namespace) -> None:
    """Print each node block of a topology file.

    Args:
        args: Parsed command line arguments.
    """
    from lunartopo.parser import iter_sections

    settings = _load_settings(args.settings)
    path = Path(args.config)
    try:
        with path.open("r", encoding="utf-8") as f:
            sections = list(iter_sections(f, sentinel=settings.parser.sentinel))
    except OSError as e:
        print(f"❌ Could not open file: {path} ({e.strerror})")
        sys.exit(2)
    except UnicodeDecodeError as e:
        logger.error(f"Topology file {path} is not valid UTF-8: {e}")
        print(f"❌ Invalid topology: {path} is not valid UTF-8 text")
        sys.exit(3)

    print(f"=== Displaying {path.name} ===")
    blocks = 0
    for section in sections:
        if section.index > 0:
            blocks += 1
            print("\n" + "-" * 38)
            print(f" Node Configuration #{section.index}")
            print("-" * 38)
        for key, value in section.entries:
            print(f"{key:<25}: {value}")

    if blocks == 0:
        print("\n⚠️  No node configuration sections found.")
    else:
        print(f"\nDisplayed {blocks} node configuration(s).")


def info_command(args: argparse.Namespace) -> None:
    """Show effective engine settings.

    Args:
        args: Parsed command line arguments.
    """
    settings = _load_settings(args.settings)
    print(settings.summary())


def main() -> None:
    """Parse command line arguments and execute the appropriate subcommand.

    Configures logging, parses CLI arguments, and dispatches to the correct
    command function.
    """
    parser = argparse.ArgumentParser(
        prog="lunartopo",
        description="Parse lunar network topologies, simulate links and find optimal paths.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console output (logs only)",
    )
    parser.add_argument(
        "-s",
        "--settings",
        default=None,
        help="Engine settings YAML file (defaults apply when omitted)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    simulate_parser = subparsers.add_parser(
        "simulate", help="Simulate every configured link"
    )
    simulate_parser.add_argument("config", help="Topology configuration file")
    simulate_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used for simulator calls (overrides settings)",
    )
    simulate_parser.set_defaults(func=simulate_command)

    path_parser = subparsers.add_parser("path", help="Find the optimal path")
    path_parser.add_argument("config", help="Topology configuration file")
    path_parser.add_argument("start", help="Starting node name")
    path_parser.add_argument("goal", help="Destination node name")
    path_parser.set_defaults(func=path_command)

    map_parser = subparsers.add_parser("map", help="Render the node map")
    map_parser.add_argument("config", help="Topology configuration file")
    map_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file. Defaults to map.output_path from settings.",
    )
    map_parser.add_argument(
        "--format",
        choices=["image", "json"],
        default=None,
        help="Output format; inferred from the output suffix when omitted",
    )
    map_parser.set_defaults(func=map_command)

    show_parser = subparsers.add_parser(
        "show", help="Display the node blocks of a topology file"
    )
    show_parser.add_argument("config", help="Topology configuration file")
    show_parser.set_defaults(func=show_command)

    info_parser = subparsers.add_parser("info", help="Show effective engine settings")
    info_parser.set_defaults(func=info_command)

    args = parser.parse_args()

    import logging

    from lunartopo.log_config import set_global_log_level

    log_level = logging.DEBUG if args.verbose else logging.INFO
    set_global_log_level(log_level)

    if args.quiet:
        import builtins

        builtins.print = lambda *args, **kwargs: None

    if not hasattr(args, "func") or args.func is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
