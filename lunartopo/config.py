"""Engine settings for the lunar topology engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from lunartopo.log_config import DEFAULT_DATEFMT, DEFAULT_FORMAT, get_logger

logger = get_logger(__name__)

DUPLICATE_NAME_POLICIES = ("last_wins", "reject")
TIE_BREAK_MODES = ("name", "insertion")
MAP_FORMATS = ("png", "jpeg", "json")


@dataclass
class ParserConfig:
    """Topology text parsing options.

    ``require_location`` makes a named block without a ``Location:`` line a
    parse error. When disabled, such nodes are kept but excluded from the
    graph used for distances.
    """

    sentinel: str = "NODECONFIGHEADER"
    require_location: bool = True


@dataclass
class GraphConfig:
    """Graph construction options."""

    duplicate_names: str = "last_wins"  # "last_wins" or "reject"


@dataclass
class PathFinderConfig:
    """Shortest-path search options."""

    tie_break: str = "name"  # "name" (lexicographic) or "insertion"


@dataclass
class LinksConfig:
    """Link resolution options."""

    workers: int = 1  # >1 runs simulator calls on a thread pool


@dataclass
class MapConfig:
    """Node map rendering options."""

    output_path: Path = Path("lunar_node_map.png")
    dpi: int = 150
    figure_size: tuple[float, float] = (10.0, 8.0)
    draw_links: bool = True

    def __post_init__(self) -> None:
        """Normalize path and figure size types."""
        self.output_path = Path(self.output_path)
        self.figure_size = tuple(float(v) for v in self.figure_size)  # type: ignore[assignment]

    @property
    def format(self) -> str:
        suffix = self.output_path.suffix.lower().lstrip(".")
        return "jpeg" if suffix == "jpg" else suffix


@dataclass
class LoggingConfig:
    """Log record layout and optional log file."""

    format: str = DEFAULT_FORMAT
    datefmt: str = DEFAULT_DATEFMT
    file: Path | None = None

    def __post_init__(self) -> None:
        if self.file is not None:
            self.file = Path(self.file)


@dataclass
class EngineConfig:
    """Complete engine configuration.

    Aggregates parser, graph, path finder, link, map and logging settings.
    Every section is optional in the YAML file; omitted sections keep their
    defaults.
    """

    parser: ParserConfig = field(default_factory=ParserConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    path_finder: PathFinderConfig = field(default_factory=PathFinderConfig)
    links: LinksConfig = field(default_factory=LinksConfig)
    map: MapConfig = field(default_factory=MapConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    _source_path: Path | None = None

    @classmethod
    def from_yaml(cls, config_path: Path) -> EngineConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML settings file.

        Returns:
            Parsed and validated configuration object.

        Raises:
            FileNotFoundError: If the settings file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            ValueError: If configuration is invalid.
        """
        config_path = Path(config_path)
        logger.info(f"Loading engine settings from: {config_path}")

        if not config_path.exists():
            raise FileNotFoundError(f"Settings file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in settings: {e}")
            raise

        cfg = cls._from_dict(raw_config or {})
        cfg._source_path = config_path
        return cfg

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> EngineConfig:
        """Create configuration from dictionary.

        Args:
            config_dict: Raw configuration dictionary.

        Returns:
            Parsed configuration object.
        """
        if not isinstance(config_dict, dict):
            raise ValueError("Settings file must contain a mapping at top level")

        known = {"parser", "graph", "path_finder", "links", "map", "logging"}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ValueError(f"Unknown settings section(s): {', '.join(unknown)}")

        def _section(key: str) -> dict[str, Any]:
            value = config_dict.get(key) or {}
            if not isinstance(value, dict):
                raise ValueError(f"'{key}' settings section must be a dictionary")
            return value

        try:
            cfg = cls(
                parser=ParserConfig(**_section("parser")),
                graph=GraphConfig(**_section("graph")),
                path_finder=PathFinderConfig(**_section("path_finder")),
                links=LinksConfig(**_section("links")),
                map=MapConfig(**_section("map")),
                logging=LoggingConfig(**_section("logging")),
            )
        except TypeError as exc:
            raise ValueError(f"Invalid settings key: {exc}") from exc

        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not str(self.parser.sentinel).strip():
            raise ValueError("parser.sentinel must be a non-empty string")
        if self.graph.duplicate_names not in DUPLICATE_NAME_POLICIES:
            raise ValueError(
                f"graph.duplicate_names must be one of {DUPLICATE_NAME_POLICIES}, "
                f"got '{self.graph.duplicate_names}'"
            )
        if self.path_finder.tie_break not in TIE_BREAK_MODES:
            raise ValueError(
                f"path_finder.tie_break must be one of {TIE_BREAK_MODES}, "
                f"got '{self.path_finder.tie_break}'"
            )
        if not isinstance(self.links.workers, int) or self.links.workers < 1:
            raise ValueError("links.workers must be a positive integer")
        if not isinstance(self.map.dpi, int) or self.map.dpi <= 0:
            raise ValueError("map.dpi must be a positive integer")
        if len(self.map.figure_size) != 2 or min(self.map.figure_size) <= 0:
            raise ValueError("map.figure_size must be two positive numbers")
        if self.map.format not in MAP_FORMATS:
            raise ValueError(
                f"map.output_path must end in one of {MAP_FORMATS}, "
                f"got '{self.map.output_path}'"
            )
        if not str(self.logging.format).strip():
            raise ValueError("logging.format must be a non-empty string")
        if "%(message)" not in self.logging.format:
            raise ValueError("logging.format must include %(message)s")

    def summary(self) -> str:
        """Generate configuration summary string.

        Returns:
            Human-readable configuration summary.
        """
        source = self._source_path if self._source_path else "(defaults)"
        lines = [
            "LUNAR TOPOLOGY ENGINE SETTINGS",
            "=" * 60,
            f"   Source: {source}",
            "",
            "PARSER",
            "-" * 30,
            f"   Sentinel: {self.parser.sentinel}",
            f"   Require Location: {self.parser.require_location}",
            "",
            "GRAPH",
            "-" * 30,
            f"   Duplicate Names: {self.graph.duplicate_names}",
            "",
            "PATH FINDER",
            "-" * 30,
            f"   Tie Break: {self.path_finder.tie_break}",
            "",
            "LINKS",
            "-" * 30,
            f"   Workers: {self.links.workers}",
            "",
            "MAP",
            "-" * 30,
            f"   Output: {self.map.output_path}",
            f"   DPI: {self.map.dpi}",
            f"   Draw Links: {self.map.draw_links}",
            "",
            "LOGGING",
            "-" * 30,
            f"   Format: {self.logging.format}",
            f"   Date Format: {self.logging.datefmt}",
            f"   File: {self.logging.file or '(stderr only)'}",
            "",
            "=" * 60,
        ]

        return "\n".join(lines)
