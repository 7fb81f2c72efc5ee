"""Topology configuration parser.

Reads the line-oriented node configuration format::

    NODECONFIGHEADER
    Name: "GatewayA"
    Type: "Gateway"
    Location: 0.0, 0.0, 0.0
    Transmission Frequency: 2100
    Transmission Power: 33
    Transmission Data Rate: OfdmRate6Mbps
    Receiver Data Rate: OfdmRate6Mbps
    Linked Nodes: "gNB0", "gNB1"

Each line is split at its first colon into a label and a value. Labels are
matched against a fixed set after normalization, so labels sharing a prefix
(``Transmission Frequency`` / ``Transmission Data Rate``) never collide.
Unknown labels and lines without a colon are ignored.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator

from lunartopo.errors import ConfigFileNotFoundError, ParseError
from lunartopo.log_config import get_logger
from lunartopo.models import NodeRecord, Position

if TYPE_CHECKING:
    from lunartopo.config import ParserConfig

logger = get_logger(__name__)

DEFAULT_SENTINEL = "NODECONFIGHEADER"

# Characters trimmed from both ends of every value
_TRIM_CHARS = ' \t\r\n"'
_SPLIT_RE = re.compile(r"[,\s]+")

# Normalized label -> (NodeRecord attribute, display label)
_FIELDS: dict[str, tuple[str, str]] = {
    "name": ("name", "Name"),
    "type": ("kind", "Type"),
    "location": ("position", "Location"),
    "transmission frequency": ("frequency_mhz", "Transmission Frequency"),
    "transmission power": ("tx_power_dbm", "Transmission Power"),
    "transmission data rate": ("tx_rate", "Transmission Data Rate"),
    "receiver data rate": ("rx_rate", "Receiver Data Rate"),
    "linked nodes": ("links", "Linked Nodes"),
}


@dataclass
class TopologySection:
    """Raw key/value view of one node block, in file order.

    Attributes:
        index: 1-based block number; 0 holds lines before the first sentinel.
        entries: ``(label, value)`` pairs with quotes and whitespace trimmed.
    """

    index: int
    entries: list[tuple[str, str]] = field(default_factory=list)


def _clean(value: str) -> str:
    return value.strip(_TRIM_CHARS)


def _normalize_label(label: str) -> str:
    return " ".join(_clean(label).split()).casefold()


def _split_tokens(value: str) -> list[str]:
    tokens = (_clean(tok) for tok in _SPLIT_RE.split(value))
    return [tok for tok in tokens if tok]


def _split_line(line: str) -> tuple[str, str] | None:
    """Split a line at its first colon, or return None when it has none."""
    label, sep, value = line.partition(":")
    if not sep:
        return None
    return label, value


def _parse_real(text: str, *, node: str, label: str, line_number: int) -> float:
    try:
        value = float(text)
    except ValueError:
        raise ParseError(
            f"{label} value '{text}' is not a number",
            node=node or None,
            field=label,
            line_number=line_number,
        ) from None
    if not math.isfinite(value):
        raise ParseError(
            f"{label} value '{text}' is not finite",
            node=node or None,
            field=label,
            line_number=line_number,
        )
    return value


def _parse_location(value: str, *, node: str, line_number: int) -> Position:
    """Parse up to three coordinates; missing trailing ones default to 0.0."""
    tokens = _split_tokens(value)
    if not tokens:
        raise ParseError(
            "Location has no coordinates",
            node=node or None,
            field="Location",
            line_number=line_number,
        )
    coords = [
        _parse_real(tok, node=node, label="Location", line_number=line_number)
        for tok in tokens[:3]
    ]
    if len(tokens) > 3:
        logger.debug(
            f"Node '{node}': ignoring {len(tokens) - 3} extra Location value(s) "
            f"on line {line_number}"
        )
    coords.extend([0.0] * (3 - len(coords)))
    return Position(*coords)


class _BlockBuilder:
    """Accumulates one node block until it is closed.

    Numeric fields are kept raw and converted in :meth:`close`, once the
    block's name is known regardless of where ``Name:`` appears.
    """

    def __init__(self, start_line: int) -> None:
        self.record = NodeRecord()
        self.start_line = start_line
        self.numeric: list[tuple[str, str, str, int]] = []

    def apply(self, attr: str, label: str, value: str, line_number: int) -> None:
        if attr in ("position", "frequency_mhz", "tx_power_dbm"):
            self.numeric.append((attr, label, value, line_number))
        elif attr == "links":
            self.record.links.extend(_split_tokens(value))
        else:
            setattr(self.record, attr, _clean(value))

    def close(self, require_location: bool) -> NodeRecord | None:
        record = self.record
        if not record.name:
            return None
        for attr, label, value, line_number in self.numeric:
            if attr == "position":
                record.position = _parse_location(
                    value, node=record.name, line_number=line_number
                )
            else:
                setattr(
                    record,
                    attr,
                    _parse_real(
                        _clean(value),
                        node=record.name,
                        label=label,
                        line_number=line_number,
                    ),
                )
        if record.position is None:
            if require_location:
                raise ParseError(
                    "missing mandatory Location",
                    node=record.name,
                    field="Location",
                    line_number=self.start_line,
                )
            logger.warning(
                f"Node '{record.name}' has no Location; it will be excluded "
                "from distance computations"
            )
        return record


def parse_lines(
    lines: Iterable[str],
    *,
    config: ParserConfig | None = None,
    source: str = "<string>",
) -> list[NodeRecord]:
    """Parse topology configuration lines into node records.

    Args:
        lines: Text lines, with or without trailing newlines.
        config: Parser options; defaults apply when omitted.
        source: Label used in log messages.

    Returns:
        Node records in file order. Blocks without a name are dropped.

    Raises:
        ParseError: If a numeric field is malformed or, in strict mode, a
            named block lacks a location.
    """
    sentinel = (config.sentinel if config else DEFAULT_SENTINEL).casefold()
    require_location = config.require_location if config else True

    records: list[NodeRecord] = []
    current = _BlockBuilder(start_line=1)
    blocks = 0

    for line_number, line in enumerate(lines, start=1):
        if sentinel in line.casefold():
            closed = current.close(require_location)
            if closed is not None:
                records.append(closed)
            current = _BlockBuilder(start_line=line_number)
            blocks += 1
            continue

        parts = _split_line(line)
        if parts is None:
            continue
        label, value = parts
        field_info = _FIELDS.get(_normalize_label(label))
        if field_info is None:
            continue
        attr, display = field_info
        current.apply(attr, display, value, line_number)

    closed = current.close(require_location)
    if closed is not None:
        records.append(closed)

    logger.info(f"Parsed {len(records)} node(s) from {blocks} block(s) in {source}")
    return records


def parse_topology(
    path: str | Path, *, config: ParserConfig | None = None
) -> list[NodeRecord]:
    """Parse a topology configuration file.

    Args:
        path: Path to the configuration text file.
        config: Parser options; defaults apply when omitted.

    Returns:
        Node records in file order.

    Raises:
        ConfigFileNotFoundError: If the file is missing or unreadable.
        ParseError: If any node block is malformed.
    """
    path = Path(path)
    logger.info(f"Reading topology configuration: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return parse_lines(f, config=config, source=str(path))
    except OSError as exc:
        logger.error(f"Could not open topology file {path}: {exc}")
        raise ConfigFileNotFoundError(str(path), exc.strerror) from exc
    except UnicodeDecodeError as exc:
        raise ParseError(f"{path} is not UTF-8 text: {exc.reason}") from exc


def iter_sections(
    lines: Iterable[str], *, sentinel: str = DEFAULT_SENTINEL
) -> Iterator[TopologySection]:
    """Yield the raw key/value pairs of each block for display.

    Unlike :func:`parse_lines`, every ``label: value`` line is kept, including
    labels the parser does not recognize. Lines before the first sentinel are
    yielded as section 0 when there are any.
    """
    marker = sentinel.casefold()
    section = TopologySection(index=0)
    for line in lines:
        if marker in line.casefold():
            if section.index > 0 or section.entries:
                yield section
            section = TopologySection(index=section.index + 1)
            continue
        parts = _split_line(line)
        if parts is None:
            continue
        label, value = parts
        section.entries.append((_clean(label), _clean(value)))
    if section.index > 0 or section.entries:
        yield section


def _format_real(value: float) -> str:
    return repr(float(value))


def format_node_block(record: NodeRecord, *, sentinel: str = DEFAULT_SENTINEL) -> str:
    """Serialize one record back into the configuration format.

    Unset optional fields are omitted so that re-parsing yields an equal record.
    """
    lines = [sentinel, f'Name: "{record.name}"']
    if record.kind:
        lines.append(f'Type: "{record.kind}"')
    if record.position is not None:
        lines.append("Location: " + ", ".join(_format_real(c) for c in record.position))
    if record.frequency_mhz is not None:
        lines.append(f"Transmission Frequency: {_format_real(record.frequency_mhz)}")
    if record.tx_power_dbm is not None:
        lines.append(f"Transmission Power: {_format_real(record.tx_power_dbm)}")
    if record.tx_rate:
        lines.append(f"Transmission Data Rate: {record.tx_rate}")
    if record.rx_rate:
        lines.append(f"Receiver Data Rate: {record.rx_rate}")
    if record.links:
        lines.append("Linked Nodes: " + ", ".join(f'"{n}"' for n in record.links))
    return "\n".join(lines) + "\n"


def format_topology(
    records: Iterable[NodeRecord], *, sentinel: str = DEFAULT_SENTINEL
) -> str:
    """Serialize records into a complete configuration document."""
    return "\n".join(format_node_block(r, sentinel=sentinel) for r in records)
