"""Pytest configuration and shared fixtures for lunartopo tests."""

import pytest

from lunartopo.models import NodeRecord, Position

SAMPLE_TOPOLOGY = """\
NODECONFIGHEADER
Name: "GatewayA"
Type: "Gateway"
Location: 0.0, 0.0, 0.0
Transmission Frequency: 2100
Transmission Power: 33
Transmission Data Rate: OfdmRate6Mbps
Receiver Data Rate: OfdmRate6Mbps
Linked Nodes: "gNB0", "gNB1"

NODECONFIGHEADER
Name: "gNB0"
Type: "Base Station"
Location: 40.0, 10.0, 0.0
Transmission Frequency: 2100
Transmission Power: 30
Transmission Data Rate: OfdmRate54Mbps
Receiver Data Rate: OfdmRate6Mbps
Linked Nodes: "UE0"

NODECONFIGHEADER
Name: "gNB1"
Type: "Base Station"
Location: 180.0, -5.0, 0.0
Transmission Frequency: 2100
Transmission Power: 30
Transmission Data Rate: OfdmRate12Mbps
Receiver Data Rate: OfdmRate6Mbps
Linked Nodes: "UE0"

NODECONFIGHEADER
Name: "UE0"
Type: "User Equipment"
Location: 60.0, 25.0, 0.0
Transmission Frequency: 2100
Transmission Power: 23
Transmission Data Rate: OfdmRate6Mbps
Receiver Data Rate: OfdmRate12Mbps
"""


def make_record(name, position, links=(), **kwargs):
    """Build a NodeRecord with radio defaults suitable for link tests."""
    defaults = {
        "kind": "Base Station",
        "frequency_mhz": 2100.0,
        "tx_power_dbm": 30.0,
        "tx_rate": "OfdmRate6Mbps",
        "rx_rate": "OfdmRate6Mbps",
    }
    defaults.update(kwargs)
    return NodeRecord(
        name=name,
        position=Position(*position) if position is not None else None,
        links=list(links),
        **defaults,
    )


@pytest.fixture
def record_factory():
    """Factory for NodeRecord objects with radio defaults."""
    return make_record


@pytest.fixture
def sample_topology_text():
    """Four-node topology text with gateway, two base stations and a UE."""
    return SAMPLE_TOPOLOGY


@pytest.fixture
def topology_file(tmp_path, sample_topology_text):
    """Write the sample topology to a temporary file."""
    path = tmp_path / "lunar_topology.txt"
    path.write_text(sample_topology_text)
    return path


@pytest.fixture
def abc_records():
    """A(0,0,0) -> B(3,4,0) -> C(3,4,5)."""
    return [
        make_record("A", (0.0, 0.0, 0.0), ["B"]),
        make_record("B", (3.0, 4.0, 0.0), ["C"]),
        make_record("C", (3.0, 4.0, 5.0)),
    ]


@pytest.fixture
def settings_file(tmp_path):
    """Write a complete engine settings YAML file."""
    import yaml

    data = {
        "parser": {"sentinel": "NODECONFIGHEADER", "require_location": False},
        "graph": {"duplicate_names": "reject"},
        "path_finder": {"tie_break": "insertion"},
        "links": {"workers": 2},
        "map": {
            "output_path": str(tmp_path / "map.json"),
            "dpi": 72,
            "figure_size": [6, 4],
            "draw_links": False,
        },
    }
    path = tmp_path / "settings.yml"
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, indent=2)
    return path
