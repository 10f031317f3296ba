import math
import random

import pytest

from wlanqos.simulation.errors import ConfigurationError
from wlanqos.simulation.network import (
    build_topology,
    mac_address,
    place_nodes,
    validate_config,
)
from wlanqos.simulation_config import (
    QoSExperimentConfig,
    SimulationConfig,
    TopologyConfig,
    TrafficConfig,
)


def test_mac_addresses_are_sequential():
    assert mac_address(1) == "00:00:00:00:00:01"
    assert mac_address(300) == "00:00:00:00:01:2c"


@pytest.mark.parametrize("placement", ["grid", "rectangle", "disc"])
def test_placement_stays_within_radius(placement):
    positions = place_nodes(25, placement, 5.0, random.Random(7))

    assert len(positions) == 25
    for x, y, z in positions:
        assert abs(x) <= 5.0 and abs(y) <= 5.0 and z == 0.0
        if placement == "disc":
            assert math.hypot(x, y) <= 5.0


def test_placement_is_reproducible():
    a = place_nodes(10, "disc", 3.0, random.Random(1))
    b = place_nodes(10, "disc", 3.0, random.Random(1))
    assert a == b


def test_unknown_placement():
    with pytest.raises(ConfigurationError, match="positioning allocator"):
        place_nodes(3, "hexagon", 1.0, random.Random(1))


def test_topology_addresses_and_stacks():
    topology = build_topology(TopologyConfig(n_stations=3), seed=1)

    assert topology.access_point.primary_address() == "192.168.1.1"
    assert [s.primary_address() for s in topology.stations] == [
        "192.168.1.2",
        "192.168.1.3",
        "192.168.1.4",
    ]
    for node in topology.nodes:
        names = [iface.name for iface in node.ip_stack.interfaces]
        assert names == ["lo", "wlan0"]
    link_addresses = {n.ip_stack.interfaces[1].link_address for n in topology.nodes}
    assert len(link_addresses) == 4


def test_subnet_too_small():
    with pytest.raises(ConfigurationError, match="cannot number"):
        build_topology(TopologyConfig(n_stations=5, subnet="10.0.0.0/30"))


def test_default_config_is_valid(experiment_config):
    validate_config(experiment_config)


@pytest.mark.parametrize(
    "topology, match",
    [
        (TopologyConfig(loss_model="Okumura"), "propagation model"),
        (TopologyConfig(placement="hexagon"), "positioning allocator"),
        (TopologyConfig(mcs=12), "MCS"),
        (TopologyConfig(channel_width=30), "Channel width"),
        (TopologyConfig(guard_interval=400), "Guard interval"),
        (TopologyConfig(n_stations=0), "station"),
        (TopologyConfig(n_fast_stations=-1), "Fast station count"),
    ],
)
def test_invalid_topology_config(topology, match):
    with pytest.raises(ConfigurationError, match=match):
        validate_config(QoSExperimentConfig(topology=topology))


def test_fast_load_divisor_must_be_positive():
    cfg = QoSExperimentConfig(traffic=TrafficConfig(fast_load_divisor=0.0))
    with pytest.raises(ConfigurationError, match="Fast load divisor"):
        validate_config(cfg)


def test_fast_stations_come_first():
    topology = build_topology(TopologyConfig(n_stations=3, n_fast_stations=2), seed=1)

    groups = [s.group for s in topology.stations]
    assert groups == ["fast", "fast", "base", "base", "base"]
    assert [s.name for s in topology.stations][:2] == ["sta1", "sta2"]
    assert topology.access_point.group == "base"
    assert len(topology.nodes) == 6


def test_analysis_start_outside_run():
    cfg = QoSExperimentConfig(
        simulation=SimulationConfig(duration=10.0, analysis_start=10.0)
    )
    with pytest.raises(ConfigurationError, match="Analysis start"):
        validate_config(cfg)
