import pytest

from helpers import make_collector, record, udp_tuple
from wlanqos.simulation.errors import ConfigurationError, UnsupportedProtocolError
from wlanqos.simulation.flows import FiveTuple
from wlanqos.simulation.network import Node
from wlanqos.simulation.processor import (
    prepare_experiment,
    process_and_report,
    process_flow_records,
)
from wlanqos.simulation_config import (
    QoSExperimentConfig,
    SimulationConfig,
    TopologyConfig,
    TrafficConfig,
)


def test_prepare_experiment_bootstraps_every_interface():
    cfg = QoSExperimentConfig(topology=TopologyConfig(n_stations=4))
    setup = prepare_experiment(cfg)

    assert len(setup.resolution_cache) == 5
    assert "127.0.0.1" not in setup.resolution_cache
    for node in setup.topology.nodes:
        for iface in node.ip_stack.interfaces:
            assert iface.resolution_cache is setup.resolution_cache
    assert len(setup.generators) == 4 * 4
    assert len(setup.sinks) == 4


def test_prepare_experiment_rejects_bad_config():
    cfg = QoSExperimentConfig(topology=TopologyConfig(loss_model="Okumura"))
    with pytest.raises(ConfigurationError):
        prepare_experiment(cfg)


def test_missing_ip_stack_in_topology(monkeypatch):
    from wlanqos.simulation import processor
    from wlanqos.simulation.network import build_topology

    def broken_topology(cfg, seed=None):
        topology = build_topology(cfg, seed)
        topology.stations.append(Node(node_id=99, name="sta99"))
        return topology

    monkeypatch.setattr(processor, "build_topology", broken_topology)
    with pytest.raises(ConfigurationError, match="sta99"):
        prepare_experiment(QoSExperimentConfig(topology=TopologyConfig(n_stations=2)))


def test_process_flow_records_uses_analysis_window():
    cfg = QoSExperimentConfig(
        simulation=SimulationConfig(duration=10.0, analysis_start=2.0)
    )
    collector = make_collector([(1, udp_tuple(1000), record(1000))])
    result = process_flow_records(collector, cfg)

    assert result.total.throughput_mbps == pytest.approx(1_470_000 * 8 / 8_000_000)


def test_report_for_disabled_class_still_lists_it():
    cfg = QoSExperimentConfig(traffic=TrafficConfig(video=False))
    collector = make_collector([(1, udp_tuple(1005), record(10))])
    report = process_and_report(collector, cfg)

    assert "TID: 5 (Video)" in report
    assert "- traffic classes: VO, BE, BK" in report


def test_report_aborts_on_icmp_flow():
    collector = make_collector(
        [(1, FiveTuple(1, "192.168.1.2", 0, "192.168.1.1", 1006), record(10))]
    )
    with pytest.raises(UnsupportedProtocolError):
        process_and_report(collector, QoSExperimentConfig())


def test_report_lists_node_positions():
    cfg = QoSExperimentConfig(topology=TopologyConfig(n_stations=2))
    setup = prepare_experiment(cfg)
    collector = make_collector([(1, udp_tuple(1000), record(10))])
    report = process_and_report(collector, cfg, setup.topology)

    assert "Node positions:" in report
    assert "  AP:\tx=0, y=0" in report
    assert "  Sta 2:\tx=" in report
