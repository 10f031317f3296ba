import pytest

from helpers import record, udp_tuple
from wlanqos.simulation.qos_metrics import ActiveWindow
from wlanqos.simulation.traffic import build_class_table
from wlanqos.simulation_config import QoSExperimentConfig, TrafficConfig


@pytest.fixture
def window():
    return ActiveWindow(duration_s=10.0, analysis_start_s=0.0)


@pytest.fixture
def class_table():
    return build_class_table(TrafficConfig())


@pytest.fixture
def experiment_config():
    return QoSExperimentConfig()


@pytest.fixture
def four_class_flows():
    return [
        (1, udp_tuple(1006), record(1000)),
        (2, udp_tuple(1005, src_port=49154), record(800, lost_packets=12)),
        (3, udp_tuple(1000, src_port=49155), record(600, jitter_sum_ns=123_457)),
        (4, udp_tuple(1001, src_port=49156), record(1, jitter_sum_ns=0)),
        (5, udp_tuple(1006, src="192.168.1.3"), record(0, tx_packets=40, tx_bytes=58_800)),
    ]
