from wlanqos.simulation.collectors import InMemoryFlowRecordCollector
from wlanqos.simulation.flows import FiveTuple, FlowRecord
from wlanqos.simulation.network import Interface, IpStack, Node

AP_ADDRESS = "192.168.1.1"


def udp_tuple(dst_port: int, src: str = "192.168.1.2", src_port: int = 49153):
    return FiveTuple(
        protocol=17,
        source_address=src,
        source_port=src_port,
        destination_address=AP_ADDRESS,
        destination_port=dst_port,
    )


def record(rx_packets: int = 1000, **overrides) -> FlowRecord:
    values = dict(
        tx_bytes=1470 * rx_packets,
        rx_bytes=1470 * rx_packets,
        tx_packets=rx_packets,
        rx_packets=rx_packets,
        lost_packets=0,
        delay_sum_ns=50_000 * rx_packets,
        jitter_sum_ns=1_000 * max(rx_packets - 1, 0),
        first_tx_ns=1_000_000_000,
        last_rx_ns=9_000_000_000,
    )
    values.update(overrides)
    return FlowRecord(**values)


def make_collector(flows):
    """Build a collector from (flow_id, five_tuple, record) triples."""
    collector = InMemoryFlowRecordCollector()
    for flow_id, five_tuple, rec in flows:
        collector.add(flow_id, five_tuple, rec)
    return collector


def make_node(node_id: int, address: str, with_loopback: bool = True) -> Node:
    interfaces = []
    if with_loopback:
        interfaces.append(
            Interface(name="lo", link_address="00:00:00:00:00:00", addresses=["127.0.0.1"])
        )
    interfaces.append(
        Interface(
            name="wlan0",
            link_address=f"00:00:00:00:00:{node_id + 1:02x}",
            addresses=[address],
        )
    )
    return Node(node_id=node_id, name=f"n{node_id}", ip_stack=IpStack(interfaces))


