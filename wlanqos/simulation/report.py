"""
Plain-text rendering of simulation settings and QoS results.
"""

import typing as tp

from wlanqos.simulation.network import Topology
from wlanqos.simulation.qos_metrics import (
    AggregationResult,
    FlowStatistics,
    QoSSummary,
)
from wlanqos.simulation.traffic import TrafficClassDescriptor
from wlanqos.simulation_config import QoSExperimentConfig

UNDEFINED = "---"
RULE = "======================="


def _number(value: float) -> str:
    return f"{value:g}"


def _ms(value: tp.Optional[float]) -> str:
    return UNDEFINED if value is None else f"{_number(value)} ms"


class ReportFormatter:
    """Renders aggregation results as the text report printed after a run."""

    def format_settings(self, cfg: QoSExperimentConfig) -> str:
        topo, traffic, sim = cfg.topology, cfg.traffic, cfg.simulation
        classes = [
            name
            for name, enabled in (
                ("VO", traffic.voice),
                ("VI", traffic.video),
                ("BE", traffic.best_effort),
                ("BK", traffic.background),
            )
            if enabled
        ]
        lines = [
            "Simulating an IEEE 802.11 network with the following settings:",
            f"- number of transmitting stations: {topo.n_stations}",
            f"- fast stations: {topo.n_fast_stations} "
            f"(offered load / {_number(traffic.fast_load_divisor)} each)",
            f"- modulation and coding scheme (MCS): {topo.mcs}",
            f"- channel width: {topo.channel_width} MHz",
            f"- guard interval: {topo.guard_interval} ns",
            f"- RTS/CTS: {'on' if topo.rts_cts else 'off'}",
            f"- loss model: {topo.loss_model}",
            f"- position allocator: {topo.placement} (radius {_number(topo.radius)} m)",
            f"- packet size: {traffic.packet_size} B",
            f"- offered load per class: {_number(traffic.offered_load_mbps)} Mb/s",
            f"- traffic classes: {', '.join(classes) or 'none'}",
            f"- simulation time: {_number(sim.duration)} s "
            f"(analysis from {_number(sim.analysis_start)} s)",
            f"- seed: {sim.seed}",
        ]
        return "\n".join(lines)

    def format_positions(self, topology: Topology) -> str:
        lines = ["Node positions:"]
        for node in topology.nodes:
            label = "AP" if node.role == "ap" else f"Sta {node.node_id}"
            x, y, _ = node.position
            lines.append(f"  {label}:\tx={_number(x)}, y={_number(y)}")
        return "\n".join(lines)

    def _counters(self, summary: QoSSummary) -> tp.List[str]:
        return [
            f"  Tx bytes:\t{summary.tx_bytes}",
            f"  Rx bytes:\t{summary.rx_bytes}",
            f"  Tx packets:\t{summary.tx_packets}",
            f"  Rx packets:\t{summary.rx_packets}",
            f"  Lost packets:\t{summary.lost_packets}",
            f"  Throughput:\t{_number(summary.throughput_mbps)} Mb/s",
            f"  Mean delay:\t{_ms(summary.mean_delay_ms)}",
            f"  Mean jitter:\t{_ms(summary.mean_jitter_ms)}",
        ]

    def format_flow(self, flow: FlowStatistics) -> str:
        t = flow.five_tuple
        header = (
            f"FlowID: {flow.flow_id} ({flow.protocol.name} "
            f"{t.source_address}/{t.source_port} --> "
            f"{t.destination_address}/{t.destination_port})"
        )
        if not flow.has_valid_tid:
            header += " [no traffic class]"
        return "\n".join([header] + self._counters(flow.summary))

    def format_class(
        self,
        descriptor: TrafficClassDescriptor,
        summary: QoSSummary,
    ) -> str:
        header = f"{RULE}TID: {descriptor.tid} ({descriptor.name}) {RULE}"
        return "\n".join([header] + self._counters(summary))

    def format_total(self, summary: QoSSummary) -> str:
        return "\n".join([f"{RULE}Total: {RULE}"] + self._counters(summary))

    def render(
        self,
        result: AggregationResult,
        cfg: tp.Optional[QoSExperimentConfig] = None,
        topology: tp.Optional[Topology] = None,
    ) -> str:
        """
        Render the full report.

        Settings and node positions are included when given. Flow blocks
        follow collector order, class blocks follow the class
        table, and the totals come last.
        """
        blocks = []
        if cfg is not None:
            blocks.append(self.format_settings(cfg))
        if topology is not None:
            blocks.append(self.format_positions(topology))
        blocks.extend(self.format_flow(flow) for flow in result.flows)
        blocks.extend(
            self.format_class(descriptor, summary)
            for descriptor, summary in result.reported_classes()
        )
        blocks.append(self.format_total(result.total))
        return "\n".join(blocks) + "\n"
