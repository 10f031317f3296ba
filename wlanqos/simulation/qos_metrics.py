"""
Per-class QoS statistics computed from flow monitor records.

This module reduces the per-flow counters of a finished run into:
- Per-flow metrics
- Per traffic class (TID) aggregates
- Global totals

Derived metrics:
- Throughput over the configured analysis window (Mb/s)
- Mean one-way delay (ms)
- Mean jitter (ms)
"""

import typing as tp
from dataclasses import dataclass, field

from loguru import logger

from wlanqos.simulation.errors import ConfigurationError, UnsupportedProtocolError
from wlanqos.simulation.flows import (
    FiveTuple,
    FlowRecord,
    FlowRecordCollector,
    TransportProtocol,
)
from wlanqos.simulation.traffic import (
    MAX_TID,
    TrafficClassDescriptor,
    is_valid_tid,
    port_to_class,
)


@dataclass(frozen=True)
class ActiveWindow:
    """
    Analysis interval shared by every throughput figure.

    Throughput is always taken over this fixed window, never over a flow's
    own first-tx/last-rx span, so sparse flows stay comparable.
    """

    duration_s: float
    analysis_start_s: float = 0.0

    def __post_init__(self) -> None:
        if self.microseconds <= 0:
            raise ConfigurationError(
                f"Empty analysis window: duration {self.duration_s}s, "
                f"analysis start {self.analysis_start_s}s"
            )

    @property
    def microseconds(self) -> int:
        return round((self.duration_s - self.analysis_start_s) * 1_000_000)


@dataclass(frozen=True)
class QoSSummary:
    """Finalized counters and derived metrics of one bucket or flow."""

    tx_bytes: int = 0
    rx_bytes: int = 0
    tx_packets: int = 0
    rx_packets: int = 0
    lost_packets: int = 0
    delay_sum_ns: int = 0
    jitter_sum_ns: int = 0

    # Mb/s over the analysis window, 0.0 when nothing was received
    throughput_mbps: float = 0.0
    # None when undefined (rx_packets == 0)
    mean_delay_ms: tp.Optional[float] = None
    # None when undefined (rx_packets < 2)
    mean_jitter_ms: tp.Optional[float] = None


class QoSCalculator:
    """Derived metric formulas shared by flows and aggregates."""

    @staticmethod
    def _mean_ms(sum_ns: int, count: int) -> float:
        # Whole nanoseconds, then whole microseconds, as the flow monitor reports
        mean_us = (sum_ns // count) // 1000
        return mean_us / 1000

    @classmethod
    def throughput_mbps(
        cls,
        rx_bytes: int,
        rx_packets: int,
        window: ActiveWindow,
    ) -> float:
        if rx_packets <= 0:
            return 0.0
        return rx_bytes * 8 / window.microseconds

    @classmethod
    def mean_delay_ms(cls, delay_sum_ns: int, rx_packets: int) -> tp.Optional[float]:
        if rx_packets <= 0:
            return None
        return cls._mean_ms(delay_sum_ns, rx_packets)

    @classmethod
    def mean_jitter_ms(
        cls,
        jitter_sum_ns: int,
        rx_packets: int,
    ) -> tp.Optional[float]:
        # Jitter needs at least two received packets
        if rx_packets <= 1:
            return None
        return cls._mean_ms(jitter_sum_ns, rx_packets - 1)

    @classmethod
    def summarize(
        cls,
        tx_bytes: int,
        rx_bytes: int,
        tx_packets: int,
        rx_packets: int,
        lost_packets: int,
        delay_sum_ns: int,
        jitter_sum_ns: int,
        window: ActiveWindow,
    ) -> QoSSummary:
        return QoSSummary(
            tx_bytes=tx_bytes,
            rx_bytes=rx_bytes,
            tx_packets=tx_packets,
            rx_packets=rx_packets,
            lost_packets=lost_packets,
            delay_sum_ns=delay_sum_ns,
            jitter_sum_ns=jitter_sum_ns,
            throughput_mbps=cls.throughput_mbps(rx_bytes, rx_packets, window),
            mean_delay_ms=cls.mean_delay_ms(delay_sum_ns, rx_packets),
            mean_jitter_ms=cls.mean_jitter_ms(jitter_sum_ns, rx_packets),
        )


@dataclass
class Aggregate:
    """Running sums over a set of flow records."""

    tx_bytes: int = 0
    rx_bytes: int = 0
    tx_packets: int = 0
    rx_packets: int = 0
    lost_packets: int = 0
    delay_sum_ns: int = 0
    jitter_sum_ns: int = 0
    flow_count: int = 0

    def add(self, record: FlowRecord) -> None:
        self.tx_bytes += record.tx_bytes
        self.rx_bytes += record.rx_bytes
        self.tx_packets += record.tx_packets
        self.rx_packets += record.rx_packets
        self.lost_packets += record.lost_packets
        self.delay_sum_ns += record.delay_sum_ns
        self.jitter_sum_ns += record.jitter_sum_ns
        self.flow_count += 1

    def finalize(self, window: ActiveWindow) -> QoSSummary:
        return QoSCalculator.summarize(
            self.tx_bytes,
            self.rx_bytes,
            self.tx_packets,
            self.rx_packets,
            self.lost_packets,
            self.delay_sum_ns,
            self.jitter_sum_ns,
            window,
        )


@dataclass(frozen=True)
class FlowStatistics:
    """One flow with its tuple, class and derived metrics."""

    flow_id: int
    five_tuple: FiveTuple
    protocol: TransportProtocol
    tid: int
    summary: QoSSummary

    @property
    def has_valid_tid(self) -> bool:
        return is_valid_tid(self.tid)


@dataclass
class AggregationResult:
    """Output of one reduction pass."""

    flows: tp.List[FlowStatistics]
    classes: tp.Dict[int, QoSSummary]
    total: QoSSummary
    class_table: tp.List[TrafficClassDescriptor] = field(default_factory=list)

    def reported_classes(
        self,
    ) -> tp.Iterator[tp.Tuple[TrafficClassDescriptor, QoSSummary]]:
        """Class buckets in table order; TIDs outside the table are skipped."""
        for descriptor in self.class_table:
            yield descriptor, self.classes[descriptor.tid]


class StatisticsAggregator:
    """
    Reduces flow records into per-class and global aggregates.

    Every record goes into the bucket of its destination-port TID when that
    TID is in 0-7, and always into the global bucket. Sums are integers, so
    the result does not depend on the order records are visited.
    """

    def __init__(
        self,
        window: ActiveWindow,
        class_table: tp.Sequence[TrafficClassDescriptor],
    ):
        self.window = window
        self.class_table = list(class_table)

    @staticmethod
    def resolve_protocol(flow_id: int, five_tuple: FiveTuple) -> TransportProtocol:
        protocol = TransportProtocol.from_number(five_tuple.protocol)
        if protocol is TransportProtocol.UNSUPPORTED:
            raise UnsupportedProtocolError(five_tuple.protocol, flow_id)
        return protocol

    def aggregate(self, collector: FlowRecordCollector) -> AggregationResult:
        """
        Run the reduction over everything the collector holds.

        Args:
            collector: Source of flow records and five-tuples

        Returns:
            Per-flow statistics, per-class summaries and global totals

        Raises:
            UnsupportedProtocolError: If a flow is neither TCP nor UDP
        """
        buckets = {tid: Aggregate() for tid in range(MAX_TID + 1)}
        total = Aggregate()
        flows: tp.List[FlowStatistics] = []
        unclassified = 0

        for flow_id, record in collector.get_flow_records().items():
            five_tuple = collector.classify_flow(flow_id)
            protocol = self.resolve_protocol(flow_id, five_tuple)
            tid = port_to_class(five_tuple.destination_port)

            if is_valid_tid(tid):
                buckets[tid].add(record)
            else:
                unclassified += 1
                logger.warning(
                    f"Flow {flow_id} to port {five_tuple.destination_port} "
                    f"has no traffic class, counted in totals only"
                )
            total.add(record)

            flows.append(
                FlowStatistics(
                    flow_id=flow_id,
                    five_tuple=five_tuple,
                    protocol=protocol,
                    tid=tid,
                    summary=QoSCalculator.summarize(
                        record.tx_bytes,
                        record.rx_bytes,
                        record.tx_packets,
                        record.rx_packets,
                        record.lost_packets,
                        record.delay_sum_ns,
                        record.jitter_sum_ns,
                        self.window,
                    ),
                )
            )

        for descriptor in self.class_table:
            if not descriptor.enabled and buckets[descriptor.tid].flow_count:
                logger.warning(
                    f"{descriptor.name} is disabled but "
                    f"{buckets[descriptor.tid].flow_count} flows carry its TID"
                )

        logger.info(
            f"Aggregated {total.flow_count} flows "
            f"({unclassified} without a traffic class)"
        )

        return AggregationResult(
            flows=flows,
            classes={tid: b.finalize(self.window) for tid, b in buckets.items()},
            total=total.finalize(self.window),
            class_table=list(self.class_table),
        )
