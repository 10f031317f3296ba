"""
Per-flow records produced by the simulator's flow monitor.
"""

import typing as tp
from dataclasses import dataclass
from enum import Enum


class TransportProtocol(Enum):
    """Transport protocol of a flow, as far as reporting is concerned."""

    TCP = 6
    UDP = 17
    UNSUPPORTED = -1

    @classmethod
    def from_number(cls, number: int) -> "TransportProtocol":
        """
        Map an IP protocol number to a variant.

        Anything other than TCP or UDP maps to UNSUPPORTED; the caller
        decides whether that is fatal.
        """
        if number == 6:
            return cls.TCP
        if number == 17:
            return cls.UDP
        return cls.UNSUPPORTED


@dataclass(frozen=True)
class FiveTuple:
    protocol: int
    source_address: str
    source_port: int
    destination_address: str
    destination_port: int


@dataclass(frozen=True)
class FlowRecord:
    """
    Counters collected for one flow over the whole run.

    Time values are integer nanoseconds.
    """

    tx_bytes: int = 0
    rx_bytes: int = 0
    tx_packets: int = 0
    rx_packets: int = 0
    lost_packets: int = 0
    delay_sum_ns: int = 0
    jitter_sum_ns: int = 0
    first_tx_ns: int = 0
    last_rx_ns: int = 0


class FlowRecordCollector(tp.Protocol):
    """Source of flow records once the simulation has halted."""

    def get_flow_records(self) -> tp.Mapping[int, FlowRecord]:
        ...

    def classify_flow(self, flow_id: int) -> FiveTuple:
        ...
