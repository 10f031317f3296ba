"""
Traffic classes and generator configuration for QoS measurements.

Each access category is identified by its TID. The TID is carried twice:
in the ToS byte of every outbound packet, so the MAC picks the matching
EDCA queue, and in the destination port, so flows can be classified again
after the run.
"""

import typing as tp
from dataclasses import dataclass
from enum import IntEnum

from loguru import logger

from wlanqos.simulation.network import Topology
from wlanqos.simulation_config import SimulationConfig, TrafficConfig

BASE_PORT = 1000
MAX_TID = 7


class TrafficClass(IntEnum):
    """802.1D user priorities used as TIDs."""

    BEST_EFFORT = 0
    BACKGROUND = 1
    EXCELLENT_EFFORT = 2
    CONTROLLED_LOAD = 3
    VIDEO_LEGACY = 4
    VIDEO = 5
    VOICE = 6
    NETWORK_CONTROL = 7


@dataclass(frozen=True)
class TrafficClassDescriptor:
    tid: int
    name: str
    short_name: str
    enabled: bool = True


@dataclass(frozen=True)
class GeneratorSpec:
    """Constant bit rate on/off source for one station and one class."""

    station: str
    destination: str
    port: int
    tos: int
    tid: int
    data_rate_bps: float
    packet_size: int
    start_s: float
    stop_s: float


@dataclass(frozen=True)
class SinkSpec:
    """Packet sink listening for one class on the destination node."""

    node: str
    address: str
    port: int
    tid: int


def is_valid_tid(tid: int) -> bool:
    return 0 <= tid <= MAX_TID


def _check_tid(tid: int) -> int:
    if not is_valid_tid(tid):
        raise ValueError(f"TID must be in 0-{MAX_TID}, got {tid}")
    return int(tid)


def class_to_port(tid: int) -> int:
    """Destination port that carries `tid`."""
    return BASE_PORT + _check_tid(tid)


def port_to_class(port: int) -> int:
    """
    Recover the TID from a destination port.

    The result is not range checked; ports outside 1000-1007 give TIDs
    outside 0-7.
    """
    return port - BASE_PORT


def class_to_priority_marking(tid: int) -> int:
    """ToS byte for `tid`: the TID occupies the three precedence bits."""
    return _check_tid(tid) << 5


def build_class_table(cfg: TrafficConfig) -> tp.List[TrafficClassDescriptor]:
    """
    Describe the access categories in use, ordered by TID.

    Args:
        cfg: Traffic configuration holding the per-class enable flags

    Returns:
        Descriptors for BE, BK, VI and VO
    """
    return [
        TrafficClassDescriptor(
            TrafficClass.BEST_EFFORT, "BestEffort", "BE", cfg.best_effort
        ),
        TrafficClassDescriptor(
            TrafficClass.BACKGROUND, "Background", "BK", cfg.background
        ),
        TrafficClassDescriptor(TrafficClass.VIDEO, "Video", "VI", cfg.video),
        TrafficClassDescriptor(TrafficClass.VOICE, "Voice", "VO", cfg.voice),
    ]


def build_sink_plan(
    topology: Topology,
    generators: tp.Sequence[GeneratorSpec],
) -> tp.List[SinkSpec]:
    """
    One sink for every (destination, port) pair the generators send to.

    Args:
        topology: Built topology
        generators: Generator plan from :func:`build_generator_plan`

    Returns:
        List of sink specifications, in first-use order
    """
    names = {node.primary_address(): node.name for node in topology.nodes}
    sinks: tp.List[SinkSpec] = []
    seen: tp.Set[tp.Tuple[str, int]] = set()
    for gen in generators:
        key = (gen.destination, gen.port)
        if key in seen:
            continue
        seen.add(key)
        sinks.append(
            SinkSpec(
                node=names[gen.destination],
                address=gen.destination,
                port=gen.port,
                tid=gen.tid,
            )
        )
    return sinks


def build_generator_plan(
    topology: Topology,
    table: tp.Sequence[TrafficClassDescriptor],
    traffic: TrafficConfig,
    simulation: SimulationConfig,
) -> tp.List[GeneratorSpec]:
    """
    Configure one saturating source per station and enabled class.

    Stations in the fast group each offer offered_load / fast_load_divisor;
    the offered load is split evenly across the remaining stations.
    Without a common destination, station i sends to station i+1
    (wrapping around); with a single station that falls back to the AP.

    Args:
        topology: Built topology
        table: Class descriptor table
        traffic: Traffic configuration
        simulation: Timing configuration

    Returns:
        List of generator specifications
    """
    stations = topology.stations
    if not stations:
        return []

    offered_bps = traffic.offered_load_mbps * 1_000_000
    n_base = sum(1 for s in stations if s.group != "fast")
    fast_rate_bps = offered_bps / traffic.fast_load_divisor
    base_rate_bps = offered_bps / n_base if n_base else 0.0
    ap_address = topology.access_point.primary_address()

    plan: tp.List[GeneratorSpec] = []
    for i, station in enumerate(stations):
        if traffic.one_destination or len(stations) == 1:
            destination = ap_address
        else:
            destination = stations[(i + 1) % len(stations)].primary_address()
        rate_bps = fast_rate_bps if station.group == "fast" else base_rate_bps

        for descriptor in table:
            if not descriptor.enabled:
                continue
            plan.append(
                GeneratorSpec(
                    station=station.name,
                    destination=destination,
                    port=class_to_port(descriptor.tid),
                    tos=class_to_priority_marking(descriptor.tid),
                    tid=descriptor.tid,
                    data_rate_bps=rate_bps,
                    packet_size=traffic.packet_size,
                    start_s=simulation.apps_start,
                    stop_s=simulation.duration,
                )
            )

    enabled = ", ".join(d.short_name for d in table if d.enabled) or "none"
    logger.info(
        f"Configured {len(plan)} generators for {len(stations)} stations "
        f"(classes: {enabled}, {base_rate_bps / 1e6:.3f} Mb/s per station and class, "
        f"{fast_rate_bps / 1e6:.3f} Mb/s per fast station and class)"
    )
    return plan
