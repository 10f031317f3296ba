"""
Topology model and setup helpers for the WLAN QoS experiment.

This module provides the node/interface view the address-resolution
bootstrap walks, a builder that lays out one access point and its
stations, and validation of the externally supplied configuration.
"""

import ipaddress
import math
import os
import random
import typing as tp
from dataclasses import dataclass, field

from loguru import logger

from wlanqos.simulation.errors import ConfigurationError
from wlanqos.simulation_config import QoSExperimentConfig, TopologyConfig

if tp.TYPE_CHECKING:
    from wlanqos.simulation.arp import ResolutionCache

LOSS_MODELS = ("Friis", "LogDistance", "TwoRayGround", "Nakagami")
PLACEMENTS = ("grid", "rectangle", "disc")
CHANNEL_WIDTHS = (20, 40, 80, 160)
GUARD_INTERVALS = (800, 1600, 3200)

LOOPBACK_ADDRESS = "127.0.0.1"
LOOPBACK_LINK_ADDRESS = "00:00:00:00:00:00"

Position = tp.Tuple[float, float, float]


@dataclass
class Interface:
    """A network-layer interface bound to one link-layer device."""

    name: str
    link_address: str
    addresses: tp.List[str] = field(default_factory=list)
    resolution_cache: tp.Optional["ResolutionCache"] = None


@dataclass
class IpStack:
    """Network-layer protocol stack installed on a node."""

    interfaces: tp.List[Interface] = field(default_factory=list)


@dataclass
class Node:
    """A simulated node (access point or station)."""

    node_id: int
    name: str
    role: str = "sta"
    # Station group: "fast" stations get their own share of the offered load
    group: str = "base"
    position: Position = (0.0, 0.0, 0.0)
    ip_stack: tp.Optional[IpStack] = None

    def primary_address(self) -> str:
        """Return the first non-loopback address of the node."""
        if self.ip_stack is None:
            raise ConfigurationError(f"Node {self.name} has no IP stack installed")
        for iface in self.ip_stack.interfaces:
            for address in iface.addresses:
                if not is_loopback_address(address):
                    return address
        raise ConfigurationError(f"Node {self.name} has no routable address")


@dataclass
class Topology:
    """One access point and the stations associated with it."""

    access_point: Node
    stations: tp.List[Node] = field(default_factory=list)

    @property
    def nodes(self) -> tp.List[Node]:
        return [self.access_point, *self.stations]


def is_loopback_address(address: str) -> bool:
    return ipaddress.ip_address(address).is_loopback


def mac_address(index: int) -> str:
    """Sequential MAC-48 address, allocated from 00:00:00:00:00:01 upwards."""
    raw = index.to_bytes(6, "big")
    return ":".join(f"{b:02x}" for b in raw)


def ensure_dir(directory: str) -> None:
    """
    Create directory if it doesn't exist.

    Args:
        directory: Path to directory to create
    """
    if not os.path.exists(directory):
        os.makedirs(directory)


def validate_config(cfg: QoSExperimentConfig) -> None:
    """
    Check the experiment configuration before anything is built.

    Args:
        cfg: Experiment configuration

    Raises:
        ConfigurationError: On unknown model names or out-of-range values
    """
    topo = cfg.topology
    if topo.loss_model not in LOSS_MODELS:
        raise ConfigurationError(
            f"Wrong propagation model selected: '{topo.loss_model}'. "
            f"Valid models are: {', '.join(LOSS_MODELS)}"
        )
    if topo.placement not in PLACEMENTS:
        raise ConfigurationError(
            f"Wrong positioning allocator selected: '{topo.placement}'. "
            f"Valid allocators are: {', '.join(PLACEMENTS)}"
        )
    if topo.n_stations < 1:
        raise ConfigurationError("At least one station is required")
    if topo.n_fast_stations < 0:
        raise ConfigurationError(
            f"Fast station count must be non-negative, got {topo.n_fast_stations}"
        )
    if not 0 <= topo.mcs <= 11:
        raise ConfigurationError(f"MCS must be in 0-11, got {topo.mcs}")
    if topo.channel_width not in CHANNEL_WIDTHS:
        raise ConfigurationError(
            f"Channel width must be one of {CHANNEL_WIDTHS}, got {topo.channel_width}"
        )
    if topo.guard_interval not in GUARD_INTERVALS:
        raise ConfigurationError(
            f"Guard interval must be one of {GUARD_INTERVALS}, "
            f"got {topo.guard_interval}"
        )
    if topo.radius < 0:
        raise ConfigurationError(f"Radius must be non-negative, got {topo.radius}")

    traffic = cfg.traffic
    if traffic.packet_size <= 0:
        raise ConfigurationError(
            f"Packet size must be positive, got {traffic.packet_size}"
        )
    if traffic.offered_load_mbps < 0:
        raise ConfigurationError(
            f"Offered load must be non-negative, got {traffic.offered_load_mbps}"
        )
    if traffic.fast_load_divisor <= 0:
        raise ConfigurationError(
            f"Fast load divisor must be positive, got {traffic.fast_load_divisor}"
        )

    sim = cfg.simulation
    if sim.analysis_start < 0 or sim.analysis_start >= sim.duration:
        raise ConfigurationError(
            f"Analysis start ({sim.analysis_start}s) must lie within the "
            f"simulation duration ({sim.duration}s)"
        )


def place_nodes(
    count: int,
    placement: str,
    radius: float,
    rng: random.Random,
) -> tp.List[Position]:
    """
    Compute station positions around an access point at the origin.

    Args:
        count: Number of positions to allocate
        placement: "grid", "rectangle" or "disc"
        radius: Size of the area [m]
        rng: Seeded random generator

    Returns:
        List of (x, y, z) positions
    """
    positions: tp.List[Position] = []

    if placement == "grid":
        # Row-major grid centred on the AP, spacing chosen to fit the radius
        columns = max(1, math.ceil(math.sqrt(count)))
        spacing = (2 * radius / columns) if columns > 1 else 0.0
        origin = -radius + spacing / 2 if columns > 1 else 0.0
        for i in range(count):
            row, col = divmod(i, columns)
            positions.append((origin + col * spacing, origin + row * spacing, 0.0))
    elif placement == "rectangle":
        for _ in range(count):
            positions.append(
                (rng.uniform(-radius, radius), rng.uniform(-radius, radius), 0.0)
            )
    elif placement == "disc":
        # Uniform over the disc area, not over the radius
        for _ in range(count):
            rho = radius * math.sqrt(rng.random())
            theta = rng.uniform(0.0, 2 * math.pi)
            positions.append((rho * math.cos(theta), rho * math.sin(theta), 0.0))
    else:
        raise ConfigurationError(f"Wrong positioning allocator selected: '{placement}'")

    return positions


def _install_ip_stack(node: Node, address: str, link_address: str) -> None:
    node.ip_stack = IpStack(
        interfaces=[
            Interface(
                name="lo",
                link_address=LOOPBACK_LINK_ADDRESS,
                addresses=[LOOPBACK_ADDRESS],
            ),
            Interface(name="wlan0", link_address=link_address, addresses=[address]),
        ]
    )


def build_topology(cfg: TopologyConfig, seed: tp.Optional[int] = None) -> Topology:
    """
    Build the access point and stations with addresses and positions.

    The access point sits at the origin and takes the first host address of
    the subnet; the fast group follows, then the remaining stations.

    Args:
        cfg: Topology configuration
        seed: Random seed for placement

    Returns:
        The populated topology
    """
    network = ipaddress.ip_network(cfg.subnet)
    hosts = network.hosts()
    total = cfg.n_fast_stations + cfg.n_stations
    needed = total + 1
    if network.num_addresses - 2 < needed:
        raise ConfigurationError(
            f"Subnet {cfg.subnet} cannot number {needed} nodes"
        )

    rng = random.Random(seed)
    positions = place_nodes(total, cfg.placement, cfg.radius, rng)

    ap = Node(node_id=0, name="ap", role="ap", position=(0.0, 0.0, 0.0))
    _install_ip_stack(ap, str(next(hosts)), mac_address(1))

    stations = []
    for i, position in enumerate(positions, start=1):
        group = "fast" if i <= cfg.n_fast_stations else "base"
        sta = Node(
            node_id=i, name=f"sta{i}", role="sta", group=group, position=position
        )
        _install_ip_stack(sta, str(next(hosts)), mac_address(i + 1))
        stations.append(sta)

    logger.info(
        f"Built topology: 1 AP + {len(stations)} stations "
        f"({cfg.n_fast_stations} fast, {cfg.placement} placement, "
        f"radius {cfg.radius} m)"
    )
    for sta in stations:
        x, y, _ = sta.position
        logger.debug(f"{sta.name} [{sta.group}]: x={x:.3f}, y={y:.3f}")

    return Topology(access_point=ap, stations=stations)
