"""
Dataclass configuration for the WLAN QoS experiment.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TopologyConfig:
    """Configuration for the simulated topology."""

    # Number of transmitting stations associated with the access point
    n_stations: int = 19
    # Additional stations in the fast group (own rate split, see TrafficConfig)
    n_fast_stations: int = 0
    # Radius of the area [m] stations are placed in
    radius: float = 1.0
    # Position allocator: "grid", "rectangle" or "disc"
    placement: str = "disc"
    # Propagation loss model handed to the simulator
    # ("Friis", "LogDistance", "TwoRayGround", "Nakagami")
    loss_model: str = "LogDistance"
    # Modulation and coding scheme (0-11)
    mcs: int = 11
    # Channel width [MHz]
    channel_width: int = 20
    # Guard interval [ns]
    guard_interval: int = 800
    # Use RTS/CTS before every data frame
    rts_cts: bool = False
    # Subnet the access point and stations are numbered from
    subnet: str = "192.168.1.0/24"


@dataclass
class TrafficConfig:
    """Configuration for the traffic generators."""

    # Payload size of generated packets [B]
    packet_size: int = 1470
    # Offered load per access category [Mb/s], split across stations
    offered_load_mbps: float = 10.0
    # Each fast-group station offers offered_load_mbps / fast_load_divisor
    fast_load_divisor: float = 9.0
    # Per access category enable flags
    voice: bool = True
    video: bool = True
    best_effort: bool = True
    background: bool = True
    # All stations send to the access point
    one_destination: bool = True


@dataclass
class SimulationConfig:
    """Main simulation configuration."""

    # Simulation duration in seconds
    duration: float = 10.0
    # Start of results analysis in seconds
    analysis_start: float = 0.0
    # Start time of the traffic generators in seconds
    apps_start: float = 0.0
    # Random seed for reproducibility
    seed: int = 1
    # Output directory for logs
    output_dir: str = "dumps"
    # Per-flow record dump written by the simulator (None = setup only)
    flow_records: Optional[str] = None


@dataclass
class QoSExperimentConfig:
    """Root configuration for the QoS experiment."""

    topology: TopologyConfig = field(default_factory=TopologyConfig)
    traffic: TrafficConfig = field(default_factory=TrafficConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
