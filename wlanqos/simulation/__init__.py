"""
QoS experiment modules for a simulated IEEE 802.11 network.

This package provides components for:
- Topology construction and configuration validation
- Static address-resolution bootstrap
- Traffic class mapping and generator planning
- Flow record collection, per-class aggregation and reporting
"""

from wlanqos.simulation.arp import (
    CacheEntry,
    ResolutionCache,
    attach_resolution_cache,
    build_resolution_cache,
    populate_arp_cache,
)
from wlanqos.simulation.collectors import (
    CsvFlowRecordCollector,
    InMemoryFlowRecordCollector,
)
from wlanqos.simulation.errors import (
    ConfigurationError,
    FlowRecordError,
    MissingFlowRecordsError,
    UnsupportedProtocolError,
    WlanQoSError,
)
from wlanqos.simulation.flows import (
    FiveTuple,
    FlowRecord,
    FlowRecordCollector,
    TransportProtocol,
)
from wlanqos.simulation.network import (
    Interface,
    IpStack,
    Node,
    Topology,
    build_topology,
    ensure_dir,
    validate_config,
)
from wlanqos.simulation.processor import (
    ExperimentSetup,
    prepare_experiment,
    process_and_report,
    process_flow_records,
)
from wlanqos.simulation.qos_metrics import (
    ActiveWindow,
    Aggregate,
    AggregationResult,
    QoSSummary,
    StatisticsAggregator,
)
from wlanqos.simulation.report import ReportFormatter
from wlanqos.simulation.traffic import (
    TrafficClass,
    TrafficClassDescriptor,
    build_class_table,
    class_to_port,
    class_to_priority_marking,
)

__all__ = [
    "ActiveWindow",
    "Aggregate",
    "AggregationResult",
    "CacheEntry",
    "ConfigurationError",
    "CsvFlowRecordCollector",
    "ExperimentSetup",
    "FiveTuple",
    "FlowRecord",
    "FlowRecordCollector",
    "FlowRecordError",
    "InMemoryFlowRecordCollector",
    "Interface",
    "IpStack",
    "MissingFlowRecordsError",
    "Node",
    "QoSSummary",
    "ReportFormatter",
    "ResolutionCache",
    "StatisticsAggregator",
    "Topology",
    "TrafficClass",
    "TrafficClassDescriptor",
    "TransportProtocol",
    "UnsupportedProtocolError",
    "WlanQoSError",
    "attach_resolution_cache",
    "build_class_table",
    "build_resolution_cache",
    "build_topology",
    "class_to_port",
    "class_to_priority_marking",
    "ensure_dir",
    "populate_arp_cache",
    "prepare_experiment",
    "process_and_report",
    "process_flow_records",
    "validate_config",
]
