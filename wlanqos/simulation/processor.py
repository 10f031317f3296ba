"""
Setup and post-run processing for the QoS experiment.

This module wires the components together: the setup phase validates the
configuration, builds the topology, pre-populates address resolution and
plans the traffic generators; the post-run phase reduces the simulator's
flow records and renders the report.
"""

import typing as tp
from dataclasses import dataclass

from loguru import logger

from wlanqos.simulation.arp import ResolutionCache, populate_arp_cache
from wlanqos.simulation.flows import FlowRecordCollector
from wlanqos.simulation.network import Topology, build_topology, validate_config
from wlanqos.simulation.qos_metrics import (
    ActiveWindow,
    AggregationResult,
    StatisticsAggregator,
)
from wlanqos.simulation.report import ReportFormatter
from wlanqos.simulation.traffic import (
    GeneratorSpec,
    SinkSpec,
    TrafficClassDescriptor,
    build_class_table,
    build_generator_plan,
    build_sink_plan,
)
from wlanqos.simulation_config import QoSExperimentConfig


@dataclass
class ExperimentSetup:
    """Everything handed to the simulator before the run starts."""

    topology: Topology
    resolution_cache: ResolutionCache
    class_table: tp.List[TrafficClassDescriptor]
    generators: tp.List[GeneratorSpec]
    sinks: tp.List[SinkSpec]


def prepare_experiment(cfg: QoSExperimentConfig) -> ExperimentSetup:
    """
    Run the setup phase.

    Args:
        cfg: Experiment configuration

    Returns:
        Topology, shared resolution cache and traffic plan

    Raises:
        ConfigurationError: On invalid configuration or malformed topology
    """
    validate_config(cfg)

    topology = build_topology(cfg.topology, seed=cfg.simulation.seed)
    cache = populate_arp_cache(topology.nodes)

    table = build_class_table(cfg.traffic)
    generators = build_generator_plan(topology, table, cfg.traffic, cfg.simulation)
    sinks = build_sink_plan(topology, generators)
    logger.info(f"Configured {len(sinks)} packet sinks")

    return ExperimentSetup(
        topology=topology,
        resolution_cache=cache,
        class_table=table,
        generators=generators,
        sinks=sinks,
    )


def process_flow_records(
    collector: FlowRecordCollector,
    cfg: QoSExperimentConfig,
) -> AggregationResult:
    """
    Reduce the flow records of a finished run.

    Args:
        collector: Source of flow records
        cfg: Experiment configuration (analysis window and class flags)

    Returns:
        Aggregation result

    Raises:
        UnsupportedProtocolError: If a flow is neither TCP nor UDP
    """
    window = ActiveWindow(
        duration_s=cfg.simulation.duration,
        analysis_start_s=cfg.simulation.analysis_start,
    )
    aggregator = StatisticsAggregator(window, build_class_table(cfg.traffic))
    return aggregator.aggregate(collector)


def process_and_report(
    collector: FlowRecordCollector,
    cfg: QoSExperimentConfig,
    topology: tp.Optional[Topology] = None,
) -> str:
    """
    Aggregate flow records and render the text report.

    Args:
        collector: Source of flow records
        cfg: Experiment configuration
        topology: Built topology whose node positions are listed

    Returns:
        The report text
    """
    result = process_flow_records(collector, cfg)
    return ReportFormatter().render(result, cfg, topology)
