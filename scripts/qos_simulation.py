"""
WLAN QoS experiment with Hydra configuration.

This script drives one run of the EDCA experiment around an external
packet-level simulator:
- Setup: validate the configuration, build the topology, pre-populate
  address resolution on every interface and plan the per-class traffic
  generators and sinks
- Analysis: read the simulator's per-flow dump, aggregate per traffic class
  and print the report to standard output

Example:
    python scripts/qos_simulation.py topology.n_stations=5 \
        simulation.flow_records=dumps/flows.csv
"""

import os
import sys

import hydra
from hydra.core.config_store import ConfigStore
from loguru import logger
from omegaconf import DictConfig, OmegaConf

from wlanqos.simulation import (
    CsvFlowRecordCollector,
    WlanQoSError,
    ensure_dir,
    prepare_experiment,
    process_and_report,
)
from wlanqos.simulation_config import QoSExperimentConfig

# Register the config with Hydra
cs = ConfigStore.instance()
cs.store(name="qos_experiment_config", node=QoSExperimentConfig)


def run_experiment(cfg: QoSExperimentConfig) -> None:
    """
    Run the setup phase and, when a flow dump is configured, the analysis.

    Args:
        cfg: Experiment configuration

    Raises:
        WlanQoSError: On configuration errors or unsupported flows
    """
    output_dir = cfg.simulation.output_dir
    ensure_dir(output_dir)
    sink = logger.add(os.path.join(output_dir, "qos_simulation.log"), level="DEBUG")
    try:
        _run(cfg)
    finally:
        logger.remove(sink)


def _run(cfg: QoSExperimentConfig) -> None:
    logger.info(
        f"Starting QoS experiment (Duration: {cfg.simulation.duration}s, "
        f"analysis from {cfg.simulation.analysis_start}s)"
    )

    setup = prepare_experiment(cfg)
    for gen in setup.generators:
        logger.debug(
            f"{gen.station} -> {gen.destination}:{gen.port} "
            f"tos=0x{gen.tos:02x} {gen.data_rate_bps / 1e6:.3f} Mb/s"
        )

    if cfg.simulation.flow_records is None:
        logger.info("No flow record dump configured, setup only")
        return

    collector = CsvFlowRecordCollector(cfg.simulation.flow_records)
    report = process_and_report(collector, cfg, setup.topology)
    sys.stdout.write(report)


@hydra.main(
    version_base="1.2",
    config_path="../config",
    config_name="qos_simulation",
)
def main(cfg: DictConfig) -> None:
    """Main entry point with Hydra configuration."""
    # Convert OmegaConf to the dataclass
    schema = OmegaConf.structured(QoSExperimentConfig)
    merged = OmegaConf.merge(schema, cfg)

    logger.info("Configuration:")
    logger.info(OmegaConf.to_yaml(merged))

    config: QoSExperimentConfig = OmegaConf.to_object(merged)

    try:
        run_experiment(config)
    except WlanQoSError as e:
        logger.error(f"Aborting experiment: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
