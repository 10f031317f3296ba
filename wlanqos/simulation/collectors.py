"""
Flow record collectors.

The simulator itself is external; these collectors hand its per-flow
output to the aggregator, either from memory (simulator bindings, tests)
or from the CSV dump a run leaves behind.
"""

import csv
import os
import typing as tp

from loguru import logger

from wlanqos.simulation.errors import FlowRecordError, MissingFlowRecordsError
from wlanqos.simulation.flows import FiveTuple, FlowRecord

TUPLE_COLUMNS = (
    "protocol",
    "source_address",
    "source_port",
    "destination_address",
    "destination_port",
)
COUNTER_COLUMNS = (
    "tx_bytes",
    "rx_bytes",
    "tx_packets",
    "rx_packets",
    "lost_packets",
    "delay_sum_ns",
    "jitter_sum_ns",
    "first_tx_ns",
    "last_rx_ns",
)
REQUIRED_COLUMNS = ("flow_id",) + TUPLE_COLUMNS + COUNTER_COLUMNS


class InMemoryFlowRecordCollector:
    """Collector over records already held in memory."""

    def __init__(self) -> None:
        self._records: tp.Dict[int, FlowRecord] = {}
        self._tuples: tp.Dict[int, FiveTuple] = {}

    def add(self, flow_id: int, five_tuple: FiveTuple, record: FlowRecord) -> None:
        if flow_id in self._records:
            raise FlowRecordError(f"Duplicate flow id {flow_id}")
        self._records[flow_id] = record
        self._tuples[flow_id] = five_tuple

    def get_flow_records(self) -> tp.Mapping[int, FlowRecord]:
        return dict(self._records)

    def classify_flow(self, flow_id: int) -> FiveTuple:
        try:
            return self._tuples[flow_id]
        except KeyError:
            raise KeyError(f"Unknown flow id {flow_id}") from None

    def __len__(self) -> int:
        return len(self._records)


def _parse_int(row: tp.Dict[str, str], column: str, line: int) -> int:
    value = row.get(column)
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise FlowRecordError(
            f"Line {line}: column '{column}' must be an integer, got {value!r}"
        ) from None


def _parse_str(row: tp.Dict[str, str], column: str, line: int) -> str:
    value = row.get(column)
    if value is None or not value.strip():
        raise FlowRecordError(
            f"Line {line}: column '{column}' must not be empty, got {value!r}"
        )
    return value.strip()


def parse_flow_row(
    row: tp.Dict[str, str],
    line: int,
) -> tp.Tuple[int, FiveTuple, FlowRecord]:
    """
    Parse one CSV row of the flow dump.

    Args:
        row: Row as returned by csv.DictReader
        line: Line number used in error messages

    Returns:
        Tuple of (flow_id, five_tuple, record)
    """
    flow_id = _parse_int(row, "flow_id", line)
    five_tuple = FiveTuple(
        protocol=_parse_int(row, "protocol", line),
        source_address=_parse_str(row, "source_address", line),
        source_port=_parse_int(row, "source_port", line),
        destination_address=_parse_str(row, "destination_address", line),
        destination_port=_parse_int(row, "destination_port", line),
    )
    record = FlowRecord(**{c: _parse_int(row, c, line) for c in COUNTER_COLUMNS})
    return flow_id, five_tuple, record


class CsvFlowRecordCollector(InMemoryFlowRecordCollector):
    """
    Collector reading the per-flow dump written at the end of a run.

    One row per flow; columns are `flow_id`, the five-tuple and the nine
    counters, with times in nanoseconds.
    """

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self.path):
            raise MissingFlowRecordsError(f"Flow record dump not found: {self.path}")

        with open(self.path, "r", newline="") as f:
            reader = csv.DictReader(f)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise FlowRecordError(
                    f"{self.path}: missing columns {', '.join(missing)}"
                )
            for row in reader:
                flow_id, five_tuple, record = parse_flow_row(row, reader.line_num)
                self.add(flow_id, five_tuple, record)

        logger.info(f"Loaded {len(self)} flow records from {self.path}")
