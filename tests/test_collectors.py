import pytest

from helpers import record, udp_tuple
from wlanqos.simulation.collectors import (
    REQUIRED_COLUMNS,
    CsvFlowRecordCollector,
    InMemoryFlowRecordCollector,
)
from wlanqos.simulation.errors import FlowRecordError, WlanQoSError
from wlanqos.simulation.flows import FiveTuple

HEADER = ",".join(REQUIRED_COLUMNS)


def _write(tmp_path, rows):
    path = tmp_path / "flows.csv"
    path.write_text("\n".join([HEADER] + rows) + "\n")
    return str(path)


def test_in_memory_collector():
    collector = InMemoryFlowRecordCollector()
    collector.add(3, udp_tuple(1005), record(5))

    assert list(collector.get_flow_records()) == [3]
    assert collector.classify_flow(3).destination_port == 1005
    with pytest.raises(KeyError):
        collector.classify_flow(4)


def test_duplicate_flow_id_is_rejected():
    collector = InMemoryFlowRecordCollector()
    collector.add(1, udp_tuple(1005), record(5))
    with pytest.raises(ValueError, match="Duplicate"):
        collector.add(1, udp_tuple(1006), record(5))


def test_csv_collector_reads_rows(tmp_path):
    path = _write(
        tmp_path,
        [
            "1,17,192.168.1.2,49153,192.168.1.1,1006,1470000,1470000,1000,1000,0,"
            "50000000,999000,1000000000,9990000000",
            "2,6,192.168.1.3,49154,192.168.1.1,1000,2940,0,2,0,2,0,0,0,0",
        ],
    )
    collector = CsvFlowRecordCollector(path)

    records = collector.get_flow_records()
    assert list(records) == [1, 2]
    assert records[1].rx_packets == 1000
    assert records[1].delay_sum_ns == 50_000_000
    assert records[2].lost_packets == 2
    assert collector.classify_flow(2) == FiveTuple(
        6, "192.168.1.3", 49154, "192.168.1.1", 1000
    )


def test_csv_collector_reports_bad_values(tmp_path):
    path = _write(
        tmp_path,
        ["1,17,192.168.1.2,49153,192.168.1.1,1006,lots,0,0,0,0,0,0,0,0"],
    )
    with pytest.raises(ValueError, match="Line 2: column 'tx_bytes'"):
        CsvFlowRecordCollector(path)


def test_csv_collector_requires_columns(tmp_path):
    path = tmp_path / "flows.csv"
    path.write_text("flow_id,protocol\n1,17\n")
    with pytest.raises(ValueError, match="missing columns"):
        CsvFlowRecordCollector(str(path))


def test_csv_collector_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        CsvFlowRecordCollector(str(tmp_path / "absent.csv"))


def test_csv_collector_reports_short_row(tmp_path):
    path = _write(tmp_path, ["1,17"])
    with pytest.raises(FlowRecordError, match="Line 2: column 'source_address'"):
        CsvFlowRecordCollector(path)


def test_csv_collector_reports_empty_address(tmp_path):
    path = _write(
        tmp_path,
        ["1,17,192.168.1.2,49153, ,1006,0,0,0,0,0,0,0,0,0"],
    )
    with pytest.raises(ValueError, match="column 'destination_address'"):
        CsvFlowRecordCollector(path)


def test_collector_errors_abort_the_experiment(tmp_path):
    with pytest.raises(WlanQoSError):
        CsvFlowRecordCollector(str(tmp_path / "absent.csv"))
    with pytest.raises(WlanQoSError):
        CsvFlowRecordCollector(_write(tmp_path, ["1,17"]))
