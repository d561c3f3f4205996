from datetime import datetime

import pytest

from vessl.formatting import (
    CREATED_FORMAT,
    calculate_cpu_percent,
    format_bytes,
    format_created,
    format_size,
    port_rows,
    split_repo_tag,
    stats_row,
)


@pytest.mark.parametrize("size", [0, 1, 1023])
def test_format_size_small_values_in_bytes(size):
    assert format_size(size) == f"{size} B"


def test_format_size_one_kilobyte():
    assert format_size(1024) == "1.0 KB"


@pytest.mark.parametrize("size", [1024, 1536, 5 * 1024**2 + 7, 3 * 1024**3, 2 * 1024**5])
def test_format_size_scaled_value_round_trips(size):
    number, unit = format_size(size).split(" ")
    exp = "KMGTPE".index(unit[0]) + 1
    value = float(number)
    assert 1.0 <= value < 1024
    assert abs(value * 1024**exp - size) <= 0.05 * 1024**exp


@pytest.mark.parametrize("size", [5, 1023])
def test_format_bytes_small_values(size):
    assert format_bytes(size) == f"{size}B"


def test_format_bytes_one_megabyte():
    assert format_bytes(1024 * 1024) == "1.0MB"


@pytest.mark.parametrize("size", [0, 700, 1024, 9999, 1024**3 + 12345])
def test_format_bytes_is_format_size_without_space(size):
    assert format_size(size).replace(" ", "") == format_bytes(size)


def _cpu_stats(total, pre_total, system, pre_system, cpus):
    return {
        "cpu_stats": {
            "cpu_usage": {"total_usage": total, "percpu_usage": [0] * cpus},
            "system_cpu_usage": system,
        },
        "precpu_stats": {
            "cpu_usage": {"total_usage": pre_total},
            "system_cpu_usage": pre_system,
        },
    }


def test_cpu_percent_value():
    assert calculate_cpu_percent(_cpu_stats(150, 100, 200, 100, 1)) == pytest.approx(50.0)


def test_cpu_percent_scales_with_cpu_count():
    one = calculate_cpu_percent(_cpu_stats(150, 100, 400, 100, 1))
    four = calculate_cpu_percent(_cpu_stats(150, 100, 400, 100, 4))
    assert four == pytest.approx(one * 4)


def test_cpu_percent_zero_total_usage():
    assert calculate_cpu_percent(_cpu_stats(0, 0, 200, 100, 2)) == 0.0


def test_cpu_percent_no_system_delta():
    assert calculate_cpu_percent(_cpu_stats(150, 100, 100, 100, 2)) == 0.0


def test_cpu_percent_empty_stats():
    assert calculate_cpu_percent({}) == 0.0


def test_split_repo_tag():
    assert split_repo_tag(["nginx:alpine", "other:1"]) == ("nginx", "alpine")


@pytest.mark.parametrize("tags", [None, [], ["localhost:5000/app:v2"], ["untagged"]])
def test_split_repo_tag_fallback(tags):
    assert split_repo_tag(tags) == ("none", "none")


def test_format_created_round_trip():
    timestamp = 1_700_000_000
    text = format_created(timestamp)
    assert datetime.strptime(text, CREATED_FORMAT).timestamp() == timestamp


def test_port_rows_sorted_with_placeholders():
    ports = {
        "80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}],
        "443/tcp": None,
        "53/udp": [{"HostIp": "0.0.0.0", "HostPort": ""}],
    }
    assert port_rows(ports) == [
        ("443", "Not published", "tcp"),
        ("53", "N/A", "udp"),
        ("80", "8080", "tcp"),
    ]


def test_port_rows_one_row_per_binding():
    ports = {"80/tcp": [{"HostPort": "8080"}, {"HostPort": "9090"}]}
    assert port_rows(ports) == [("80", "8080", "tcp"), ("80", "9090", "tcp")]


def test_port_rows_empty():
    assert port_rows({}) == []
    assert port_rows(None) == []


def _full_stats():
    stats = _cpu_stats(150, 100, 200, 100, 1)
    stats.update(
        {
            "memory_stats": {"usage": 3 * 1024**2, "limit": 8 * 1024**2, "stats": {"cache": 1024**2}},
            "networks": {"eth0": {"rx_bytes": 2048, "tx_bytes": 100}},
            "blkio_stats": {
                "io_service_bytes_recursive": [
                    {"op": "Read", "value": 4096},
                    {"op": "Write", "value": 10},
                ]
            },
            "pids_stats": {"current": 7},
        }
    )
    return stats


def test_stats_row_fields():
    row = stats_row("0123456789abcdef", "/web", _full_stats())
    fields = row.split()
    assert fields[0] == "0123456789ab"
    assert fields[1] == "/web"
    assert float(fields[2]) == pytest.approx(calculate_cpu_percent(_full_stats()), abs=0.01)
    assert fields[3] == format_bytes(2 * 1024**2)
    assert f"{format_bytes(2048)} / {format_bytes(100)}" in row
    assert f"{format_bytes(4096)} / {format_bytes(10)}" in row
    assert fields[-1] == "7"


def test_stats_row_memory_percent():
    fields = stats_row("0123456789abcdef", "/web", _full_stats()).split()
    assert float(fields[4]) == pytest.approx(2 / 8 * 100, abs=0.01)


def test_stats_row_without_eth0_shows_zero_network():
    stats = _full_stats()
    stats["networks"] = {}
    row = stats_row("0123456789abcdef", "/web", stats)
    assert f"{format_bytes(0)} / {format_bytes(0)}" in row


def test_stats_row_missing_block_io_raises():
    stats = _full_stats()
    stats["blkio_stats"] = {"io_service_bytes_recursive": None}
    with pytest.raises(ValueError):
        stats_row("0123456789abcdef", "/web", stats)