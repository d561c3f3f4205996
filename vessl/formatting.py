"""Pure helpers that turn Docker API data into display strings and rows."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import datetime

_UNIT = 1024
_PREFIXES = "KMGTPE"
CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"


def _scale(size: int) -> tuple[float, str]:
    """Return the scaled value and unit prefix for a size of at least 1024."""
    div, exp = _UNIT, 0
    n = size // _UNIT
    while n >= _UNIT:
        div *= _UNIT
        exp += 1
        n //= _UNIT
    return size / div, _PREFIXES[exp]


def format_size(size: int) -> str:
    """Format an image size such as ``512 B`` or ``1.5 MB``."""
    if size < _UNIT:
        return f"{size} B"
    value, prefix = _scale(size)
    return f"{value:.1f} {prefix}B"


def format_bytes(size: int) -> str:
    """Format a byte count compactly, such as ``512B`` or ``1.5MB``."""
    if size < _UNIT:
        return f"{size}B"
    value, prefix = _scale(size)
    return f"{value:.1f}{prefix}B"


def _section(data: Mapping | None, key: str) -> Mapping:
    value = (data or {}).get(key)
    return value if value is not None else {}


def calculate_cpu_percent(stats: Mapping) -> float:
    """Compute the CPU usage percentage from a stats snapshot."""
    cpu = _section(stats, "cpu_stats")
    precpu = _section(stats, "precpu_stats")
    cpu_usage = _section(cpu, "cpu_usage")
    total = cpu_usage.get("total_usage") or 0
    if total == 0:
        return 0.0
    cpu_delta = float(total - (_section(precpu, "cpu_usage").get("total_usage") or 0))
    system_delta = float(
        (cpu.get("system_cpu_usage") or 0) - (precpu.get("system_cpu_usage") or 0)
    )
    if system_delta > 0.0 and cpu_delta > 0.0:
        cpus = len(cpu_usage.get("percpu_usage") or [])
        return (cpu_delta / system_delta) * cpus * 100.0
    return 0.0


def split_repo_tag(repo_tags: Sequence[str] | None) -> tuple[str, str]:
    """Split the first ``repo:tag`` entry; fall back to ``("none", "none")``."""
    if repo_tags:
        parts = repo_tags[0].split(":")
        if len(parts) == 2:
            return parts[0], parts[1]
    return "none", "none"


def format_created(timestamp: int) -> str:
    """Format a Unix timestamp in local time."""
    return datetime.fromtimestamp(timestamp).strftime(CREATED_FORMAT)


def port_rows(ports: Mapping[str, Sequence[Mapping] | None] | None) -> list[tuple[str, str, str]]:
    """Return ``(container port, host port, protocol)`` rows sorted by port key."""
    rows: list[tuple[str, str, str]] = []
    for key in sorted(ports or {}):
        container_port, _, protocol = key.partition("/")
        bindings = (ports or {})[key]
        if bindings:
            for binding in bindings:
                host_port = binding.get("HostPort") or "N/A"
                rows.append((container_port, host_port, protocol))
        else:
            rows.append((container_port, "Not published", protocol))
    return rows


def _ratio_percent(used: int, limit: int) -> float:
    if limit:
        return used / limit * 100.0
    if used == 0:
        return math.nan
    return math.copysign(math.inf, used)


def stats_row(container_id: str, name: str, stats: Mapping) -> str:
    """Format one line of the stats table from a stats snapshot."""
    cpu_percent = calculate_cpu_percent(stats)

    memory = _section(stats, "memory_stats")
    cache = _section(memory, "stats").get("cache") or 0
    mem_usage = (memory.get("usage") or 0) - cache
    mem_percent = _ratio_percent(mem_usage, memory.get("limit") or 0)

    eth0 = _section(_section(stats, "networks"), "eth0")
    net_io = f"{format_bytes(eth0.get('rx_bytes') or 0)} / {format_bytes(eth0.get('tx_bytes') or 0)}"

    entries = _section(stats, "blkio_stats").get("io_service_bytes_recursive") or []
    if len(entries) < 2:
        raise ValueError(f"block I/O statistics are missing for {name}")
    block_io = (
        f"{format_bytes(entries[0].get('value') or 0)} / "
        f"{format_bytes(entries[1].get('value') or 0)}"
    )

    pids = _section(stats, "pids_stats").get("current") or 0
    return (
        f"{container_id[:12]:<12} {name:<20} {cpu_percent:<8.2f} "
        f"{format_bytes(mem_usage):<8} {mem_percent:<8.2f} "
        f"{net_io:<8} {block_io:<8} {pids}"
    )