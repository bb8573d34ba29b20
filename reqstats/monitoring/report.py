"""Immutable stats report and the helpers that build it."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000


class Report(BaseModel):
    """Point-in-time view of a Collector. Field names match the /stats JSON keys."""

    model_config = ConfigDict(frozen=True)

    pid: int
    uptime: str
    uptime_sec: float
    time: str
    unixtime: int
    status_code_count: dict[str, int]
    total_status_code_count: dict[str, int]
    count: int
    total_count: int
    total_response_time: str
    total_response_time_sec: float
    average_response_time: str
    average_response_time_sec: float


def _with_fraction(value_ns: int, unit_ns: int) -> str:
    whole, frac = divmod(value_ns, unit_ns)
    if not frac:
        return str(whole)
    width = len(str(unit_ns)) - 1
    return f"{whole}.{str(frac).rjust(width, '0').rstrip('0')}"


def format_duration(seconds: float) -> str:
    """
    Render a duration like "150ms", "1.5s", "2m3s" or "1h0m5s".
    Resolution is one nanosecond; zero renders as "0s".
    """
    ns = round(seconds * _NS_PER_S)
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns == 0:
        return "0s"
    if ns < _NS_PER_US:
        return f"{sign}{ns}ns"
    if ns < _NS_PER_MS:
        return f"{sign}{_with_fraction(ns, _NS_PER_US)}µs"
    if ns < _NS_PER_S:
        return f"{sign}{_with_fraction(ns, _NS_PER_MS)}ms"

    hours, rest = divmod(ns, 3600 * _NS_PER_S)
    minutes, rest = divmod(rest, 60 * _NS_PER_S)
    secs = f"{_with_fraction(rest, _NS_PER_S)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}"
    if minutes:
        return f"{sign}{minutes}m{secs}"
    return f"{sign}{secs}"


def average_seconds(total_seconds: float, total_count: int) -> float:
    """Mean response time; 0.0 when nothing has been recorded."""
    if total_count <= 0:
        return 0.0
    return total_seconds / total_count


def build_report(
    *,
    pid: int,
    uptime_sec: float,
    now: datetime,
    rolling_counts: dict[str, int],
    total_counts: dict[str, int],
    total_response_time_sec: float,
) -> Report:
    """Derive a Report from one consistent copy of collector state."""
    count = sum(rolling_counts.values())
    total_count = sum(total_counts.values())
    average_sec = average_seconds(total_response_time_sec, total_count)
    return Report(
        pid=pid,
        uptime=format_duration(uptime_sec),
        uptime_sec=uptime_sec,
        time=now.isoformat(),
        unixtime=int(now.timestamp()),
        status_code_count=dict(rolling_counts),
        total_status_code_count=dict(total_counts),
        count=count,
        total_count=total_count,
        total_response_time=format_duration(total_response_time_sec),
        total_response_time_sec=total_response_time_sec,
        average_response_time=format_duration(average_sec),
        average_response_time_sec=average_sec,
    )
