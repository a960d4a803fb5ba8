"""
Temporal window helpers over dated vital series.

All functions are pure. Series may arrive unsorted and with several saves for the same
day; they are reduced to one authoritative reading per day first. Missing days are
never interpolated or zero-filled.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, timedelta
from typing import Literal, NamedTuple

from hrty.domain.models import DatedReading

# Deltas are rounded so float noise (182.3 - 180.3) does not slip under a threshold
_DELTA_PRECISION = 6


class WindowDelta(NamedTuple):
    baseline: DatedReading
    latest: DatedReading
    delta: float


def latest_per_day(series: Iterable[DatedReading]) -> list[DatedReading]:
    """Keep the most recently saved reading for each day, ordered by day ascending.

    Readings with a ``recorded_at`` are compared by it; otherwise the one supplied
    last wins.
    """
    chosen: dict[date, DatedReading] = {}
    for reading in series:
        current = chosen.get(reading.day)
        if current is None or _saved_later(reading, current):
            chosen[reading.day] = reading
    return [chosen[day] for day in sorted(chosen)]


def _saved_later(candidate: DatedReading, current: DatedReading) -> bool:
    if candidate.recorded_at is None or current.recorded_at is None:
        return True
    return candidate.recorded_at >= current.recorded_at


def find_max_increase(series: Iterable[DatedReading], window_days: int) -> WindowDelta | None:
    """Largest positive gain of the latest reading over any reading 1..window_days earlier."""
    readings = latest_per_day(series)
    if len(readings) < 2:
        return None

    latest = readings[-1]
    best: WindowDelta | None = None
    for earlier in readings[:-1]:
        gap = (latest.day - earlier.day).days
        if not 1 <= gap <= window_days:
            continue
        delta = round(latest.value - earlier.value, _DELTA_PRECISION)
        if delta > 0 and (best is None or delta > best.delta):
            best = WindowDelta(baseline=earlier, latest=latest, delta=delta)
    return best


def max_increase(series: Iterable[DatedReading], window_days: int) -> float | None:
    found = find_max_increase(series, window_days)
    return found.delta if found else None


def find_persistent_streak(
    series: Iterable[DatedReading],
    predicate: Callable[[float], bool],
    min_consecutive: int,
    max_gap_days: int = 1,
) -> list[DatedReading] | None:
    """Most recent run of ``min_consecutive`` chronologically consecutive readings
    that all satisfy ``predicate``.

    A reading failing the predicate resets the run, and so does a gap of more than
    ``max_gap_days`` between neighbouring readings. Returns the last
    ``min_consecutive`` readings of that run, or None.
    """
    if min_consecutive < 2:
        raise ValueError("a persistent condition needs at least two readings")

    run: list[DatedReading] = []
    found: list[DatedReading] | None = None
    for reading in latest_per_day(series):
        if run and (reading.day - run[-1].day).days > max_gap_days:
            run = []
        if predicate(reading.value):
            run.append(reading)
        else:
            run = []
        if len(run) >= min_consecutive:
            found = run[-min_consecutive:]
    return found


def has_persistent_condition(
    series: Iterable[DatedReading],
    predicate: Callable[[float], bool],
    min_consecutive: int,
    max_gap_days: int = 1,
) -> bool:
    return find_persistent_streak(series, predicate, min_consecutive, max_gap_days) is not None


def window_extreme(
    series: Iterable[DatedReading],
    window_days: int,
    mode: Literal["max", "min"] = "max",
) -> DatedReading | None:
    """Highest or lowest reading within the trailing ``window_days`` days, counting the
    latest reading's day as day one."""
    readings = latest_per_day(series)
    if not readings:
        return None

    start = readings[-1].day - timedelta(days=window_days - 1)
    in_window = [r for r in readings if r.day >= start]
    if mode == "max":
        return max(in_window, key=lambda r: r.value)
    return min(in_window, key=lambda r: r.value)


def has_reading_within(series: Iterable[DatedReading], now: datetime, hours: int) -> bool:
    """Whether any reading was taken in the ``hours`` leading up to ``now`` (inclusive)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    start = now - timedelta(hours=hours)
    return any(start <= reading.timestamp <= now for reading in series)
