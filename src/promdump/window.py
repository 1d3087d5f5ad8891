#!/usr/bin/env python3

import logging
import re
import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from .errors import ConfigError

logger = logging.getLogger(__name__)

# Nanoseconds per duration unit
DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 60 * 60 * 1_000_000_000,
}
DURATION_TOKEN = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


@dataclass(frozen=True)
class TimeWindow:
    """One instant query: the metric over `lookback_seconds` ending at `query_instant`"""
    query_instant: dt.datetime
    lookback_seconds: float

    @property
    def start(self) -> dt.datetime:
        return self.query_instant - dt.timedelta(seconds=self.lookback_seconds)

    def is_empty(self) -> bool:
        return self.lookback_seconds <= 0


def duration_ns(text: str) -> Decimal:
    """Signed nanoseconds in a duration such as 168h, 1h30m, 1.5s or 500ms"""
    raw = text.strip()
    if raw in ("0", "+0", "-0"):
        return Decimal(0)

    sign = 1
    if raw[:1] in ("+", "-"):
        sign = -1 if raw[0] == "-" else 1
        raw = raw[1:]

    total_ns = Decimal(0)
    position = 0
    while position < len(raw):
        match = DURATION_TOKEN.match(raw, position)
        if not match:
            raise ConfigError(f"Invalid duration: {text!r}")
        total_ns += Decimal(match.group(1)) * DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0:
        raise ConfigError(f"Invalid duration: {text!r}")

    return sign * total_ns


def parse_duration(text: str) -> dt.timedelta:
    """Parse a duration such as 168h, 1h30m or 90s into whole seconds"""
    # Decimal divmod truncates toward zero
    seconds, remainder = divmod(duration_ns(text), DURATION_UNITS["s"])
    if remainder != 0:
        raise ConfigError(f"Duration {text!r} must not have fractional seconds")

    return dt.timedelta(seconds=int(seconds))


def duration_seconds(text: str) -> float:
    """Parse a duration keeping fractions of a second"""
    return float(duration_ns(text) / DURATION_UNITS["s"])


def whole_seconds(duration: dt.timedelta, name: str) -> int:
    if duration.microseconds != 0:
        raise ConfigError(f"--{name} must not have fractional seconds")
    if duration <= dt.timedelta(0):
        raise ConfigError(f"--{name} must be positive, got {duration}")
    return int(duration.total_seconds())


def range_selector(expression: str, lookback_seconds: float) -> str:
    """Turn an expression into a range vector selector so the instant query returns a matrix"""
    return f"{expression}[{int(lookback_seconds)}s]"


def plan_windows(period: dt.timedelta, batch: dt.timedelta, end: dt.datetime) -> list[TimeWindow]:
    period_seconds = whole_seconds(period, "period")
    batch_seconds = whole_seconds(batch, "batch")
    if batch_seconds > period_seconds:
        logger.debug(f"Batch {batch} is larger than period {period}, using one batch")
        batch_seconds = period_seconds

    begin = end - dt.timedelta(seconds=period_seconds)
    # ceil without going through floats
    count = -(-period_seconds // batch_seconds)

    windows = []
    for index in range(1, count + 1):
        query_instant = begin + dt.timedelta(seconds=index * batch_seconds)
        lookback = float(batch_seconds)
        if query_instant > end:
            lookback -= (query_instant - end).total_seconds()
            query_instant = end
        windows.append(TimeWindow(query_instant, lookback))

    logger.debug(f"Planned {len(windows)} windows of {batch_seconds}s between {begin} and {end}")
    return windows
