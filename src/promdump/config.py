#!/usr/bin/env python3

import logging
import datetime as dt
from dataclasses import dataclass
from .errors import ConfigError
from .query import DEFAULT_TIMEOUT
from .window import duration_seconds, parse_duration, whole_seconds

DEFAULT_URL = "http://localhost:9090"
DEFAULT_PERIOD = "168h"
DEFAULT_BATCH = "24h"
DEFAULT_BATCHES_PER_FILE = 1

logger = logging.getLogger(__name__)


def parse_timestamp(text: str | None) -> dt.datetime:
    """RFC3339 timestamp to end querying at, now when not given"""
    if not text:
        return dt.datetime.now(dt.timezone.utc)
    try:
        timestamp = dt.datetime.fromisoformat(text)
    except ValueError:
        raise ConfigError(f"Could not parse --timestamp {text!r}, expected RFC3339")
    if timestamp.tzinfo is None:
        raise ConfigError(f"--timestamp {text!r} has no UTC offset")
    return timestamp


@dataclass(frozen=True)
class DumpConfig:
    url: str
    end: dt.datetime
    period: dt.timedelta
    batch: dt.timedelta
    metric: str
    out: str
    batches_per_file: int = DEFAULT_BATCHES_PER_FILE
    timeout: float = DEFAULT_TIMEOUT

    @property
    def begin(self) -> dt.datetime:
        return self.end - self.period

    @classmethod
    def from_args(cls, args) -> "DumpConfig":
        if not args.metric or not args.out:
            raise ConfigError("Please specify --metric and --out")

        period = parse_duration(args.period)
        batch = parse_duration(args.batch)
        whole_seconds(period, "period")
        whole_seconds(batch, "batch")
        if batch > period:
            logger.info(f"--batch {args.batch} exceeds --period {args.period}, using {args.period}")
            batch = period

        if args.batches_per_file < 1:
            raise ConfigError(f"--batches_per_file must be at least 1, got {args.batches_per_file}")

        timeout = duration_seconds(args.timeout)
        if timeout <= 0:
            raise ConfigError(f"--timeout must be positive, got {args.timeout}")

        return cls(
            url=args.url,
            end=parse_timestamp(args.timestamp),
            period=period,
            batch=batch,
            metric=args.metric,
            out=args.out,
            batches_per_file=args.batches_per_file,
            timeout=timeout,
        )
