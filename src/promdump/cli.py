#!/usr/bin/env python3
"""Fetch the points of one metric from Prometheus and save them into a series
of JSON files, each holding a list of series ({"metric": ..., "values": ...}).
The files can later be replayed into remote storage."""

import argparse
import logging
from .config import DEFAULT_BATCH, DEFAULT_BATCHES_PER_FILE, DEFAULT_PERIOD, DEFAULT_URL, DumpConfig
from .dump import run_dump
from .errors import PromDumpError
from .query import DEFAULT_TIMEOUT, PrometheusQuerySource, prepare_query_string
from .sink import FileSink
from .window import plan_windows

logger = logging.getLogger(__name__)


def configure_logging(level: str | None):
    if level:
        numeric_level = getattr(logging, level.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError('Invalid log level: %s' % level)
    else:
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dump the points of a metric from Prometheus into JSON files")
    parser.add_argument("--url", help="URL for Prometheus server API", default=DEFAULT_URL)
    parser.add_argument("--timestamp", help="Timestamp to end querying at (RFC3339). Defaults to current time.", default="")
    parser.add_argument("--period", help="Time period to get data for, ending at --timestamp", default=DEFAULT_PERIOD)
    parser.add_argument("--batch", help="Batch size: time period for each query to Prometheus", default=DEFAULT_BATCH)
    parser.add_argument("--metric", help="Metric to fetch (can include label values)", default="")
    parser.add_argument("--out", help="Output file prefix", default="")
    parser.add_argument("--batches_per_file", type=int, help="Batches per output file", default=DEFAULT_BATCHES_PER_FILE)
    parser.add_argument("--timeout", help="Timeout for each query, e.g. 30s or 500ms", default=f"{DEFAULT_TIMEOUT:g}s")
    parser.add_argument("-l", "--log", help="Loglevel", default="info")
    return parser


def dump(config: DumpConfig, query_source=None, sink=None):
    windows = plan_windows(config.period, config.batch, config.end)
    logger.info(f"Will query from {config.begin.isoformat()} to {config.end.isoformat()} in {len(windows)} batches")

    if query_source is None:
        query_source = PrometheusQuerySource(config.url, config.timeout)
    if sink is None:
        sink = FileSink(config.out)

    result = run_dump(windows, config.metric, config.batches_per_file, query_source, sink)
    logger.info(f"Collected {result.series_collected} series from {result.windows_queried} queries into {len(result.files_written)} files")
    return result


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.log)

    if args.metric:
        args.metric = prepare_query_string(args.metric)

    try:
        config = DumpConfig.from_args(args)
        dump(config)
    except PromDumpError as e:
        logger.error(e)
        exit(1)


if __name__ == "__main__":
    main()
