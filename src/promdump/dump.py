#!/usr/bin/env python3

import logging
from dataclasses import dataclass, field
from .errors import ConfigError
from .series import SampleSeries
from .window import TimeWindow, range_selector

logger = logging.getLogger(__name__)


@dataclass
class DumpResult:
    windows_planned: int = 0
    windows_queried: int = 0
    series_collected: int = 0
    flushes: int = 0
    files_written: list[str] = field(default_factory=list)


def run_dump(
        windows: list[TimeWindow],
        expression: str,
        batches_per_file: int,
        query_source,
        sink) -> DumpResult:
    """Query every window in order and rotate the collected series into files.

    `query_source.query(expression, instant, lookback_seconds)` must return a
    list of SampleSeries and `sink.write(buffer, file_index)` persists one
    buffer. A flush happens after every `batches_per_file` windows and once
    more at the end. The file index advances on every flush, so an empty
    buffer leaves a gap in the file numbering.
    """
    if batches_per_file < 1:
        raise ConfigError(f"--batches_per_file must be at least 1, got {batches_per_file}")

    result = DumpResult(windows_planned=len(windows))
    values: list[SampleSeries] = []
    file_num = 0

    def flush():
        nonlocal values, file_num
        written = sink.write(values, file_num)
        if written:
            result.files_written.append(written)
        result.flushes += 1
        values = []
        file_num += 1

    for batch, window in enumerate(windows, start=1):
        if window.is_empty():
            logger.info(f"Skipping empty window at {window.query_instant.isoformat()}")
        else:
            logger.info(f"Querying {range_selector(expression, window.lookback_seconds)} at {window.query_instant.isoformat()}")
            series = query_source.query(expression, window.query_instant, window.lookback_seconds)
            if not series:
                logger.warning(f"No series returned for window ending at {window.query_instant.isoformat()}")
            values.extend(series)
            result.windows_queried += 1
            result.series_collected += len(series)

        if batch % batches_per_file == 0:
            flush()

    flush()
    return result
