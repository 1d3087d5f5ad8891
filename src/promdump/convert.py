#!/usr/bin/env python3

import argparse
import logging
import polars as pl
from collections import defaultdict
from os import path
from .cli import configure_logging
from .errors import PromDumpError, SinkError
from .series import METRIC_NAME_LABEL, SampleSeries
from .sink import dump_files, read_dump_file

logger = logging.getLogger(__name__)


def series_to_frame(series_list: list[SampleSeries]) -> pl.LazyFrame:
    """One row per point, the value in a column named after the metric and one column per label"""
    frames = []
    for series in series_list:
        if not series.points:
            continue
        metric_name = series.name or "value"
        if metric_name == "Time":
            metric_name = "value"
        labels = [(k, v) for k, v in series.labels.items() if k != METRIC_NAME_LABEL]

        series_as_table = defaultdict(list)
        for ts, val in series.points:
            series_as_table["Time"].append(ts)
            series_as_table[metric_name].append(val)

        new_table_size = len(series_as_table["Time"])
        for label in labels:
            column = label[0]
            # never overwrite the Time, value or an earlier label column
            while column in series_as_table:
                column = f"label_{column}"
            series_as_table[column].extend([label[1]]*new_table_size)

        frames.append(pl.LazyFrame(
            series_as_table,
            schema_overrides={"Time": pl.Float64, metric_name: pl.Float64}))

    if not frames:
        return pl.LazyFrame(schema={"Time": pl.Float64})
    return pl.concat(frames, how="diagonal_relaxed")


def resolve_inputs(inputs: list[str]) -> list[str]:
    """Files are taken as they are, anything else is treated as a dump prefix"""
    files = []
    for item in inputs:
        if path.isfile(item):
            files.append(item)
        else:
            found = dump_files(item)
            if not found:
                raise SinkError(f"No dump files found for {item}")
            files.extend(found)
    return files


def load_dump(files: list[str]) -> pl.LazyFrame:
    series_list = []
    for f in files:
        logger.info(f"Reading {f}")
        series_list.extend(read_dump_file(f))

    df = series_to_frame(series_list)
    if df.select(pl.len()).collect().item() == 0:
        logger.warning(f"Dump in {files} holds no points")
    return df


def main(argv=None):
    parser = argparse.ArgumentParser(description="Convert promdump JSON files to CSV or Parquet")
    parser.add_argument("inputs", nargs="+", help="Dump files or output prefixes used with promdump --out")
    parser.add_argument("-o", "--output", help="Path to output file; printing to console otherwise")
    parser.add_argument("-f", "--format", choices=["csv", "parquet"], help="Output format", default="csv")
    parser.add_argument("-l", "--log", help="Loglevel", default="info")
    args = parser.parse_args(argv)

    configure_logging(args.log)

    try:
        df = load_dump(resolve_inputs(args.inputs))
    except PromDumpError as e:
        logger.error(e)
        exit(1)

    if args.output:
        if args.format == "parquet":
            df.sink_parquet(args.output)
        else:
            df.sink_csv(args.output)
        logger.info(f"Wrote {args.output}")
    else:
        print(df.collect())


if __name__ == "__main__":
    main()
