#!/usr/bin/env python3

import glob
import json
import logging
import re
from .errors import SinkError
from .series import SampleSeries

logger = logging.getLogger(__name__)

INDEX_SUFFIX = re.compile(r"\.(\d{5,})$")


class FileSink:
    """Writes each flushed buffer to its own numbered JSON file"""

    def __init__(self, prefix: str):
        self.prefix = prefix

    def path_for(self, file_index: int) -> str:
        return f"{self.prefix}.{file_index:05d}"

    def write(self, buffer: list[SampleSeries], file_index: int) -> str | None:
        if not buffer:
            logger.debug(f"Nothing to write for file index {file_index}")
            return None

        filename = self.path_for(file_index)
        try:
            with open(filename, "w") as out_file:
                json.dump([series.to_record() for series in buffer], out_file)
        except OSError as e:
            raise SinkError(f"Could not write {filename}: {e}")

        logger.info(f"Wrote {len(buffer)} series to {filename}")
        return filename


def read_dump_file(filename: str) -> list[SampleSeries]:
    try:
        with open(filename) as dump_file:
            records = json.load(dump_file)
    except OSError as e:
        raise SinkError(f"Could not read {filename}: {e}")
    except ValueError as e:
        raise SinkError(f"{filename} is not valid JSON: {e}")

    if not isinstance(records, list):
        raise SinkError(f"{filename} does not contain a list of series")
    try:
        return [SampleSeries.from_record(record) for record in records]
    except (AttributeError, TypeError, ValueError) as e:
        raise SinkError(f"Malformed series record in {filename}: {e}")


def dump_files(prefix: str) -> list[str]:
    """Existing dump files for a prefix, ordered by file index"""
    indexed = []
    for f in glob.glob(f"{glob.escape(prefix)}.*"):
        match = INDEX_SUFFIX.search(f)
        if match and f[:match.start()] == prefix:
            indexed.append((int(match.group(1)), f))
    return [f for _, f in sorted(indexed)]
