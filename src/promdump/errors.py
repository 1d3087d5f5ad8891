#!/usr/bin/env python3


class PromDumpError(Exception):
    """Base class for every failure that aborts a dump"""


class ConfigError(PromDumpError):
    pass


class QueryError(PromDumpError):
    pass


class ResultTypeError(QueryError):
    """Prometheus answered with something other than a matrix"""

    def __init__(self, result_type: str):
        super().__init__(f"Expected matrix value type; got {result_type}")
        self.result_type = result_type


class SinkError(PromDumpError):
    pass
