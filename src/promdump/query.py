#!/usr/bin/env python3

import logging
import re
import datetime as dt
import requests
from .errors import QueryError, ResultTypeError
from .series import SampleSeries, matrix_to_series
from .window import range_selector

# Seconds to wait for each query
DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


def prepare_query_string(query) -> str:
    """Add quotation marks around label values, in case the console ate them"""
    if '"' in query:
        # quotes survived, the expression is passed through as written
        return query
    return re.sub(r'(\w+)=~(?!")([^,}]+)', r'\1=~"\2"', query)


def describe_error(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"{response.status_code}, {response.text.strip()}"
    return f"{response.status_code}, {body.get('errorType', 'error')}: {body.get('error', response.text.strip())}"


def query_prometheus(
        prometheus: str,
        query: str,
        time: dt.datetime,
        timeout: float = DEFAULT_TIMEOUT) -> dict:

    params = {
        "query": query,
        "time": f"{time.timestamp():.3f}",
    }

    logger.debug(f"Params: {params}")
    try:
        response = requests.get(url=f"{prometheus}/api/v1/query", params=params, timeout=timeout)
    except requests.RequestException as e:
        raise QueryError(f"Request to {prometheus} failed: {e}")

    match response.status_code:
        case 200:
            try:
                body = response.json()
            except ValueError:
                raise QueryError(f"Prometheus at {prometheus} returned a body that is not JSON")
            if body.get("status") != "success":
                raise QueryError(f"Query {query} failed: {describe_error(response)}")
            logger.debug(f"Query for {query} at {time.isoformat()} succesful")
            return body["data"]
        case 404:
            raise QueryError(f"No Prometheus instance at {prometheus}")
        case _:
            raise QueryError(f"Query {query} failed: {describe_error(response)}")


class PrometheusQuerySource:
    """Runs range vector selectors as instant queries against the Prometheus HTTP API"""

    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT):
        self.url = url.rstrip("/")
        self.timeout = timeout

    def query(self, expression: str, instant: dt.datetime, lookback_seconds: float) -> list[SampleSeries]:
        data = query_prometheus(self.url, range_selector(expression, lookback_seconds), instant, self.timeout)
        if data["resultType"] != "matrix":
            raise ResultTypeError(data["resultType"])
        return matrix_to_series(data)
