import datetime as dt
import json
import os

import pytest
import requests

from promdump import cli
from promdump.config import DumpConfig, parse_timestamp
from promdump.errors import ConfigError
from promdump.query import DEFAULT_TIMEOUT, PrometheusQuerySource


def _args(*argv):
    return cli.build_parser().parse_args(list(argv))


def test_defaults():
    config = DumpConfig.from_args(_args("--metric", "up", "--out", "/tmp/up"))
    assert config.url == "http://localhost:9090"
    assert config.period == dt.timedelta(days=7)
    assert config.batch == dt.timedelta(days=1)
    assert config.batches_per_file == 1
    assert config.timeout == 30.0
    assert config.end.tzinfo is not None


def test_batch_is_clamped_to_period():
    config = DumpConfig.from_args(_args("--metric", "up", "--out", "x", "--period", "1h", "--batch", "24h"))
    assert config.batch == dt.timedelta(hours=1)


def test_explicit_timestamp():
    config = DumpConfig.from_args(_args("--metric", "up", "--out", "x", "--timestamp", "2024-03-01T12:00:00Z"))
    assert config.end == dt.datetime(2024, 3, 1, 12, 0, tzinfo=dt.timezone.utc)
    assert config.begin == dt.datetime(2024, 2, 23, 12, 0, tzinfo=dt.timezone.utc)


@pytest.mark.parametrize(
    "argv",
    [
        ["--out", "x"],
        ["--metric", "up"],
        ["--metric", "up", "--out", "x", "--period", "1h0.5s"],
        ["--metric", "up", "--out", "x", "--batch", "1500ms"],
        ["--metric", "up", "--out", "x", "--batch", "0s"],
        ["--metric", "up", "--out", "x", "--timestamp", "yesterday"],
        ["--metric", "up", "--out", "x", "--timestamp", "2024-03-01T12:00:00"],
        ["--metric", "up", "--out", "x", "--batches_per_file", "0"],
        ["--metric", "up", "--out", "x", "--timeout", "0s"],
    ],
)
def test_invalid_configuration(argv):
    with pytest.raises(ConfigError):
        DumpConfig.from_args(_args(*argv))


def test_parse_timestamp_with_offset():
    assert parse_timestamp("2024-03-01T14:00:00+02:00") == dt.datetime(2024, 3, 1, 12, 0, tzinfo=dt.timezone.utc)


def test_invalid_log_level():
    with pytest.raises(ValueError):
        cli.configure_logging("loud")


def test_main_exits_on_config_error(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--metric", "up", "--out", str(tmp_path / "up"), "--period", "1.5s"])
    assert excinfo.value.code == 1
    assert os.listdir(tmp_path) == []


class FakeResponse:
    status_code = 200

    def __init__(self, body):
        self._body = body
        self.text = json.dumps(body)

    def json(self):
        return self._body


def test_main_dumps_into_files(tmp_path, monkeypatch):
    queried = []

    def get(url, params=None, timeout=None):
        queried.append(params)
        ts = float(params["time"])
        return FakeResponse({"status": "success", "data": {"resultType": "matrix", "result": [
            {"metric": {"__name__": "up", "job": "node"}, "values": [[ts, "1"]]},
        ]}})

    monkeypatch.setattr(requests, "get", get)
    prefix = str(tmp_path / "up")
    cli.main([
        "--metric", "up", "--out", prefix,
        "--timestamp", "2024-03-01T12:00:00Z",
        "--period", "3h", "--batch", "1h", "--batches_per_file", "2",
    ])

    assert [p["query"] for p in queried] == ["up[3600s]"] * 3
    assert sorted(os.listdir(tmp_path)) == ["up.00000", "up.00001"]
    with open(f"{prefix}.00000") as f:
        records = json.load(f)
    assert [r["values"] for r in records] == [[[1709287200.0, "1"]], [[1709290800.0, "1"]]]
    assert records[0]["metric"] == {"__name__": "up", "job": "node"}


def test_main_aborts_on_vector_result(tmp_path, monkeypatch):
    def get(url, params=None, timeout=None):
        return FakeResponse({"status": "success", "data": {"resultType": "vector", "result": []}})

    monkeypatch.setattr(requests, "get", get)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--metric", "up", "--out", str(tmp_path / "up"), "--period", "2h", "--batch", "1h"])
    assert excinfo.value.code == 1
    assert os.listdir(tmp_path) == []


def test_main_fails_on_unwritable_prefix(tmp_path, monkeypatch):
    def get(url, params=None, timeout=None):
        return FakeResponse({"status": "success", "data": {"resultType": "matrix", "result": [
            {"metric": {"__name__": "up"}, "values": [[float(params["time"]), "1"]]},
        ]}})

    monkeypatch.setattr(requests, "get", get)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--metric", "up", "--out", str(tmp_path / "missing" / "up"), "--period", "1h"])
    assert excinfo.value.code == 1


def test_main_sends_quoted_expression_unchanged(tmp_path, monkeypatch):
    queried = []

    def get(url, params=None, timeout=None):
        queried.append(params["query"])
        return FakeResponse({"status": "success", "data": {"resultType": "matrix", "result": []}})

    monkeypatch.setattr(requests, "get", get)
    expression = 'up{job=~"a|b",path=~"/x{1,3}"}'
    cli.main(["--metric", expression, "--out", str(tmp_path / "up"), "--period", "1h", "--batch", "1h"])

    assert queried == [f"{expression}[3600s]"]
    assert os.listdir(tmp_path) == []


@pytest.mark.parametrize("text,expected", [("500ms", 0.5), ("1.5s", 1.5), ("2m", 120.0)])
def test_timeout_keeps_fractions(text, expected):
    config = DumpConfig.from_args(_args("--metric", "up", "--out", "x", "--timeout", text))
    assert config.timeout == expected


def test_default_timeout_matches_query_source():
    args = _args("--metric", "up", "--out", "x")
    assert DumpConfig.from_args(args).timeout == DEFAULT_TIMEOUT
    assert PrometheusQuerySource("http://prom:9090").timeout == DEFAULT_TIMEOUT
