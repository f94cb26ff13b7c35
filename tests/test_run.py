"""End-to-end tests for the command-line entry point."""

import io
import json
import math
from unittest.mock import patch

import pytest

import run


SAMPLE = (
    b"starting feed\n"
    b"BEGIN\n"
    b'{"market":1,"price":10,"volume":2,"is_buy":true}\n'
    b'{"market":1,"price":20,"volume":4,"is_buy":false}\n'
    b'{"market":2,"price":5,"volume":1,"is_buy":true}\n'
    b"END\n"
    b'{"market":3,"price":1,"volume":1,"is_buy":true}\n'
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "AGGREGATOR_WORKERS",
        "AGGREGATOR_STRICT_WINDOW",
        "AGGREGATOR_SKIP_MALFORMED",
        "S3_BUCKET_NAME",
        "AGGREGATOR_S3_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)


def _run(data: bytes, *argv):
    stdout = io.StringIO()
    stderr = io.StringIO()
    code = run.main(list(argv), stdin=io.BytesIO(data), stdout=stdout, stderr=stderr)
    return code, stdout.getvalue(), stderr.getvalue()


def _results(stdout: str) -> dict:
    records = [json.loads(line) for line in stdout.splitlines()]
    return {r["market"]: r for r in records}


# -- Success path ------------------------------------------------------------


class TestAggregation:
    def test_prints_one_line_per_market(self):
        code, stdout, _ = _run(SAMPLE)
        assert code == 0
        results = _results(stdout)
        assert set(results) == {1, 2}
        assert results[1] == {
            "market": 1,
            "total_volume": 6.0,
            "mean_volume": 3.0,
            "mean_price": 15.0,
            "percentage_buy": 50.0,
            "vwap": pytest.approx(100.0 / 6.0),
        }

    def test_passthrough_and_summary_on_stderr(self):
        _, _, stderr = _run(SAMPLE)
        assert "starting feed\n" in stderr
        assert "for processing 3 trades" in stderr

    def test_workers_flag(self):
        code, stdout, _ = _run(SAMPLE, "--workers", "4")
        assert code == 0
        assert _results(stdout)[1]["total_volume"] == 6.0

    def test_strict_window_flag(self):
        data = b'{"market":1,"price":10,"volume":9,"is_buy":true}\n' + SAMPLE
        _, stdout, _ = _run(data, "--strict-window")
        assert _results(stdout)[1]["total_volume"] == 6.0

    def test_env_config(self, monkeypatch):
        monkeypatch.setenv("AGGREGATOR_SKIP_MALFORMED", "true")
        code, stdout, _ = _run(b"BEGIN\n{oops\nEND\n")
        assert code == 0
        assert stdout == ""

    def test_nan_is_written_for_degenerate_market(self):
        code, stdout, _ = _run(b'BEGIN\n{"market":8,"price":3,"volume":0,"is_buy":false}\nEND\n')
        assert code == 0
        assert math.isnan(_results(stdout)[8]["vwap"])


# -- Failure path ------------------------------------------------------------


class TestFailures:
    def test_malformed_line_exits_non_zero(self):
        code, stdout, stderr = _run(b"BEGIN\n{oops\nEND\n")
        assert code == 1
        assert stdout == ""
        assert "for processing 1 trades" in stderr

    def test_skip_malformed_flag(self):
        code, stdout, _ = _run(
            b'BEGIN\n{oops\n{"market":1,"price":1,"volume":1,"is_buy":true}\nEND\n',
            "--skip-malformed",
        )
        assert code == 0
        assert _results(stdout)[1]["mean_price"] == 1.0


# -- S3 output -----------------------------------------------------------------


class TestS3Publishing:
    def test_no_s3_by_default(self):
        with patch("run.S3Publisher") as mock_s3:
            _run(SAMPLE)
        mock_s3.assert_not_called()

    def test_s3_bucket_flag_publishes(self):
        with patch("run.S3Publisher") as mock_s3:
            code, stdout, _ = _run(SAMPLE, "--s3-bucket", "results", "--s3-prefix", "runs")
        assert code == 0
        mock_s3.assert_called_once_with(bucket="results", prefix="runs")
        key, payload = mock_s3.return_value.publish_json.call_args[0]
        assert key.startswith("aggregates/")
        assert {r["market"] for r in payload} == {1, 2}
        assert stdout.count("\n") == 2

    def test_s3_failure_prints_nothing_to_stdout(self):
        with patch("run.S3Publisher") as mock_s3:
            mock_s3.return_value.publish_json.side_effect = RuntimeError("access denied")
            code, stdout, stderr = _run(SAMPLE, "--s3-bucket", "results")
        assert code == 1
        assert stdout == ""
        assert "for processing 3 trades" in stderr


# -- Argument errors -------------------------------------------------------------


class TestArguments:
    def test_negative_workers_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as info:
            _run(SAMPLE, "--workers", "-1")
        assert info.value.code == 2
        assert "workers must be >= 0" in capsys.readouterr().err

    def test_unknown_log_level_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as info:
            _run(SAMPLE, "--log-level", "chatty")
        assert info.value.code == 2
        assert "unknown log level" in capsys.readouterr().err

    def test_bad_workers_env_is_a_usage_error(self, monkeypatch, capsys):
        monkeypatch.setenv("AGGREGATOR_WORKERS", "many")
        with pytest.raises(SystemExit) as info:
            _run(SAMPLE)
        assert info.value.code == 2
        assert "AGGREGATOR_WORKERS" in capsys.readouterr().err
