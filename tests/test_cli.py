"""Tests for CLI interface"""

from __future__ import annotations

import logging
from decimal import Decimal
from unittest.mock import MagicMock, patch

import click
import pytest
import yaml
from click.testing import CliRunner

from recurra.cli import _die, cli, run_schedule, setup_logging
from recurra.domain.config import RecurringPullEntry
from recurra.infrastructure.executor.mock import MockPullExecutor


def _pull(pull_id: str = "rent", **overrides) -> dict:
    values = {
        "id": pull_id,
        "pointer": "$wallet.example/alice",
        "amount": "10",
        "interval": 10,
        "cycles": 2,
    }
    values.update(overrides)
    return values


def _write_config(tmp_path, pulls, executor=None):
    data = {"pulls": pulls}
    if executor is not None:
        data["executor"] = executor
    path = tmp_path / ".recurra.yml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("RECURRA_EXECUTOR", raising=False)
    monkeypatch.delenv("RECURRA_HTTP_AUTH_TOKEN", raising=False)


class TestSetupLogging:
    """Tests for setup_logging function"""

    def test_setup_logging_info_level(self):
        """Test that logging is set to INFO level by default"""
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test that logging is set to DEBUG level when verbose"""
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG


class TestDie:
    """Tests for _die function"""

    def test_die_without_exception(self):
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=False)

    def test_die_with_exception_verbose(self):
        exc = ValueError("Test exception")
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=True, exc=exc)


class TestCheckCommand:
    """Tests for check command"""

    def test_check_lists_pulls(self, tmp_path):
        path = _write_config(
            tmp_path,
            [
                _pull("rent", interval="PT1H", cycles=12, timeout="PT30S",
                      retry={"attempts": 3, "interval": "PT1M"}),
                _pull("tip", cycles=None),
            ],
        )

        result = CliRunner().invoke(cli, ["--config", str(path), "check"])

        assert result.exit_code == 0, result.output
        assert "rent: pull 10 from $wallet.example/alice" in result.output
        assert "interval: 3.6e+06 ms, cycles: 12" in result.output
        assert "timeout: 30000 ms" in result.output
        assert "retry: 3 attempts every 60000 ms" in result.output
        assert "cycles: unbounded" in result.output
        assert "2 recurring pull(s) configured" in result.output

    def test_check_warns_about_single_cycle(self, tmp_path):
        path = _write_config(tmp_path, [_pull(cycles=1)])

        result = CliRunner().invoke(cli, ["--config", str(path), "check"])

        assert result.exit_code == 0
        assert "will be rejected" in result.output

    def test_check_empty(self, tmp_path):
        path = _write_config(tmp_path, [])
        result = CliRunner().invoke(cli, ["--config", str(path), "check"])
        assert result.exit_code == 0
        assert "No recurring pulls configured." in result.output

    def test_check_invalid_config(self, tmp_path):
        path = _write_config(tmp_path, [_pull(amount="-5")])

        result = CliRunner().invoke(cli, ["--config", str(path), "check"])

        assert result.exit_code != 0
        assert "pulls.0.amount" in result.output


class TestRunCommand:
    """Tests for run command"""

    def test_run_until_all_pulls_end(self, tmp_path):
        path = _write_config(tmp_path, [_pull("a"), _pull("b", cycles=3)])

        result = CliRunner().invoke(cli, ["--config", str(path), "run"])

        assert result.exit_code == 0, result.output
        assert result.output.count("[paid] a: received 10") == 2
        assert result.output.count("[paid] b: received 10") == 3
        assert "[end] a" in result.output
        assert "[end] b" in result.output
        assert "All 2 recurring pull(s) ended." in result.output

    def test_run_only_selected(self, tmp_path):
        path = _write_config(tmp_path, [_pull("a"), _pull("b")])

        result = CliRunner().invoke(cli, ["--config", str(path), "run", "--only", "b"])

        assert result.exit_code == 0, result.output
        assert "[paid] a" not in result.output
        assert "[end] b" in result.output

    def test_run_unknown_only_id(self, tmp_path):
        path = _write_config(tmp_path, [_pull("a")])

        result = CliRunner().invoke(cli, ["--config", str(path), "run", "--only", "zzz"])

        assert result.exit_code != 0
        assert "Unknown pull id(s): zzz" in result.output

    def test_run_rejects_single_cycle(self, tmp_path):
        path = _write_config(tmp_path, [_pull(cycles=1)])

        result = CliRunner().invoke(cli, ["--config", str(path), "run"])

        assert result.exit_code != 0
        assert "at least 2 cycles" in result.output

    def test_run_no_pulls(self, tmp_path):
        path = _write_config(tmp_path, [])
        result = CliRunner().invoke(cli, ["--config", str(path), "run"])
        assert result.exit_code != 0
        assert "No recurring pulls configured" in result.output

    def test_run_first_payment_fails(self, tmp_path):
        path = _write_config(tmp_path, [_pull()], executor={"type": "mock", "outcomes": [False]})

        result = CliRunner().invoke(cli, ["--config", str(path), "run"])

        assert result.exit_code == 1
        assert "[failed] rent: received 0" in result.output
        assert "first payment failed" in result.output

    @patch("recurra.cli.PullExecutorFactory")
    def test_run_executor_override(self, mock_factory, tmp_path):
        path = _write_config(tmp_path, [_pull()])
        mock_factory.create.return_value = MockPullExecutor()

        result = CliRunner().invoke(cli, ["--config", str(path), "run", "--executor", "http"])

        assert result.exit_code == 0, result.output
        executor_type, config = mock_factory.create.call_args[0]
        assert executor_type == "http"
        assert config["retry"]["max_attempts"] == 3
        assert "type" not in config

    @patch("recurra.cli.PullExecutorFactory")
    def test_run_executor_creation_fails(self, mock_factory, tmp_path):
        path = _write_config(tmp_path, [_pull()])
        mock_factory.create.side_effect = ValueError("bad executor config")

        result = CliRunner().invoke(cli, ["--config", str(path), "run"])

        assert result.exit_code != 0
        assert "bad executor config" in result.output


class TestRunSchedule:
    """Tests for run_schedule"""

    @pytest.mark.asyncio
    async def test_retry_recovers_failed_cycle(self, capsys):
        executor = MockPullExecutor({"outcomes": [True, False, True, True]})
        pulls = [
            RecurringPullEntry(
                id="rent",
                pointer="$wallet.example/alice",
                amount=Decimal("3"),
                interval=20,
                cycles=3,
                retry={"attempts": 2, "interval": 5},
            )
        ]

        started = await run_schedule(executor, pulls)

        assert started == 1
        out = capsys.readouterr().out
        assert out.count("[paid] rent") == 3
        assert out.count("[failed] rent") == 1
        assert out.count("[end] rent") == 1

    @pytest.mark.asyncio
    async def test_nothing_started(self):
        executor = MagicMock()

        async def declined(request):
            raise RuntimeError("declined")

        executor.execute = declined
        pulls = [RecurringPullEntry(id="rent", pointer="$a.example", amount=1, interval=10, cycles=2)]

        assert await run_schedule(executor, pulls) == 0
