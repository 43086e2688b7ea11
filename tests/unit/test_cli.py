"""Tests for the command-line entry point."""

from types import SimpleNamespace

import pytest

from delta_arb import cli
from delta_arb.assets import AssetManager, InMemoryLedger
from delta_arb.exceptions import ConfigError
from delta_arb.executor import RouterExecutor
from delta_arb.types import ONE_TOKEN, Token


def make_components(**balances):
    ledger = InMemoryLedger({Token[k.upper()]: v * ONE_TOKEN for k, v in balances.items()})
    return (
        SimpleNamespace(
            address="0x" + "6" * 40,
            balances=ledger,
            token_manager=ledger,
            assets=AssetManager(ledger, ledger),
            executor=RouterExecutor(ledger),
        ),
        ledger,
    )


class TestParseArgs:
    def test_run_dry_run_once(self):
        args = cli.parse_args(["--config", "bot.yaml", "run", "--dry-run", "--once"])
        assert args.command == "run"
        assert args.dry_run
        assert args.once

    def test_unwrap_amount_optional(self):
        args = cli.parse_args(["--config", "bot.yaml", "unwrap"])
        assert args.amount is None

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["--config", "bot.yaml"])


class TestParseAmount:
    def test_whole_and_fractional(self):
        assert cli.parse_amount("500") == 500 * ONE_TOKEN
        assert cli.parse_amount("0.5") == ONE_TOKEN // 2

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_invalid(self, raw):
        with pytest.raises(ConfigError):
            cli.parse_amount(raw)


class TestCommands:
    def test_unwrap_all(self):
        components, ledger = make_components(wrapped=750)
        assert cli.cmd_unwrap(components, None) == 0
        assert ledger.operations == [("unwrap", 750 * ONE_TOKEN)]

    def test_unwrap_nothing_held(self):
        components, ledger = make_components(wrapped=0)
        assert cli.cmd_unwrap(components, None) == 0
        assert ledger.operations == []

    def test_unwrap_more_than_held(self):
        components, ledger = make_components(wrapped=10)
        assert cli.cmd_unwrap(components, "20") == 1
        assert ledger.operations == []

    def test_setup_approves(self):
        components, ledger = make_components()
        assert cli.cmd_setup(components) == 0
        assert ledger.approved

    def test_balances_printed(self, capsys):
        components, _ = make_components(native=3, long=2)
        assert cli.cmd_balances(components) == 0
        out = capsys.readouterr().out
        assert "native" in out
        assert "3.00" in out
        assert "2.00" in out


def test_config_error_exits_with_status_2(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    missing = tmp_path / "missing.yaml"
    assert cli.main(["--config", str(missing), "balances"]) == 2
