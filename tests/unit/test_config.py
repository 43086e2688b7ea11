"""
Unit tests for delta_arb/config.py

Verifies config loading, address table validation and secret resolution.
"""

from pathlib import Path

import pytest

from delta_arb.config import (
    ACCOUNT_ENV,
    CONTRACT_NAMES,
    DEFAULT_GAS_LIMITS,
    DEFAULT_POLL_SEC,
    PRIVATE_KEY_ENV,
    RPC_URL_ENV,
    BotConfig,
    load_config,
    load_secrets,
)
from delta_arb.exceptions import ConfigError

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "example.yaml"


def address_table():
    return {name: "0x" + f"{i + 1:040x}" for i, name in enumerate(CONTRACT_NAMES)}


def valid_config(**overrides):
    config = {
        "network": "testnet",
        "networks": {"testnet": address_table()},
        "rpc_url": "https://rpc.example.org",
    }
    config.update(overrides)
    return config


@pytest.fixture
def clean_env(monkeypatch):
    for name in (RPC_URL_ENV, PRIVATE_KEY_ENV, ACCOUNT_ENV):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's local .env out of the tests
    monkeypatch.setattr("delta_arb.config.load_dotenv", lambda *a, **k: False)
    return monkeypatch


class TestBotConfig:
    def test_defaults(self):
        config = BotConfig(valid_config())
        assert config.poll_sec == DEFAULT_POLL_SEC
        assert config.trade_size_usd == 1
        assert config.gas_limits == DEFAULT_GAS_LIMITS
        assert config.metrics_port is None
        assert set(config.addresses) == set(CONTRACT_NAMES)

    def test_missing_network_field(self):
        config = valid_config()
        del config["network"]
        with pytest.raises(ConfigError, match="network"):
            BotConfig(config)

    def test_unknown_active_network(self):
        with pytest.raises(ConfigError, match="mainnet"):
            BotConfig(valid_config(network="mainnet"))

    def test_missing_contract_address(self):
        table = address_table()
        del table["Router"]
        with pytest.raises(ConfigError) as exc_info:
            BotConfig(valid_config(networks={"testnet": table}))
        assert exc_info.value.details["missing"] == ["Router"]

    @pytest.mark.parametrize("poll_sec", [0, -5, "fast"])
    def test_invalid_poll_sec(self, poll_sec):
        with pytest.raises(ConfigError):
            BotConfig(valid_config(poll_sec=poll_sec))

    def test_invalid_trade_size(self):
        with pytest.raises(ConfigError):
            BotConfig(valid_config(trade_size_usd=0.5))

    def test_gas_limit_overrides(self):
        config = BotConfig(valid_config(gas_limits={"swap_multi": 500_000}))
        assert config.gas_limits["swap_multi"] == 500_000
        assert config.gas_limits["approve"] == DEFAULT_GAS_LIMITS["approve"]

    def test_unknown_gas_limit_key(self):
        with pytest.raises(ConfigError, match="bridge"):
            BotConfig(valid_config(gas_limits={"bridge": 1}))


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("network: [unclosed")
        with pytest.raises(ConfigError, match="parse"):
            load_config(str(path))

    def test_non_dict_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_example_config_loads(self):
        config = load_config(str(EXAMPLE_CONFIG))
        assert config.network == "testnet"
        assert config.poll_sec == 180


class TestLoadSecrets:
    def test_env_overrides_config_rpc(self, clean_env):
        clean_env.setenv(RPC_URL_ENV, "http://localhost:8545")
        clean_env.setenv(PRIVATE_KEY_ENV, "0x" + "ab" * 32)
        secrets = load_secrets(BotConfig(valid_config()))
        assert secrets.rpc_url == "http://localhost:8545"
        assert "ab" not in repr(secrets)

    def test_live_run_requires_key(self, clean_env):
        with pytest.raises(ConfigError, match=PRIVATE_KEY_ENV):
            load_secrets(BotConfig(valid_config()))

    def test_dry_run_accepts_watch_only_account(self, clean_env):
        clean_env.setenv(ACCOUNT_ENV, "0x" + "5" * 40)
        secrets = load_secrets(BotConfig(valid_config()), require_key=False)
        assert secrets.private_key is None
        assert secrets.account_address == "0x" + "5" * 40

    def test_dry_run_needs_some_account(self, clean_env):
        with pytest.raises(ConfigError):
            load_secrets(BotConfig(valid_config()), require_key=False)

    def test_rpc_url_required(self, clean_env):
        clean_env.setenv(PRIVATE_KEY_ENV, "0x" + "ab" * 32)
        config = valid_config()
        del config["rpc_url"]
        with pytest.raises(ConfigError, match="RPC"):
            load_secrets(BotConfig(config))

    def test_rpc_url_scheme_checked(self, clean_env):
        clean_env.setenv(PRIVATE_KEY_ENV, "0x" + "ab" * 32)
        with pytest.raises(ConfigError, match="Invalid RPC URL"):
            load_secrets(BotConfig(valid_config(rpc_url="ws://node")))
