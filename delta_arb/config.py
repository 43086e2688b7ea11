"""
Configuration loading and validation for the delta arbitrage bot.

The deployment file maps logical contract names to addresses per network and
carries the loop and gas settings. Secrets (RPC endpoint, signing key) come
from the environment or a .env file.
"""

import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigError

# Logical contract names resolved from the address table
ROUTER = "Router"
MARKET = "Market"
WRAPPED_NATIVE = "WrappedNativeToken"
LONG_TOKEN = "CD_LONG"
SHORT_TOKEN = "CD_SHORT"
LONG_PAIR = "CD_LONG-WCSPR LP"
SHORT_PAIR = "WCSPR-CD_SHORT LP"

CONTRACT_NAMES = (
    ROUTER,
    MARKET,
    WRAPPED_NATIVE,
    LONG_TOKEN,
    SHORT_TOKEN,
    LONG_PAIR,
    SHORT_PAIR,
)

DEFAULT_POLL_SEC = 180

# Gas budgets per transaction type
DEFAULT_GAS_LIMITS = {
    "approve": 60_000,
    "wrap": 80_000,
    "unwrap": 80_000,
    "deposit": 250_000,
    "swap_single": 220_000,
    "swap_multi": 360_000,
}

RPC_URL_ENV = "DELTA_ARB_RPC_URL"
PRIVATE_KEY_ENV = "DELTA_ARB_PRIVATE_KEY"
ACCOUNT_ENV = "DELTA_ARB_ACCOUNT"


class BotConfig:
    """
    Parsed and validated bot configuration.

    Attributes:
        network: Name of the active deployment in the address table
        networks: {network -> {logical contract name -> address}}
        rpc_url: HTTP(S) RPC endpoint (may be overridden from the environment)
        poll_sec: Seconds between the starts of consecutive cycles
        trade_size_usd: Notional trade size in USD per cycle
        gas_limits: Gas limit per transaction type
        tx_timeout_sec: Seconds to wait for a transaction receipt
        metrics_port: If set, serve Prometheus metrics on this port
    """

    def __init__(self, config_dict: Dict[str, Any]):
        """
        Parse and validate config from dictionary.

        Args:
            config_dict: Loaded YAML config

        Raises:
            ConfigError: If required fields missing or invalid
        """
        self.network: str = self._get_required(config_dict, "network", str)
        self.networks: Dict[str, Dict[str, str]] = self._parse_networks(
            self._get_required(config_dict, "networks", dict)
        )
        if self.network not in self.networks:
            raise ConfigError(f"Network '{self.network}' not found in networks table")

        self.rpc_url: Optional[str] = config_dict.get("rpc_url")

        self.poll_sec: int = config_dict.get("poll_sec", DEFAULT_POLL_SEC)
        if not isinstance(self.poll_sec, (int, float)) or self.poll_sec <= 0:
            raise ConfigError(f"poll_sec must be a positive number, got {self.poll_sec!r}")

        self.trade_size_usd: int = config_dict.get("trade_size_usd", 1)
        if not isinstance(self.trade_size_usd, int) or self.trade_size_usd <= 0:
            raise ConfigError(
                f"trade_size_usd must be a positive integer, got {self.trade_size_usd!r}"
            )

        self.gas_limits: Dict[str, int] = self._parse_gas_limits(
            config_dict.get("gas_limits", {})
        )
        self.tx_timeout_sec: int = int(config_dict.get("tx_timeout_sec", 120))
        self.metrics_port: Optional[int] = config_dict.get("metrics_port")

    @staticmethod
    def _get_required(d: Dict, key: str, expected_type: type) -> Any:
        """Get required config field with type validation."""
        if key not in d:
            raise ConfigError(f"Missing required config field: {key}")
        val = d[key]
        if not isinstance(val, expected_type):
            raise ConfigError(
                f"Config field '{key}' must be {expected_type.__name__}, got {type(val).__name__}"
            )
        return val

    @staticmethod
    def _parse_networks(networks_raw: Dict[str, Any]) -> Dict[str, Dict[str, str]]:
        """Parse the per-network address tables; every logical name is required."""
        networks = {}
        for name, table in networks_raw.items():
            if not isinstance(table, dict):
                raise ConfigError(f"Network '{name}' must map contract names to addresses")
            missing = [c for c in CONTRACT_NAMES if not table.get(c)]
            if missing:
                raise ConfigError(
                    f"Network '{name}' missing contract addresses: {', '.join(missing)}",
                    {"network": name, "missing": missing},
                )
            networks[name] = {c: str(table[c]) for c in CONTRACT_NAMES}
        return networks

    @staticmethod
    def _parse_gas_limits(gas_raw: Dict[str, Any]) -> Dict[str, int]:
        if not isinstance(gas_raw, dict):
            raise ConfigError("gas_limits must be a dict")
        unknown = set(gas_raw) - set(DEFAULT_GAS_LIMITS)
        if unknown:
            raise ConfigError(f"Unknown gas_limits keys: {', '.join(sorted(unknown))}")
        limits = dict(DEFAULT_GAS_LIMITS)
        for key, value in gas_raw.items():
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"gas_limits.{key} must be a positive integer")
            limits[key] = value
        return limits

    @property
    def addresses(self) -> Dict[str, str]:
        """Address table of the active network."""
        return self.networks[self.network]


class Secrets:
    """Credentials resolved once at process start."""

    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str],
        account_address: Optional[str] = None,
    ):
        self.rpc_url = rpc_url
        self.private_key = private_key
        self.account_address = account_address

    def __repr__(self) -> str:
        key = "set" if self.private_key else "unset"
        return (
            f"Secrets(rpc_url={self.rpc_url!r}, private_key={key}, "
            f"account={self.account_address!r})"
        )


def load_config(config_path: str) -> BotConfig:
    """
    Load and validate config from YAML file.

    Raises:
        ConfigError: If config invalid, unparseable or file not found
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")

    return BotConfig(config_dict)


def load_secrets(config: BotConfig, require_key: bool = True) -> Secrets:
    """
    Resolve RPC endpoint and signing key from the environment (.env supported).

    Raises:
        ConfigError: If no RPC endpoint, or no key when one is required
    """
    load_dotenv()

    rpc_url = os.getenv(RPC_URL_ENV) or config.rpc_url
    if not rpc_url:
        raise ConfigError(f"No RPC endpoint: set {RPC_URL_ENV} or rpc_url in config")
    if not rpc_url.startswith(("http://", "https://")):
        raise ConfigError(f"Invalid RPC URL format: {rpc_url}")

    private_key = os.getenv(PRIVATE_KEY_ENV)
    account_address = os.getenv(ACCOUNT_ENV)
    if require_key and not private_key:
        raise ConfigError(f"{PRIVATE_KEY_ENV} must be set for this command")
    if not private_key and not account_address:
        raise ConfigError(
            f"Set {PRIVATE_KEY_ENV}, or {ACCOUNT_ENV} for a watch-only dry run"
        )

    return Secrets(
        rpc_url=rpc_url, private_key=private_key, account_address=account_address
    )
