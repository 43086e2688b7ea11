#!/usr/bin/env python3
"""
Command-line entry point for the Long/Short arbitrage bot.

Usage:
  # One-time router and market approvals
  delta-arb --config configs/example.yaml setup

  # Watch the market without moving value
  delta-arb --config configs/example.yaml run --dry-run

  # Live loop (requires DELTA_ARB_PRIVATE_KEY)
  delta-arb --config configs/example.yaml run

  # Show wallet balances / unwrap wrapped native
  delta-arb --config configs/example.yaml balances
  delta-arb --config configs/example.yaml unwrap --amount 500

Environment Variables:
  DELTA_ARB_RPC_URL: RPC endpoint (overrides rpc_url in config)
  DELTA_ARB_PRIVATE_KEY: Signing key (required except for dry runs)
  DELTA_ARB_ACCOUNT: Wallet address for watch-only dry runs
"""

import argparse
import asyncio
import signal
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from eth_account import Account
from web3 import Web3

from .assets import AssetManager
from .chain import Web3Balances, Web3ChainQuery, Web3TokenManager, WatchOnlyTokenManager
from .config import BotConfig, Secrets, load_config, load_secrets
from .contracts import ContractRefs
from .engine import BotEngine, BotLoop
from .exceptions import ConfigError, DeltaArbError
from .executor import RouterExecutor
from .metrics import BotMetrics
from .path import PathEngine
from .prices import PriceCalculator
from .types import ONE_TOKEN, Token
from .utils import format_amount, get_logger, setup_logging
from .version import __version__

logger = get_logger(__name__)


class Components:
    """Everything a command needs, wired once from config and secrets."""

    def __init__(self, config: BotConfig, secrets: Secrets):
        web3 = Web3(Web3.HTTPProvider(secrets.rpc_url))
        self.refs = ContractRefs(web3, config.addresses)
        self.chain = Web3ChainQuery(self.refs)

        if secrets.private_key:
            try:
                account = Account.from_key(secrets.private_key)
            except ValueError as e:
                raise ConfigError(f"Invalid private key: {e}") from e
            self.address = account.address
            self.token_manager = Web3TokenManager(
                self.refs,
                account,
                gas_limits=config.gas_limits,
                tx_timeout_sec=config.tx_timeout_sec,
            )
        else:
            try:
                self.address = Web3.to_checksum_address(secrets.account_address)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid account address: {secrets.account_address}") from e
            self.token_manager = WatchOnlyTokenManager(self.address)

        self.balances = Web3Balances(self.refs, self.address)
        self.assets = AssetManager(self.balances, self.token_manager)
        self.executor = RouterExecutor(self.token_manager)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="delta-arb",
        description="Long/Short position token arbitrage bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", required=True, help="Path to deployment config YAML")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("setup", help="Grant router and market allowances (one-time)")

    run = sub.add_parser("run", help="Run the arbitrage loop")
    run.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and log decisions without moving any value",
    )
    run.add_argument("--once", action="store_true", help="Run a single cycle and exit")

    sub.add_parser("balances", help="Print wallet balances")

    unwrap = sub.add_parser("unwrap", help="Unwrap wrapped native back to native")
    unwrap.add_argument(
        "--amount",
        type=str,
        default=None,
        help="Whole units to unwrap (default: entire wrapped balance)",
    )

    return parser.parse_args(argv)


def parse_amount(raw: str) -> int:
    """Whole-unit decimal string to base units."""
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise ConfigError(f"Invalid amount: {raw}") from e
    if value <= 0:
        raise ConfigError(f"Amount must be positive, got {raw}")
    return int(value * ONE_TOKEN)


def cmd_setup(components: Components) -> int:
    components.executor.approve()
    logger.info("Approvals complete")
    return 0


def cmd_balances(components: Components) -> int:
    snapshot = components.assets.read_balances()
    print(f"Account: {components.address}")
    for token in Token:
        print(f"  {token.value:<8} {format_amount(snapshot[token])}")
    return 0


def cmd_unwrap(components: Components, amount: Optional[str]) -> int:
    wrapped = components.balances.balance_of(Token.WRAPPED)
    to_unwrap = parse_amount(amount) if amount is not None else wrapped
    if to_unwrap == 0:
        logger.info("No wrapped native to unwrap")
        return 0
    if to_unwrap > wrapped:
        logger.error(
            f"Cannot unwrap {format_amount(to_unwrap)}: "
            f"only {format_amount(wrapped)} wrapped held"
        )
        return 1
    components.token_manager.unwrap(to_unwrap)
    logger.info(f"Unwrapped {format_amount(to_unwrap)}")
    return 0


async def cmd_run(components: Components, config: BotConfig, dry_run: bool, once: bool) -> int:
    engine = BotEngine(
        calculator=PriceCalculator(components.chain),
        path_engine=PathEngine(),
        assets=components.assets,
        executor=components.executor,
        chain=components.chain,
        dry_run=dry_run,
        trade_size_usd=config.trade_size_usd,
    )

    metrics = None
    if config.metrics_port:
        metrics = BotMetrics()
        await metrics.start_server(port=config.metrics_port)

    components.assets.log_balances()

    bot_loop = BotLoop(
        engine,
        interval=config.poll_sec,
        metrics=metrics,
        max_cycles=1 if once else None,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, bot_loop.stop)
        except NotImplementedError:
            # Windows event loops; Ctrl+C still raises KeyboardInterrupt
            pass

    try:
        await bot_loop.run()
    finally:
        if metrics is not None:
            await metrics.stop_server()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level.upper())

    dry_run = args.command == "run" and args.dry_run
    try:
        config = load_config(args.config)
        secrets = load_secrets(config, require_key=not dry_run and args.command != "balances")
        components = Components(config, secrets)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if dry_run:
        logger.info(f"DRY RUN for {components.address}: no transactions will be sent")

    try:
        if args.command == "setup":
            return cmd_setup(components)
        if args.command == "balances":
            return cmd_balances(components)
        if args.command == "unwrap":
            return cmd_unwrap(components, args.amount)
        return asyncio.run(cmd_run(components, config, dry_run, args.once))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except DeltaArbError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
