"""
Long/Short Position Token Arbitrage Bot.

Watches the DEX prices of two complementary position tokens against their
market fair prices, picks one arbitrage route per cycle, and executes it when
the estimated net gain clears the fixed transaction cost.
"""

PROJECT_NAME = "delta-arb"

from delta_arb.version import __version__  # noqa: E402
from delta_arb.types import (  # noqa: E402
    PriceSnapshot,
    Route,
    RouteKind,
    Side,
    SwapResult,
    Token,
)
from delta_arb.prices import PriceCalculator, build_snapshot  # noqa: E402
from delta_arb.path import PathEngine, classify  # noqa: E402
from delta_arb.profit import estimate_net_gain  # noqa: E402
from delta_arb.assets import AssetManager, InMemoryLedger  # noqa: E402
from delta_arb.executor import Executor, RouterExecutor  # noqa: E402
from delta_arb.engine import BotEngine, BotLoop, CycleReport, CycleState  # noqa: E402

__all__ = [
    "PROJECT_NAME",
    "__version__",
    "Token",
    "Side",
    "RouteKind",
    "Route",
    "PriceSnapshot",
    "SwapResult",
    "PriceCalculator",
    "build_snapshot",
    "PathEngine",
    "classify",
    "estimate_net_gain",
    "AssetManager",
    "InMemoryLedger",
    "Executor",
    "RouterExecutor",
    "BotEngine",
    "BotLoop",
    "CycleReport",
    "CycleState",
]
