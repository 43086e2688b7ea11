"""
Price snapshot construction.

Quoted prices come from the two LP pools, fair prices from the market
contract. Both sides are fetched, joined, then normalized into a single
PriceSnapshot for the cycle.
"""

import asyncio
from decimal import Decimal
from typing import Tuple

from .chain import ChainQuery
from .config import LONG_PAIR, SHORT_PAIR
from .exceptions import ChainQueryError, InvalidStateError
from .types import MarketState, PriceSnapshot, Token
from .utils import get_logger

logger = get_logger(__name__)

PRICE_SCALE = 10**6
# Market state price is the native USD price scaled by 1e5
USD_PRICE_SCALE = Decimal(100_000)


def truncated_ratio(numerator: int, denominator: int) -> Decimal:
    """
    numerator / denominator truncated to 6 decimal places.

    Raises:
        InvalidStateError: If denominator is not positive
    """
    if denominator <= 0:
        raise InvalidStateError(
            f"Cannot price against non-positive amount {denominator}",
            {"numerator": numerator, "denominator": denominator},
        )
    return Decimal(numerator * PRICE_SCALE // denominator) / PRICE_SCALE


def build_snapshot(
    quoted_long: Decimal,
    quoted_short: Decimal,
    fair_long: Decimal,
    fair_short: Decimal,
    native_usd_price: Decimal,
) -> PriceSnapshot:
    """
    Normalize raw prices into a PriceSnapshot.

    Deviations are (quoted - fair) / fair. Per-USD ratios are whole units,
    floored, and may be zero when a unit is worth more than one USD; routes
    spending that token then size to nothing.

    Raises:
        InvalidStateError: If any price is not positive
    """
    prices = {
        "quoted_long": quoted_long,
        "quoted_short": quoted_short,
        "fair_long": fair_long,
        "fair_short": fair_short,
        "native_usd_price": native_usd_price,
    }
    bad = {k: str(v) for k, v in prices.items() if v <= 0}
    if bad:
        raise InvalidStateError(f"Non-positive prices: {bad}", bad)

    natives_per_usd = Decimal(1) / native_usd_price
    longs_per_usd = int(natives_per_usd / fair_long)
    shorts_per_usd = int(natives_per_usd / fair_short)
    native_per_usd = int(natives_per_usd)

    return PriceSnapshot(
        quoted_long=quoted_long,
        quoted_short=quoted_short,
        fair_long=fair_long,
        fair_short=fair_short,
        native_usd_price=native_usd_price,
        long_deviation=(quoted_long - fair_long) / fair_long,
        short_deviation=(quoted_short - fair_short) / fair_short,
        longs_per_usd=longs_per_usd,
        shorts_per_usd=shorts_per_usd,
        native_per_usd=native_per_usd,
    )


class PriceCalculator:
    """
    Builds the per-cycle PriceSnapshot from a ChainQuery.

    Either both sides of a fetch succeed or the whole fetch raises
    ChainQueryError; a partial snapshot is never produced.
    """

    def __init__(self, chain: ChainQuery):
        self.chain = chain

    def fetch_quoted_prices(self) -> Tuple[Decimal, Decimal]:
        """
        Spot prices (wrapped native per token) of Long and Short on the DEX.

        Raises:
            ChainQueryError: If either pool read fails
            InvalidStateError: If a pool holds no position tokens
        """
        long_reserves = self.chain.pair_reserves(LONG_PAIR)
        short_reserves = self.chain.pair_reserves(SHORT_PAIR)

        quoted_long = truncated_ratio(long_reserves[Token.WRAPPED], long_reserves[Token.LONG])
        quoted_short = truncated_ratio(
            short_reserves[Token.WRAPPED], short_reserves[Token.SHORT]
        )
        return quoted_long, quoted_short

    def fetch_fair_prices(self) -> Tuple[Decimal, Decimal, Decimal]:
        """
        Fair prices of Long and Short, plus the native USD price.

        Raises:
            ChainQueryError: If the market read fails
            InvalidStateError: If a total supply is zero
        """
        state = self.chain.market_state()
        return self.fair_prices_from_state(state)

    @staticmethod
    def fair_prices_from_state(state: MarketState) -> Tuple[Decimal, Decimal, Decimal]:
        fair_long = truncated_ratio(state.long_liquidity, state.long_total_supply)
        fair_short = truncated_ratio(state.short_liquidity, state.short_total_supply)
        native_usd_price = Decimal(state.price) / USD_PRICE_SCALE
        return fair_long, fair_short, native_usd_price

    def fetch_snapshot(self) -> PriceSnapshot:
        quoted_long, quoted_short = self.fetch_quoted_prices()
        fair_long, fair_short, native_usd = self.fetch_fair_prices()
        return build_snapshot(quoted_long, quoted_short, fair_long, fair_short, native_usd)

    async def fetch_snapshot_async(self) -> PriceSnapshot:
        """
        Fetch the DEX and market sides concurrently, then join.

        The blocking reads run on the default executor. If either side fails,
        the first error propagates once both have finished.
        """
        loop = asyncio.get_running_loop()
        quoted_task = loop.run_in_executor(None, self.fetch_quoted_prices)
        fair_task = loop.run_in_executor(None, self.fetch_fair_prices)

        results = await asyncio.gather(quoted_task, fair_task, return_exceptions=True)
        for result in results:
            if isinstance(result, (ChainQueryError, InvalidStateError)):
                raise result
            if isinstance(result, BaseException):
                raise ChainQueryError(f"Price fetch failed: {result}") from result

        (quoted_long, quoted_short), (fair_long, fair_short, native_usd) = results
        snapshot = build_snapshot(quoted_long, quoted_short, fair_long, fair_short, native_usd)
        logger.debug(f"Snapshot: {snapshot.to_log_dict()}")
        return snapshot
