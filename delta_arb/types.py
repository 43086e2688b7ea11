"""
Core data types for the Long/Short arbitrage bot.

All token amounts are integers in base units (9 decimals). Prices, deviations
and gains are Decimals so threshold comparisons are exact.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

DECIMAL_PLACES = 9
ONE_TOKEN = 10**DECIMAL_PLACES


class Token(Enum):
    """Assets the bot holds or routes through."""

    NATIVE = "native"
    WRAPPED = "wrapped"
    LONG = "long"
    SHORT = "short"


class Side(Enum):
    """Classification of one position token's deviation from fair price."""

    OVER = "over"
    UNDER = "under"
    WITHIN = "within"


class RouteKind(Enum):
    """
    Closed set of swap routes.

    Values:
        NO_ACTION: No actionable deviation
        SELL_LONG: Long is over-priced, swap Long -> Wrapped
        BUY_LONG: Long is under-priced, swap Wrapped -> Long
        SELL_SHORT: Short is over-priced, swap Short -> Wrapped
        BUY_SHORT: Short is under-priced, swap Wrapped -> Short
        LONG_TO_SHORT: Long over and Short under, swap Long -> Wrapped -> Short
        SHORT_TO_LONG: Short over and Long under, swap Short -> Wrapped -> Long
    """

    NO_ACTION = "no_action"
    SELL_LONG = "sell_long"
    BUY_LONG = "buy_long"
    SELL_SHORT = "sell_short"
    BUY_SHORT = "buy_short"
    LONG_TO_SHORT = "long_to_short"
    SHORT_TO_LONG = "short_to_long"


ROUTE_PATHS: Dict[RouteKind, Tuple[Token, ...]] = {
    RouteKind.NO_ACTION: (),
    RouteKind.SELL_LONG: (Token.LONG, Token.WRAPPED),
    RouteKind.BUY_LONG: (Token.WRAPPED, Token.LONG),
    RouteKind.SELL_SHORT: (Token.SHORT, Token.WRAPPED),
    RouteKind.BUY_SHORT: (Token.WRAPPED, Token.SHORT),
    RouteKind.LONG_TO_SHORT: (Token.LONG, Token.WRAPPED, Token.SHORT),
    RouteKind.SHORT_TO_LONG: (Token.SHORT, Token.WRAPPED, Token.LONG),
}

MULTI_HOP_KINDS = frozenset({RouteKind.LONG_TO_SHORT, RouteKind.SHORT_TO_LONG})


@dataclass(frozen=True)
class Route:
    """
    One chosen swap route for a single cycle.

    Attributes:
        kind: Route variant
        path: Token hops, input first
        amount_in: Notional input amount (base units)
        amount_out: Quoted output amount (base units), 0 until quoted
    """

    kind: RouteKind
    path: Tuple[Token, ...]
    amount_in: int = 0
    amount_out: int = 0

    @classmethod
    def of(cls, kind: RouteKind, amount_in: int = 0, amount_out: int = 0) -> "Route":
        return cls(kind=kind, path=ROUTE_PATHS[kind], amount_in=amount_in, amount_out=amount_out)

    @classmethod
    def no_action(cls) -> "Route":
        return cls.of(RouteKind.NO_ACTION)

    @property
    def is_no_action(self) -> bool:
        return self.kind is RouteKind.NO_ACTION

    @property
    def is_multi_hop(self) -> bool:
        return self.kind in MULTI_HOP_KINDS

    @property
    def input_token(self) -> Optional[Token]:
        return self.path[0] if self.path else None

    @property
    def output_token(self) -> Optional[Token]:
        return self.path[-1] if self.path else None

    def with_quote(self, amount_out: int) -> "Route":
        """Return a copy carrying the router-quoted output amount."""
        return replace(self, amount_out=amount_out)

    def __str__(self) -> str:
        if self.is_no_action:
            return "no_action"
        hops = " -> ".join(t.value for t in self.path)
        return f"{self.kind.value} [{hops}] in={self.amount_in} out={self.amount_out}"


@dataclass(frozen=True)
class PriceSnapshot:
    """
    Normalized view of quoted and fair prices for one cycle.

    Prices are in wrapped-native per position token. Deviations are signed
    fractions, (quoted - fair) / fair. The *_per_usd ratios are whole token
    units bought by one USD at fair value.
    """

    quoted_long: Decimal
    quoted_short: Decimal
    fair_long: Decimal
    fair_short: Decimal
    native_usd_price: Decimal
    long_deviation: Decimal
    short_deviation: Decimal
    longs_per_usd: int
    shorts_per_usd: int
    native_per_usd: int

    def fair_price(self, token: Token) -> Decimal:
        """Native value of one unit of token at fair price."""
        if token is Token.LONG:
            return self.fair_long
        if token is Token.SHORT:
            return self.fair_short
        return Decimal(1)

    def units_per_usd(self, token: Token) -> int:
        if token is Token.LONG:
            return self.longs_per_usd
        if token is Token.SHORT:
            return self.shorts_per_usd
        return self.native_per_usd

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "quoted_long": str(self.quoted_long),
            "quoted_short": str(self.quoted_short),
            "fair_long": str(self.fair_long),
            "fair_short": str(self.fair_short),
            "native_usd": str(self.native_usd_price),
            "long_dev_pct": f"{self.long_deviation * 100:+.2f}",
            "short_dev_pct": f"{self.short_deviation * 100:+.2f}",
        }


@dataclass(frozen=True)
class MarketState:
    """Raw market contract state backing the fair prices."""

    long_liquidity: int
    short_liquidity: int
    long_total_supply: int
    short_total_supply: int
    price: int


@dataclass(frozen=True)
class SwapResult:
    """Amounts actually swapped, as reported by the router."""

    amount_in: int
    amount_out: int
    tx_hash: Optional[str] = None


@dataclass
class BalanceSnapshot:
    """Wallet holdings read fresh from the chain; never cached across cycles."""

    amounts: Dict[Token, int] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, amounts: Mapping[Token, int]) -> "BalanceSnapshot":
        return cls(amounts=dict(amounts))

    def __getitem__(self, token: Token) -> int:
        return self.amounts.get(token, 0)
