"""
Route selection from a price snapshot.

Each position token is classified against a fixed deviation threshold, then
the pair of classifications picks exactly one route: a compounding multi-hop
when Long and Short deviate in opposite directions, otherwise the first
matching single-hop in fixed priority order.
"""

from decimal import Decimal
from typing import Tuple

from .types import ONE_TOKEN, PriceSnapshot, Route, RouteKind, Side, Token

THRESHOLD = Decimal("0.025")

# Checked in order; first match wins
MULTI_HOP_RULES: Tuple[Tuple[Side, Side, RouteKind], ...] = (
    (Side.OVER, Side.UNDER, RouteKind.LONG_TO_SHORT),
    (Side.UNDER, Side.OVER, RouteKind.SHORT_TO_LONG),
)

SINGLE_HOP_RULES: Tuple[Tuple[Token, Side, RouteKind], ...] = (
    (Token.LONG, Side.OVER, RouteKind.SELL_LONG),
    (Token.SHORT, Side.OVER, RouteKind.SELL_SHORT),
    (Token.LONG, Side.UNDER, RouteKind.BUY_LONG),
    (Token.SHORT, Side.UNDER, RouteKind.BUY_SHORT),
)


def classify(deviation: Decimal, threshold: Decimal = THRESHOLD) -> Side:
    """Strict comparison: a deviation of exactly +/- threshold is WITHIN."""
    if deviation > threshold:
        return Side.OVER
    if deviation < -threshold:
        return Side.UNDER
    return Side.WITHIN


def select_kind(long_side: Side, short_side: Side) -> RouteKind:
    for want_long, want_short, kind in MULTI_HOP_RULES:
        if long_side is want_long and short_side is want_short:
            return kind

    sides = {Token.LONG: long_side, Token.SHORT: short_side}
    for token, side, kind in SINGLE_HOP_RULES:
        if sides[token] is side:
            return kind

    return RouteKind.NO_ACTION


class PathEngine:
    """Pure route chooser; no I/O and never raises on a valid snapshot."""

    def __init__(self, threshold: Decimal = THRESHOLD):
        self.threshold = threshold

    def classify(self, deviation: Decimal) -> Side:
        return classify(deviation, self.threshold)

    def select_route(self, snapshot: PriceSnapshot, trade_size_usd: int = 1) -> Route:
        """
        Choose the route for this snapshot.

        amount_in is trade_size_usd worth of the input token at fair value,
        in base units; zero for NO_ACTION.
        """
        kind = select_kind(
            self.classify(snapshot.long_deviation),
            self.classify(snapshot.short_deviation),
        )
        if kind is RouteKind.NO_ACTION:
            return Route.no_action()

        route = Route.of(kind)
        amount_in = snapshot.units_per_usd(route.input_token) * trade_size_usd * ONE_TOKEN
        return Route.of(kind, amount_in=amount_in)
