"""
Net gain estimation for a quoted route.

Both legs are valued at fair price in native units (wrapped native counts
1:1), and a fixed per-route transaction cost is deducted.
"""

from decimal import Decimal
from typing import Dict

from .types import ONE_TOKEN, PriceSnapshot, Route, RouteKind

MULTI_HOP_COST = Decimal("12.5")
SINGLE_HOP_COST = Decimal("7.0")

# Routes with an estimated gain at or below this are skipped
MIN_NET_GAIN = Decimal("1.0")

TRANSACTION_COSTS: Dict[RouteKind, Decimal] = {
    RouteKind.NO_ACTION: Decimal(0),
    RouteKind.SELL_LONG: SINGLE_HOP_COST,
    RouteKind.BUY_LONG: SINGLE_HOP_COST,
    RouteKind.SELL_SHORT: SINGLE_HOP_COST,
    RouteKind.BUY_SHORT: SINGLE_HOP_COST,
    RouteKind.LONG_TO_SHORT: MULTI_HOP_COST,
    RouteKind.SHORT_TO_LONG: MULTI_HOP_COST,
}


def transaction_cost(kind: RouteKind) -> Decimal:
    return TRANSACTION_COSTS[kind]


def value_of(amount: int, price: Decimal) -> Decimal:
    """Native value of a base-unit amount, in whole native units."""
    return Decimal(amount) * price / ONE_TOKEN


def estimate_net_gain(route: Route, snapshot: PriceSnapshot) -> Decimal:
    """
    Estimated net gain of the route in native units.

    gross = out_value - in_value, each leg at fair price
    net = gross - transaction_cost(route.kind)

    NO_ACTION is always 0.
    """
    if route.is_no_action:
        return Decimal(0)

    in_value = value_of(route.amount_in, snapshot.fair_price(route.input_token))
    out_value = value_of(route.amount_out, snapshot.fair_price(route.output_token))
    return out_value - in_value - transaction_cost(route.kind)


def is_profitable(gain: Decimal) -> bool:
    return gain > MIN_NET_GAIN
