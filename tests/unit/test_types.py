"""Tests for the core data types and route tables."""

import dataclasses

import pytest

from delta_arb.assets import FUNDING_TOKENS
from delta_arb.profit import TRANSACTION_COSTS
from delta_arb.types import (
    MULTI_HOP_KINDS,
    ONE_TOKEN,
    ROUTE_PATHS,
    BalanceSnapshot,
    Route,
    RouteKind,
    Token,
)


@pytest.mark.parametrize(
    "table", [ROUTE_PATHS, FUNDING_TOKENS, TRANSACTION_COSTS], ids=["paths", "funding", "costs"]
)
def test_route_tables_cover_every_kind(table):
    """A new RouteKind must be added to every dispatch table."""
    assert set(table) == set(RouteKind)


def test_route_kind_is_closed():
    assert len(RouteKind) == 7


def test_multi_hop_routes_pass_through_wrapped():
    for kind in MULTI_HOP_KINDS:
        path = ROUTE_PATHS[kind]
        assert len(path) == 3
        assert path[1] is Token.WRAPPED


def test_route_of_uses_table_path():
    route = Route.of(RouteKind.SELL_LONG, amount_in=5 * ONE_TOKEN)
    assert route.path == (Token.LONG, Token.WRAPPED)
    assert route.input_token is Token.LONG
    assert route.output_token is Token.WRAPPED
    assert not route.is_multi_hop
    assert route.amount_out == 0


def test_no_action_route():
    route = Route.no_action()
    assert route.is_no_action
    assert route.path == ()
    assert route.input_token is None
    assert route.amount_in == 0
    assert str(route) == "no_action"


def test_with_quote_returns_new_route():
    route = Route.of(RouteKind.LONG_TO_SHORT, amount_in=10)
    quoted = route.with_quote(12)
    assert quoted.amount_out == 12
    assert quoted.amount_in == 10
    assert route.amount_out == 0
    assert quoted.is_multi_hop


def test_route_is_immutable():
    route = Route.of(RouteKind.BUY_LONG, amount_in=1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        route.amount_in = 2


def test_snapshot_fields(snapshot):
    assert snapshot.fair_price(Token.WRAPPED) == 1
    assert snapshot.fair_price(Token.LONG) == snapshot.fair_long
    assert snapshot.units_per_usd(Token.WRAPPED) == 20
    log = snapshot.to_log_dict()
    assert log["long_dev_pct"] == "+10.00"
    assert log["short_dev_pct"] == "-2.00"


def test_balance_snapshot_defaults_to_zero():
    balances = BalanceSnapshot.from_mapping({Token.LONG: 7})
    assert balances[Token.LONG] == 7
    assert balances[Token.SHORT] == 0
