"""Tests for price snapshot construction."""

from decimal import Decimal
from unittest.mock import Mock

import pytest

from delta_arb.chain import Web3ChainQuery
from delta_arb.config import LONG_PAIR
from delta_arb.exceptions import ChainQueryError, InvalidStateError
from delta_arb.prices import PriceCalculator, build_snapshot, truncated_ratio
from delta_arb.types import ONE_TOKEN, MarketState, Token

from fakes import FakeChain

WRAPPED_ADDR = "0x" + "1" * 40
LONG_ADDR = "0x" + "2" * 40


class TestTruncatedRatio:
    def test_truncates_to_six_places(self):
        assert truncated_ratio(2, 3) == Decimal("0.666666")
        assert truncated_ratio(1_100, 1_000) == Decimal("1.1")

    def test_zero_denominator_is_invalid_state(self):
        with pytest.raises(InvalidStateError):
            truncated_ratio(5, 0)


class TestBuildSnapshot:
    def test_deviations_and_ratios(self):
        snap = build_snapshot(
            Decimal("1.10"), Decimal("0.98"), Decimal("1.00"), Decimal("1.00"), Decimal("0.05")
        )
        assert snap.long_deviation == Decimal("0.1")
        assert snap.short_deviation == Decimal("-0.02")
        assert snap.native_per_usd == 20
        assert snap.longs_per_usd == 20
        assert snap.shorts_per_usd == 20

    def test_ratios_are_floored(self):
        snap = build_snapshot(
            Decimal("3"), Decimal("1"), Decimal("3"), Decimal("1"), Decimal("0.03")
        )
        # 1 / 0.03 = 33.33 native per USD
        assert snap.native_per_usd == 33
        assert snap.longs_per_usd == 11
        assert snap.shorts_per_usd == 33

    @pytest.mark.parametrize(
        "field_index", range(5), ids=["quoted_long", "quoted_short", "fair_long", "fair_short", "usd"]
    )
    def test_non_positive_price_rejected(self, field_index):
        prices = [Decimal("1")] * 4 + [Decimal("0.05")]
        prices[field_index] = Decimal(0)
        with pytest.raises(InvalidStateError):
            build_snapshot(*prices)

    def test_native_worth_more_than_one_usd_still_builds(self):
        snap = build_snapshot(
            Decimal("1.10"), Decimal("0.98"), Decimal("1.00"), Decimal("1.00"), Decimal("2")
        )
        assert snap.native_per_usd == 0
        assert snap.longs_per_usd == 0
        assert snap.long_deviation == Decimal("0.1")

    def test_zero_ratio_only_affects_that_token(self):
        snap = build_snapshot(
            Decimal("1.10"), Decimal("25"), Decimal("1.00"), Decimal("25"), Decimal("0.05")
        )
        assert snap.shorts_per_usd == 0
        assert snap.longs_per_usd == 20
        assert snap.native_per_usd == 20


class TestPriceCalculator:
    def test_fetch_quoted_prices(self, chain):
        quoted_long, quoted_short = PriceCalculator(chain).fetch_quoted_prices()
        assert quoted_long == Decimal("1.1")
        assert quoted_short == Decimal("0.98")

    def test_fetch_fair_prices(self):
        state = MarketState(
            long_liquidity=1_000 * ONE_TOKEN,
            short_liquidity=2_000 * ONE_TOKEN,
            long_total_supply=1_000 * ONE_TOKEN,
            short_total_supply=1_000 * ONE_TOKEN,
            price=5_000,
        )
        fair_long, fair_short, native_usd = PriceCalculator(
            FakeChain(state=state)
        ).fetch_fair_prices()
        assert fair_long == Decimal("1")
        assert fair_short == Decimal("2")
        assert native_usd == Decimal("0.05")

    def test_zero_supply_is_invalid_state(self):
        state = MarketState(1, 1, 0, 1, 5_000)
        with pytest.raises(InvalidStateError):
            PriceCalculator(FakeChain(state=state)).fetch_fair_prices()

    def test_fetch_snapshot(self, chain):
        snap = PriceCalculator(chain).fetch_snapshot()
        assert snap.quoted_long == Decimal("1.1")
        assert snap.fair_long == Decimal("1")

    @pytest.mark.asyncio
    async def test_fetch_snapshot_async(self, chain):
        snap = await PriceCalculator(chain).fetch_snapshot_async()
        assert snap == PriceCalculator(chain).fetch_snapshot()

    @pytest.mark.asyncio
    async def test_async_fetch_fails_whole_snapshot(self, chain):
        """One failed side fails the snapshot even if the other succeeded."""
        chain.fail_market = True
        with pytest.raises(ChainQueryError):
            await PriceCalculator(chain).fetch_snapshot_async()

    @pytest.mark.asyncio
    async def test_async_fetch_propagates_invalid_state(self):
        chain = FakeChain(state=MarketState(1, 1, 0, 1, 5_000))
        with pytest.raises(InvalidStateError):
            await PriceCalculator(chain).fetch_snapshot_async()


class TestWeb3ChainQuery:
    def _refs(self, token0, reserves):
        pair = Mock()
        pair.functions.token0.return_value.call.return_value = token0
        pair.functions.getReserves.return_value.call.return_value = reserves
        refs = Mock()
        refs.contract.return_value = pair
        refs.token_address.return_value = WRAPPED_ADDR
        return refs

    def test_reserves_oriented_by_token0(self):
        query = Web3ChainQuery(self._refs(WRAPPED_ADDR, (5, 7, 0)))
        assert query.pair_reserves(LONG_PAIR) == {Token.WRAPPED: 5, Token.LONG: 7}

        query = Web3ChainQuery(self._refs(LONG_ADDR, (5, 7, 0)))
        assert query.pair_reserves(LONG_PAIR) == {Token.LONG: 5, Token.WRAPPED: 7}

    def test_read_failure_wrapped(self):
        refs = self._refs(WRAPPED_ADDR, (5, 7, 0))
        refs.contract.return_value.functions.getReserves.return_value.call.side_effect = (
            ConnectionError("timeout")
        )
        with pytest.raises(ChainQueryError) as exc_info:
            Web3ChainQuery(refs).pair_reserves(LONG_PAIR)
        assert exc_info.value.source == LONG_PAIR

    def test_unknown_pair(self):
        with pytest.raises(ValueError):
            Web3ChainQuery(Mock()).pair_reserves("nope")

    def test_market_state(self):
        refs = Mock()
        refs.market.functions.getMarketState.return_value.call.return_value = (1, 2, 3, 4, 5)
        state = Web3ChainQuery(refs).market_state()
        assert state == MarketState(1, 2, 3, 4, 5)
