"""Shared fixtures for the bot tests."""

import pytest

from delta_arb.assets import AssetManager, InMemoryLedger
from delta_arb.types import ONE_TOKEN, Token

from fakes import FakeChain, make_snapshot


@pytest.fixture
def snapshot():
    """Long 10% over fair, Short 2% under (within threshold)."""
    return make_snapshot()


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def ledger():
    return InMemoryLedger(
        {
            Token.NATIVE: 10_000 * ONE_TOKEN,
            Token.WRAPPED: 5_000 * ONE_TOKEN,
            Token.LONG: 0,
            Token.SHORT: 0,
        }
    )


@pytest.fixture
def assets(ledger):
    return AssetManager(ledger, ledger)
