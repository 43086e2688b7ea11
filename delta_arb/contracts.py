"""
Contract handle resolution.

ContractRefs resolves every logical contract name to a web3 contract object
once, at startup. It is passed explicitly to the components that query or
transact through it.
"""

from typing import Dict, List

from web3 import Web3

from .abi import ERC20_ABI, MARKET_ABI, PAIR_ABI, ROUTER_ABI, WRAPPED_NATIVE_ABI
from .config import (
    CONTRACT_NAMES,
    LONG_PAIR,
    LONG_TOKEN,
    MARKET,
    ROUTER,
    SHORT_PAIR,
    SHORT_TOKEN,
    WRAPPED_NATIVE,
)
from .exceptions import ConfigError
from .types import Route, Token

_ABIS = {
    ROUTER: ROUTER_ABI,
    MARKET: MARKET_ABI,
    WRAPPED_NATIVE: WRAPPED_NATIVE_ABI,
    LONG_TOKEN: ERC20_ABI,
    SHORT_TOKEN: ERC20_ABI,
    LONG_PAIR: PAIR_ABI,
    SHORT_PAIR: PAIR_ABI,
}

_TOKEN_CONTRACTS = {
    Token.WRAPPED: WRAPPED_NATIVE,
    Token.LONG: LONG_TOKEN,
    Token.SHORT: SHORT_TOKEN,
}


class ContractRefs:
    """
    Read-only handles for Router, Pairs, Market, wrapped-native and position tokens.

    Raises:
        ConfigError: If any logical name is missing or its address is invalid
    """

    def __init__(self, web3: Web3, addresses: Dict[str, str]):
        self.web3 = web3
        self._addresses: Dict[str, str] = {}
        self._contracts = {}

        for name in CONTRACT_NAMES:
            raw = addresses.get(name)
            if not raw:
                raise ConfigError(f"No address configured for contract '{name}'")
            try:
                addr = Web3.to_checksum_address(raw)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid address for '{name}': {raw}") from e
            self._addresses[name] = addr
            self._contracts[name] = web3.eth.contract(address=addr, abi=_ABIS[name])

    def address(self, name: str) -> str:
        return self._addresses[name]

    def contract(self, name: str):
        return self._contracts[name]

    @property
    def router(self):
        return self._contracts[ROUTER]

    @property
    def market(self):
        return self._contracts[MARKET]

    @property
    def wrapped(self):
        return self._contracts[WRAPPED_NATIVE]

    def token_contract(self, token: Token):
        if token not in _TOKEN_CONTRACTS:
            raise ValueError(f"{token.value} has no token contract")
        return self._contracts[_TOKEN_CONTRACTS[token]]

    def token_address(self, token: Token) -> str:
        if token not in _TOKEN_CONTRACTS:
            raise ValueError(f"{token.value} has no token contract")
        return self._addresses[_TOKEN_CONTRACTS[token]]

    def build_path(self, route: Route) -> List[str]:
        """Router path (addresses) for a route; empty for no-action."""
        return [self.token_address(t) for t in route.path]
