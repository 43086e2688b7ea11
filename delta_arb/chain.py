"""
Chain collaborators backed by web3.

- Web3ChainQuery: read-only pool reserves, market state and router quotes
- Web3Balances: wallet balances
- Web3TokenManager: approvals, wrap/unwrap, position deposits and swaps
- WatchOnlyTokenManager: refuses every value-moving call (dry runs)

Read failures surface as ChainQueryError, transaction failures as
SwapExecutionError, so the bot loop can treat them as skipped cycles.
"""

import time
from typing import Dict, List, Optional, Protocol, runtime_checkable

from eth_account.signers.local import LocalAccount
from web3 import Web3

from .config import DEFAULT_GAS_LIMITS, LONG_PAIR, MARKET, ROUTER, SHORT_PAIR
from .contracts import ContractRefs
from .exceptions import ChainQueryError, SwapExecutionError
from .types import MarketState, Route, Token
from .utils import format_amount, get_logger

logger = get_logger(__name__)

MAX_UINT256 = 2**256 - 1

# Position token held by each LP pair; the other side is wrapped native
PAIR_POSITIONS = {
    LONG_PAIR: Token.LONG,
    SHORT_PAIR: Token.SHORT,
}


@runtime_checkable
class ChainQuery(Protocol):
    """Read-only chain capability used to build price snapshots and quotes."""

    def pair_reserves(self, pair_name: str) -> Dict[Token, int]:
        """Reserves of an LP pair keyed by token (position token and WRAPPED)."""
        ...

    def market_state(self) -> MarketState:
        ...

    def amounts_out(self, amount_in: int, route: Route) -> List[int]:
        """Router quote along the route's path, input first."""
        ...


class Web3ChainQuery:
    """ChainQuery over web3 contract calls."""

    def __init__(self, refs: ContractRefs):
        self.refs = refs

    def pair_reserves(self, pair_name: str) -> Dict[Token, int]:
        if pair_name not in PAIR_POSITIONS:
            raise ValueError(f"Unknown pair: {pair_name}")
        position = PAIR_POSITIONS[pair_name]
        pair = self.refs.contract(pair_name)
        try:
            token0 = pair.functions.token0().call()
            reserve0, reserve1, _ = pair.functions.getReserves().call()
        except Exception as e:
            raise ChainQueryError(
                f"Failed to fetch reserves for {pair_name}: {e}", source=pair_name
            ) from e

        wrapped_addr = self.refs.token_address(Token.WRAPPED)
        if Web3.to_checksum_address(token0) == wrapped_addr:
            return {Token.WRAPPED: int(reserve0), position: int(reserve1)}
        return {position: int(reserve0), Token.WRAPPED: int(reserve1)}

    def market_state(self) -> MarketState:
        try:
            (
                long_liquidity,
                short_liquidity,
                long_supply,
                short_supply,
                price,
            ) = self.refs.market.functions.getMarketState().call()
        except Exception as e:
            raise ChainQueryError(f"Failed to fetch market state: {e}", source="market") from e
        return MarketState(
            long_liquidity=int(long_liquidity),
            short_liquidity=int(short_liquidity),
            long_total_supply=int(long_supply),
            short_total_supply=int(short_supply),
            price=int(price),
        )

    def amounts_out(self, amount_in: int, route: Route) -> List[int]:
        path = self.refs.build_path(route)
        try:
            amounts = self.refs.router.functions.getAmountsOut(amount_in, path).call()
        except Exception as e:
            raise ChainQueryError(
                f"Failed to get amounts out for {route.kind.value}: {e}", source="router"
            ) from e
        return [int(a) for a in amounts]


class Web3Balances:
    """Balances of one account, read fresh on every call."""

    def __init__(self, refs: ContractRefs, account_address: str):
        self.refs = refs
        self.account_address = Web3.to_checksum_address(account_address)

    def balance_of(self, token: Token) -> int:
        try:
            if token is Token.NATIVE:
                return int(self.refs.web3.eth.get_balance(self.account_address))
            contract = self.refs.token_contract(token)
            return int(contract.functions.balanceOf(self.account_address).call())
        except Exception as e:
            raise ChainQueryError(
                f"Failed to read {token.value} balance: {e}", source=token.value
            ) from e


class Web3TokenManager:
    """
    Signs and submits value-moving transactions from a local account.

    Each call waits for its receipt; a reverted receipt raises
    SwapExecutionError.
    """

    def __init__(
        self,
        refs: ContractRefs,
        account: LocalAccount,
        gas_limits: Optional[Dict[str, int]] = None,
        tx_timeout_sec: int = 120,
    ):
        self.refs = refs
        self.web3 = refs.web3
        self.account = account
        self.gas_limits = dict(DEFAULT_GAS_LIMITS)
        if gas_limits:
            self.gas_limits.update(gas_limits)
        self.tx_timeout_sec = tx_timeout_sec
        self.last_tx_hash: Optional[str] = None

    def approve_markets(self) -> None:
        router = self.refs.address(ROUTER)
        market = self.refs.address(MARKET)
        # Router spends all three tokens; market spends wrapped native
        spenders = [
            (Token.WRAPPED, router),
            (Token.LONG, router),
            (Token.SHORT, router),
            (Token.WRAPPED, market),
        ]
        for token, spender in spenders:
            contract = self.refs.token_contract(token)
            try:
                allowance = contract.functions.allowance(self.account.address, spender).call()
            except Exception as e:
                raise ChainQueryError(
                    f"Failed to read {token.value} allowance: {e}", source=token.value
                ) from e
            if allowance == 0:
                logger.info(f"Approving {token.value} for {spender}")
                self._transact(
                    contract.functions.approve(spender, MAX_UINT256),
                    self.gas_limits["approve"],
                    f"approve {token.value}",
                )

    def wrap(self, amount: int) -> None:
        logger.info(f"Wrapping {format_amount(amount)} native")
        self._transact(
            self.refs.wrapped.functions.deposit(),
            self.gas_limits["wrap"],
            "wrap",
            value=amount,
        )

    def unwrap(self, amount: int) -> None:
        logger.info(f"Unwrapping {format_amount(amount)} wrapped native")
        self._transact(
            self.refs.wrapped.functions.withdraw(amount),
            self.gas_limits["unwrap"],
            "unwrap",
        )

    def buy_position(self, token: Token, amount: int) -> None:
        if token is Token.LONG:
            fn = self.refs.market.functions.depositLong(amount)
        elif token is Token.SHORT:
            fn = self.refs.market.functions.depositShort(amount)
        else:
            raise ValueError(f"Cannot buy position in {token.value}")
        logger.info(f"Depositing {format_amount(amount)} wrapped for {token.value}")
        self._transact(fn, self.gas_limits["deposit"], f"deposit {token.value}")

    def swap(self, route: Route, amount_in_max: int, amount_out: int) -> List[int]:
        if route.is_no_action:
            raise ValueError("Cannot swap a no-action route")
        self.last_tx_hash = None
        fn = self.refs.router.functions.swapTokensForExactTokens(
            amount_out,
            amount_in_max,
            self.refs.build_path(route),
            self.account.address,
            int(time.time()) + self.tx_timeout_sec,
        )
        # Simulate first: a would-be revert never reaches the mempool, and the
        # call result gives the amounts the router will actually use
        try:
            amounts = fn.call({"from": self.account.address})
        except Exception as e:
            raise SwapExecutionError(
                f"Swap simulation failed: {e}", route=route.kind.value
            ) from e

        gas_key = "swap_multi" if route.is_multi_hop else "swap_single"
        tx_hash = self._transact(fn, self.gas_limits[gas_key], f"swap {route.kind.value}")
        self.last_tx_hash = tx_hash
        logger.info(f"Swap {route.kind.value} confirmed: {tx_hash}")
        return [int(a) for a in amounts]

    def _transact(self, fn, gas: int, label: str, value: int = 0) -> str:
        """Build, sign, send and wait for a contract call transaction."""
        try:
            tx = fn.build_transaction(
                {
                    "from": self.account.address,
                    "value": value,
                    "gas": gas,
                    "gasPrice": self.web3.eth.gas_price,
                    "nonce": self.web3.eth.get_transaction_count(self.account.address),
                    "chainId": self.web3.eth.chain_id,
                }
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = self.web3.to_hex(self.web3.eth.send_raw_transaction(signed.raw_transaction))
        except Exception as e:
            raise SwapExecutionError(f"Failed to submit {label}: {e}", route=label) from e

        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.tx_timeout_sec
            )
        except Exception as e:
            raise SwapExecutionError(
                f"{label} not confirmed: {e}", route=label, tx_hash=tx_hash
            ) from e

        if receipt["status"] != 1:
            raise SwapExecutionError(f"{label} reverted", route=label, tx_hash=tx_hash)
        return tx_hash


class WatchOnlyTokenManager:
    """
    TokenManager for an address without a signing key.

    Used for dry runs, where nothing may move value; every call refuses.
    """

    def __init__(self, account_address: str):
        self.account_address = account_address

    def _refuse(self, action: str):
        raise SwapExecutionError(
            f"Cannot {action}: {self.account_address} is watch-only (no signing key)",
            route=action,
        )

    def approve_markets(self) -> None:
        self._refuse("approve")

    def wrap(self, amount: int) -> None:
        self._refuse("wrap")

    def unwrap(self, amount: int) -> None:
        self._refuse("unwrap")

    def buy_position(self, token: Token, amount: int) -> None:
        self._refuse("deposit")

    def swap(self, route: Route, amount_in_max: int, amount_out: int) -> List[int]:
        self._refuse("swap")
