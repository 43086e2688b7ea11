"""
Wallet balance management.

AssetManager guarantees the wallet holds enough of a route's input token
before a swap, with a single fixed-size top-up, and keeps the native gas
reserve and wrapped-native float above their minimums.

The balance reader and token mover are Protocols with two implementations:
the live web3 ones in delta_arb.chain and the deterministic InMemoryLedger
below.
"""

from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .exceptions import InsufficientReserveError, SwapExecutionError
from .types import ONE_TOKEN, BalanceSnapshot, PriceSnapshot, Route, RouteKind, Token
from .utils import format_amount, get_logger

logger = get_logger(__name__)

TOP_UP_AMOUNT = 2_000 * ONE_TOKEN
MIN_NATIVE_BALANCE = 100 * ONE_TOKEN
MIN_WRAPPED_BALANCE = 1_500 * ONE_TOKEN
UNWRAP_AMOUNT = 1_500 * ONE_TOKEN

# Max-input headroom when selling positions for wrapped native
SELL_SLIPPAGE = Decimal("1.05")

FUNDING_TOKENS: Dict[RouteKind, Optional[Token]] = {
    RouteKind.NO_ACTION: None,
    RouteKind.SELL_LONG: Token.LONG,
    RouteKind.LONG_TO_SHORT: Token.LONG,
    RouteKind.SELL_SHORT: Token.SHORT,
    RouteKind.SHORT_TO_LONG: Token.SHORT,
    RouteKind.BUY_LONG: Token.WRAPPED,
    RouteKind.BUY_SHORT: Token.WRAPPED,
}


@runtime_checkable
class Balances(Protocol):
    """Read-only wallet balance capability."""

    def balance_of(self, token: Token) -> int:
        """Current balance of token in base units."""
        ...


@runtime_checkable
class TokenManager(Protocol):
    """Value-moving capability: approvals, wrapping, position deposits, swaps."""

    def approve_markets(self) -> None:
        """Grant router and market allowances (idempotent)."""
        ...

    def wrap(self, amount: int) -> None:
        ...

    def unwrap(self, amount: int) -> None:
        ...

    def buy_position(self, token: Token, amount: int) -> None:
        """Deposit amount of wrapped native into the market for token."""
        ...

    def swap(self, route: Route, amount_in_max: int, amount_out: int) -> List[int]:
        """Swap for exactly amount_out, spending at most amount_in_max."""
        ...


class InMemoryLedger:
    """
    Deterministic in-memory wallet implementing Balances and TokenManager.

    Every value-moving call is appended to `operations` so tests can assert on
    exactly what would have been submitted. Position deposits credit
    `amount * position_rate` tokens; swaps spend amount_in_max and credit
    amount_out.
    """

    def __init__(
        self,
        balances: Optional[Mapping[Token, int]] = None,
        position_rate: Decimal = Decimal(1),
    ):
        self._balances: Dict[Token, int] = {t: 0 for t in Token}
        if balances:
            self._balances.update(balances)
        self.position_rate = position_rate
        self.operations: List[Tuple] = []
        self.approved = False

    def balance_of(self, token: Token) -> int:
        return self._balances[token]

    def set_balance(self, token: Token, amount: int) -> None:
        self._balances[token] = amount

    def approve_markets(self) -> None:
        self.operations.append(("approve",))
        self.approved = True

    def wrap(self, amount: int) -> None:
        self._debit(Token.NATIVE, amount, "wrap")
        self._balances[Token.WRAPPED] += amount
        self.operations.append(("wrap", amount))

    def unwrap(self, amount: int) -> None:
        self._debit(Token.WRAPPED, amount, "unwrap")
        self._balances[Token.NATIVE] += amount
        self.operations.append(("unwrap", amount))

    def buy_position(self, token: Token, amount: int) -> None:
        if token not in (Token.LONG, Token.SHORT):
            raise ValueError(f"Cannot buy position in {token.value}")
        self._debit(Token.WRAPPED, amount, "deposit")
        self._balances[token] += int(Decimal(amount) * self.position_rate)
        self.operations.append(("buy_position", token, amount))

    def swap(self, route: Route, amount_in_max: int, amount_out: int) -> List[int]:
        if route.is_no_action:
            raise ValueError("Cannot swap a no-action route")
        self._debit(route.input_token, amount_in_max, "swap")
        self._balances[route.output_token] += amount_out
        self.operations.append(("swap", route.kind, amount_in_max, amount_out))
        return [amount_in_max, amount_out]

    @property
    def top_up_count(self) -> int:
        return sum(1 for op in self.operations if op[0] in ("wrap", "unwrap", "buy_position"))

    def _debit(self, token: Token, amount: int, action: str) -> None:
        if self._balances[token] < amount:
            raise SwapExecutionError(
                f"{action} reverted: {token.value} balance "
                f"{self._balances[token]} < {amount}"
            )
        self._balances[token] -= amount


class AssetManager:
    """
    Balance-sufficiency enforcement on top of a balance reader and token mover.

    Balances are re-read on every call; nothing is cached between calls.
    """

    def __init__(self, balances: Balances, token_manager: TokenManager):
        self.balances = balances
        self.token_manager = token_manager

    def read_balances(self) -> BalanceSnapshot:
        return BalanceSnapshot.from_mapping(
            {token: self.balances.balance_of(token) for token in Token}
        )

    def log_balances(self) -> BalanceSnapshot:
        snapshot = self.read_balances()
        logger.info(
            "Balances: "
            + " ".join(f"{t.value}={format_amount(snapshot[t])}" for t in Token)
        )
        return snapshot

    @staticmethod
    def funding_token(route: Route) -> Token:
        """Token the route spends; no-action routes have none."""
        token = FUNDING_TOKENS[route.kind]
        if token is None:
            raise ValueError("No-action route has no funding token")
        return token

    def needs_top_up(self, token: Token, required: int) -> bool:
        """Read-only check used when no value may move (dry run)."""
        return self.balances.balance_of(token) < required

    def verify_balance(self, token: Token, required: int) -> int:
        """Re-read balance right before spending; never tops up."""
        current = self.balances.balance_of(token)
        if current < required:
            raise InsufficientReserveError(
                f"{token.value} balance {format_amount(current)} below "
                f"required {format_amount(required)}",
                token=token.value,
                required=required,
                available=current,
            )
        return current

    def ensure_balance(self, token: Token, required: int) -> int:
        """
        Make sure at least `required` of token is held.

        Performs at most one top-up of TOP_UP_AMOUNT worth of the token, then
        re-reads the balance.

        Returns:
            Balance after any top-up

        Raises:
            InsufficientReserveError: If the top-up source is short or the
                topped-up balance still does not cover required
        """
        current = self.balances.balance_of(token)
        logger.info(
            f"{token.value} balance {format_amount(current)}, "
            f"required {format_amount(required)}"
        )
        if current >= required:
            return current

        logger.warning(
            f"Not enough {token.value}, topping up {format_amount(TOP_UP_AMOUNT)}"
        )
        self._top_up(token)

        topped_up = self.balances.balance_of(token)
        logger.info(f"New {token.value} balance {format_amount(topped_up)}")
        if topped_up < required:
            raise InsufficientReserveError(
                f"{token.value} still short after top-up: "
                f"{format_amount(topped_up)} < {format_amount(required)}",
                token=token.value,
                required=required,
                available=topped_up,
            )
        return topped_up

    def maintain_reserves(self, snapshot: PriceSnapshot) -> Optional[str]:
        """
        Keep the native gas reserve and wrapped float above their minimums.

        Native low: unwrap UNWRAP_AMOUNT. Otherwise wrapped low: sell whichever
        position holds more native value for UNWRAP_AMOUNT wrapped.

        Returns:
            Action taken ("unwrap", "sell_long", "sell_short") or None
        """
        native = self.balances.balance_of(Token.NATIVE)
        if native < MIN_NATIVE_BALANCE:
            logger.warning(
                f"Native balance low ({format_amount(native)}), "
                f"unwrapping {format_amount(UNWRAP_AMOUNT)}"
            )
            self.token_manager.unwrap(UNWRAP_AMOUNT)
            return "unwrap"

        wrapped = self.balances.balance_of(Token.WRAPPED)
        if wrapped >= MIN_WRAPPED_BALANCE:
            return None

        logger.warning(
            f"Wrapped balance low ({format_amount(wrapped)}), selling positions"
        )
        long_value = self.balances.balance_of(Token.LONG) * snapshot.quoted_long
        short_value = self.balances.balance_of(Token.SHORT) * snapshot.quoted_short
        if long_value >= short_value:
            kind, price = RouteKind.SELL_LONG, snapshot.quoted_long
        else:
            kind, price = RouteKind.SELL_SHORT, snapshot.quoted_short

        amount_in_max = int(Decimal(UNWRAP_AMOUNT) / price * SELL_SLIPPAGE)
        route = Route.of(kind, amount_in=amount_in_max, amount_out=UNWRAP_AMOUNT)
        self.token_manager.swap(route, amount_in_max, UNWRAP_AMOUNT)
        return kind.value

    def _top_up(self, token: Token) -> None:
        if token is Token.WRAPPED:
            self._wrap_top_up()
        elif token in (Token.LONG, Token.SHORT):
            if self.balances.balance_of(Token.WRAPPED) < TOP_UP_AMOUNT:
                logger.warning(f"Not enough wrapped to top up {token.value}, wrapping native")
                self._wrap_top_up()
            self.token_manager.buy_position(token, TOP_UP_AMOUNT)
        elif token is Token.NATIVE:
            wrapped = self.balances.balance_of(Token.WRAPPED)
            if wrapped < TOP_UP_AMOUNT:
                raise InsufficientReserveError(
                    "Not enough wrapped native to unwrap",
                    token=Token.WRAPPED.value,
                    required=TOP_UP_AMOUNT,
                    available=wrapped,
                )
            self.token_manager.unwrap(TOP_UP_AMOUNT)
        else:
            raise ValueError(f"Unhandled token {token}")

    def _wrap_top_up(self) -> None:
        native = self.balances.balance_of(Token.NATIVE)
        if native < TOP_UP_AMOUNT:
            raise InsufficientReserveError(
                "Not enough native to wrap",
                token=Token.NATIVE.value,
                required=TOP_UP_AMOUNT,
                available=native,
            )
        self.token_manager.wrap(TOP_UP_AMOUNT)
