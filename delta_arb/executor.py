"""
Swap submission through the DEX router.

The Executor protocol is the only thing that moves value for a chosen route.
RouterExecutor submits an exact-output swap bounded by the route's notional
input and reports the amounts the router actually used.
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from .assets import TokenManager
from .exceptions import SwapExecutionError
from .profit import estimate_net_gain
from .types import PriceSnapshot, Route, SwapResult
from .utils import format_amount, get_logger

logger = get_logger(__name__)


@runtime_checkable
class Executor(Protocol):
    """Value-moving collaborator for a chosen route."""

    def approve(self) -> None:
        """One-time allowance setup for the router and market."""
        ...

    def execute(self, route: Route) -> SwapResult:
        """
        Submit the swap for route.

        Raises:
            SwapExecutionError: If submission fails or the swap reverts
            ValueError: If route is NO_ACTION
        """
        ...


class RouterExecutor:
    """
    Executor backed by a TokenManager's router swap.

    Swaps for exactly route.amount_out, spending at most route.amount_in.
    """

    def __init__(self, token_manager: TokenManager):
        self.token_manager = token_manager
        self.executions_attempted = 0
        self.executions_successful = 0

    def approve(self) -> None:
        logger.info("Setting up router and market allowances")
        self.token_manager.approve_markets()

    def execute(self, route: Route) -> SwapResult:
        if route.is_no_action:
            raise ValueError("Cannot execute a no-action route")
        if route.amount_out <= 0:
            raise ValueError(f"Route {route.kind.value} has no quoted output")

        self.executions_attempted += 1
        logger.info(
            f"Swapping {route.kind.value}: max in {format_amount(route.amount_in)} "
            f"{route.input_token.value}, out {format_amount(route.amount_out)} "
            f"{route.output_token.value}"
        )
        try:
            amounts = self.token_manager.swap(route, route.amount_in, route.amount_out)
        except SwapExecutionError:
            raise
        except Exception as e:
            raise SwapExecutionError(
                f"Swap {route.kind.value} failed: {e}", route=route.kind.value
            ) from e

        if not amounts:
            raise SwapExecutionError(
                f"Swap {route.kind.value} returned no amounts", route=route.kind.value
            )

        self.executions_successful += 1
        return SwapResult(
            amount_in=amounts[0],
            amount_out=amounts[-1],
            tx_hash=getattr(self.token_manager, "last_tx_hash", None),
        )


def realized_gain(result: SwapResult, route: Route, snapshot: PriceSnapshot) -> Decimal:
    """Net gain computed from the amounts actually swapped."""
    actual = Route.of(route.kind, amount_in=result.amount_in, amount_out=result.amount_out)
    return estimate_net_gain(actual, snapshot)
