"""
Bot cycle orchestration.

BotEngine runs one Fetching -> Deciding -> Funding -> Executing pass and turns
every per-cycle failure into a CycleReport; nothing raised inside a cycle
reaches the loop. BotLoop runs cycles on a fixed start-to-start cadence until
stopped.
"""

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from .assets import AssetManager
from .chain import ChainQuery
from .exceptions import (
    ChainQueryError,
    DeltaArbError,
    InsufficientReserveError,
    InvalidStateError,
    SwapExecutionError,
)
from .executor import Executor, realized_gain
from .interfaces import Clock, SystemClock
from .metrics import BotMetrics
from .path import PathEngine
from .prices import PriceCalculator
from .profit import estimate_net_gain, is_profitable
from .types import PriceSnapshot, Route, SwapResult
from .utils import format_amount, format_pct, get_logger

logger = get_logger(__name__)


class CycleState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DECIDING = "deciding"
    SKIPPING = "skipping"
    FUNDING = "funding"
    EXECUTING = "executing"


@dataclass
class CycleReport:
    """
    Structured record of one cycle.

    action is one of: fetch_failed, invalid_state, no_route, unprofitable,
    funding_failed, dry_run, executed, execution_failed, error.
    """

    states: List[CycleState] = field(default_factory=list)
    snapshot: Optional[PriceSnapshot] = None
    route: Optional[Route] = None
    estimated_gain: Optional[Decimal] = None
    action: str = ""
    error: Optional[str] = None
    result: Optional[SwapResult] = None
    realized_gain: Optional[Decimal] = None
    reserve_action: Optional[str] = None

    def enter(self, state: CycleState) -> None:
        self.states.append(state)

    def finish(self, action: str, error: Optional[BaseException] = None) -> "CycleReport":
        self.action = action
        if error is not None:
            self.error = str(error)
        return self

    def to_log_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"action": self.action}
        if self.snapshot is not None:
            data.update(self.snapshot.to_log_dict())
        if self.route is not None:
            data["route"] = self.route.kind.value
            data["amount_in"] = format_amount(self.route.amount_in)
            data["amount_out"] = format_amount(self.route.amount_out)
        if self.estimated_gain is not None:
            data["est_gain"] = f"{self.estimated_gain:.4f}"
        if self.realized_gain is not None:
            data["gain"] = f"{self.realized_gain:.4f}"
        if self.result is not None and self.result.tx_hash:
            data["tx"] = self.result.tx_hash
        if self.reserve_action:
            data["reserves"] = self.reserve_action
        if self.error:
            data["error"] = self.error
        return data


class BotEngine:
    """
    Runs single bot cycles.

    In dry-run mode no value moves: reserve maintenance is skipped, funding
    only checks balances, and the executor is never called.
    """

    def __init__(
        self,
        calculator: PriceCalculator,
        path_engine: PathEngine,
        assets: AssetManager,
        executor: Executor,
        chain: ChainQuery,
        dry_run: bool = False,
        trade_size_usd: int = 1,
    ):
        self.calculator = calculator
        self.path_engine = path_engine
        self.assets = assets
        self.executor = executor
        self.chain = chain
        self.dry_run = dry_run
        self.trade_size_usd = trade_size_usd

    async def run_cycle_async(self) -> CycleReport:
        report = CycleReport()
        try:
            self._log(await self._run_cycle(report))
        except DeltaArbError as e:
            logger.error(f"Cycle aborted: {e}")
            self._log(report.finish("error", e))
        except Exception as e:
            logger.exception(f"Unexpected error in cycle: {e}")
            self._log(report.finish("error", e))
        report.enter(CycleState.IDLE)
        return report

    async def _run_cycle(self, report: CycleReport) -> CycleReport:
        loop = asyncio.get_running_loop()

        report.enter(CycleState.FETCHING)
        try:
            snapshot = await self.calculator.fetch_snapshot_async()
        except ChainQueryError as e:
            logger.warning(f"Price fetch failed, skipping cycle: {e}")
            return report.finish("fetch_failed", e)
        except InvalidStateError as e:
            logger.error(f"Invalid on-chain state, skipping cycle: {e}")
            return report.finish("invalid_state", e)
        report.snapshot = snapshot

        logger.info(
            f"Long {snapshot.quoted_long} vs fair {snapshot.fair_long} "
            f"({format_pct(snapshot.long_deviation)}), "
            f"Short {snapshot.quoted_short} vs fair {snapshot.fair_short} "
            f"({format_pct(snapshot.short_deviation)})"
        )

        if not self.dry_run:
            try:
                report.reserve_action = await loop.run_in_executor(
                    None, self.assets.maintain_reserves, snapshot
                )
            except DeltaArbError as e:
                logger.warning(f"Reserve maintenance failed: {e}")

        report.enter(CycleState.DECIDING)
        route = self.path_engine.select_route(snapshot, self.trade_size_usd)
        report.route = route
        if route.is_no_action:
            report.estimated_gain = estimate_net_gain(route, snapshot)
            report.enter(CycleState.SKIPPING)
            return report.finish("no_route")

        if route.amount_in <= 0:
            # Input token worth more than the trade size; nothing to spend
            logger.info(f"{route.kind.value} sizes to zero input, skipping")
            report.estimated_gain = Decimal(0)
            report.enter(CycleState.SKIPPING)
            return report.finish("unprofitable")

        try:
            amounts = await loop.run_in_executor(
                None, self.chain.amounts_out, route.amount_in, route
            )
        except ChainQueryError as e:
            logger.warning(f"Quote for {route.kind.value} failed, skipping cycle: {e}")
            report.enter(CycleState.SKIPPING)
            return report.finish("fetch_failed", e)
        route = route.with_quote(amounts[-1])
        report.route = route

        gain = estimate_net_gain(route, snapshot)
        report.estimated_gain = gain
        if not is_profitable(gain):
            logger.info(f"{route.kind.value} not profitable (est. gain {gain:.4f}), skipping")
            report.enter(CycleState.SKIPPING)
            return report.finish("unprofitable")

        report.enter(CycleState.FUNDING)
        token = self.assets.funding_token(route)
        try:
            if self.dry_run:
                if await loop.run_in_executor(
                    None, self.assets.needs_top_up, token, route.amount_in
                ):
                    logger.info(f"[DRY RUN] Would top up {token.value} before swapping")
            else:
                await loop.run_in_executor(
                    None, self.assets.ensure_balance, token, route.amount_in
                )
        except (InsufficientReserveError, SwapExecutionError, ChainQueryError) as e:
            logger.error(f"Funding {token.value} failed: {e}")
            return report.finish("funding_failed", e)

        report.enter(CycleState.EXECUTING)
        if self.dry_run:
            logger.info(f"[DRY RUN] Would execute {route} (est. gain {gain:.4f})")
            return report.finish("dry_run")

        try:
            await loop.run_in_executor(
                None, self.assets.verify_balance, token, route.amount_in
            )
        except (InsufficientReserveError, ChainQueryError) as e:
            logger.error(f"Balance re-check failed, not swapping: {e}")
            return report.finish("funding_failed", e)

        try:
            result = await loop.run_in_executor(None, self.executor.execute, route)
        except SwapExecutionError as e:
            logger.error(f"Swap {route.kind.value} failed: {e}")
            return report.finish("execution_failed", e)

        report.result = result
        report.realized_gain = realized_gain(result, route, snapshot)
        logger.info(
            f"Executed {route.kind.value}: in {format_amount(result.amount_in)} "
            f"out {format_amount(result.amount_out)}, gain {report.realized_gain:.4f}"
        )
        return report.finish("executed")

    @staticmethod
    def _log(report: CycleReport) -> None:
        fields = " ".join(f"{k}={v}" for k, v in report.to_log_dict().items())
        logger.info(f"Cycle: {fields}")


class BotLoop:
    """
    Fixed-cadence scheduler with at most one cycle in flight.

    The first cycle starts immediately. Each subsequent cycle starts
    `interval` seconds after the previous one started (or immediately if the
    previous cycle overran). stop() prevents the next cycle and wakes the
    sleep early; it never interrupts a running cycle.
    """

    def __init__(
        self,
        engine: BotEngine,
        interval: float = 180,
        clock: Optional[Clock] = None,
        metrics: Optional[BotMetrics] = None,
        max_cycles: Optional[int] = None,
    ):
        self.engine = engine
        self.interval = interval
        self.clock = clock or SystemClock()
        self.metrics = metrics
        self.max_cycles = max_cycles
        self.cycles_run = 0
        self.last_report: Optional[CycleReport] = None
        self._stop = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        if not self._stop.is_set():
            logger.info("Stop requested, finishing current cycle")
        self._stop.set()

    async def run(self) -> int:
        """Run cycles until stopped or max_cycles reached; returns cycles run."""
        mode = "DRY RUN" if self.engine.dry_run else "LIVE"
        logger.info(f"Bot loop starting ({mode}, every {self.interval}s)")

        while not self._stop.is_set():
            started = self.clock.monotonic()
            report = await self.engine.run_cycle_async()
            elapsed = self.clock.monotonic() - started

            self.cycles_run += 1
            self.last_report = report
            if self.metrics is not None:
                self.metrics.record_cycle(report, elapsed)

            if self.max_cycles is not None and self.cycles_run >= self.max_cycles:
                break

            if await self.clock.sleep(max(self.interval - elapsed, 0), self._stop):
                break

        logger.info(f"Bot loop stopped after {self.cycles_run} cycle(s)")
        return self.cycles_run
