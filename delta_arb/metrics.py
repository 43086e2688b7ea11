"""
Prometheus metrics for the bot loop.

Records one observation per cycle and optionally serves /metrics and /health
over aiohttp.
"""

import logging
import time
from typing import TYPE_CHECKING, Optional

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

if TYPE_CHECKING:
    from .engine import CycleReport

logger = logging.getLogger(__name__)


class BotMetrics:
    """
    Cycle metrics collection and exposure.

    Pass a fresh CollectorRegistry in tests so repeated construction does not
    collide with the process-wide default registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        self._app = None
        self._runner = None
        self._site = None

    def _initialize_metrics(self):
        self.cycles_total = Counter(
            "delta_arb_cycles_total",
            "Bot cycles completed, by outcome",
            ["action"],
            registry=self.registry,
        )
        self.swaps_total = Counter(
            "delta_arb_swaps_total",
            "Swaps submitted or simulated, by route",
            ["route", "mode"],
            registry=self.registry,
        )
        self.last_estimated_gain = Gauge(
            "delta_arb_last_estimated_gain",
            "Estimated net gain of the last evaluated route (native units)",
            registry=self.registry,
        )
        self.deviation = Gauge(
            "delta_arb_deviation",
            "Quoted vs fair price deviation as a fraction",
            ["token"],
            registry=self.registry,
        )
        self.last_cycle_timestamp = Gauge(
            "delta_arb_last_cycle_timestamp",
            "Unix time the last cycle finished",
            registry=self.registry,
        )
        self.cycle_duration = Histogram(
            "delta_arb_cycle_duration_seconds",
            "Wall time of one bot cycle",
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=self.registry,
        )

    def record_cycle(self, report: "CycleReport", duration: float) -> None:
        self.cycles_total.labels(action=report.action).inc()
        self.cycle_duration.observe(duration)
        self.last_cycle_timestamp.set(time.time())

        if report.snapshot is not None:
            self.deviation.labels(token="long").set(float(report.snapshot.long_deviation))
            self.deviation.labels(token="short").set(float(report.snapshot.short_deviation))
        if report.estimated_gain is not None:
            self.last_estimated_gain.set(float(report.estimated_gain))
        if report.action in ("executed", "dry_run") and report.route is not None:
            mode = "live" if report.action == "executed" else "dry_run"
            self.swaps_total.labels(route=report.route.kind.value, mode=mode).inc()

    async def start_server(self, port: int = 9108, host: str = "0.0.0.0") -> bool:
        """Start the metrics HTTP server; returns False if it could not bind."""
        try:
            self._app = web.Application()
            self._app.router.add_get("/metrics", self._metrics_handler)
            self._app.router.add_get("/health", self._health_handler)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, host, port)
            await self._site.start()

            logger.info(f"Metrics server started on http://{host}:{port}/metrics")
            return True
        except OSError as e:
            logger.error(f"Failed to start metrics server: {e}")
            return False

    async def stop_server(self) -> None:
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._site = None
        self._runner = None
        logger.info("Metrics server stopped")

    async def _metrics_handler(self, request):
        output = generate_latest(self.registry)
        # aiohttp rejects a charset inside content_type
        content_type = CONTENT_TYPE_LATEST.split(";")[0]
        return web.Response(text=output.decode("utf-8"), content_type=content_type)

    async def _health_handler(self, request):
        return web.json_response({"status": "healthy", "service": "delta_arb"})
