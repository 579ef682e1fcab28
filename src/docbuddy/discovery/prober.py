"""
Concurrent candidate probing.

Each candidate metric name is queried once for the service; a candidate is
working when at least one returned series carries at least one point.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

import structlog

from docbuddy.clients.base import TimeSeriesClient
from docbuddy.core.timerange import TimeWindow
from docbuddy.queries.metrics import build_metric_query

logger = structlog.get_logger()

DEFAULT_CONCURRENCY = 10


class CandidateProber:
    """Probes candidate metric names with a bounded number of in-flight queries."""

    def __init__(self, client: TimeSeriesClient, concurrency: int = DEFAULT_CONCURRENCY) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.client = client
        self.concurrency = concurrency

    async def probe(
        self,
        candidates: Sequence[str],
        service: str,
        environment: str | None = None,
        window: TimeWindow | None = None,
    ) -> list[str]:
        """Return the candidates that have data, in candidate order."""
        if not candidates:
            return []

        window = window or TimeWindow.default()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def probe_one(metric: str) -> bool:
            async with semaphore:
                return await self._has_data(metric, service, environment, window)

        results = await asyncio.gather(*(probe_one(m) for m in candidates))
        working = [metric for metric, ok in zip(candidates, results) if ok]

        logger.info(
            "metric_probe_complete",
            service=service,
            environment=environment,
            candidates=len(candidates),
            working=len(working),
        )
        return working

    async def _has_data(
        self,
        metric: str,
        service: str,
        environment: str | None,
        window: TimeWindow,
    ) -> bool:
        query = build_metric_query(metric, service, environment, aggregation="avg")
        try:
            series = await self.client.query_metrics(query, window.from_ms, window.to_ms)
        except Exception as exc:
            # A failed candidate counts as no data; siblings keep going
            logger.debug("metric_probe_failed", metric=metric, service=service, error=str(exc))
            return False

        if any(s.has_points for s in series):
            logger.debug("metric_probe_hit", metric=metric, service=service)
            return True
        return False
