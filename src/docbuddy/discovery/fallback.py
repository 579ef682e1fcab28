"""
Fallback global metric search.

Only reached when none of the catalog patterns carry data: lists every
metric under the telemetry namespace, keeps names that look like
latency/throughput/error series and probes a bounded slice of them.
"""

from __future__ import annotations

import structlog

from docbuddy.clients.base import MetricCatalogClient
from docbuddy.core.errors import DocBuddyError
from docbuddy.core.timerange import TimeWindow
from docbuddy.discovery.catalog import FALLBACK_KEYWORDS
from docbuddy.discovery.prober import CandidateProber

logger = structlog.get_logger()

DEFAULT_NAMESPACE = "trace.*"
DEFAULT_CANDIDATE_LIMIT = 50


def filter_candidates(names: list[str], limit: int = DEFAULT_CANDIDATE_LIMIT) -> list[str]:
    """Keep names containing a role keyword, capped at ``limit`` in listing order."""
    matching = [name for name in names if any(k in name for k in FALLBACK_KEYWORDS)]
    return matching[:limit]


class FallbackSearch:
    def __init__(
        self,
        catalog: MetricCatalogClient,
        prober: CandidateProber,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        self.catalog = catalog
        self.prober = prober
        self.namespace = namespace
        self.limit = limit

    async def search(
        self,
        service: str,
        environment: str | None = None,
        window: TimeWindow | None = None,
    ) -> list[str]:
        """Working metric names found outside the catalog (possibly empty)."""
        try:
            names = await self.catalog.list_metrics(self.namespace)
        except DocBuddyError as exc:
            logger.warning(
                "fallback_search_failed",
                service=service,
                namespace=self.namespace,
                error=str(exc),
            )
            return []

        candidates = filter_candidates(names, self.limit)
        logger.info(
            "fallback_search_candidates",
            service=service,
            listed=len(names),
            candidates=len(candidates),
        )
        if not candidates:
            return []

        return await self.prober.probe(candidates, service, environment, window)
