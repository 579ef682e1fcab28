"""
Adaptive metric discovery.

Works out which metric names carry data for a service whose
instrumentation framework is not known up front, then classifies them
into roles and traffic direction. Results are cached per
(service, environment).
"""

from __future__ import annotations

from typing import Optional

import structlog

from docbuddy.cache import TTLCache
from docbuddy.core.errors import NotInstrumentedError
from docbuddy.core.timerange import TimeWindow
from docbuddy.discovery.catalog import catalog_metric_names
from docbuddy.discovery.classifier import MetricClassifier
from docbuddy.discovery.fallback import FallbackSearch
from docbuddy.discovery.models import DiscoveredMetrics
from docbuddy.discovery.prober import CandidateProber

logger = structlog.get_logger()

DISCOVERY_TTL = 60 * 60.0

# Stored for negative results so a hit can be told apart from a miss
_NOT_FOUND = "__not_found__"


def discovery_cache_key(service: str, environment: Optional[str] = None) -> str:
    return f"metric-discovery:{service}:{environment or 'default'}"


class MetricDiscovery:
    """
    Discovers working metrics for a service.

    The static catalog is probed first in one batch. When nothing in it has
    data the fallback search runs over the backend's metric listing. Only
    successful discoveries are cached unless ``negative_ttl`` is positive.
    """

    def __init__(
        self,
        prober: CandidateProber,
        fallback: FallbackSearch,
        cache: TTLCache,
        *,
        classifier: Optional[MetricClassifier] = None,
        ttl: float = DISCOVERY_TTL,
        negative_ttl: float = 0.0,
    ) -> None:
        self.prober = prober
        self.fallback = fallback
        self.cache = cache
        self.classifier = classifier or MetricClassifier()
        self.ttl = ttl
        self.negative_ttl = negative_ttl

    async def discover(
        self,
        service: str,
        environment: Optional[str] = None,
        window: Optional[TimeWindow] = None,
    ) -> Optional[DiscoveredMetrics]:
        """Return discovered metrics, or None when the service has none."""
        key = discovery_cache_key(service, environment)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("discovery_cache_hit", service=service, environment=environment)
            return None if cached == _NOT_FOUND else cached

        window = window or TimeWindow.default()

        working = await self.prober.probe(catalog_metric_names(), service, environment, window)
        source = "catalog"
        if not working:
            logger.info("discovery_catalog_miss", service=service, environment=environment)
            working = await self.fallback.search(service, environment, window)
            source = "fallback"

        if not working:
            logger.info("discovery_not_found", service=service, environment=environment)
            if self.negative_ttl > 0:
                self.cache.set(key, _NOT_FOUND, ttl=self.negative_ttl)
            return None

        result = self.classifier.classify(service, working, environment=environment, source=source)
        self.cache.set(key, result, ttl=self.ttl)

        logger.info(
            "discovery_complete",
            service=service,
            environment=environment,
            source=source,
            primary_pattern=result.primary_pattern,
            latency=result.primary.latency,
            throughput=result.primary.throughput,
            errors=result.primary.errors,
            groups=len(result.groups),
        )
        return result

    async def require(
        self,
        service: str,
        environment: Optional[str] = None,
        window: Optional[TimeWindow] = None,
    ) -> DiscoveredMetrics:
        """Like ``discover`` but raises NotInstrumentedError instead of returning None."""
        result = await self.discover(service, environment, window)
        if result is None:
            raise NotInstrumentedError(
                f'No APM metrics found for service "{service}". '
                "The service may not be instrumented.",
                {"service": service, "environment": environment},
            )
        return result
