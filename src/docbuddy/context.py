"""
Application context.

Holds the process-wide collaborators (settings, backend client, caches,
discovery and orchestration) so tool handlers receive them explicitly
instead of reaching for module globals.
"""

from __future__ import annotations

from typing import Optional

import structlog

from docbuddy.cache import TTLCache
from docbuddy.clients.datadog import DatadogClient
from docbuddy.config import Settings, get_settings
from docbuddy.discovery import CandidateProber, FallbackSearch, MetricDiscovery
from docbuddy.operations.orchestrator import OperationsOrchestrator

logger = structlog.get_logger()


class AppContext:
    def __init__(
        self,
        settings: Settings,
        client: DatadogClient,
        *,
        discovery_cache: Optional[TTLCache] = None,
        result_cache: Optional[TTLCache] = None,
        discovery: Optional[MetricDiscovery] = None,
        orchestrator: Optional[OperationsOrchestrator] = None,
    ) -> None:
        self.settings = settings
        self.client = client
        if discovery_cache is None:
            discovery_cache = TTLCache(settings.cache_max_entries, settings.discovery_ttl, name="discovery")
        if result_cache is None:
            result_cache = TTLCache(settings.cache_max_entries, name="results")
        self.discovery_cache = discovery_cache
        self.result_cache = result_cache

        if discovery is None:
            prober = CandidateProber(client, concurrency=settings.probe_concurrency)
            fallback = FallbackSearch(
                client,
                prober,
                namespace=settings.fallback_namespace,
                limit=settings.fallback_candidate_limit,
            )
            discovery = MetricDiscovery(
                prober,
                fallback,
                self.discovery_cache,
                ttl=settings.discovery_ttl,
                negative_ttl=settings.discovery_negative_ttl,
            )
        self.discovery = discovery

        self.orchestrator = orchestrator or OperationsOrchestrator(
            self.discovery,
            client,
            client,
            self.result_cache,
            cache_ttl=settings.operations_cache_ttl,
        )
        self._started = False

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AppContext":
        """Build a context with a Datadog client from settings (raises ConfigurationError)."""
        settings = settings or get_settings()
        return cls(settings, DatadogClient.from_settings(settings))

    def start(self) -> None:
        """Start the cache sweepers on the running loop; safe to call repeatedly."""
        if self._started:
            return
        interval = self.settings.cache_sweep_interval
        self.discovery_cache.start_sweeper(interval)
        self.result_cache.start_sweeper(interval)
        self._started = True
        logger.debug("context_started", sweep_interval=interval)

    async def aclose(self) -> None:
        await self.discovery_cache.aclose()
        await self.result_cache.aclose()
        self._started = False


_default_context: Optional[AppContext] = None


def get_context() -> AppContext:
    """Process-wide default context, built on first use."""
    global _default_context
    if _default_context is None:
        _default_context = AppContext.from_settings()
    return _default_context


def reset_context() -> None:
    """Forget the default context (tests)."""
    global _default_context
    _default_context = None
