"""
Per-operation breakdown for a service, using a hybrid strategy.

1. Pre-aggregated trace metrics: fast, but only a p95 latency per operation.
2. Span aggregation over service entry spans: slower, full counts and
   percentiles.

The first strategy that yields at least one operation wins.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from docbuddy.cache import TTLCache, generate_cache_key
from docbuddy.clients.base import SpanAggregationClient, TimeSeriesClient
from docbuddy.core.errors import NoDataInWindowError, NotInstrumentedError
from docbuddy.core.timerange import TimeWindow, parse_time_range
from docbuddy.discovery.engine import MetricDiscovery
from docbuddy.operations.models import (
    DataSource,
    OperationMetrics,
    ServiceOperation,
    ServiceOperationsResult,
)
from docbuddy.queries.aggregation import parse_operation_metrics, standard_operations_spec
from docbuddy.queries.builder import build_service_entry_query
from docbuddy.queries.metrics import build_metric_query

logger = structlog.get_logger()

OPERATIONS_CACHE_TTL = 2 * 60.0
OPERATIONS_CACHE_PREFIX = "service-operations-v2"
RESOURCE_TAG = "resource_name"
MAX_OPERATIONS = 100


def operations_cache_key(service: str, environment: Optional[str], time_range: str) -> str:
    return generate_cache_key(
        OPERATIONS_CACHE_PREFIX,
        {"service": service, "environment": environment, "time_range": time_range},
    )


class OperationsOrchestrator:
    def __init__(
        self,
        discovery: MetricDiscovery,
        metrics_client: TimeSeriesClient,
        spans_client: SpanAggregationClient,
        cache: TTLCache,
        *,
        cache_ttl: float = OPERATIONS_CACHE_TTL,
    ) -> None:
        self.discovery = discovery
        self.metrics_client = metrics_client
        self.spans_client = spans_client
        self.cache = cache
        self.cache_ttl = cache_ttl

    def cached_operations(
        self,
        service: str,
        environment: Optional[str] = None,
        time_range: str = "1h",
    ) -> Optional[ServiceOperationsResult]:
        return self.cache.get(operations_cache_key(service, environment, time_range))

    async def get_operations(
        self,
        service: str,
        environment: Optional[str] = None,
        time_range: str = "1h",
    ) -> ServiceOperationsResult:
        """
        Operations of ``service`` with their metrics.

        Raises:
            NotInstrumentedError: discovery found nothing and spans are empty
            NoDataInWindowError: the service is instrumented but the window is empty
        """
        cached = self.cached_operations(service, environment, time_range)
        if cached is not None:
            logger.debug("operations_cache_hit", service=service, environment=environment)
            return cached

        window = parse_time_range(time_range)

        # None: discovery itself failed, so instrumentation is unknown
        instrumented: Optional[bool] = None
        operations: List[ServiceOperation] = []
        source = DataSource.TRACE_METRICS
        try:
            discovered = await self.discovery.discover(service, environment, window)
            instrumented = discovered is not None
            if discovered is not None and discovered.primary.latency:
                operations = await self._from_trace_metrics(
                    discovered.primary.latency, service, environment, window
                )
        except Exception as exc:
            logger.warning(
                "operations_trace_metrics_failed",
                service=service,
                environment=environment,
                error=str(exc),
            )

        if not operations:
            logger.info("operations_fallback_to_spans", service=service, environment=environment)
            source = DataSource.SPANS_API
            operations = await self._from_spans(service, environment, window)

        if not operations:
            if instrumented is False:
                raise NotInstrumentedError(
                    f'No APM data found for service "{service}". '
                    "The service may not be instrumented.",
                    {"service": service, "environment": environment},
                )
            raise NoDataInWindowError(
                f'No traffic found for service "{service}" in the last {time_range}. '
                "Try a wider time range.",
                {"service": service, "environment": environment, "time_range": time_range},
            )

        result = ServiceOperationsResult(
            service=service,
            environment=environment,
            time_range=time_range,
            total_operations=len(operations),
            operations=operations,
            data_source=source,
        )
        self.cache.set(operations_cache_key(service, environment, time_range), result, ttl=self.cache_ttl)

        logger.info(
            "operations_resolved",
            service=service,
            environment=environment,
            data_source=source.value,
            operations=len(operations),
        )
        return result

    async def _from_trace_metrics(
        self,
        latency_metric: str,
        service: str,
        environment: Optional[str],
        window: TimeWindow,
    ) -> List[ServiceOperation]:
        query = build_metric_query(
            latency_metric,
            service,
            environment,
            aggregation=None,
            group_by=[RESOURCE_TAG],
        )
        series_list = await self.metrics_client.query_metrics(query, window.from_ms, window.to_ms)

        operations = []
        for series in series_list:
            resource = series.tag_value(RESOURCE_TAG)
            if not resource or not series.has_points:
                continue
            # Only the latest point is used; counts and other percentiles are unavailable here
            metrics = OperationMetrics.from_counts(
                request_count=0,
                error_count=0,
                p95_latency=series.latest_value() or 0.0,
            )
            operations.append(ServiceOperation(name=resource, resource=resource, metrics=metrics))
        return operations

    async def _from_spans(
        self,
        service: str,
        environment: Optional[str],
        window: TimeWindow,
    ) -> List[ServiceOperation]:
        spec = standard_operations_spec(MAX_OPERATIONS)
        buckets = await self.spans_client.aggregate_spans(
            build_service_entry_query(service, environment),
            window.from_ms,
            window.to_ms,
            spec.computes,
            spec.group_by,
        )

        operations = []
        for bucket in buckets:
            resource = bucket.by.get(RESOURCE_TAG)
            if not resource:
                continue
            metrics = parse_operation_metrics(bucket.computes, spec)
            operations.append(ServiceOperation(name=resource, resource=resource, metrics=metrics))
        return operations
