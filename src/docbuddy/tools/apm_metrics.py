"""
APM time-series tool.

The requested role (latency, throughput, error rate) is resolved to a
concrete metric name through discovery, so services on any supported
framework answer the same question.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog

from docbuddy.cache import calculate_cache_ttl, generate_cache_key
from docbuddy.context import AppContext
from docbuddy.core.errors import (
    InsufficientMetricsError,
    InvalidInputError,
    NoDataInWindowError,
    ToolResult,
    tool_boundary,
)
from docbuddy.core.timerange import parse_time_range
from docbuddy.core.validation import require_environment, require_service_name
from docbuddy.discovery.models import MetricRole
from docbuddy.queries.metrics import build_metric_query
from docbuddy.tools.models import APMMetricsResult, MetricPoint

logger = structlog.get_logger()

METRIC_ROLES = {
    "latency": (MetricRole.LATENCY, "ms"),
    "throughput": (MetricRole.THROUGHPUT, "requests/s"),
    "error_rate": (MetricRole.ERRORS, "%"),
}
AGGREGATIONS = ("avg", "p50", "p95", "p99")


def _iso_from_seconds(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@tool_boundary("query_apm_metrics")
async def query_apm_metrics(
    ctx: AppContext,
    *,
    service: str,
    metric: str,
    time_range: str = "1h",
    environment: Optional[str] = None,
    aggregation: str = "avg",
) -> ToolResult[APMMetricsResult]:
    """Time series of a service's latency, throughput or error rate."""
    service = require_service_name(service)
    environment = require_environment(environment)
    if metric not in METRIC_ROLES:
        raise InvalidInputError(
            f"Unsupported metric type: {metric}",
            {"supported": ", ".join(METRIC_ROLES)},
        )
    if aggregation not in AGGREGATIONS:
        raise InvalidInputError(
            f"Unsupported aggregation: {aggregation}",
            {"supported": ", ".join(AGGREGATIONS)},
        )
    window = parse_time_range(time_range)
    ctx.start()

    cache_key = generate_cache_key(
        "apm-metrics",
        {
            "service": service,
            "metric": metric,
            "time_range": time_range,
            "environment": environment,
            "aggregation": aggregation,
        },
    )
    cached = ctx.result_cache.get(cache_key)
    if cached is not None:
        return ToolResult.ok(cached, cached=True)

    discovered = await ctx.discovery.require(service, environment, window)
    role, unit = METRIC_ROLES[metric]
    metric_name = discovered.primary.get(role)
    if not metric_name:
        raise InsufficientMetricsError(
            f'Service "{service}" has no {role.value} metric.',
            {"service": service, "available": ", ".join(discovered.discovered)},
        )

    query = build_metric_query(metric_name, service, environment, aggregation=aggregation)
    series = await ctx.client.query_metrics(query, window.from_ms, window.to_ms)
    logger.debug("apm_metrics_queried", query=query, series=len(series))

    points = [
        MetricPoint(timestamp=_iso_from_seconds(ts), value=value)
        for ts, value in (series[0].pointlist if series else [])
    ]
    if not points:
        raise NoDataInWindowError(
            f'No {metric} data for service "{service}" in the last {time_range}.',
            {"metric": metric_name, "time_range": time_range},
        )

    result = APMMetricsResult(
        service=service,
        metric=metric,
        metric_name=metric_name,
        environment=environment,
        aggregation=aggregation,
        unit=unit,
        data=points,
    )
    ctx.result_cache.set(cache_key, result, ttl=calculate_cache_ttl(time_range))
    return ToolResult.ok(result, data_points=len(points))
