"""
Service health tool.

Combines error rate, p95 latency and throughput of the discovered primary
metrics over the last hour with the state of the service's monitors.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from docbuddy.cache import generate_cache_key
from docbuddy.clients.models import MetricSeries
from docbuddy.context import AppContext
from docbuddy.core.errors import InsufficientMetricsError, ToolResult, tool_boundary
from docbuddy.core.timerange import TimeWindow
from docbuddy.core.validation import require_environment, require_service_name
from docbuddy.logging import bind_context
from docbuddy.queries.metrics import build_metric_query
from docbuddy.tools.models import HealthMetrics, HealthStatus, ServiceHealthResult

DEGRADED_ERROR_RATE = 0.1
DOWN_ERROR_RATE = 0.5
DOWN_ALERT_COUNT = 5
ALERTING_STATES = ("Alert", "Warn")


def _latest(series: list[MetricSeries]) -> float:
    if not series:
        return 0.0
    return series[0].latest_value() or 0.0


def health_status(error_rate: float, throughput: float, active_alerts: int) -> HealthStatus:
    """
    Overall status from the raw error rate (fraction), throughput and alert count.

    No traffic means the other signals are meaningless, so it wins.
    """
    if throughput == 0:
        return "unknown"
    if error_rate > DOWN_ERROR_RATE or active_alerts > DOWN_ALERT_COUNT:
        return "down"
    if error_rate > DEGRADED_ERROR_RATE or active_alerts > 0:
        return "degraded"
    return "healthy"


@tool_boundary("get_service_health")
async def get_service_health(
    ctx: AppContext,
    *,
    service: str,
    environment: Optional[str] = None,
) -> ToolResult[ServiceHealthResult]:
    service = require_service_name(service)
    environment = require_environment(environment)
    ctx.start()

    cache_key = generate_cache_key("service-health", {"service": service, "environment": environment})
    cached = ctx.result_cache.get(cache_key)
    if cached is not None:
        return ToolResult.ok(cached, cached=True)

    log = bind_context(tool="get_service_health", service=service, environment=environment)
    window = TimeWindow.default()
    discovered = await ctx.discovery.require(service, environment, window)
    primary = discovered.primary
    if not primary.has_traffic_metrics:
        raise InsufficientMetricsError(
            f'Service "{service}" reports errors only; no latency or throughput metric was found.',
            {"service": service, "available": ", ".join(discovered.discovered)},
        )

    async def series_for(metric: Optional[str], aggregation: str, modifier: Optional[str] = None) -> list[MetricSeries]:
        if not metric:
            return []
        query = build_metric_query(metric, service, environment, aggregation=aggregation, modifier=modifier)
        return await ctx.client.query_metrics(query, window.from_ms, window.to_ms)

    errors, latency, throughput, monitors = await asyncio.gather(
        series_for(primary.errors, "avg", "as_rate"),
        series_for(primary.latency, "p95"),
        series_for(primary.throughput, "sum", "as_count"),
        ctx.client.list_monitors(tags=[f"service:{service}"]),
    )

    error_rate = _latest(errors)
    throughput_value = _latest(throughput)
    active_alerts = sum(1 for m in monitors if _monitor_state(m) in ALERTING_STATES)

    result = ServiceHealthResult(
        service=service,
        environment=environment,
        status=health_status(error_rate, throughput_value, active_alerts),
        metrics=HealthMetrics(
            error_rate=round(error_rate * 100, 2),
            p95_latency=round(_latest(latency), 2),
            throughput=round(throughput_value, 2),
        ),
        active_alerts=active_alerts,
    )
    ctx.result_cache.set(cache_key, result, ttl=ctx.settings.health_cache_ttl)
    log.info("service_health_ready", status=result.status, active_alerts=active_alerts)
    return ToolResult.ok(result)


def _monitor_state(monitor: dict[str, Any]) -> Optional[str]:
    return monitor.get("overall_state") or monitor.get("overallState")
