"""Metric (time-series) query strings."""

from __future__ import annotations

from typing import Optional, Sequence


def build_metric_query(
    metric: str,
    service: str,
    environment: Optional[str] = None,
    *,
    aggregation: Optional[str] = "avg",
    group_by: Sequence[str] = (),
    modifier: Optional[str] = None,
) -> str:
    """
    Render a metric query scoped to a service.

    Examples:
        avg:trace.servlet.request.duration{service:checkout,env:prod}
        trace.servlet.request.duration{service:checkout} by {resource_name}
        sum:trace.servlet.request.hits{service:checkout}.as_count()
    """
    scope = f"service:{service}"
    if environment:
        scope = f"{scope},env:{environment}"

    query = f"{metric}{{{scope}}}"
    if aggregation:
        query = f"{aggregation}:{query}"
    if group_by:
        query = f"{query} by {{{','.join(group_by)}}}"
    if modifier:
        query = f"{query}.{modifier}()"
    return query
