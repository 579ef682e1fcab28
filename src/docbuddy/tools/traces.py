"""
Trace sampling tool.

Lists service entry spans matching the given filters, slowest or most
recent first, each with a deep link to the trace view.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from docbuddy.cache import generate_cache_key
from docbuddy.context import AppContext
from docbuddy.core.errors import (
    BackendError,
    InvalidInputError,
    NoDataInWindowError,
    ToolResult,
    tool_boundary,
)
from docbuddy.core.timerange import parse_time_range
from docbuddy.core.validation import require_environment, require_service_name
from docbuddy.logging import bind_context
from docbuddy.queries.builder import QueryOptions, SpanStatus, SpanType, build_query_from_options
from docbuddy.tools.models import TraceInfo, TracesResult

MAX_TRACE_LIMIT = 1000
SORT_FIELDS = {"duration": "-duration", "timestamp": "-timestamp"}


def _tag_value(tags: list[str], key: str) -> Optional[str]:
    prefix = f"{key}:"
    for tag in tags:
        if tag.startswith(prefix):
            return tag[len(prefix):] or None
    return None


def parse_trace(span: dict[str, Any], app_url: str) -> Optional[TraceInfo]:
    """Build a TraceInfo from a raw span record; None if it carries no trace/span id."""
    attributes = span.get("attributes")
    if not attributes:
        return None

    tags = attributes.get("tags") or []
    inner = attributes.get("attributes") or {}
    trace_id = _tag_value(tags, "trace_id") or attributes.get("trace_id")
    span_id = _tag_value(tags, "span_id") or attributes.get("span_id")
    if not trace_id or not span_id:
        return None

    duration_ns = inner.get("duration") or 0
    return TraceInfo(
        trace_id=str(trace_id),
        span_id=str(span_id),
        timestamp=inner.get("start") or attributes.get("start_timestamp") or "",
        resource=inner.get("resource_name") or attributes.get("resource_name") or "unknown",
        duration=round(duration_ns / 1_000_000, 2),
        status="error" if inner.get("status") == "error" else "ok",
        error_type=inner.get("@error.type"),
        error_message=inner.get("@error.message"),
        url=f"{app_url.rstrip('/')}/apm/trace/{trace_id}",
    )


@tool_boundary("query_apm_traces")
async def query_apm_traces(
    ctx: AppContext,
    *,
    service: str,
    operation: Optional[str] = None,
    environment: Optional[str] = None,
    time_range: str = "1h",
    status: Optional[SpanStatus] = None,
    min_duration_ms: Optional[float] = None,
    max_duration_ms: Optional[float] = None,
    http_status_code: Optional[int] = None,
    http_method: Optional[str] = None,
    error_type: Optional[str] = None,
    span_type: Optional[SpanType] = None,
    sort_by: Literal["duration", "timestamp"] = "duration",
    limit: int = 20,
) -> ToolResult[TracesResult]:
    service = require_service_name(service)
    environment = require_environment(environment)
    if sort_by not in SORT_FIELDS:
        raise InvalidInputError(f"Unsupported sort: {sort_by}", {"supported": ", ".join(SORT_FIELDS)})
    if not 1 <= limit <= MAX_TRACE_LIMIT:
        raise InvalidInputError(f"limit must be between 1 and {MAX_TRACE_LIMIT}", {"limit": limit})
    window = parse_time_range(time_range)
    ctx.start()

    filters = {
        "status": status,
        "min_duration_ms": min_duration_ms,
        "max_duration_ms": max_duration_ms,
        "http_status_code": http_status_code,
        "http_method": http_method,
        "error_type": error_type,
        "span_type": span_type,
    }
    cache_key = generate_cache_key(
        "query-apm-traces",
        {
            "service": service,
            "operation": operation,
            "environment": environment,
            "time_range": time_range,
            "sort_by": sort_by,
            "limit": limit,
            **filters,
        },
    )
    cached = ctx.result_cache.get(cache_key)
    if cached is not None:
        return ToolResult.ok(cached, cached=True)

    query = build_query_from_options(
        QueryOptions(
            service=service,
            span_kind="entry",
            environment=environment,
            operation=operation,
            status=status,
            min_duration_ms=min_duration_ms,
            max_duration_ms=max_duration_ms,
            http_status_code=http_status_code,
            http_method=http_method,
            error_type=error_type,
            span_type=span_type,
        )
    )

    log = bind_context(tool="query_apm_traces", service=service, environment=environment)
    spans = await ctx.client.list_spans(
        query,
        window.from_ms,
        window.to_ms,
        sort=SORT_FIELDS[sort_by],
        limit=limit,
    )
    if not spans:
        raise NoDataInWindowError(
            f'No traces found for service "{service}" with the specified filters.',
            {"query": query, "time_range": time_range},
        )

    traces = [t for t in (parse_trace(s, ctx.settings.dd_app_url) for s in spans) if t is not None]
    if not traces:
        raise BackendError(
            "Found spans but could not parse trace IDs. Data format may have changed.",
            {"spans": len(spans)},
        )

    result = TracesResult(
        service=service,
        operation=operation,
        environment=environment,
        time_range=time_range,
        query=query,
        total_traces=len(traces),
        traces=traces,
        filters={k: v for k, v in filters.items() if v is not None},
    )
    ctx.result_cache.set(cache_key, result, ttl=ctx.settings.traces_cache_ttl)
    log.info("traces_found", query=query, count=len(traces))
    return ToolResult.ok(result)
