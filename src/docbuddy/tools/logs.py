"""Log search tool."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from docbuddy.cache import calculate_cache_ttl, generate_cache_key
from docbuddy.context import AppContext
from docbuddy.core.errors import InvalidInputError, ToolResult, tool_boundary
from docbuddy.core.timerange import parse_time_range
from docbuddy.core.validation import require_service_name, sanitize_log_query
from docbuddy.logging import bind_context
from docbuddy.tools.models import LogEntry, LogsResult

MAX_LOG_LIMIT = 1000


def parse_log_entry(record: dict[str, Any], service: str) -> LogEntry | None:
    attrs = record.get("attributes")
    if not attrs:
        return None
    return LogEntry(
        timestamp=attrs.get("timestamp") or _now_iso(),
        level=attrs.get("status") or "info",
        message=attrs.get("message") or "",
        service=service,
        attributes=attrs.get("attributes") or {},
    )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@tool_boundary("search_logs")
async def search_logs(
    ctx: AppContext,
    *,
    service: str,
    query: str = "",
    time_range: str = "1h",
    limit: int = 100,
) -> ToolResult[LogsResult]:
    """Search a service's logs; free text is sanitized before it reaches the backend."""
    service = require_service_name(service)
    if not 1 <= limit <= MAX_LOG_LIMIT:
        raise InvalidInputError(f"limit must be between 1 and {MAX_LOG_LIMIT}", {"limit": limit})
    window = parse_time_range(time_range)
    ctx.start()

    sanitized = sanitize_log_query(query).strip()
    cache_key = generate_cache_key(
        "logs",
        {"service": service, "query": sanitized, "time_range": time_range, "limit": limit},
    )
    cached = ctx.result_cache.get(cache_key)
    if cached is not None:
        return ToolResult.ok(cached, cached=True)

    full_query = f"service:{service} {sanitized}".strip()
    log = bind_context(tool="search_logs", service=service)
    records = await ctx.client.search_logs(full_query, window.from_ms, window.to_ms, limit=limit)

    logs = [entry for entry in (parse_log_entry(r, service) for r in records) if entry is not None]
    result = LogsResult(
        service=service,
        query=sanitized,
        logs=logs,
        total=len(logs),
        has_more=len(records) == limit,
    )
    ctx.result_cache.set(cache_key, result, ttl=calculate_cache_ttl(time_range))
    log.info("logs_found", query=full_query, count=len(logs))
    return ToolResult.ok(result, log_count=len(logs))
