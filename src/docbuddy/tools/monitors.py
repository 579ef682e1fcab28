"""Monitor listing tool."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from docbuddy.cache import generate_cache_key
from docbuddy.context import AppContext
from docbuddy.core.errors import InvalidInputError, ToolResult, tool_boundary
from docbuddy.core.validation import require_service_name
from docbuddy.logging import bind_context
from docbuddy.tools.models import MonitorInfo, MonitorsResult, MonitorStatus, MonitorStatusCounts

STATUS_FILTERS = ("alert", "warn", "no data", "ok")

# Most severe first
SEVERITY_ORDER: dict[str, int] = {"Alert": 0, "Warn": 1, "No Data": 2, "OK": 3, "Unknown": 4}

_COUNT_FIELDS = {"Alert": "alert", "Warn": "warn", "OK": "ok", "No Data": "no_data", "Unknown": "unknown"}


def normalize_status(state: Optional[str]) -> MonitorStatus:
    if not state:
        return "Unknown"
    normalized = state.lower()
    if normalized == "alert":
        return "Alert"
    if normalized == "warn":
        return "Warn"
    if normalized == "ok":
        return "OK"
    if normalized in ("no data", "nodata"):
        return "No Data"
    return "Unknown"


def _iso(value: Any) -> Optional[str]:
    if not value:
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    return str(value)


def parse_monitor(monitor: dict[str, Any], app_url: str) -> MonitorInfo:
    monitor_id = monitor.get("id")
    creator = monitor.get("creator") or {}
    return MonitorInfo(
        id=monitor_id,
        name=monitor.get("name") or "Unnamed Monitor",
        type=monitor.get("type") or "unknown",
        status=normalize_status(monitor.get("overall_state")),
        message=monitor.get("message"),
        tags=monitor.get("tags") or [],
        query=monitor.get("query"),
        creator=creator.get("email"),
        created=_iso(monitor.get("created")),
        modified=_iso(monitor.get("modified")),
        url=f"{app_url.rstrip('/')}/monitors/{monitor_id}",
    )


@tool_boundary("get_monitors")
async def get_monitors(
    ctx: AppContext,
    *,
    service: Optional[str] = None,
    status: Optional[str] = None,
    tags: Optional[Sequence[str]] = None,
    monitor_type: Optional[str] = None,
) -> ToolResult[MonitorsResult]:
    """Monitors filtered by service, status, tags and type, most severe first."""
    if service is not None:
        service = require_service_name(service)
    if status is not None and status.lower() not in STATUS_FILTERS:
        raise InvalidInputError(f"Unsupported status: {status}", {"supported": ", ".join(STATUS_FILTERS)})
    ctx.start()

    filters = {
        "service": service,
        "status": status,
        "tags": list(tags) if tags else None,
        "monitor_type": monitor_type,
    }
    cache_key = generate_cache_key("get-monitors", filters)
    cached = ctx.result_cache.get(cache_key)
    if cached is not None:
        return ToolResult.ok(cached, cached=True)

    monitor_tags = [f"service:{service}"] if service else []
    monitor_tags.extend(tags or [])

    log = bind_context(tool="get_monitors", service=service)
    raw = await ctx.client.list_monitors(monitor_tags=monitor_tags or None)

    monitors = [parse_monitor(m, ctx.settings.dd_app_url) for m in raw if m.get("id") is not None]
    if status:
        wanted = normalize_status(status)
        monitors = [m for m in monitors if m.status == wanted]
    if monitor_type:
        monitors = [m for m in monitors if m.type == monitor_type]

    # Stable sort keeps backend order within a severity
    monitors.sort(key=lambda m: SEVERITY_ORDER[m.status])

    counts = MonitorStatusCounts()
    for monitor in monitors:
        field = _COUNT_FIELDS[monitor.status]
        setattr(counts, field, getattr(counts, field) + 1)

    result = MonitorsResult(
        filters={k: v for k, v in filters.items() if v is not None},
        total_monitors=len(monitors),
        monitors=monitors,
        by_status=counts,
    )
    ctx.result_cache.set(cache_key, result, ttl=ctx.settings.monitors_cache_ttl)
    log.info("monitors_found", total=len(monitors), alert=counts.alert, warn=counts.warn)
    return ToolResult.ok(result)
