"""Operations breakdown tool."""

from __future__ import annotations

from typing import Optional

from docbuddy.context import AppContext
from docbuddy.core.errors import ToolResult, tool_boundary
from docbuddy.core.validation import require_environment, require_service_name
from docbuddy.logging import bind_context
from docbuddy.operations.models import ServiceOperationsResult


@tool_boundary("get_service_operations")
async def get_service_operations(
    ctx: AppContext,
    *,
    service: str,
    environment: Optional[str] = None,
    time_range: str = "1h",
) -> ToolResult[ServiceOperationsResult]:
    """All operations/endpoints of a service with request, error and latency figures."""
    service = require_service_name(service)
    environment = require_environment(environment)
    ctx.start()

    cached = ctx.orchestrator.cached_operations(service, environment, time_range)
    if cached is not None:
        return ToolResult.ok(cached, cached=True)

    log = bind_context(tool="get_service_operations", service=service, environment=environment)
    result = await ctx.orchestrator.get_operations(service, environment, time_range)
    log.info("service_operations_ready", data_source=result.data_source.value, operations=result.total_operations)
    return ToolResult.ok(result, data_source=result.data_source.value)
