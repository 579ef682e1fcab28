"""
Tool handlers exposed to the chat agent.

Every handler takes an ``AppContext`` plus keyword inputs and returns a
``ToolResult``; errors never escape as exceptions.
"""

from docbuddy.tools.apm_metrics import query_apm_metrics
from docbuddy.tools.logs import search_logs
from docbuddy.tools.monitors import get_monitors
from docbuddy.tools.service_health import get_service_health
from docbuddy.tools.service_operations import get_service_operations
from docbuddy.tools.traces import query_apm_traces

__all__ = [
    "get_monitors",
    "get_service_health",
    "get_service_operations",
    "query_apm_metrics",
    "query_apm_traces",
    "search_logs",
]
