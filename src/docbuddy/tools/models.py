"""
Result models returned by the tool handlers.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

HealthStatus = Literal["healthy", "degraded", "down", "unknown"]
MonitorStatus = Literal["Alert", "Warn", "No Data", "OK", "Unknown"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricPoint(BaseModel):
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp")
    value: Optional[float] = None


class APMMetricsResult(BaseModel):
    service: str
    metric: str
    metric_name: str = Field(..., description="Backend metric the role resolved to")
    environment: Optional[str] = None
    aggregation: str
    unit: str
    data: List[MetricPoint] = Field(default_factory=list)


class HealthMetrics(BaseModel):
    error_rate: float = Field(0.0, description="Percentage")
    p95_latency: float = 0.0
    throughput: float = 0.0


class ServiceHealthResult(BaseModel):
    service: str
    environment: Optional[str] = None
    status: HealthStatus
    metrics: HealthMetrics
    active_alerts: int = 0
    last_updated: datetime = Field(default_factory=_utcnow)


class LogEntry(BaseModel):
    timestamp: str
    level: str = "info"
    message: str = ""
    service: str
    attributes: Dict[str, Any] = Field(default_factory=dict)


class LogsResult(BaseModel):
    service: str
    query: str = Field(..., description="Sanitized user query")
    logs: List[LogEntry] = Field(default_factory=list)
    total: int = 0
    has_more: bool = False


class TraceInfo(BaseModel):
    trace_id: str
    span_id: str
    timestamp: str
    resource: str
    duration: float = Field(..., description="Milliseconds")
    status: Literal["ok", "error"] = "ok"
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    url: str


class TracesResult(BaseModel):
    service: str
    operation: Optional[str] = None
    environment: Optional[str] = None
    time_range: str
    query: str
    total_traces: int
    traces: List[TraceInfo] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=_utcnow)


class MonitorInfo(BaseModel):
    id: int
    name: str
    type: str
    status: MonitorStatus
    message: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    query: Optional[str] = None
    creator: Optional[str] = None
    created: Optional[str] = None
    modified: Optional[str] = None
    url: str


class MonitorStatusCounts(BaseModel):
    alert: int = 0
    warn: int = 0
    ok: int = 0
    no_data: int = 0
    unknown: int = 0


class MonitorsResult(BaseModel):
    filters: Dict[str, Any] = Field(default_factory=dict)
    total_monitors: int
    monitors: List[MonitorInfo] = Field(default_factory=list)
    by_status: MonitorStatusCounts = Field(default_factory=MonitorStatusCounts)
    last_updated: datetime = Field(default_factory=_utcnow)
