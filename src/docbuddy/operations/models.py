"""
Normalized per-operation metrics.

Both data-access strategies (pre-aggregated trace metrics and on-demand
span aggregation) produce these shapes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataSource(str, Enum):
    TRACE_METRICS = "trace-metrics"
    SPANS_API = "spans-api"


def compute_error_rate(error_count: float, request_count: float) -> float:
    """Error percentage, 0 when there were no requests."""
    if request_count <= 0:
        return 0.0
    return round(error_count / request_count * 100, 2)


class OperationMetrics(BaseModel):
    """Request, error and latency figures for one operation (latencies in ms)."""

    model_config = ConfigDict(frozen=True)

    request_count: int = 0
    error_count: int = 0
    p50_latency: float = 0.0
    p95_latency: float = 0.0
    p99_latency: float = 0.0
    error_rate: float = 0.0

    @classmethod
    def from_counts(
        cls,
        *,
        request_count: int,
        error_count: int,
        p50_latency: float = 0.0,
        p95_latency: float = 0.0,
        p99_latency: float = 0.0,
    ) -> "OperationMetrics":
        return cls(
            request_count=request_count,
            error_count=error_count,
            p50_latency=round(p50_latency, 2),
            p95_latency=round(p95_latency, 2),
            p99_latency=round(p99_latency, 2),
            error_rate=compute_error_rate(error_count, request_count),
        )


class ServiceOperation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    resource: str
    metrics: OperationMetrics


class ServiceOperationsResult(BaseModel):
    """Operations breakdown for a service over a time range."""

    service: str
    environment: Optional[str] = None
    time_range: str
    total_operations: int
    operations: List[ServiceOperation] = Field(default_factory=list)
    data_source: DataSource
    last_updated: datetime = Field(default_factory=_utcnow)

    def find(self, name: str) -> Optional[ServiceOperation]:
        for op in self.operations:
            if op.name == name:
                return op
        return None
