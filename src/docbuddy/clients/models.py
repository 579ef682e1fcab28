"""
Response models for telemetry backend calls.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class MetricSeries(BaseModel):
    """One time series returned by a metric query."""

    scope: str = Field("", description="Comma-separated tag scope, e.g. 'resource_name:GET /,service:api'")
    metric: Optional[str] = Field(None, description="Metric name reported by the backend")
    pointlist: List[Tuple[float, Optional[float]]] = Field(
        default_factory=list,
        description="(timestamp, value) pairs",
    )

    @property
    def has_points(self) -> bool:
        return len(self.pointlist) > 0

    def latest_value(self) -> Optional[float]:
        """Value of the last point, or None if the series is empty."""
        if not self.pointlist:
            return None
        return self.pointlist[-1][1]

    def tag_value(self, tag: str) -> Optional[str]:
        """Extract a tag value from the scope string."""
        for part in self.scope.split(","):
            key, sep, value = part.strip().partition(":")
            if sep and key == tag and value:
                return value
        return None


class SpanBucket(BaseModel):
    """One group-by bucket of a span aggregation."""

    by: Dict[str, Any] = Field(default_factory=dict, description="Group-by facet values")
    computes: Dict[str, Any] = Field(default_factory=dict, description="Positional compute values c0..cN")
