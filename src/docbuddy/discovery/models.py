"""
Data models for metric discovery.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MetricRole(str, Enum):
    """Semantic role of a metric within a pattern group."""

    LATENCY = "latency"
    THROUGHPUT = "throughput"
    ERRORS = "errors"


class RoleMetrics(BaseModel):
    """Role-to-metric-name mapping for one pattern group."""

    model_config = ConfigDict(frozen=True)

    latency: Optional[str] = Field(None, description="Latency metric, e.g. trace.servlet.request.duration")
    throughput: Optional[str] = Field(None, description="Throughput metric, e.g. trace.servlet.request.hits")
    errors: Optional[str] = Field(None, description="Error metric, e.g. trace.servlet.request.errors")

    def get(self, role: MetricRole) -> Optional[str]:
        return getattr(self, role.value)

    @property
    def is_empty(self) -> bool:
        return not (self.latency or self.throughput or self.errors)

    @property
    def has_traffic_metrics(self) -> bool:
        """True when latency or throughput is available (error-only groups are not)."""
        return bool(self.latency or self.throughput)


class MetricPatternGroup(BaseModel):
    """Discovered metrics sharing a base pattern (name minus its last segment)."""

    model_config = ConfigDict(frozen=True)

    base_pattern: str = Field(..., description="e.g. trace.netty.request")
    metrics: List[str] = Field(default_factory=list, description="Full metric names in this group")
    is_server_side: bool = Field(False, description="Incoming traffic to the service")


class DiscoveredMetrics(BaseModel):
    """Result of metric discovery for a (service, environment)."""

    model_config = ConfigDict(frozen=True)

    service: str = Field(..., description="Service name")
    environment: Optional[str] = Field(None, description="Environment filter used, if any")
    primary: RoleMetrics = Field(
        default_factory=RoleMetrics,
        description="Roles of the largest server-side group (incoming requests)",
    )
    primary_pattern: Optional[str] = Field(None, description="Base pattern of the primary group")
    alternate: Dict[str, RoleMetrics] = Field(
        default_factory=dict,
        description="Roles per other group: alternate server frameworks and client-side (outbound) groups",
    )
    groups: List[MetricPatternGroup] = Field(default_factory=list)
    discovered: List[str] = Field(default_factory=list, description="All working metric names")
    source: str = Field("catalog", description="catalog or fallback")

    def server_side_alternates(self) -> Dict[str, RoleMetrics]:
        server = {g.base_pattern for g in self.groups if g.is_server_side}
        return {p: roles for p, roles in self.alternate.items() if p in server}

    def client_side_alternates(self) -> Dict[str, RoleMetrics]:
        """Outbound dependency traffic (calls FROM the service)."""
        server = {g.base_pattern for g in self.groups if g.is_server_side}
        return {p: roles for p, roles in self.alternate.items() if p not in server}
