"""
Metric classifier for role and traffic-direction detection.

Groups discovered metric names by base pattern, labels each group as
server-side (incoming) or client-side (outgoing) traffic, and assigns
latency/throughput/error roles by suffix.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from .catalog import CLIENT_MARKERS, SERVER_MARKERS
from .models import DiscoveredMetrics, MetricPatternGroup, MetricRole, RoleMetrics

logger = logging.getLogger(__name__)


class MetricClassifier:
    """Classifies metric names using suffix and marker patterns."""

    # Role patterns, in priority order: the first pattern with a match wins
    ROLE_PATTERNS = {
        MetricRole.LATENCY: [
            re.compile(r"\.duration$"),
            re.compile(r"\.latency$"),
            re.compile(r"\.response_time$"),
            re.compile(r"\.time$"),
        ],
        MetricRole.THROUGHPUT: [
            re.compile(r"\.hits$"),
            re.compile(r"\.requests$"),
            re.compile(r"\.count$"),
            re.compile(r"\.calls$"),
        ],
        MetricRole.ERRORS: [
            re.compile(r"\.errors$"),
            re.compile(r"\.error_count$"),
            re.compile(r"\.exceptions$"),
            re.compile(r"\.failures$"),
        ],
    }

    def role_of(self, metric_name: str) -> Optional[MetricRole]:
        """Role implied by a single metric name's suffix, if any."""
        for role, patterns in self.ROLE_PATTERNS.items():
            if any(p.search(metric_name) for p in patterns):
                return role
        return None

    def categorize(self, metric_names: Sequence[str]) -> RoleMetrics:
        """
        Pick one metric per role from a group.

        For each role the pattern list is walked in priority order and the
        first metric matching the earliest pattern wins. Roles with no
        match stay unset.
        """
        selected: Dict[str, str] = {}
        for role, patterns in self.ROLE_PATTERNS.items():
            for pattern in patterns:
                match = next((m for m in metric_names if pattern.search(m)), None)
                if match:
                    selected[role.value] = match
                    break
        return RoleMetrics(**selected)

    @staticmethod
    def base_pattern(metric_name: str) -> str:
        """Everything before the last dot (the whole name if there is none)."""
        head, sep, _ = metric_name.rpartition(".")
        return head if sep else metric_name

    def group_by_pattern(self, metric_names: Sequence[str]) -> Dict[str, List[str]]:
        """Group names by base pattern, preserving discovery order."""
        groups: Dict[str, List[str]] = {}
        for metric in metric_names:
            groups.setdefault(self.base_pattern(metric), []).append(metric)
        return groups

    @staticmethod
    def is_server_side(pattern: str) -> bool:
        """
        Whether a pattern measures incoming requests TO the service.

        Client markers win over server markers, and anything matching
        neither is treated as not server-side.
        """
        if any(marker in pattern for marker in CLIENT_MARKERS):
            return False
        if any(marker in pattern for marker in SERVER_MARKERS):
            return True
        return False

    def classify(
        self,
        service: str,
        metric_names: Sequence[str],
        *,
        environment: Optional[str] = None,
        source: str = "catalog",
    ) -> DiscoveredMetrics:
        """Build the discovery result for a set of working metric names."""
        grouped = self.group_by_pattern(metric_names)
        groups = [
            MetricPatternGroup(
                base_pattern=pattern,
                metrics=metrics,
                is_server_side=self.is_server_side(pattern),
            )
            for pattern, metrics in grouped.items()
        ]

        primary_group: Optional[MetricPatternGroup] = None
        for group in groups:
            if not group.is_server_side:
                continue
            # Strictly larger only, so ties keep the earliest discovered group
            if primary_group is None or len(group.metrics) > len(primary_group.metrics):
                primary_group = group

        alternate = {
            group.base_pattern: self.categorize(group.metrics)
            for group in groups
            if group is not primary_group
        }

        for group in groups:
            logger.debug(
                f"Pattern {group.base_pattern} "
                f"({'server' if group.is_server_side else 'client'}): {', '.join(group.metrics)}"
            )

        return DiscoveredMetrics(
            service=service,
            environment=environment,
            primary=self.categorize(primary_group.metrics) if primary_group else RoleMetrics(),
            primary_pattern=primary_group.base_pattern if primary_group else None,
            alternate=alternate,
            groups=groups,
            discovered=list(metric_names),
            source=source,
        )
