"""Adaptive metric discovery: catalog probing, fallback search and classification."""

from docbuddy.discovery.catalog import FRAMEWORK_PATTERNS, catalog_metric_names
from docbuddy.discovery.classifier import MetricClassifier
from docbuddy.discovery.engine import MetricDiscovery, discovery_cache_key
from docbuddy.discovery.fallback import FallbackSearch
from docbuddy.discovery.models import (
    DiscoveredMetrics,
    MetricPatternGroup,
    MetricRole,
    RoleMetrics,
)
from docbuddy.discovery.prober import CandidateProber

__all__ = [
    "FRAMEWORK_PATTERNS",
    "catalog_metric_names",
    "MetricClassifier",
    "MetricDiscovery",
    "discovery_cache_key",
    "FallbackSearch",
    "DiscoveredMetrics",
    "MetricPatternGroup",
    "MetricRole",
    "RoleMetrics",
    "CandidateProber",
]
