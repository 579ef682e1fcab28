from docbuddy.clients.base import (
    BaseHTTPClient,
    LogSearchClient,
    MetricCatalogClient,
    MonitorClient,
    SpanAggregationClient,
    SpanSearchClient,
    TimeSeriesClient,
)
from docbuddy.clients.datadog import DatadogClient
from docbuddy.clients.models import MetricSeries, SpanBucket

__all__ = [
    "BaseHTTPClient",
    "DatadogClient",
    "LogSearchClient",
    "MetricCatalogClient",
    "MetricSeries",
    "MonitorClient",
    "SpanAggregationClient",
    "SpanBucket",
    "SpanSearchClient",
    "TimeSeriesClient",
]
