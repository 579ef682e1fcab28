"""Root test configuration."""

import logging
from typing import Any

import pytest
import pytest_asyncio
import structlog

from docbuddy.clients.models import MetricSeries, SpanBucket
from docbuddy.config import Settings
from docbuddy.context import AppContext


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def metric_name_of(query: str) -> str:
    """``avg:trace.x.duration{service:a} by {tag}`` -> ``trace.x.duration``."""
    return query.split("{", 1)[0].split(":")[-1]


def series(*points, scope: str = "service:checkout") -> MetricSeries:
    return MetricSeries(scope=scope, pointlist=list(points))


class FakeBackend:
    """In-memory stand-in for every backend collaborator."""

    def __init__(self) -> None:
        # metric name -> series list, or an exception to raise
        self.metrics: dict[str, Any] = {}
        self.catalog: list[str] = []
        self.catalog_error: Exception | None = None
        self.buckets: list[SpanBucket] = []
        self.spans: list[dict[str, Any]] = []
        self.logs: list[dict[str, Any]] = []
        self.monitors: list[dict[str, Any]] = []

        self.metric_queries: list[str] = []
        self.catalog_calls: list[str] = []
        self.aggregate_calls: list[dict[str, Any]] = []
        self.span_calls: list[dict[str, Any]] = []
        self.log_calls: list[dict[str, Any]] = []
        self.monitor_calls: list[dict[str, Any]] = []

    async def query_metrics(self, query: str, from_ms: int, to_ms: int) -> list[MetricSeries]:
        self.metric_queries.append(query)
        response = self.metrics.get(metric_name_of(query), [])
        if isinstance(response, Exception):
            raise response
        return response

    async def list_metrics(self, name_pattern: str) -> list[str]:
        self.catalog_calls.append(name_pattern)
        if self.catalog_error is not None:
            raise self.catalog_error
        return list(self.catalog)

    async def aggregate_spans(self, query, from_ms, to_ms, compute, group_by) -> list[SpanBucket]:
        self.aggregate_calls.append({"query": query, "compute": list(compute), "group_by": list(group_by)})
        return list(self.buckets)

    async def list_spans(self, query, from_ms, to_ms, sort="-timestamp", limit=20):
        self.span_calls.append({"query": query, "sort": sort, "limit": limit})
        return list(self.spans)

    async def search_logs(self, query, from_ms, to_ms, limit=100):
        self.log_calls.append({"query": query, "limit": limit})
        return list(self.logs)

    async def list_monitors(self, *, tags=None, monitor_tags=None):
        self.monitor_calls.append({"tags": tags, "monitor_tags": monitor_tags})
        return list(self.monitors)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, dd_api_key="api-key", dd_app_key="app-key")


@pytest_asyncio.fixture
async def ctx(settings, backend):
    context = AppContext(settings, backend)
    yield context
    await context.aclose()


@pytest.fixture
def servlet_backend(backend) -> FakeBackend:
    """Backend where the checkout service reports servlet request metrics."""
    for suffix in ("duration", "hits", "errors"):
        backend.metrics[f"trace.servlet.request.{suffix}"] = [series((1700000000, 1.0))]
    return backend
