"""
Datadog API client.

Implements the time-series, metric-catalog, span-aggregation, span-search,
log-search and monitor collaborators over the Datadog HTTP API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

import structlog

from docbuddy.clients.base import BaseHTTPClient
from docbuddy.clients.models import MetricSeries, SpanBucket
from docbuddy.config import Settings
from docbuddy.core.errors import BackendError, ConfigurationError, DocBuddyError
from docbuddy.queries.aggregation import Compute, GroupBy
from docbuddy.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES

logger = structlog.get_logger()

DEFAULT_BASE_URL = "https://api.datadoghq.com"


def _iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


class DatadogClient(BaseHTTPClient):
    """Datadog API client with retry logic."""

    def __init__(
        self,
        api_key: str,
        app_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_base_delay=retry_base_delay,
        )
        self._api_key = api_key
        self._app_key = app_key

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatadogClient":
        if not settings.dd_api_key or not settings.dd_app_key:
            raise ConfigurationError(
                "No Datadog authentication available. "
                "Set DOCBUDDY_DD_API_KEY and DOCBUDDY_DD_APP_KEY."
            )
        return cls(
            settings.dd_api_key,
            settings.dd_app_key,
            base_url=settings.dd_api_url,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            retry_base_delay=settings.http_retry_base_delay,
        )

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["DD-API-KEY"] = self._api_key
        headers["DD-APPLICATION-KEY"] = self._app_key
        return headers

    async def query_metrics(self, query: str, from_ms: int, to_ms: int) -> list[MetricSeries]:
        """Query timeseries metrics (v1 query API takes seconds)."""
        data = await self.get(
            "/api/v1/query",
            params={"from": from_ms // 1000, "to": to_ms // 1000, "query": query},
        )
        return [MetricSeries.model_validate(s) for s in data.get("series") or []]

    async def list_metrics(self, name_pattern: str) -> list[str]:
        """Search metric names, e.g. ``trace.*``."""
        data = await self.get("/api/v1/search", params={"q": f"metrics:{name_pattern}"})
        results = (data.get("results") or {}) if isinstance(data, dict) else None
        metrics = (results.get("metrics") or []) if isinstance(results, dict) else None
        if not isinstance(metrics, list):
            raise BackendError(
                "Unexpected metric search response",
                {"pattern": name_pattern, "response_type": type(data).__name__},
            )
        return [name for name in metrics if isinstance(name, str)]

    async def aggregate_spans(
        self,
        query: str,
        from_ms: int,
        to_ms: int,
        compute: Sequence[Compute],
        group_by: Sequence[GroupBy],
    ) -> list[SpanBucket]:
        body = {
            "data": {
                "type": "aggregate_request",
                "attributes": {
                    "filter": {"query": query, "from": _iso(from_ms), "to": _iso(to_ms)},
                    "compute": [c.to_dict() for c in compute],
                    "group_by": [g.to_dict() for g in group_by],
                },
            }
        }
        data = await self.post("/api/v2/spans/analytics/aggregate", json=body)
        payload = data.get("data") or {}
        # The endpoint has returned both {"data": {"buckets": [...]}} and {"data": [...]}
        buckets = payload.get("buckets") if isinstance(payload, dict) else payload
        return [SpanBucket.model_validate(_bucket_attributes(b)) for b in buckets or []]

    async def list_spans(
        self,
        query: str,
        from_ms: int,
        to_ms: int,
        sort: str = "-timestamp",
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        body = {
            "data": {
                "type": "search_request",
                "attributes": {
                    "filter": {"query": query, "from": _iso(from_ms), "to": _iso(to_ms)},
                    "sort": sort,
                    "page": {"limit": limit},
                },
            }
        }
        data = await self.post("/api/v2/spans/events/search", json=body)
        return list(data.get("data") or [])

    async def search_logs(
        self, query: str, from_ms: int, to_ms: int, limit: int = 100
    ) -> list[dict[str, Any]]:
        body = {
            "filter": {"query": query, "from": _iso(from_ms), "to": _iso(to_ms)},
            "page": {"limit": limit},
            "sort": "timestamp",
        }
        data = await self.post("/api/v2/logs/events/search", json=body)
        return list(data.get("data") or [])

    async def list_monitors(
        self,
        *,
        tags: Sequence[str] | None = None,
        monitor_tags: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if tags:
            params["tags"] = ",".join(tags)
        if monitor_tags:
            params["monitor_tags"] = ",".join(monitor_tags)
        data = await self.get("/api/v1/monitor", params=params or None)
        return list(data) if isinstance(data, list) else []

    async def validate(self) -> bool:
        """Test connection and credentials."""
        try:
            data = await self.get("/api/v1/validate")
        except DocBuddyError as exc:
            logger.error("datadog_connection_failed", error=str(exc))
            return False
        return bool(data.get("valid"))


def _bucket_attributes(bucket: dict[str, Any]) -> dict[str, Any]:
    # List-shaped responses wrap each bucket in {"type": ..., "attributes": {...}}
    if "attributes" in bucket and "computes" not in bucket:
        return bucket["attributes"]
    return bucket
