from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence

import httpx
import structlog

from docbuddy.clients.models import MetricSeries, SpanBucket
from docbuddy.core.errors import BackendError, TransientBackendError
from docbuddy.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES, with_retry

if TYPE_CHECKING:
    from docbuddy.queries.aggregation import Compute, GroupBy

logger = structlog.get_logger()


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 500, 502, 503, 504)


class TimeSeriesClient(Protocol):
    """Pre-aggregated metric queries."""

    async def query_metrics(self, query: str, from_ms: int, to_ms: int) -> list[MetricSeries]:
        ...


class MetricCatalogClient(Protocol):
    """Wildcard metric name search."""

    async def list_metrics(self, name_pattern: str) -> list[str]:
        ...


class SpanAggregationClient(Protocol):
    """On-demand span aggregation."""

    async def aggregate_spans(
        self,
        query: str,
        from_ms: int,
        to_ms: int,
        compute: Sequence[Compute],
        group_by: Sequence[GroupBy],
    ) -> list[SpanBucket]:
        ...


class SpanSearchClient(Protocol):
    """Raw span search."""

    async def list_spans(
        self,
        query: str,
        from_ms: int,
        to_ms: int,
        sort: str,
        limit: int,
    ) -> list[dict[str, Any]]:
        ...


class LogSearchClient(Protocol):
    async def search_logs(
        self, query: str, from_ms: int, to_ms: int, limit: int = 100
    ) -> list[dict[str, Any]]:
        ...


class MonitorClient(Protocol):
    async def list_monitors(
        self,
        *,
        tags: Sequence[str] | None = None,
        monitor_tags: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        ...


class BaseHTTPClient:
    """Base HTTP client; every request is wrapped in bounded exponential-backoff retry."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    def _headers(self) -> dict[str, str]:
        """Override to provide custom headers."""
        return {"Content-Type": "application/json", "Accept": "application/json"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute HTTP request with retry."""

        async def _call() -> Any:
            return await self._send(method, path, params=params, json=json, headers=headers)

        return await with_retry(
            _call,
            self._max_retries,
            self._retry_base_delay,
            operation=f"{method} {path}",
        )

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Single HTTP attempt, translating failures into backend errors."""
        url = f"{self._base_url}{path}"
        req_headers = self._headers()
        if headers:
            req_headers.update(headers)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=req_headers,
                )

                if is_retryable_status(response.status_code):
                    logger.warning(
                        "http_retryable_error",
                        status=response.status_code,
                        method=method,
                        url=url,
                    )
                    raise TransientBackendError(
                        f"HTTP {response.status_code}: {response.text}",
                        status_code=response.status_code,
                    )

                response.raise_for_status()
                return response.json() if response.content else {}

        except httpx.HTTPStatusError as exc:
            logger.error(
                "http_permanent_error",
                status=exc.response.status_code,
                method=method,
                url=url,
                error=str(exc),
            )
            raise BackendError(str(exc), status_code=exc.response.status_code) from exc
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            logger.warning("http_network_error", method=method, url=url, error=str(exc))
            raise TransientBackendError(str(exc)) from exc

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute GET request."""
        return await self._request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute POST request."""
        return await self._request("POST", path, json=json, headers=headers)
