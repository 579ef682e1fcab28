"""
Span search query builder.

Fluent construction of backend span/log search strings. Each filter method
appends exactly one clause; clauses are rendered in insertion order and
joined by a single space (implicit AND in the backend grammar).

Values are not validated here; sanitizing free text is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

SpanStatus = Literal["ok", "error"]
SpanKind = Literal["entry", "client", "server", "producer", "consumer"]
SpanType = Literal["web", "db", "cache", "http", "grpc"]

NANOS_PER_MILLI = 1_000_000


def _ms_to_ns(ms: float) -> int:
    return int(round(ms * NANOS_PER_MILLI))


class SpanQueryBuilder:
    """Chainable builder for span search queries."""

    def __init__(self) -> None:
        self._filters: list[str] = []

    def service(self, name: str) -> "SpanQueryBuilder":
        self._filters.append(f"service:{name}")
        return self

    def environment(self, env: str) -> "SpanQueryBuilder":
        """
        Add environment filter.

        Instrumentation is inconsistent about which tag carries the
        environment, so both ``env`` and ``environment`` are matched.
        """
        self._filters.append(f"(env:{env} OR environment:{env})")
        return self

    def operation(self, op: str) -> "SpanQueryBuilder":
        """Add operation/resource name filter (exact match)."""
        self._filters.append(f'resource_name:"{op}"')
        return self

    def status(self, status: SpanStatus) -> "SpanQueryBuilder":
        self._filters.append(f"status:{status}")
        return self

    def span_kind(self, kind: SpanKind) -> "SpanQueryBuilder":
        """
        Add span kind filter.

        - entry: service entry spans (incoming requests)
        - client: outbound calls to other services
        - server: server handling a request
        - producer / consumer: message queue sides
        """
        self._filters.append(f"span.kind:{kind}")
        return self

    def span_type(self, span_type: SpanType) -> "SpanQueryBuilder":
        self._filters.append(f"span.type:{span_type}")
        return self

    def duration_greater_than(self, ms: float) -> "SpanQueryBuilder":
        self._filters.append(f"@duration:>={_ms_to_ns(ms)}")
        return self

    def duration_less_than(self, ms: float) -> "SpanQueryBuilder":
        self._filters.append(f"@duration:<{_ms_to_ns(ms)}")
        return self

    def duration_between(self, min_ms: float, max_ms: float) -> "SpanQueryBuilder":
        self._filters.append(f"@duration:[{_ms_to_ns(min_ms)} TO {_ms_to_ns(max_ms)}]")
        return self

    def error_type(self, error_type: str) -> "SpanQueryBuilder":
        self._filters.append(f'@error.type:"{error_type}"')
        return self

    def error_message(self, message: str) -> "SpanQueryBuilder":
        self._filters.append(f'@error.message:"{message}"')
        return self

    def http_status_code(self, code: int) -> "SpanQueryBuilder":
        self._filters.append(f"@http.status_code:{code}")
        return self

    def http_method(self, method: str) -> "SpanQueryBuilder":
        self._filters.append(f"@http.method:{method.upper()}")
        return self

    def http_url(self, url: str) -> "SpanQueryBuilder":
        self._filters.append(f'@http.url:"{url}"')
        return self

    def peer_service(self, service: str) -> "SpanQueryBuilder":
        """Add peer service filter (downstream service calls)."""
        self._filters.append(f"peer.service:{service}")
        return self

    def custom(self, clause: str) -> "SpanQueryBuilder":
        self._filters.append(clause)
        return self

    def build(self) -> str:
        return " ".join(self._filters)

    def reset(self) -> "SpanQueryBuilder":
        self._filters = []
        return self

    def get_filters(self) -> list[str]:
        """Copy of the accumulated clauses."""
        return list(self._filters)


@dataclass
class QueryOptions:
    """Declarative alternative to chaining builder calls."""

    service: Optional[str] = None
    environment: Optional[str] = None
    operation: Optional[str] = None
    status: Optional[SpanStatus] = None
    span_kind: Optional[SpanKind] = None
    span_type: Optional[SpanType] = None
    min_duration_ms: Optional[float] = None
    max_duration_ms: Optional[float] = None
    http_status_code: Optional[int] = None
    http_method: Optional[str] = None
    error_type: Optional[str] = None
    custom_filters: list[str] = field(default_factory=list)


def apply_options(builder: SpanQueryBuilder, options: QueryOptions) -> SpanQueryBuilder:
    """Append clauses for every option that is set."""
    if options.service:
        builder.service(options.service)
    if options.environment:
        builder.environment(options.environment)
    if options.operation:
        builder.operation(options.operation)
    if options.status:
        builder.status(options.status)
    if options.span_kind:
        builder.span_kind(options.span_kind)
    if options.span_type:
        builder.span_type(options.span_type)

    if options.min_duration_ms is not None and options.max_duration_ms is not None:
        builder.duration_between(options.min_duration_ms, options.max_duration_ms)
    else:
        if options.min_duration_ms is not None:
            builder.duration_greater_than(options.min_duration_ms)
        if options.max_duration_ms is not None:
            builder.duration_less_than(options.max_duration_ms)

    if options.http_status_code is not None:
        builder.http_status_code(options.http_status_code)
    if options.http_method:
        builder.http_method(options.http_method)
    if options.error_type:
        builder.error_type(options.error_type)
    for clause in options.custom_filters:
        builder.custom(clause)
    return builder


def build_query_from_options(options: QueryOptions) -> str:
    return apply_options(SpanQueryBuilder(), options).build()


def build_service_entry_query(service: str, environment: Optional[str] = None) -> str:
    """Service entry spans only: top-level request operations of ``service``."""
    builder = SpanQueryBuilder().service(service).span_kind("entry")
    if environment:
        builder.environment(environment)
    return builder.build()


def build_service_to_service_query(
    caller_service: str,
    callee_service: str,
    environment: Optional[str] = None,
) -> str:
    builder = SpanQueryBuilder().service(caller_service).span_kind("client").peer_service(callee_service)
    if environment:
        builder.environment(environment)
    return builder.build()


def build_error_query(service: str, environment: Optional[str] = None) -> str:
    builder = SpanQueryBuilder().service(service).status("error")
    if environment:
        builder.environment(environment)
    return builder.build()
