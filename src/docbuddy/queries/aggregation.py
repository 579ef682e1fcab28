"""
Span aggregation descriptors.

Factories for the ``compute`` and ``group_by`` descriptors sent with span
aggregation queries, and a reader that maps the backend's positional
results (``c0``, ``c1``, ...) back to named fields.

The backend only returns computed values by position, so the order used to
build a query is the only way to interpret its result. ``AggregationSpec``
keeps names and computes together so both sides share one declaration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from docbuddy.operations.models import OperationMetrics

DURATION_FACET = "@duration"
ERROR_FACET = "@error"


@dataclass(frozen=True)
class Compute:
    """One statistical compute over the matched spans."""

    aggregation: str
    metric: Optional[str] = None
    type: str = "total"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"aggregation": self.aggregation, "type": self.type}
        if self.metric is not None:
            payload["metric"] = self.metric
        return payload


@dataclass(frozen=True)
class GroupBySort:
    aggregation: str = "count"
    order: str = "desc"
    type: str = "measure"

    def to_dict(self) -> dict[str, Any]:
        return {"aggregation": self.aggregation, "order": self.order, "type": self.type}


@dataclass(frozen=True)
class GroupBy:
    """Bucket results by a facet, keeping the top ``limit`` buckets."""

    facet: str
    limit: int = 100
    sort: GroupBySort = field(default_factory=GroupBySort)

    def to_dict(self) -> dict[str, Any]:
        return {"facet": self.facet, "limit": self.limit, "sort": self.sort.to_dict()}


# === Compute factories ===


def create_count_compute() -> Compute:
    return Compute("count")


def create_error_count_compute() -> Compute:
    return Compute("count", ERROR_FACET)


def create_cardinality_compute(metric: str) -> Compute:
    """Unique count of ``metric``."""
    return Compute("cardinality", metric)


def create_latency_computes(metric: str = DURATION_FACET) -> list[Compute]:
    return [Compute(pc, metric) for pc in ("pc50", "pc75", "pc95", "pc99")]


def create_error_computes() -> list[Compute]:
    return [create_count_compute(), create_error_count_compute()]


def create_standard_computes() -> list[Compute]:
    """Request count, error count, p50/p95/p99 latency - in that order."""
    return [
        create_count_compute(),
        create_error_count_compute(),
        Compute("pc50", DURATION_FACET),
        Compute("pc95", DURATION_FACET),
        Compute("pc99", DURATION_FACET),
    ]


def create_statistical_computes(metric: str) -> list[Compute]:
    return [Compute(agg, metric) for agg in ("avg", "sum", "min", "max")]


# === Group-by factories ===


def create_custom_group_by(facet: str, limit: int = 100, sort_by: str = "count") -> GroupBy:
    return GroupBy(facet=facet, limit=limit, sort=GroupBySort(aggregation=sort_by))


def create_group_by_resource(limit: int = 100) -> GroupBy:
    """Operations/endpoints."""
    return create_custom_group_by("resource_name", limit)


def create_group_by_service(limit: int = 50) -> GroupBy:
    return create_custom_group_by("service", limit)


def create_group_by_operation(limit: int = 100) -> GroupBy:
    return create_custom_group_by("operation_name", limit)


def create_group_by_peer_service(limit: int = 50) -> GroupBy:
    """Downstream dependencies."""
    return create_custom_group_by("peer.service", limit)


def create_group_by_error_type(limit: int = 20) -> GroupBy:
    return create_custom_group_by("@error.type", limit)


def create_group_by_http_status(limit: int = 20) -> GroupBy:
    return create_custom_group_by("@http.status_code", limit)


# === Named specs ===


@dataclass(frozen=True)
class AggregationSpec:
    """Ordered, named computes plus group-bys for one aggregation query."""

    fields: tuple[tuple[str, Compute], ...]
    group_by: tuple[GroupBy, ...] = ()

    @classmethod
    def of(cls, named: Iterable[tuple[str, Compute]], group_by: Iterable[GroupBy] = ()) -> "AggregationSpec":
        fields = tuple(named)
        names = [name for name, _ in fields]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate compute names: {names}")
        return cls(fields=fields, group_by=tuple(group_by))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.fields]

    @property
    def computes(self) -> list[Compute]:
        return [compute for _, compute in self.fields]

    def reader(self) -> "AggregationResultReader":
        return AggregationResultReader(self)


STANDARD_FIELD_NAMES = ("request_count", "error_count", "p50", "p95", "p99")


def standard_operations_spec(limit: int = 100) -> AggregationSpec:
    """Per-operation request/error counts and latency percentiles."""
    return AggregationSpec.of(
        zip(STANDARD_FIELD_NAMES, create_standard_computes()),
        [create_group_by_resource(limit)],
    )


class AggregationResultReader:
    """Resolves positional ``cN`` compute values to the names declared in a spec."""

    def __init__(self, spec: AggregationSpec) -> None:
        self._index = {name: i for i, name in enumerate(spec.names)}

    def value(self, computes: Optional[Mapping[str, Any]], name: str) -> float:
        """Named compute value; missing or non-numeric values read as 0."""
        position = self._index[name]
        if not computes:
            return 0.0
        raw = computes.get(f"c{position}")
        try:
            return float(raw) if raw is not None else 0.0
        except (TypeError, ValueError):
            return 0.0

    def read(self, computes: Optional[Mapping[str, Any]]) -> dict[str, float]:
        return {name: self.value(computes, name) for name in self._index}


def extract_compute_value(computes: Optional[Mapping[str, Any]], index: int) -> float:
    """Raw positional access, for callers without a spec."""
    if not computes:
        return 0.0
    raw = computes.get(f"c{index}")
    return float(raw) if isinstance(raw, (int, float)) else 0.0


def parse_operation_metrics(
    computes: Optional[Mapping[str, Any]],
    spec: Optional[AggregationSpec] = None,
) -> OperationMetrics:
    """Parse a standard-spec bucket; latencies are converted from ns to ms."""
    values = (spec or standard_operations_spec()).reader().read(computes)
    return OperationMetrics.from_counts(
        request_count=int(values["request_count"]),
        error_count=int(values["error_count"]),
        p50_latency=values["p50"] / 1_000_000,
        p95_latency=values["p95"] / 1_000_000,
        p99_latency=values["p99"] / 1_000_000,
    )
