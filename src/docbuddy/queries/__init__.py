"""Query construction: span search strings, aggregation specs and metric queries."""

from docbuddy.queries.aggregation import (
    AggregationResultReader,
    AggregationSpec,
    Compute,
    GroupBy,
    GroupBySort,
    parse_operation_metrics,
    standard_operations_spec,
)
from docbuddy.queries.builder import (
    QueryOptions,
    SpanQueryBuilder,
    build_error_query,
    build_query_from_options,
    build_service_entry_query,
    build_service_to_service_query,
)
from docbuddy.queries.metrics import build_metric_query

__all__ = [
    "AggregationResultReader",
    "AggregationSpec",
    "Compute",
    "GroupBy",
    "GroupBySort",
    "parse_operation_metrics",
    "standard_operations_spec",
    "QueryOptions",
    "SpanQueryBuilder",
    "build_error_query",
    "build_query_from_options",
    "build_service_entry_query",
    "build_service_to_service_query",
    "build_metric_query",
]
