"""Tests for queries/aggregation.py."""

import pytest

from docbuddy.operations.models import OperationMetrics, compute_error_rate
from docbuddy.queries.aggregation import (
    AggregationSpec,
    Compute,
    create_group_by_http_status,
    create_group_by_resource,
    create_latency_computes,
    create_standard_computes,
    create_statistical_computes,
    extract_compute_value,
    parse_operation_metrics,
    standard_operations_spec,
)


class TestComputeFactories:
    def test_standard_computes_order(self):
        computes = [c.to_dict() for c in create_standard_computes()]

        assert computes == [
            {"aggregation": "count", "type": "total"},
            {"aggregation": "count", "type": "total", "metric": "@error"},
            {"aggregation": "pc50", "type": "total", "metric": "@duration"},
            {"aggregation": "pc95", "type": "total", "metric": "@duration"},
            {"aggregation": "pc99", "type": "total", "metric": "@duration"},
        ]

    def test_latency_computes(self):
        assert [c.aggregation for c in create_latency_computes()] == ["pc50", "pc75", "pc95", "pc99"]

    def test_statistical_computes(self):
        computes = create_statistical_computes("@http.response.size")

        assert [c.aggregation for c in computes] == ["avg", "sum", "min", "max"]
        assert all(c.metric == "@http.response.size" for c in computes)

    def test_group_by_resource(self):
        assert create_group_by_resource().to_dict() == {
            "facet": "resource_name",
            "limit": 100,
            "sort": {"aggregation": "count", "order": "desc", "type": "measure"},
        }

    def test_group_by_http_status_limit(self):
        assert create_group_by_http_status().limit == 20


class TestAggregationSpec:
    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            AggregationSpec.of([("a", Compute("count")), ("a", Compute("count"))])

    def test_reader_maps_positions_to_names(self):
        spec = AggregationSpec.of([("hits", Compute("count")), ("slowest", Compute("max", "@duration"))])

        assert spec.reader().read({"c0": 7, "c1": 900}) == {"hits": 7.0, "slowest": 900.0}

    def test_reader_treats_missing_and_invalid_as_zero(self):
        reader = standard_operations_spec().reader()

        values = reader.read({"c0": "n/a", "c2": None})

        assert values == {"request_count": 0.0, "error_count": 0.0, "p50": 0.0, "p95": 0.0, "p99": 0.0}

    def test_reader_with_no_computes(self):
        assert standard_operations_spec().reader().value(None, "p95") == 0.0

    def test_extract_compute_value(self):
        assert extract_compute_value({"c3": 12.5}, 3) == 12.5
        assert extract_compute_value({"c3": "x"}, 3) == 0.0
        assert extract_compute_value(None, 0) == 0.0


class TestParseOperationMetrics:
    def test_converts_nanoseconds_and_derives_error_rate(self):
        metrics = parse_operation_metrics(
            {"c0": 1000, "c1": 20, "c2": 50_000_000, "c3": 120_000_000, "c4": 200_000_000}
        )

        assert metrics == OperationMetrics(
            request_count=1000,
            error_count=20,
            p50_latency=50.0,
            p95_latency=120.0,
            p99_latency=200.0,
            error_rate=2.0,
        )

    def test_rounds_latency_to_two_decimals(self):
        metrics = parse_operation_metrics({"c0": 3, "c1": 1, "c2": 1_234_567})

        assert metrics.p50_latency == 1.23
        assert metrics.error_rate == 33.33

    def test_zero_requests_has_zero_error_rate(self):
        assert parse_operation_metrics({"c0": 0, "c1": 5}).error_rate == 0.0


def test_compute_error_rate():
    assert compute_error_rate(10, 200) == 5.0
    assert compute_error_rate(3, 0) == 0.0
