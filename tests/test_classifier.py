"""Tests for discovery/classifier.py.

Role assignment by suffix, grouping by base pattern and server/client
classification of pattern groups.
"""

import pytest

from docbuddy.discovery.catalog import CLIENT_MARKERS, FRAMEWORK_PATTERNS, catalog_metric_names
from docbuddy.discovery.classifier import MetricClassifier
from docbuddy.discovery.models import MetricRole, RoleMetrics


@pytest.fixture
def classifier():
    return MetricClassifier()


class TestRoles:
    @pytest.mark.parametrize("suffix", ["duration", "latency", "response_time", "time"])
    def test_latency_suffixes(self, classifier, suffix):
        assert classifier.role_of(f"trace.custom.request.{suffix}") == MetricRole.LATENCY

    @pytest.mark.parametrize("suffix", ["hits", "requests", "count", "calls"])
    def test_throughput_suffixes(self, classifier, suffix):
        assert classifier.role_of(f"trace.custom.request.{suffix}") == MetricRole.THROUGHPUT

    @pytest.mark.parametrize("suffix", ["errors", "error_count", "exceptions", "failures"])
    def test_error_suffixes(self, classifier, suffix):
        assert classifier.role_of(f"trace.custom.request.{suffix}") == MetricRole.ERRORS

    def test_unknown_suffix(self, classifier):
        assert classifier.role_of("trace.custom.request.apdex") is None

    def test_categorize_standard_group(self, classifier):
        roles = classifier.categorize(
            ["trace.servlet.request.duration", "trace.servlet.request.hits", "trace.servlet.request.errors"]
        )

        assert roles == RoleMetrics(
            latency="trace.servlet.request.duration",
            throughput="trace.servlet.request.hits",
            errors="trace.servlet.request.errors",
        )

    def test_categorize_prefers_earlier_suffix(self, classifier):
        roles = classifier.categorize(["svc.request.time", "svc.request.latency", "svc.request.duration"])

        assert roles.latency == "svc.request.duration"

    def test_error_only_group(self, classifier):
        roles = classifier.categorize(["trace.servlet.request.errors"])

        assert roles.errors == "trace.servlet.request.errors"
        assert not roles.has_traffic_metrics
        assert not roles.is_empty


class TestGrouping:
    def test_base_pattern(self, classifier):
        assert classifier.base_pattern("trace.netty.request.hits") == "trace.netty.request"

    def test_name_without_dot_is_its_own_group(self, classifier):
        groups = classifier.group_by_pattern(["requests", "trace.a.hits", "trace.a.errors"])

        assert groups == {"requests": ["requests"], "trace.a": ["trace.a.hits", "trace.a.errors"]}

    def test_every_name_lands_in_exactly_one_group(self, classifier):
        names = catalog_metric_names()
        groups = classifier.group_by_pattern(names)

        assert sorted(n for members in groups.values() for n in members) == sorted(names)


class TestServerSide:
    @pytest.mark.parametrize(
        "pattern",
        [
            "trace.servlet.request",
            "trace.netty.request",
            "trace.spring.handler",
            "trace.graphql.request",
            "trace.vertx.http.server",
            "trace.akka.http.server",
            "custom.server",
        ],
    )
    def test_server_patterns(self, pattern):
        assert MetricClassifier.is_server_side(pattern)

    @pytest.mark.parametrize("marker", CLIENT_MARKERS)
    def test_client_marker_wins_over_server_marker(self, marker):
        assert not MetricClassifier.is_server_side(f"trace.servlet{marker}.server")

    def test_unmatched_pattern_is_not_server_side(self):
        assert not MetricClassifier.is_server_side("trace.kafka.consume")

    def test_catalog_client_patterns(self):
        client = {p.base for p in FRAMEWORK_PATTERNS if not MetricClassifier.is_server_side(p.base)}

        assert {"trace.netty.client.request", "trace.play_ws.request"} <= client


class TestClassify:
    def test_primary_is_largest_server_group(self, classifier):
        names = [
            "trace.netty.client.request.duration",
            "trace.netty.client.request.hits",
            "trace.netty.client.request.errors",
            "trace.spring.handler.duration",
            "trace.netty.request.duration",
            "trace.netty.request.hits",
        ]

        result = classifier.classify("checkout", names, environment="prod")

        assert result.primary_pattern == "trace.netty.request"
        assert result.primary.latency == "trace.netty.request.duration"
        assert result.primary.throughput == "trace.netty.request.hits"
        assert set(result.alternate) == {"trace.netty.client.request", "trace.spring.handler"}
        assert set(result.client_side_alternates()) == {"trace.netty.client.request"}
        assert set(result.server_side_alternates()) == {"trace.spring.handler"}
        assert result.environment == "prod"

    def test_tie_resolves_to_first_discovered(self, classifier):
        names = [
            "trace.servlet.request.duration",
            "trace.servlet.request.hits",
            "trace.graphql.request.duration",
            "trace.graphql.request.hits",
        ]

        result = classifier.classify("checkout", names)

        assert result.primary_pattern == "trace.servlet.request"

    def test_client_only_discovery_has_empty_primary(self, classifier):
        names = ["trace.play_ws.request.duration", "trace.play_ws.request.hits"]

        result = classifier.classify("checkout", names, source="fallback")

        assert result.primary_pattern is None
        assert result.primary.is_empty
        assert "trace.play_ws.request" in result.alternate
        assert result.source == "fallback"
        assert result.discovered == names
