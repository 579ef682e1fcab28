import json

import pytest
import respx
from httpx import ConnectError, Response

from docbuddy.clients.datadog import DatadogClient
from docbuddy.config import Settings
from docbuddy.core.errors import BackendError, ConfigurationError, TransientBackendError
from docbuddy.discovery import CandidateProber, FallbackSearch
from docbuddy.queries.aggregation import create_group_by_resource, create_standard_computes

BASE = "https://api.datadoghq.com"


@pytest.fixture
def client():
    return DatadogClient("api-key", "app-key", max_retries=2, retry_base_delay=0)


@pytest.mark.asyncio
async def test_query_metrics(client):
    with respx.mock:
        route = respx.get(f"{BASE}/api/v1/query").mock(
            return_value=Response(
                200,
                json={
                    "series": [
                        {
                            "scope": "service:checkout,resource_name:GET /cart",
                            "metric": "trace.servlet.request.duration",
                            "pointlist": [[1700000000, 0.12], [1700000060, None]],
                        }
                    ]
                },
            )
        )

        series = await client.query_metrics("avg:trace.servlet.request.duration{service:checkout}", 1_700_000_000_000, 1_700_003_600_000)

        request = route.calls.last.request
        assert request.url.params["from"] == "1700000000"
        assert request.url.params["to"] == "1700003600"
        assert request.headers["DD-API-KEY"] == "api-key"
        assert request.headers["DD-APPLICATION-KEY"] == "app-key"
        assert series[0].tag_value("resource_name") == "GET /cart"
        assert series[0].latest_value() is None
        assert series[0].has_points


@pytest.mark.asyncio
async def test_query_metrics_without_series(client):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/query").mock(return_value=Response(200, json={"series": []}))

        assert await client.query_metrics("avg:x{service:a}", 0, 1000) == []


@pytest.mark.asyncio
async def test_list_metrics(client):
    with respx.mock:
        route = respx.get(f"{BASE}/api/v1/search").mock(
            return_value=Response(200, json={"results": {"metrics": ["trace.a.hits", "trace.b.duration"]}})
        )

        names = await client.list_metrics("trace.*")

        assert names == ["trace.a.hits", "trace.b.duration"]
        assert route.calls.last.request.url.params["q"] == "metrics:trace.*"


@pytest.mark.asyncio
async def test_list_metrics_empty_results(client):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/search").mock(return_value=Response(200, json={"results": {}}))

        assert await client.list_metrics("trace.*") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [["trace.a.hits"], {"results": ["trace.a.hits"]}, {"results": {"metrics": "trace.a.hits"}}],
)
async def test_list_metrics_malformed_response(client, payload):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/search").mock(return_value=Response(200, json=payload))

        with pytest.raises(BackendError):
            await client.list_metrics("trace.*")


@pytest.mark.asyncio
async def test_fallback_search_survives_malformed_listing(client):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/search").mock(return_value=Response(200, json=["trace.a.hits"]))

        found = await FallbackSearch(client, CandidateProber(client)).search("checkout")

        assert found == []
        assert respx.calls.call_count == 1


@pytest.mark.asyncio
async def test_aggregate_spans(client):
    with respx.mock:
        route = respx.post(f"{BASE}/api/v2/spans/analytics/aggregate").mock(
            return_value=Response(
                200,
                json={"data": {"buckets": [{"by": {"resource_name": "GET /cart"}, "computes": {"c0": 1000}}]}},
            )
        )

        buckets = await client.aggregate_spans(
            "service:checkout span.kind:entry",
            1_700_000_000_000,
            1_700_003_600_000,
            create_standard_computes(),
            [create_group_by_resource()],
        )

        body = json.loads(route.calls.last.request.content)
        attributes = body["data"]["attributes"]
        assert body["data"]["type"] == "aggregate_request"
        assert attributes["filter"]["query"] == "service:checkout span.kind:entry"
        assert attributes["filter"]["from"].startswith("2023-11-14T22:13:20")
        assert len(attributes["compute"]) == 5
        assert attributes["group_by"][0]["facet"] == "resource_name"
        assert buckets[0].by == {"resource_name": "GET /cart"}
        assert buckets[0].computes == {"c0": 1000}


@pytest.mark.asyncio
async def test_aggregate_spans_list_shaped_response(client):
    with respx.mock:
        respx.post(f"{BASE}/api/v2/spans/analytics/aggregate").mock(
            return_value=Response(
                200,
                json={
                    "data": [
                        {
                            "type": "bucket",
                            "attributes": {"by": {"resource_name": "GET /"}, "computes": {"c0": 3}},
                        }
                    ]
                },
            )
        )

        buckets = await client.aggregate_spans("service:a", 0, 1000, [], [])

        assert buckets[0].by == {"resource_name": "GET /"}


@pytest.mark.asyncio
async def test_list_spans(client):
    with respx.mock:
        route = respx.post(f"{BASE}/api/v2/spans/events/search").mock(
            return_value=Response(200, json={"data": [{"id": "span-1"}]})
        )

        spans = await client.list_spans("service:a", 0, 1000, sort="-duration", limit=5)

        body = json.loads(route.calls.last.request.content)
        assert body["data"]["attributes"]["sort"] == "-duration"
        assert body["data"]["attributes"]["page"] == {"limit": 5}
        assert spans == [{"id": "span-1"}]


@pytest.mark.asyncio
async def test_search_logs(client):
    with respx.mock:
        route = respx.post(f"{BASE}/api/v2/logs/events/search").mock(
            return_value=Response(200, json={"data": [{"attributes": {"message": "hi"}}]})
        )

        logs = await client.search_logs("service:a status:error", 0, 1000, limit=10)

        body = json.loads(route.calls.last.request.content)
        assert body["filter"]["query"] == "service:a status:error"
        assert body["page"] == {"limit": 10}
        assert logs[0]["attributes"]["message"] == "hi"


@pytest.mark.asyncio
async def test_list_monitors(client):
    with respx.mock:
        route = respx.get(f"{BASE}/api/v1/monitor").mock(
            return_value=Response(200, json=[{"id": 1, "overall_state": "Alert"}])
        )

        monitors = await client.list_monitors(monitor_tags=["service:checkout", "team:web"])

        assert route.calls.last.request.url.params["monitor_tags"] == "service:checkout,team:web"
        assert monitors == [{"id": 1, "overall_state": "Alert"}]


@pytest.mark.asyncio
async def test_validate(client):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/validate").mock(return_value=Response(200, json={"valid": True}))

        assert await client.validate() is True


@pytest.mark.asyncio
async def test_validate_with_bad_credentials(client):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/validate").mock(return_value=Response(403, json={"errors": ["Forbidden"]}))

        assert await client.validate() is False


@pytest.mark.asyncio
async def test_retry_on_503(client):
    with respx.mock:
        route = respx.get(f"{BASE}/api/v1/search")
        route.side_effect = [
            Response(503),
            Response(200, json={"results": {"metrics": ["trace.a.hits"]}}),
        ]

        assert await client.list_metrics("trace.*") == ["trace.a.hits"]
        assert route.call_count == 2


@pytest.mark.asyncio
async def test_rate_limit_surfaces_after_retries(client):
    with respx.mock:
        route = respx.get(f"{BASE}/api/v1/query").mock(return_value=Response(429, text="Rate limit exceeded"))

        with pytest.raises(TransientBackendError) as exc_info:
            await client.query_metrics("avg:x{service:a}", 0, 1000)

        assert exc_info.value.status_code == 429
        assert route.call_count == 2


@pytest.mark.asyncio
async def test_permanent_error(client):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/query").mock(return_value=Response(400, json={"errors": ["bad query"]}))

        with pytest.raises(BackendError) as exc_info:
            await client.query_metrics("avg:x{", 0, 1000)

        assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_network_error_is_transient(client):
    with respx.mock:
        respx.get(f"{BASE}/api/v1/query").mock(side_effect=ConnectError("connection refused"))

        with pytest.raises(TransientBackendError):
            await client.query_metrics("avg:x{service:a}", 0, 1000)


class TestFromSettings:
    def test_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            DatadogClient.from_settings(Settings(_env_file=None, dd_api_key=None, dd_app_key=None))

    @pytest.mark.asyncio
    async def test_uses_site(self):
        settings = Settings(_env_file=None, dd_api_key="k", dd_app_key="a", dd_site="datadoghq.eu", http_retry_base_delay=0)
        client = DatadogClient.from_settings(settings)

        with respx.mock:
            route = respx.get("https://api.datadoghq.eu/api/v1/validate").mock(
                return_value=Response(200, json={"valid": True})
            )

            assert await client.validate() is True
            assert route.called
