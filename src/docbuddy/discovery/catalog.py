"""
Known metric-name patterns per instrumentation framework.

Probed first on every discovery run; the fallback search only runs when
none of these carry data for the service.
"""

from __future__ import annotations

from dataclasses import dataclass

SUFFIXES = ("duration", "hits", "errors")


@dataclass(frozen=True)
class FrameworkPattern:
    framework: str
    base: str

    def metric_names(self) -> list[str]:
        return [f"{self.base}.{suffix}" for suffix in SUFFIXES]


FRAMEWORK_PATTERNS: tuple[FrameworkPattern, ...] = (
    # Server frameworks: incoming requests TO the service
    FrameworkPattern("servlet", "trace.servlet.request"),  # Tomcat, Jetty
    FrameworkPattern("netty", "trace.netty.request"),  # Spring WebFlux
    FrameworkPattern("spring-mvc", "trace.spring.handler"),
    FrameworkPattern("graphql", "trace.graphql.request"),
    FrameworkPattern("http-server", "trace.http.server.request"),
    FrameworkPattern("play", "trace.play.request"),
    FrameworkPattern("vertx", "trace.vertx.http.server"),
    FrameworkPattern("akka-http", "trace.akka.http.server"),
    # Client libraries: outbound calls FROM the service. Discovered so they can
    # be reported as dependencies, never picked as the primary group.
    FrameworkPattern("netty-client", "trace.netty.client.request"),
    FrameworkPattern("play-ws", "trace.play_ws.request"),
)


def catalog_metric_names() -> list[str]:
    """Every catalog metric name, in probe order."""
    names: list[str] = []
    for pattern in FRAMEWORK_PATTERNS:
        names.extend(pattern.metric_names())
    return names


# Outgoing calls FROM the service; checked before server markers
CLIENT_MARKERS: tuple[str, ...] = (
    ".client",
    ".outbound",
    "trace.http.",
    "trace.netty.client",
    "trace.play_ws",
    "trace.okhttp",
    "trace.httpclient",
    "trace.apache.httpclient",
)

# Incoming requests TO the service
SERVER_MARKERS: tuple[str, ...] = (
    ".server",
    "trace.servlet",
    "trace.netty.request",
    "trace.spring.handler",
    "trace.graphql",
    "trace.play.request",
    "trace.vertx.http.server",
    "trace.akka.http.server",
)

# Name fragments that make a fallback candidate worth probing
FALLBACK_KEYWORDS: tuple[str, ...] = (
    "duration",
    "hits",
    "errors",
    "latency",
    "requests",
    "count",
)
