"""Input validation applied before any backend call."""

from __future__ import annotations

import re

from docbuddy.core.errors import InvalidInputError

SERVICE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
ENVIRONMENT_PATTERN = re.compile(r"^[a-zA-Z0-9_.:-]+$")

# Characters stripped from free-text log queries
_LOG_QUERY_UNSAFE = re.compile(r"[<>'\"]")


def validate_service_name(service: str) -> bool:
    """Service names are alphanumeric with dashes and underscores."""
    return bool(service) and SERVICE_NAME_PATTERN.match(service) is not None


def validate_environment(environment: str) -> bool:
    return bool(environment) and ENVIRONMENT_PATTERN.match(environment) is not None


def require_service_name(service: str) -> str:
    if not validate_service_name(service):
        raise InvalidInputError(
            "Invalid service name. Use alphanumeric characters, dashes, and underscores only.",
            {"service": service},
        )
    return service


def require_environment(environment: str | None) -> str | None:
    if not environment:
        return None
    if not validate_environment(environment):
        raise InvalidInputError(
            "Invalid environment name.",
            {"environment": environment},
        )
    return environment


def sanitize_log_query(query: str) -> str:
    """Remove characters that could break out of the backend query grammar."""
    return _LOG_QUERY_UNSAFE.sub("", query)
