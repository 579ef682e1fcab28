"""
Unified error handling for docbuddy.

Discovery, orchestration and tool handlers raise typed errors from this
module. Tool handlers never let them escape: ``tool_boundary`` turns them
into a failed ``ToolResult`` so the chat layer can render a plain-language
explanation instead of a stack trace.

Error kinds:
- not_instrumented: no usable metric patterns were discovered
- insufficient_metrics: metrics exist, but neither latency nor throughput
- no_data_in_window: instrumentation exists, the window returned nothing
- transient_backend_error: network / rate-limit failure after retries
- backend_error: permanent backend rejection (4xx)
- invalid_input: malformed service name, environment or time range
- configuration_error: missing or invalid settings
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Awaitable, Callable, Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class ExitCode(IntEnum):
    """Exit codes used by the diagnostic CLI."""

    SUCCESS = 0
    NO_DATA = 1
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class ErrorKind(str, Enum):
    NOT_INSTRUMENTED = "not_instrumented"
    INSUFFICIENT_METRICS = "insufficient_metrics"
    NO_DATA_IN_WINDOW = "no_data_in_window"
    TRANSIENT_BACKEND_ERROR = "transient_backend_error"
    BACKEND_ERROR = "backend_error"
    INVALID_INPUT = "invalid_input"
    CONFIGURATION_ERROR = "configuration_error"
    UNKNOWN = "unknown"


class DocBuddyError(Exception):
    """Base exception for docbuddy errors with kind and exit code support."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotInstrumentedError(DocBuddyError):
    """Discovery found zero usable metric patterns for the service."""

    kind = ErrorKind.NOT_INSTRUMENTED
    exit_code = ExitCode.NO_DATA


class InsufficientMetricsError(DocBuddyError):
    """Discovery found metrics, but not the latency/throughput the caller needs."""

    kind = ErrorKind.INSUFFICIENT_METRICS
    exit_code = ExitCode.NO_DATA


class NoDataInWindowError(DocBuddyError):
    """Instrumentation exists but the requested window returned nothing."""

    kind = ErrorKind.NO_DATA_IN_WINDOW
    exit_code = ExitCode.NO_DATA


class TransientBackendError(DocBuddyError):
    """Network or rate-limit failure talking to the telemetry backend."""

    kind = ErrorKind.TRANSIENT_BACKEND_ERROR
    exit_code = ExitCode.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class BackendError(DocBuddyError):
    """The backend rejected the request (non-retryable HTTP status)."""

    kind = ErrorKind.BACKEND_ERROR
    exit_code = ExitCode.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class InvalidInputError(DocBuddyError):
    """Raised before any backend call when inputs are malformed."""

    kind = ErrorKind.INVALID_INPUT
    exit_code = ExitCode.VALIDATION_ERROR


class ConfigurationError(DocBuddyError):
    """Raised for configuration-related errors."""

    kind = ErrorKind.CONFIGURATION_ERROR
    exit_code = ExitCode.CONFIG_ERROR


@dataclass
class ToolResult(Generic[T]):
    """Typed outcome of a tool call."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    cached: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: T, *, cached: bool = False, **metadata: Any) -> "ToolResult[T]":
        return cls(success=True, data=data, cached=cached, metadata=metadata)

    @classmethod
    def fail(cls, error: DocBuddyError) -> "ToolResult[T]":
        return cls(
            success=False,
            error=format_error_message(error),
            error_kind=error.kind,
            metadata=dict(error.details),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        data = self.data
        if hasattr(data, "model_dump"):
            data = data.model_dump(mode="json")
        return {
            "success": self.success,
            "data": data,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "cached": self.cached,
            "metadata": self.metadata,
        }


def format_error_message(error: DocBuddyError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg


F = TypeVar("F", bound=Callable[..., Awaitable[ToolResult[Any]]])


def tool_boundary(tool_name: str) -> Callable[[F], F]:
    """
    Decorator for async tool handlers that converts errors into ToolResults.

    Usage:
        @tool_boundary("get_service_health")
        async def get_service_health(ctx, *, service) -> ToolResult[...]:
            ...

    - DocBuddyError subclasses: failed result carrying the error kind
    - Other exceptions: logged with traceback, failed result of kind ``unknown``
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> ToolResult[Any]:
            try:
                return await func(*args, **kwargs)
            except DocBuddyError as e:
                logger.warning(
                    "tool_error",
                    tool=tool_name,
                    error_type=type(e).__name__,
                    kind=e.kind.value,
                    message=e.message,
                )
                return ToolResult.fail(e)
            except Exception as e:
                logger.exception(
                    "tool_unexpected_error",
                    tool=tool_name,
                    error_type=type(e).__name__,
                )
                return ToolResult(
                    success=False,
                    error=str(e) or type(e).__name__,
                    error_kind=ErrorKind.UNKNOWN,
                )

        return wrapper  # type: ignore[return-value]

    return decorator
