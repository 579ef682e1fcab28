from docbuddy.core.errors import (
    BackendError,
    ConfigurationError,
    DocBuddyError,
    ErrorKind,
    ExitCode,
    InsufficientMetricsError,
    InvalidInputError,
    NoDataInWindowError,
    NotInstrumentedError,
    ToolResult,
    TransientBackendError,
    format_error_message,
    tool_boundary,
)
from docbuddy.core.timerange import TimeWindow, parse_time_range
from docbuddy.core.validation import (
    require_environment,
    require_service_name,
    sanitize_log_query,
    validate_environment,
    validate_service_name,
)

__all__ = [
    "BackendError",
    "ConfigurationError",
    "DocBuddyError",
    "ErrorKind",
    "ExitCode",
    "InsufficientMetricsError",
    "InvalidInputError",
    "NoDataInWindowError",
    "NotInstrumentedError",
    "ToolResult",
    "TransientBackendError",
    "format_error_message",
    "tool_boundary",
    "TimeWindow",
    "parse_time_range",
    "require_environment",
    "require_service_name",
    "sanitize_log_query",
    "validate_environment",
    "validate_service_name",
]
