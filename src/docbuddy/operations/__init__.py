"""
Service operation breakdowns.

The orchestrator lives in ``docbuddy.operations.orchestrator``; only the
result models are re-exported here.
"""

from docbuddy.operations.models import (
    DataSource,
    OperationMetrics,
    ServiceOperation,
    ServiceOperationsResult,
    compute_error_rate,
)

__all__ = [
    "DataSource",
    "OperationMetrics",
    "ServiceOperation",
    "ServiceOperationsResult",
    "compute_error_rate",
]
