"""
API Schemas 模块
"""

from .request import (
    AggregateRequest,
    BatchInsertRequest,
    BatchUpdateRequest,
    ColumnPayload,
    DeleteRequest,
    IndexPayload,
    InsertRequest,
    InstancePayload,
    JoinSelectRequest,
    ProjectPayload,
    SelectRequest,
    TablePayload,
    UpdateRequest,
)
from .response import ApiResponse, HealthCheckResponse, ServiceStatus

__all__ = [
    "AggregateRequest",
    "BatchInsertRequest",
    "BatchUpdateRequest",
    "ColumnPayload",
    "DeleteRequest",
    "IndexPayload",
    "InsertRequest",
    "InstancePayload",
    "JoinSelectRequest",
    "ProjectPayload",
    "SelectRequest",
    "TablePayload",
    "UpdateRequest",
    "ApiResponse",
    "HealthCheckResponse",
    "ServiceStatus",
]
