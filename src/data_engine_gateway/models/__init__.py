"""
数据模型模块
"""

from .operation import (
    AggregateOperation,
    DeleteMode,
    FailureKind,
    FilterSpec,
    OperationKind,
    OperationRequest,
    OperationResult,
)

__all__ = [
    "AggregateOperation",
    "DeleteMode",
    "FailureKind",
    "FilterSpec",
    "OperationKind",
    "OperationRequest",
    "OperationResult",
]
