"""
数据引擎服务

组合请求规范化与转发，每种数据操作一个方法
"""

from typing import Any, Callable, Dict, Mapping, Optional
from .engine_client import DataEngineClient
from . import normalizer
from ..models.operation import OperationKind, OperationRequest, OperationResult
from ..utils.logger import get_logger

logger = get_logger(__name__)

# (成功消息, 失败消息)
MESSAGES: Dict[OperationKind, tuple] = {
    OperationKind.INSERT: ("record inserted successfully", "failed to insert record"),
    OperationKind.BATCH_INSERT: (
        "batch insert completed successfully",
        "failed to insert records in batch",
    ),
    OperationKind.SELECT: ("query executed successfully", "failed to execute query"),
    OperationKind.JOIN_SELECT: (
        "join query executed successfully",
        "failed to execute join query",
    ),
    OperationKind.UPDATE: ("record updated successfully", "failed to update record"),
    OperationKind.BATCH_UPDATE: (
        "batch update completed successfully",
        "failed to update records in batch",
    ),
    OperationKind.DELETE: ("record(s) deleted successfully", "failed to delete record(s)"),
    OperationKind.AGGREGATE: (
        "aggregation executed successfully",
        "failed to execute aggregation",
    ),
}


class DataEngineService:
    """数据操作服务"""

    def __init__(self, client: DataEngineClient):
        """
        初始化服务

        Args:
            client: 数据引擎客户端
        """
        self.client = client

    async def _execute(self, operation: OperationRequest) -> OperationResult:
        """转发并填充结果消息"""
        result = await self.client.forward(operation)
        success_message, failure_message = MESSAGES[operation.kind]
        result.message = success_message if result.success else failure_message

        if result.success:
            logger.info(
                f"{operation.kind.value} on project={operation.project_id} "
                f"instance={operation.id_instancia} table={operation.table} succeeded"
            )
        else:
            logger.error(
                f"{operation.kind.value} on project={operation.project_id} "
                f"instance={operation.id_instancia} table={operation.table} failed "
                f"({result.failure.value if result.failure else 'unknown'}): {result.error}"
            )
        return result

    async def _run(
        self, build: Callable[..., OperationRequest], raw: Mapping[str, Any], **kwargs
    ) -> OperationResult:
        # 规范化失败直接抛出，不会发起任何下游请求
        return await self._execute(build(raw, **kwargs))

    async def insert(
        self, raw: Mapping[str, Any], idempotency_key: Optional[str] = None
    ) -> OperationResult:
        return await self._run(
            normalizer.normalize_insert, raw, idempotency_key=idempotency_key
        )

    async def batch_insert(
        self, raw: Mapping[str, Any], idempotency_key: Optional[str] = None
    ) -> OperationResult:
        return await self._run(
            normalizer.normalize_batch_insert, raw, idempotency_key=idempotency_key
        )

    async def select(self, raw: Mapping[str, Any]) -> OperationResult:
        return await self._run(normalizer.normalize_select, raw)

    async def join_select(self, raw: Mapping[str, Any]) -> OperationResult:
        return await self._run(normalizer.normalize_join_select, raw)

    async def update(self, raw: Mapping[str, Any]) -> OperationResult:
        return await self._run(normalizer.normalize_update, raw)

    async def batch_update(self, raw: Mapping[str, Any]) -> OperationResult:
        return await self._run(normalizer.normalize_batch_update, raw)

    async def delete(self, raw: Mapping[str, Any]) -> OperationResult:
        return await self._run(normalizer.normalize_delete, raw)

    async def aggregate(self, raw: Mapping[str, Any]) -> OperationResult:
        return await self._run(normalizer.normalize_aggregate, raw)
