"""
数据操作 API 路由

所有接口需要 x-api-key；缺少必填字段返回 400 且不会调用数据引擎，
数据引擎失败返回 500
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from ..dependencies import get_data_service, get_request_logger, verify_api_key
from ..schemas.request import (
    AggregateRequest,
    BatchInsertRequest,
    BatchUpdateRequest,
    DeleteRequest,
    InsertRequest,
    JoinSelectRequest,
    SelectRequest,
    UpdateRequest,
)
from ..schemas.response import ApiResponse
from ...models.operation import OperationResult
from ...services import DataEngineService
from ...utils.logger import LoggerAdapter

router = APIRouter(tags=["data"], dependencies=[Depends(verify_api_key)])


def _respond(result: OperationResult) -> JSONResponse:
    return JSONResponse(
        status_code=200 if result.success else 500, content=result.to_response()
    )


@router.post("/insert", response_model=ApiResponse)
async def insert_record(
    request: InsertRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """
    单条插入

    可通过 Idempotency-Key 请求头让数据引擎对重试去重
    """
    log.info("Insert request received", extra={"operation": "insert"})
    result = await service.insert(request.model_dump(), idempotency_key=idempotency_key)
    return _respond(result)


@router.post("/batch-insert", response_model=ApiResponse)
async def batch_insert(
    request: BatchInsertRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """批量插入"""
    log.info("Batch insert request received", extra={"operation": "batch_insert"})
    result = await service.batch_insert(
        request.model_dump(), idempotency_key=idempotency_key
    )
    return _respond(result)


@router.post("/get", response_model=ApiResponse)
async def advanced_select(
    request: SelectRequest,
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """
    高级查询

    data 总是列表，count 为列表长度
    """
    log.info("Select request received", extra={"operation": "select"})
    result = await service.select(request.model_dump())
    return _respond(result)


@router.post("/join-select", response_model=ApiResponse)
async def join_select(
    request: JoinSelectRequest,
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """多表 JOIN 查询"""
    log.info("Join select request received", extra={"operation": "join_select"})
    result = await service.join_select(request.model_dump())
    return _respond(result)


@router.post("/update", response_model=ApiResponse)
async def update_record(
    request: UpdateRequest,
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """单条更新"""
    log.info("Update request received", extra={"operation": "update"})
    result = await service.update(request.model_dump())
    return _respond(result)


@router.post("/batch-update", response_model=ApiResponse)
async def batch_update(
    request: BatchUpdateRequest,
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """批量更新"""
    log.info("Batch update request received", extra={"operation": "batch_update"})
    result = await service.batch_update(request.model_dump())
    return _respond(result)


@router.post("/delete", response_model=ApiResponse)
async def delete_record(
    request: DeleteRequest,
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """
    删除

    未指定 mode 时为 hard（不可恢复）
    """
    log.info("Delete request received", extra={"operation": "delete"})
    result = await service.delete(request.model_dump())
    return _respond(result)


@router.post("/aggregate", response_model=ApiResponse)
async def aggregate(
    request: AggregateRequest,
    service: DataEngineService = Depends(get_data_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """聚合 (COUNT/SUM/AVG/MIN/MAX/EXISTS)"""
    log.info("Aggregate request received", extra={"operation": "aggregate"})
    result = await service.aggregate(request.model_dump())
    return _respond(result)
