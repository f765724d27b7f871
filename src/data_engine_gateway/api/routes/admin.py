"""
管理 API 路由

项目、实例和表结构管理，统一挂在 /admin/api 下，与数据接口使用同一份 x-api-key 白名单
"""

from typing import Any
from fastapi import APIRouter, Depends
from ..dependencies import (
    get_project_service,
    get_request_logger,
    get_schema_service,
    verify_api_key,
)
from ..schemas.request import (
    ColumnPayload,
    IndexPayload,
    InstancePayload,
    ProjectPayload,
    TablePayload,
)
from ..schemas.response import ApiResponse
from ...services import ProjectService, SchemaService
from ...utils.logger import LoggerAdapter

router = APIRouter(
    prefix="/admin/api", tags=["admin"], dependencies=[Depends(verify_api_key)]
)


def _ok(message: str, data: Any = None) -> ApiResponse:
    count = len(data) if isinstance(data, list) else None
    return ApiResponse(success=True, message=message, data=data, count=count)


# ============ 项目 ============


@router.get("/projects", response_model=ApiResponse, response_model_exclude_none=True)
async def list_projects(service: ProjectService = Depends(get_project_service)):
    """列出全部项目"""
    return _ok("projects retrieved", await service.list_projects())


@router.post("/projects", response_model=ApiResponse, response_model_exclude_none=True)
async def create_project(
    payload: ProjectPayload,
    service: ProjectService = Depends(get_project_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """创建项目"""
    log.info(f"Admin create project: {payload.code}")
    data = await service.create_project(payload.model_dump())
    return _ok("project created", data)


@router.put(
    "/projects/{project_id}", response_model=ApiResponse, response_model_exclude_none=True
)
async def update_project(
    project_id: int,
    payload: ProjectPayload,
    service: ProjectService = Depends(get_project_service),
):
    """更新项目，未提交的字段保持原值"""
    data = await service.update_project(project_id, payload.model_dump(exclude_none=True))
    return _ok("project updated", data)


@router.delete(
    "/projects/{project_id}", response_model=ApiResponse, response_model_exclude_none=True
)
async def delete_project(
    project_id: int,
    service: ProjectService = Depends(get_project_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    """删除项目"""
    log.warning(f"Admin delete project: {project_id}")
    data = await service.delete_project(project_id)
    return _ok("project deleted", data)


# ============ 实例 ============


@router.get(
    "/projects/{project_id}/instances",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def list_instances(
    project_id: int, service: ProjectService = Depends(get_project_service)
):
    return _ok("instances retrieved", await service.list_instances(project_id))


@router.post(
    "/projects/{project_id}/instances",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def create_instance(
    project_id: int,
    payload: InstancePayload,
    service: ProjectService = Depends(get_project_service),
):
    data = await service.create_instance({**payload.model_dump(), "project_id": project_id})
    return _ok("instance created", data)


@router.put(
    "/projects/{project_id}/instances/{instance_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def update_instance(
    project_id: int,
    instance_id: int,
    payload: InstancePayload,
    service: ProjectService = Depends(get_project_service),
):
    data = await service.update_instance(
        instance_id, {**payload.model_dump(exclude_none=True), "project_id": project_id}
    )
    return _ok("instance updated", data)


@router.delete(
    "/projects/{project_id}/instances/{instance_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def delete_instance(
    project_id: int,
    instance_id: int,
    service: ProjectService = Depends(get_project_service),
):
    data = await service.delete_instance(instance_id)
    return _ok("instance deleted", data)


# ============ 表结构 ============


@router.get(
    "/projects/{project_id}/tables",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def list_tables(project_id: int, service: SchemaService = Depends(get_schema_service)):
    return _ok("tables retrieved", await service.list_tables(project_id))


@router.post(
    "/projects/{project_id}/tables",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def create_table(
    project_id: int,
    payload: TablePayload,
    service: SchemaService = Depends(get_schema_service),
):
    """
    创建表

    引擎自动附加 id 和 id_instancia 两列
    """
    data = await service.create_table(project_id, payload.model_dump(exclude_none=True))
    return _ok("table created", data)


@router.get(
    "/projects/{project_id}/tables/{table}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def get_table_details(
    project_id: int, table: str, service: SchemaService = Depends(get_schema_service)
):
    return _ok("table details retrieved", await service.get_table_details(project_id, table))


@router.delete(
    "/projects/{project_id}/tables/{table}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def delete_table(
    project_id: int,
    table: str,
    service: SchemaService = Depends(get_schema_service),
    log: LoggerAdapter = Depends(get_request_logger),
):
    log.warning(f"Admin drop table: project={project_id} table={table}")
    return _ok("table deleted", await service.delete_table(project_id, table))


@router.post(
    "/projects/{project_id}/tables/{table}/columns",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def add_column(
    project_id: int,
    table: str,
    payload: ColumnPayload,
    service: SchemaService = Depends(get_schema_service),
):
    data = await service.add_column(project_id, table, payload.model_dump())
    return _ok("column added", data)


@router.put(
    "/projects/{project_id}/tables/{table}/columns",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def modify_column(
    project_id: int,
    table: str,
    payload: ColumnPayload,
    service: SchemaService = Depends(get_schema_service),
):
    data = await service.modify_column(project_id, table, payload.model_dump())
    return _ok("column modified", data)


@router.delete(
    "/projects/{project_id}/tables/{table}/columns/{column}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def drop_column(
    project_id: int,
    table: str,
    column: str,
    service: SchemaService = Depends(get_schema_service),
):
    return _ok("column dropped", await service.drop_column(project_id, table, column))


@router.post(
    "/projects/{project_id}/tables/{table}/indexes",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def add_index(
    project_id: int,
    table: str,
    payload: IndexPayload,
    service: SchemaService = Depends(get_schema_service),
):
    data = await service.add_index(project_id, table, payload.model_dump())
    return _ok("index added", data)


@router.delete(
    "/projects/{project_id}/tables/{table}/indexes/{index}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def drop_index(
    project_id: int,
    table: str,
    index: str,
    service: SchemaService = Depends(get_schema_service),
):
    return _ok("index dropped", await service.drop_index(project_id, table, index))
