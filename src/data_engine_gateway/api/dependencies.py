"""
FastAPI 依赖

配置和服务实例在应用启动时创建并挂在 app.state 上，这里只负责取出
"""

import secrets
from typing import Optional
from fastapi import Header, Request
from ..config import Settings
from ..exceptions import AuthenticationError
from ..services import DataEngineService, ProjectService, SchemaService
from ..utils.logger import LoggerAdapter, get_logger

logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_data_service(request: Request) -> DataEngineService:
    return request.app.state.data_service


def get_project_service(request: Request) -> ProjectService:
    return request.app.state.project_service


def get_schema_service(request: Request) -> SchemaService:
    return request.app.state.schema_service


def get_request_logger(request: Request) -> LoggerAdapter:
    """带 request_id 上下文的日志记录器"""
    request_id = getattr(request.state, "request_id", "-")
    return LoggerAdapter(logger, {"request_id": request_id})


async def verify_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias="x-api-key"),
) -> str:
    """
    校验 x-api-key 请求头

    白名单为空时任何 Key 都不通过

    Raises:
        AuthenticationError: Key 缺失或不在白名单内
    """
    valid_keys = get_settings(request).auth.api_keys
    if not x_api_key or not any(
        secrets.compare_digest(x_api_key.encode(), key.encode()) for key in valid_keys
    ):
        get_request_logger(request).warning(
            f"Rejected request to {request.url.path}: invalid or missing API key"
        )
        raise AuthenticationError()
    return x_api_key
