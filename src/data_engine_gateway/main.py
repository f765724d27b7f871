"""
FastAPI 应用入口

数据引擎网关：校验并规范化 CRUD 请求后转发给下游数据引擎
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .api.routes import admin_router, data_router
from .api.schemas.response import HealthCheckResponse, ServiceStatus
from .config import Settings, get_settings
from .exceptions import EngineError, GatewayError
from .services import DataEngineClient, DataEngineService, ProjectService, SchemaService
from .utils.logger import setup_logging, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(
    settings: Optional[Settings] = None,
    engine_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    创建应用

    Args:
        settings: 配置，默认使用进程级配置
        engine_transport: 数据引擎客户端的 httpx 传输层（测试时注入）

    Returns:
        FastAPI 应用
    """
    settings = settings or get_settings()

    setup_logging(
        log_level=settings.log.log_level,
        log_file=settings.log.log_file,
        log_format=settings.log.log_format,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        logger.info(
            f"启动 {settings.app.app_name} v{settings.app.app_version} "
            f"(环境: {settings.app.app_env})"
        )
        logger.info(f"数据引擎: {settings.engine.engine_base_url}")
        if not settings.auth.api_keys:
            logger.warning("API_KEYS 为空，所有请求都会被拒绝")
        if not settings.engine.internal_token:
            logger.warning("INTERNAL_TOKEN 未配置，转发请求不携带内部令牌")

        client = DataEngineClient(settings.engine, transport=engine_transport)
        await client.start()
        projects = ProjectService(client)

        app.state.settings = settings
        app.state.engine_client = client
        app.state.data_service = DataEngineService(client)
        app.state.project_service = projects
        app.state.schema_service = SchemaService(client, projects)

        yield

        await client.close()
        logger.info(f"关闭 {settings.app.app_name}")

    app = FastAPI(
        title=settings.app.app_name,
        version=settings.app.app_version,
        description="数据引擎 HTTP 网关",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        """为每个请求分配 request_id，并回写到响应头"""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(EngineError)
    async def engine_exception_handler(request: Request, exc: EngineError):
        """数据引擎失败：500，error 中给出引擎信息或固定的连接失败信息"""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": "data engine request failed",
                "error": exc.message,
            },
        )

    @app.exception_handler(GatewayError)
    async def gateway_exception_handler(request: Request, exc: GatewayError):
        """网关业务异常：按异常自带的状态码返回"""
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """请求体无法解析：与缺少字段一样返回 400"""
        locations = [
            ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "invalid request",
                "error": ", ".join(loc for loc in locations if loc) or "malformed body",
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """全局异常处理器"""
        logger.error(f"未处理的异常: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "internal server error"},
        )

    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check(request: Request):
        """
        健康检查接口

        不需要 API Key；数据引擎不可达时 status 为 degraded
        """
        client = request.app.state.engine_client
        reachable = await client.ping()
        return HealthCheckResponse(
            status="healthy" if reachable else "degraded",
            version=settings.app.app_version,
            timestamp=datetime.now(timezone.utc),
            services=ServiceStatus(
                data_engine="connected" if reachable else "unreachable",
                circuit=client.breaker.state.value,
            ),
        )

    @app.get("/")
    async def root():
        """根路径"""
        return {
            "name": settings.app.app_name,
            "version": settings.app.app_version,
            "status": "running",
            "docs": "/docs",
        }

    # 数据接口同时挂在根路径和 /api 下
    app.include_router(data_router)
    app.include_router(data_router, prefix="/api")
    app.include_router(admin_router)

    return app


app = create_app()


def run() -> None:
    """命令行入口：用 uvicorn 启动网关"""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "data_engine_gateway.main:app",
        host=settings.app.host,
        port=settings.app.port,
        reload=settings.app.app_env == "development",
    )


# 如果直接运行此文件
if __name__ == "__main__":
    run()
