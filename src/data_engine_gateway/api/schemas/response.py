"""
API 响应模型
"""

from typing import Any, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class ApiResponse(BaseModel):
    """统一响应结构"""

    success: bool = Field(..., description="是否成功")
    message: str = Field(..., description="状态消息")
    data: Optional[Any] = Field(None, description="响应数据")
    count: Optional[int] = Field(None, description="返回/影响行数")
    error: Optional[str] = Field(None, description="错误信息")


class ServiceStatus(BaseModel):
    """依赖服务状态"""

    data_engine: str = Field(..., description="数据引擎连接状态 (connected/unreachable)")
    circuit: str = Field("closed", description="熔断器状态 (closed/open/half_open)")


class HealthCheckResponse(BaseModel):
    """健康检查响应"""

    status: str = Field("healthy", description="健康状态")
    version: str = Field(..., description="版本号")
    timestamp: datetime = Field(..., description="时间戳")
    services: ServiceStatus = Field(..., description="各服务状态")
