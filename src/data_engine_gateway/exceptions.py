"""
网关异常定义

每个异常携带对应的 HTTP 状态码，由 main.py 中的异常处理器转换为统一响应
"""

from typing import Iterable, List, Optional


class GatewayError(Exception):
    """网关异常基类"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingRequiredFieldError(GatewayError):
    """缺少必填字段（一次列出全部缺失字段）"""

    status_code = 400

    def __init__(self, fields: Iterable[str]):
        self.fields: List[str] = list(fields)
        super().__init__(f"missing required fields: {', '.join(self.fields)}")


class InvalidFieldError(GatewayError):
    """字段类型或取值非法"""

    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"invalid field '{field}': {reason}")


class AuthenticationError(GatewayError):
    """API Key 缺失或不在白名单内"""

    status_code = 401

    def __init__(self, message: str = "invalid or missing API key"):
        super().__init__(message)


class NotFoundError(GatewayError):
    """管理资源不存在"""

    status_code = 404


class EngineError(GatewayError):
    """下游数据引擎调用失败"""

    status_code = 500


class EngineApplicationError(EngineError):
    """数据引擎返回了业务错误（非 2xx 或 success=false）"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class EngineConnectivityError(EngineError):
    """无法连接数据引擎（超时、拒绝连接、DNS 失败）"""

    def __init__(self, message: str = "could not connect to data engine"):
        super().__init__(message)
