"""
数据引擎客户端

负责把规范化后的请求转发给下游数据引擎，并把响应（或没有响应）
转换为统一的 OperationResult。每次调用只发一次请求，不做重试；
所有请求经过熔断器，引擎持续不可用时快速失败。
"""

from typing import Any, Dict, List, Optional
import httpx
from .circuit_breaker import CircuitBreaker
from ..config import EngineSettings
from ..exceptions import (
    EngineApplicationError,
    EngineConnectivityError,
    EngineError,
)
from ..models.operation import (
    LIST_KINDS,
    FailureKind,
    OperationRequest,
    OperationResult,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

INTERNAL_TOKEN_HEADER = "X-Internal-Token"
IDEMPOTENCY_HEADER = "X-Idempotency-Key"


def as_list(value: Any) -> List[Any]:
    """
    把引擎返回值整形为列表

    - 列表原样返回
    - {"data": [...]} 取出 data
    - None 返回空列表
    - 其他标量/对象包装为单元素列表
    """
    if isinstance(value, list):
        return value
    if isinstance(value, dict) and isinstance(value.get("data"), list):
        return value["data"]
    if value is None:
        return []
    return [value]


def _error_detail(response: httpx.Response) -> str:
    """提取引擎返回的错误信息"""
    try:
        body = response.json()
    except ValueError:
        body = response.text

    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    if isinstance(body, str) and body.strip():
        return body.strip()
    return f"data engine returned HTTP {response.status_code}"


class DataEngineClient:
    """数据引擎 HTTP 客户端"""

    def __init__(
        self,
        settings: EngineSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        初始化客户端

        Args:
            settings: 数据引擎配置
            transport: 可选的 httpx 传输层（测试时注入 MockTransport）
        """
        self.settings = settings
        self.base_url = settings.engine_base_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.breaker = CircuitBreaker(
            failure_threshold=settings.breaker_failure_threshold,
            reset_timeout=settings.breaker_reset_timeout,
        )

    async def start(self) -> None:
        """创建连接池"""
        if self._client is not None:
            return

        headers = {"Content-Type": "application/json"}
        if self.settings.internal_token:
            headers[INTERNAL_TOKEN_HEADER] = self.settings.internal_token

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.settings.engine_timeout,
            transport=self._transport,
        )
        logger.info(f"Data engine client started: server={self.base_url}")

    async def close(self) -> None:
        """关闭连接池"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Data engine client closed")

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        向数据引擎发起一次请求

        Args:
            method: HTTP 方法
            path: 引擎端点路径
            json: 请求体
            params: 查询参数
            headers: 额外请求头

        Returns:
            解析后的响应体（JSON 或文本）

        Raises:
            EngineApplicationError: 引擎返回非 2xx 或 success=false
            EngineConnectivityError: 未收到响应（超时、拒绝连接等）
            CircuitBreakerOpenError: 熔断器打开，请求未发送
        """
        if self._client is None:
            await self.start()

        return await self.breaker.execute(
            self._send, method, path, json=json, params=params, headers=headers
        )

    async def _send(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            logger.error(
                f"Data engine {method} {path} failed with HTTP "
                f"{e.response.status_code}: {detail}"
            )
            raise EngineApplicationError(detail, status=e.response.status_code)
        except httpx.RequestError as e:
            # 网络细节只写日志，不返回给调用方
            logger.error(f"Data engine {method} {path} unreachable: {e!r}")
            raise EngineConnectivityError()

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            return response.text

        if isinstance(body, dict) and body.get("success") is False:
            detail = str(body.get("error") or body.get("message") or "data engine reported a failure")
            logger.error(f"Data engine {method} {path} reported failure: {detail}")
            raise EngineApplicationError(detail, status=response.status_code)

        return body

    async def forward(self, operation: OperationRequest) -> OperationResult:
        """
        转发一次数据操作

        Args:
            operation: 已规范化的请求

        Returns:
            OperationResult，失败时 success=False 且 error 区分业务错误与连接错误
        """
        headers = None
        if operation.idempotency_key:
            headers = {IDEMPOTENCY_HEADER: operation.idempotency_key}

        logger.debug(f"Forwarding {operation.kind.value} to {operation.endpoint}")

        try:
            body = await self.request(
                "POST", operation.endpoint, json=operation.to_payload(), headers=headers
            )
        except EngineConnectivityError as e:
            return OperationResult(
                success=False, error=e.message, failure=FailureKind.CONNECTIVITY
            )
        except EngineError as e:
            return OperationResult(
                success=False, error=e.message, failure=FailureKind.APPLICATION
            )

        if operation.kind in LIST_KINDS:
            rows = as_list(body)
            return OperationResult(success=True, data=rows, count=len(rows))

        count = None
        if isinstance(body, dict) and isinstance(body.get("count"), int):
            count = body["count"]
        return OperationResult(success=True, data=body, count=count)

    async def ping(self) -> bool:
        """
        测试数据引擎连接

        Returns:
            连接是否成功
        """
        try:
            await self.request("GET", "/health")
            return True
        except EngineError as e:
            logger.warning(f"Data engine health check failed: {e.message}")
            return False
