"""
数据引擎熔断器

连续失败达到阈值后进入 OPEN，在冷却期内直接拒绝请求而不访问数据引擎；
冷却期结束进入 HALF_OPEN，只放行一个试探请求，成功则恢复 CLOSED，失败则重新 OPEN。

只有“引擎不可用”类失败计数：无响应，或引擎返回 5xx。
4xx 和 success=false 说明引擎在正常工作，不影响熔断状态。
"""

import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional
from ..exceptions import EngineApplicationError, EngineConnectivityError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CircuitState(str, Enum):
    """熔断器状态"""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(EngineConnectivityError):
    """熔断器打开，请求未发送"""

    def __init__(self, message: str = "data engine temporarily unavailable"):
        super().__init__(message)


def is_engine_outage(exc: Exception) -> bool:
    """判断异常是否应计入熔断失败次数"""
    if isinstance(exc, EngineConnectivityError):
        return True
    if isinstance(exc, EngineApplicationError):
        return exc.status is not None and exc.status >= 500
    return False


class CircuitBreaker:
    """
    熔断器

    Args:
        failure_threshold: 连续失败多少次后打开，0 表示禁用熔断
        reset_timeout: OPEN 状态持续秒数，之后进入 HALF_OPEN
        clock: 单调时钟（测试时注入）
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False

    @property
    def enabled(self) -> bool:
        return self.failure_threshold > 0

    @property
    def state(self) -> CircuitState:
        """当前状态；冷却期结束的 OPEN 视为 HALF_OPEN"""
        if (
            self._state == CircuitState.OPEN
            and self._clock() - self._opened_at >= self.reset_timeout
        ):
            self._state = CircuitState.HALF_OPEN
            logger.info("Data engine circuit half-open, next request is a trial")
        return self._state

    def _before_call(self) -> None:
        state = self.state
        if state == CircuitState.OPEN:
            raise CircuitBreakerOpenError()
        if state == CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitBreakerOpenError()
            self._trial_in_flight = True

    def _on_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info("Data engine circuit closed")
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = None
        self._trial_in_flight = False

    def _on_failure(self) -> None:
        self._trial_in_flight = False
        self._failures += 1
        if self._state == CircuitState.HALF_OPEN or self._failures >= self.failure_threshold:
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            logger.warning(
                f"Data engine circuit opened after {self._failures} failure(s), "
                f"retry in {self.reset_timeout}s"
            )

    async def execute(self, operation: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        通过熔断器执行一次调用

        Raises:
            CircuitBreakerOpenError: 熔断器打开，调用未执行
        """
        if not self.enabled:
            return await operation(*args, **kwargs)

        self._before_call()
        try:
            result = await operation(*args, **kwargs)
        except Exception as e:
            if is_engine_outage(e):
                self._on_failure()
            else:
                self._on_success()
            raise
        except BaseException:
            # 调用被取消（客户端断开、关闭进程）：不改变状态，但释放试探名额
            self._trial_in_flight = False
            raise
        self._on_success()
        return result
