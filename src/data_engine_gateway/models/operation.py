"""
数据操作相关模型

OperationRequest 在入站边界构建，OperationResult 在出站时丢弃，均不持久化
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class OperationKind(str, Enum):
    """数据操作类型"""

    INSERT = "insert"
    BATCH_INSERT = "batch_insert"
    SELECT = "select"
    JOIN_SELECT = "join_select"
    UPDATE = "update"
    BATCH_UPDATE = "batch_update"
    DELETE = "delete"
    AGGREGATE = "aggregate"


# 每种操作对应的数据引擎端点
ENGINE_ENDPOINTS: Dict[OperationKind, str] = {
    OperationKind.INSERT: "/data/insert",
    OperationKind.BATCH_INSERT: "/data/batch-insert",
    OperationKind.SELECT: "/data/select",
    OperationKind.JOIN_SELECT: "/data/join-select",
    OperationKind.UPDATE: "/data/update",
    OperationKind.BATCH_UPDATE: "/data/batch-update",
    OperationKind.DELETE: "/data/delete",
    OperationKind.AGGREGATE: "/data/aggregate",
}

# 返回行列表的操作
LIST_KINDS = frozenset({OperationKind.SELECT, OperationKind.JOIN_SELECT})


class AggregateOperation(str, Enum):
    """聚合运算符"""

    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"
    EXISTS = "EXISTS"

    @property
    def needs_column(self) -> bool:
        """SUM/AVG/MIN/MAX 需要数值列，COUNT/EXISTS 不需要"""
        return self in (
            AggregateOperation.SUM,
            AggregateOperation.AVG,
            AggregateOperation.MIN,
            AggregateOperation.MAX,
        )


class DeleteMode(str, Enum):
    """删除模式"""

    HARD = "hard"
    SOFT = "soft"


class FailureKind(str, Enum):
    """失败类别"""

    APPLICATION = "application"
    CONNECTIVITY = "connectivity"


class FilterSpec(BaseModel):
    """
    过滤条件

    where 为等值条件映射，where_raw 为原始表达式（join-select 为表达式列表）；
    两者都可以缺省，同时给出时由数据引擎以 AND 组合
    """

    where: Dict[str, Any] = Field(default_factory=dict, description="等值条件")
    where_raw: Optional[Union[str, List[str]]] = Field(None, description="原始过滤表达式")


class OperationRequest(BaseModel):
    """规范化后的数据操作请求"""

    kind: OperationKind = Field(..., description="操作类型")
    project_id: int = Field(..., description="项目 ID")
    id_instancia: int = Field(..., description="实例 ID")
    table: str = Field(..., description="目标表名")
    fields: Dict[str, Any] = Field(
        default_factory=dict, description="操作特有字段（已填充默认值）"
    )
    idempotency_key: Optional[str] = Field(None, description="幂等键")

    @property
    def endpoint(self) -> str:
        return ENGINE_ENDPOINTS[self.kind]

    def to_payload(self) -> Dict[str, Any]:
        """
        构建发送给数据引擎的请求体

        Returns:
            数据引擎端点期望的完整 JSON 结构
        """
        payload: Dict[str, Any] = {
            "project_id": self.project_id,
            "id_instancia": self.id_instancia,
        }
        # join-select 的表名位于 base.table
        if self.kind != OperationKind.JOIN_SELECT:
            payload["table"] = self.table
        payload.update(self.fields)
        return payload


class OperationResult(BaseModel):
    """统一的操作结果"""

    success: bool = Field(..., description="是否成功")
    message: str = Field("", description="状态消息")
    data: Optional[Any] = Field(None, description="返回数据")
    count: Optional[int] = Field(None, description="影响/返回行数")
    error: Optional[str] = Field(None, description="错误信息")
    failure: Optional[FailureKind] = Field(None, exclude=True)

    def to_response(self) -> Dict[str, Any]:
        """转换为 API 响应体，省略空的可选字段"""
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            body["data"] = self.data
        if self.count is not None:
            body["count"] = self.count
        if self.error is not None:
            body["error"] = self.error
        return body
