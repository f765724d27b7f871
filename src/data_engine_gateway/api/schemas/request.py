"""
API 请求模型

字段全部声明为可选：必填校验由 services.normalizer 统一完成，
以便一次性报告全部缺失字段并返回 400
"""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

IdType = Optional[Union[int, str]]


class TargetSchema(BaseModel):
    """所有数据操作共有的目标定位字段"""

    project_id: IdType = Field(None, description="项目 ID")
    id_instancia: IdType = Field(None, description="实例 ID")
    table: Optional[str] = Field(None, description="目标表名")

    model_config = ConfigDict(extra="allow")


class InsertRequest(TargetSchema):
    """单条插入请求"""

    data: Optional[Any] = Field(None, description="字段 → 值，至少一个字段")

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "project_id": 1,
                "id_instancia": 10,
                "table": "clientes",
                "data": {"nome": "Maria", "email": "maria@example.com"},
            }
        },
    )


class BatchInsertRequest(TargetSchema):
    """批量插入请求"""

    data: Optional[Any] = Field(None, description="记录列表，缺少 id_instancia 的行自动补齐")

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "project_id": 1,
                "id_instancia": 10,
                "table": "produtos",
                "data": [
                    {"nome": "Produto 1", "preco": 10.5},
                    {"nome": "Produto 2", "preco": 20.0},
                ],
            }
        },
    )


class SelectRequest(TargetSchema):
    """高级查询请求"""

    alias: Optional[Any] = Field(None, description="表别名")
    select: Optional[Any] = Field(None, description="列列表")
    joins: Optional[Any] = Field(None, description="JOIN 列表 {type, table, alias, on}")
    where: Optional[Any] = Field(None, description="等值条件")
    where_raw: Optional[Any] = Field(None, description="原始 WHERE 表达式")
    group_by: Optional[Any] = Field(None, description="GROUP BY")
    having: Optional[Any] = Field(None, description="HAVING")
    order_by: Optional[Any] = Field(None, description="ORDER BY")
    limit: Optional[Any] = Field(None, description="返回行数上限，0 表示不限制")
    offset: Optional[Any] = Field(None, description="偏移量")

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "project_id": 1,
                "id_instancia": 10,
                "table": "pedidos",
                "alias": "p",
                "select": ["p.*", "c.nome as cliente_nome"],
                "joins": [
                    {"type": "LEFT", "table": "clientes", "alias": "c", "on": "p.cliente_id = c.id"}
                ],
                "where": {"p.status": "aprovado"},
                "order_by": "p.id DESC",
                "limit": 50,
            }
        },
    )


class JoinSelectRequest(BaseModel):
    """多表 JOIN 查询请求"""

    project_id: IdType = Field(None, description="项目 ID")
    id_instancia: IdType = Field(None, description="实例 ID")
    base: Optional[Any] = Field(None, description="基表 {table, alias, columns}")
    joins: Optional[Any] = Field(None, description="JOIN 列表 {type, table, alias, on, columns}")
    where: Optional[Any] = Field(None, description="等值条件")
    where_raw: Optional[Any] = Field(None, description="条件表达式列表")
    group_by: Optional[Any] = Field(None, description="GROUP BY")
    having: Optional[Any] = Field(None, description="HAVING")
    order_by: Optional[Any] = Field(None, description="ORDER BY")
    limit: Optional[Any] = Field(None, description="返回行数上限")
    offset: Optional[Any] = Field(None, description="偏移量")

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "project_id": 1,
                "id_instancia": 10,
                "base": {"table": "pedidos", "alias": "p", "columns": ["p.id", "p.total"]},
                "joins": [
                    {
                        "type": "INNER",
                        "table": "clientes",
                        "alias": "c",
                        "on": "p.cliente_id = c.id",
                        "columns": ["c.nome"],
                    }
                ],
                "where_raw": ["p.total > 100"],
            }
        },
    )


class UpdateRequest(TargetSchema):
    """单条更新请求"""

    data: Optional[Any] = Field(None, description="要更新的字段")
    where: Optional[Any] = Field(None, description="等值条件")
    where_raw: Optional[Any] = Field(None, description="原始 WHERE 表达式")


class BatchUpdateRequest(TargetSchema):
    """批量更新请求"""

    updates: Optional[Any] = Field(None, description="[{data, where}, ...]")


class DeleteRequest(TargetSchema):
    """删除请求"""

    where: Optional[Any] = Field(None, description="等值条件")
    where_raw: Optional[Any] = Field(None, description="原始 WHERE 表达式")
    mode: Optional[str] = Field(None, description="hard（默认，不可恢复）或 soft")


class AggregateRequest(TargetSchema):
    """聚合请求"""

    operation: Optional[Any] = Field(None, description="COUNT/SUM/AVG/MIN/MAX/EXISTS")
    column: Optional[Any] = Field(None, description="SUM/AVG/MIN/MAX 必填")
    where: Optional[Any] = Field(None, description="等值条件")


class ProjectPayload(BaseModel):
    """项目字段"""

    name: Optional[str] = Field(None, description="项目名称")
    code: Optional[str] = Field(None, description="唯一代码（表前缀）")
    description: Optional[str] = Field(None, description="描述")
    api_key: Optional[str] = Field(None, description="项目 API Key")
    type: Optional[str] = Field(None, description="项目类型")
    version: Optional[str] = Field(None, description="版本，默认 1.0.0")
    status: Optional[str] = Field(None, description="active/inactive/blocked")


class InstancePayload(BaseModel):
    """实例字段"""

    client_name: Optional[str] = Field(None, description="客户名称")
    email: Optional[str] = Field(None, description="联系邮箱")
    phone: Optional[str] = Field(None, description="电话")
    price: Optional[float] = Field(None, description="价格")
    payment_day: Optional[int] = Field(None, description="付款日 (1-28)")
    name: Optional[str] = Field(None, description="实例名称")
    code: Optional[str] = Field(None, description="项目内唯一代码")
    description: Optional[str] = Field(None, description="描述")
    status: Optional[str] = Field(None, description="状态")
    settings: Optional[Dict[str, Any]] = Field(None, description="JSON 配置")


class TablePayload(BaseModel):
    """建表字段"""

    table_name: Optional[str] = Field(None, description="表名（不含前缀）")
    columns: Optional[List[Any]] = Field(None, description="列定义 {name, type, nullable, unique}")
    indexes: Optional[List[Any]] = Field(None, description="索引定义 {name, columns, type}")


class ColumnPayload(BaseModel):
    """列定义"""

    name: Optional[str] = Field(None, description="列名")
    type: Optional[str] = Field(None, description="SQL 类型，如 VARCHAR(255)")
    nullable: bool = Field(False, description="是否允许 NULL")
    unique: bool = Field(False, description="是否唯一")


class IndexPayload(BaseModel):
    """索引定义"""

    name: Optional[str] = Field(None, description="索引名")
    columns: Optional[Union[List[str], str]] = Field(
        None, description="列列表或逗号分隔字符串"
    )
    type: Optional[str] = Field(None, description="INDEX（默认）或 UNIQUE")
