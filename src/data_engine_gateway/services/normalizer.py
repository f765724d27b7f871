"""
请求规范化

校验调用方传入的原始字段，填充可选字段默认值，整形为数据引擎期望的结构。
所有函数均为纯函数，不发起任何网络调用。
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence
from ..exceptions import InvalidFieldError, MissingRequiredFieldError
from ..models.operation import (
    AggregateOperation,
    DeleteMode,
    FilterSpec,
    OperationKind,
    OperationRequest,
)

# 所有操作共用的必填字段
BASE_REQUIRED = ("project_id", "id_instancia", "table")


def _is_blank(value: Any) -> bool:
    """None、空白字符串、空对象、空列表均视为缺失"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list)):
        return len(value) == 0
    return False


def _lookup(raw: Mapping[str, Any], name: str) -> Any:
    """支持 base.table 形式的嵌套字段"""
    value: Any = raw
    for part in name.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def require_fields(raw: Mapping[str, Any], names: Sequence[str]) -> None:
    """
    检查必填字段

    Args:
        raw: 调用方原始字段
        names: 必填字段名列表

    Raises:
        MissingRequiredFieldError: 一次性列出全部缺失字段
    """
    missing = [name for name in names if _is_blank(_lookup(raw, name))]
    if missing:
        raise MissingRequiredFieldError(missing)


def _to_id(field: str, value: Any) -> int:
    """项目/实例 ID 转为正整数（数据引擎期望 int64）"""
    if isinstance(value, bool):
        raise InvalidFieldError(field, "expected a positive integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float) and value.is_integer():
        result = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        result = int(value.strip())
    else:
        raise InvalidFieldError(field, "expected a positive integer")
    if result <= 0:
        raise InvalidFieldError(field, "expected a positive integer")
    return result


def _expect_str(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidFieldError(field, "expected a string")
    return value.strip()


def _optional_str(field: str, value: Any, default: Optional[str] = "") -> Optional[str]:
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise InvalidFieldError(field, "expected a string")
    return value


def _optional_dict(field: str, value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidFieldError(field, "expected an object")
    return dict(value)


def _optional_list(field: str, value: Any) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidFieldError(field, "expected a list")
    return list(value)


def _optional_count(field: str, value: Any, default: Optional[int] = 0) -> Optional[int]:
    """limit/offset：非负整数"""
    if value is None or value == "":
        return default
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidFieldError(field, "expected a non-negative integer")
    if isinstance(value, str):
        if not value.strip().isdigit():
            raise InvalidFieldError(field, "expected a non-negative integer")
        value = int(value.strip())
    if value < 0:
        raise InvalidFieldError(field, "expected a non-negative integer")
    return value


def _filter(raw: Mapping[str, Any], raw_form: Optional[str] = "text") -> FilterSpec:
    """
    解析过滤条件

    Args:
        raw: 调用方原始字段
        raw_form: where_raw 的形态，"text" 为单个表达式，"list" 为表达式列表
            （单个字符串会包装成列表），None 表示该操作不接受 where_raw
    """
    where = _optional_dict("where", raw.get("where"))
    if raw_form is None:
        return FilterSpec(where=where)

    where_raw = raw.get("where_raw")
    if raw_form == "list":
        if isinstance(where_raw, str):
            where_raw = [where_raw] if where_raw.strip() else []
        conditions = _optional_list("where_raw", where_raw)
        if not all(isinstance(c, str) for c in conditions):
            raise InvalidFieldError("where_raw", "expected a list of strings")
        return FilterSpec(where=where, where_raw=conditions)
    return FilterSpec(where=where, where_raw=_optional_str("where_raw", where_raw, default=None))


def _build(
    kind: OperationKind,
    raw: Mapping[str, Any],
    fields: Dict[str, Any],
    table: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> OperationRequest:
    return OperationRequest(
        kind=kind,
        project_id=_to_id("project_id", raw.get("project_id")),
        id_instancia=_to_id("id_instancia", raw.get("id_instancia")),
        table=table if table is not None else _expect_str("table", raw.get("table")),
        fields=fields,
        idempotency_key=idempotency_key,
    )


def normalize_insert(
    raw: Mapping[str, Any], idempotency_key: Optional[str] = None
) -> OperationRequest:
    """
    单条插入

    data 以扁平对象原样转发，至少包含一个字段
    """
    require_fields(raw, BASE_REQUIRED + ("data",))
    data = raw.get("data")
    if not isinstance(data, dict):
        raise InvalidFieldError("data", "expected an object")

    return _build(
        OperationKind.INSERT, raw, {"data": dict(data)}, idempotency_key=idempotency_key
    )


def normalize_batch_insert(
    raw: Mapping[str, Any], idempotency_key: Optional[str] = None
) -> OperationRequest:
    """
    批量插入

    每行缺少 id_instancia 时补上请求级的 id_instancia，显式给出的值保持不变
    """
    require_fields(raw, BASE_REQUIRED + ("data",))
    data = raw.get("data")
    if not isinstance(data, list):
        raise InvalidFieldError("data", "expected a list")

    instance_id = _to_id("id_instancia", raw.get("id_instancia"))
    rows = []
    for index, row in enumerate(data):
        if not isinstance(row, dict):
            raise InvalidFieldError(f"data[{index}]", "expected an object")
        filled = dict(row)
        if filled.get("id_instancia") is None:
            filled["id_instancia"] = instance_id
        rows.append(filled)

    return _build(
        OperationKind.BATCH_INSERT, raw, {"data": rows}, idempotency_key=idempotency_key
    )


def normalize_select(raw: Mapping[str, Any]) -> OperationRequest:
    """
    高级查询

    可选字段统一填充为“不限制”的值，保证数据引擎总是收到完整结构
    """
    require_fields(raw, BASE_REQUIRED)

    filters = _filter(raw)
    fields = {
        "alias": _optional_str("alias", raw.get("alias")),
        "select": _optional_list("select", raw.get("select")),
        "joins": _optional_list("joins", raw.get("joins")),
        "where": filters.where,
        "where_raw": filters.where_raw or "",
        "group_by": _optional_str("group_by", raw.get("group_by")),
        "having": _optional_str("having", raw.get("having")),
        "order_by": _optional_str("order_by", raw.get("order_by")),
        "limit": _optional_count("limit", raw.get("limit")),
        "offset": _optional_count("offset", raw.get("offset")),
    }
    return _build(OperationKind.SELECT, raw, fields)


def normalize_join_select(raw: Mapping[str, Any]) -> OperationRequest:
    """
    多表 JOIN 查询

    基表由 base = {table, alias, columns} 描述，where_raw 为条件列表
    """
    require_fields(raw, ("project_id", "id_instancia", "base.table"))
    base = raw.get("base")
    table = _expect_str("base.table", base.get("table"))

    filters = _filter(raw, raw_form="list")

    fields = {
        "base": {
            "table": table,
            "alias": _optional_str("base.alias", base.get("alias")),
            "columns": _optional_list("base.columns", base.get("columns")),
        },
        "joins": _optional_list("joins", raw.get("joins")),
        "where": filters.where,
        "where_raw": filters.where_raw,
        "group_by": _optional_str("group_by", raw.get("group_by")),
        "having": _optional_str("having", raw.get("having")),
        "order_by": _optional_str("order_by", raw.get("order_by")),
        "limit": _optional_count("limit", raw.get("limit"), default=None),
        "offset": _optional_count("offset", raw.get("offset"), default=None),
    }
    return _build(OperationKind.JOIN_SELECT, raw, fields, table=table)


def normalize_update(raw: Mapping[str, Any]) -> OperationRequest:
    """单条更新，where 缺省为空对象"""
    require_fields(raw, BASE_REQUIRED + ("data",))
    data = raw.get("data")
    if not isinstance(data, dict):
        raise InvalidFieldError("data", "expected an object")

    filters = _filter(raw)
    fields = {
        "data": dict(data),
        "where": filters.where,
        "where_raw": filters.where_raw or "",
    }
    return _build(OperationKind.UPDATE, raw, fields)


def normalize_batch_update(raw: Mapping[str, Any]) -> OperationRequest:
    """批量更新，updates 为 {data, where} 列表"""
    require_fields(raw, BASE_REQUIRED + ("updates",))
    updates = raw.get("updates")
    if not isinstance(updates, list):
        raise InvalidFieldError("updates", "expected a list")

    for index, item in enumerate(updates):
        if not isinstance(item, dict):
            raise InvalidFieldError(f"updates[{index}]", "expected an object")
    missing = [
        f"updates[{index}].data"
        for index, item in enumerate(updates)
        if _is_blank(item.get("data"))
    ]
    if missing:
        raise MissingRequiredFieldError(missing)

    items = []
    for index, item in enumerate(updates):
        if not isinstance(item["data"], dict):
            raise InvalidFieldError(f"updates[{index}].data", "expected an object")
        items.append(
            {
                "data": dict(item["data"]),
                "where": _optional_dict(f"updates[{index}].where", item.get("where")),
            }
        )
    return _build(OperationKind.BATCH_UPDATE, raw, {"updates": items})


def normalize_delete(raw: Mapping[str, Any]) -> OperationRequest:
    """
    删除

    未指定 mode 时默认 hard（不可恢复）；需要软删除必须显式传入 "soft"
    """
    require_fields(raw, BASE_REQUIRED)

    mode = raw.get("mode")
    if _is_blank(mode):
        mode = DeleteMode.HARD
    else:
        try:
            mode = DeleteMode(str(mode).strip().lower())
        except ValueError:
            raise InvalidFieldError("mode", "expected 'hard' or 'soft'")

    filters = _filter(raw)
    fields = {
        "where": filters.where,
        "where_raw": filters.where_raw,
        "mode": mode.value,
    }
    return _build(OperationKind.DELETE, raw, fields)


def normalize_aggregate(raw: Mapping[str, Any]) -> OperationRequest:
    """
    聚合

    SUM/AVG/MIN/MAX 必须指定 column；COUNT/EXISTS 忽略 column
    """
    required = list(BASE_REQUIRED) + ["operation"]
    operation = raw.get("operation")
    parsed: Optional[AggregateOperation] = None
    if isinstance(operation, str) and operation.strip():
        try:
            parsed = AggregateOperation(operation.strip().upper())
        except ValueError:
            parsed = None
        if parsed is not None and parsed.needs_column:
            required.append("column")
    require_fields(raw, required)

    if parsed is None:
        allowed = ", ".join(op.value for op in AggregateOperation)
        raise InvalidFieldError("operation", f"expected one of {allowed}")

    fields = {
        "operation": parsed.value,
        "column": _expect_str("column", raw.get("column")) if parsed.needs_column else None,
        "where": _filter(raw, raw_form=None).where,
    }
    return _build(OperationKind.AGGREGATE, raw, fields)
