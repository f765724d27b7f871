"""
表结构管理服务

管理项目下的表、列和索引。数据引擎以项目 code 区分表前缀，
对外接口使用项目 ID，由 ProjectService 解析出 code。

所有表由引擎自动附加:
- id (BIGINT UNSIGNED AUTO_INCREMENT PRIMARY KEY)
- id_instancia (BIGINT UNSIGNED NOT NULL + 外键)
"""

from typing import Any, Dict, List, Mapping
from .engine_client import DataEngineClient
from .normalizer import require_fields
from .project_service import ProjectService
from ..exceptions import InvalidFieldError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def build_column_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    构建列定义

    Args:
        data: 包含 name、type，可选 nullable、unique

    Returns:
        {name, type, nullable, unique}
    """
    require_fields(data, ("name", "type"))
    return {
        "name": data["name"],
        "type": data["type"],
        "nullable": bool(data.get("nullable", False)),
        "unique": bool(data.get("unique", False)),
    }


def build_index_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    构建索引定义

    columns 可以是列表，也可以是逗号分隔的字符串；type 默认 INDEX
    """
    require_fields(data, ("name", "columns"))
    columns = data["columns"]
    if isinstance(columns, str):
        columns = [c.strip() for c in columns.split(",") if c.strip()]
    elif not isinstance(columns, list):
        raise InvalidFieldError("columns", "expected a list or comma-separated string")

    return {
        "name": data["name"],
        "columns": columns,
        "type": (data.get("type") or "INDEX").upper(),
    }


class SchemaService:
    """表结构管理服务"""

    def __init__(self, client: DataEngineClient, projects: ProjectService):
        """
        初始化服务

        Args:
            client: 数据引擎客户端
            projects: 项目服务，用于把项目 ID 解析为 code
        """
        self.client = client
        self.projects = projects

    async def _project_code(self, project_id: Any) -> str:
        project = await self.projects.get_project(project_id)
        return project["code"]

    # ============ 表 ============

    async def create_table(self, project_id: Any, data: Mapping[str, Any]) -> Any:
        """
        创建表

        Args:
            project_id: 项目 ID
            data: {table_name, columns: [...], indexes?: [...]}
        """
        require_fields(data, ("table_name", "columns"))
        if not isinstance(data["columns"], list):
            raise InvalidFieldError("columns", "expected a list")
        indexes = data.get("indexes") or []
        if not isinstance(indexes, list):
            raise InvalidFieldError("indexes", "expected a list")

        code = await self._project_code(project_id)
        payload = {
            "project_id": project_id,
            "table_name": data["table_name"],
            "columns": [build_column_payload(c) for c in data["columns"]],
            "indexes": [build_index_payload(i) for i in indexes],
        }
        logger.info(f"Creating table {code}.{data['table_name']}")
        return await self.client.request(
            "POST", "/schema/table", json=payload, params={"project_code": code}
        )

    async def list_tables(self, project_id: Any) -> List[str]:
        """列出项目下全部表名（不含前缀）"""
        code = await self._project_code(project_id)
        body = await self.client.request(
            "GET", "/schema/tables", params={"project_code": code}
        )
        return body if isinstance(body, list) else []

    async def get_table_details(self, project_id: Any, table: str) -> Any:
        """获取表的列、类型和索引"""
        code = await self._project_code(project_id)
        return await self.client.request(
            "GET", "/schema/table/details", params={"project_code": code, "table": table}
        )

    async def delete_table(self, project_id: Any, table: str) -> Any:
        """删除表及其全部数据"""
        code = await self._project_code(project_id)
        logger.warning(f"Dropping table {code}.{table}")
        return await self.client.request(
            "DELETE", "/schema/table", params={"project_code": code, "table": table}
        )

    # ============ 列 ============

    async def add_column(self, project_id: Any, table: str, data: Mapping[str, Any]) -> Any:
        payload = build_column_payload(data)
        code = await self._project_code(project_id)
        logger.info(f"Adding column {payload['name']} to {code}.{table}")
        return await self.client.request(
            "POST", "/schema/column", json=payload, params={"project_code": code, "table": table}
        )

    async def modify_column(self, project_id: Any, table: str, data: Mapping[str, Any]) -> Any:
        payload = build_column_payload(data)
        code = await self._project_code(project_id)
        logger.info(f"Modifying column {payload['name']} on {code}.{table}")
        return await self.client.request(
            "PUT", "/schema/column", json=payload, params={"project_code": code, "table": table}
        )

    async def drop_column(self, project_id: Any, table: str, column: str) -> Any:
        code = await self._project_code(project_id)
        logger.warning(f"Dropping column {column} from {code}.{table}")
        return await self.client.request(
            "DELETE",
            "/schema/column",
            params={"project_code": code, "table": table, "column": column},
        )

    # ============ 索引 ============

    async def add_index(self, project_id: Any, table: str, data: Mapping[str, Any]) -> Any:
        payload = build_index_payload(data)
        code = await self._project_code(project_id)
        logger.info(f"Adding index {payload['name']} to {code}.{table}")
        return await self.client.request(
            "POST", "/schema/index", json=payload, params={"project_code": code, "table": table}
        )

    async def drop_index(self, project_id: Any, table: str, index: str) -> Any:
        code = await self._project_code(project_id)
        logger.info(f"Dropping index {index} from {code}.{table}")
        return await self.client.request(
            "DELETE",
            "/schema/index",
            params={"project_code": code, "table": table, "index": index},
        )
