"""
项目与实例管理服务

通过数据引擎的主库接口管理项目 (projects) 和实例 (instances)
"""

from typing import Any, Dict, List, Mapping, Optional
from .engine_client import DataEngineClient, as_list
from .normalizer import require_fields
from ..exceptions import NotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)

PROJECT_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "code": "",
    "description": "",
    "api_key": "",
    "type": "",
    "version": "1.0.0",
    "status": "active",
}

INSTANCE_DEFAULTS: Dict[str, Any] = {
    "project_id": None,
    "client_name": "",
    "email": "",
    "phone": "",
    "price": 0,
    "payment_day": None,
    "name": "",
    "code": "",
    "description": "",
    "status": "active",
    "settings": {},
}

PROJECT_REQUIRED = ("name", "code", "type", "api_key")
INSTANCE_REQUIRED = ("project_id", "client_name", "email", "name", "code")


def build_payload(base: Mapping[str, Any], data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    用输入覆盖默认结构

    只接受 base 中已有的键；None 和空字符串不会覆盖默认值

    Args:
        base: 默认结构
        data: 调用方输入

    Returns:
        完整的请求体
    """
    payload = dict(base)
    for key in base:
        value = (data or {}).get(key)
        if value is not None and value != "":
            payload[key] = value
    return payload


def build_project_payload(data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    return build_payload(PROJECT_DEFAULTS, data)


def build_instance_payload(data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    return build_payload(INSTANCE_DEFAULTS, data)


def _unwrap_list(body: Any) -> List[Dict[str, Any]]:
    """引擎返回 [...] 或 {"data": [...]}，其他结构视为空列表"""
    if isinstance(body, list) or (isinstance(body, dict) and isinstance(body.get("data"), list)):
        return as_list(body)
    return []


def _same_id(record: Mapping[str, Any], record_id: Any) -> bool:
    return str(record.get("id")) == str(record_id)


class ProjectService:
    """项目与实例管理服务"""

    def __init__(self, client: DataEngineClient):
        """
        初始化服务

        Args:
            client: 数据引擎客户端
        """
        self.client = client

    # ============ 项目 ============

    async def list_projects(self) -> List[Dict[str, Any]]:
        """
        列出全部项目

        Returns:
            项目列表；引擎返回 {"data": [...]} 时自动展开，无法识别的结构返回空列表
        """
        projects = _unwrap_list(await self.client.request("GET", "/projects"))
        logger.debug(f"Listed {len(projects)} projects")
        return projects

    async def get_project(self, project_id: Any) -> Dict[str, Any]:
        """
        按 ID 查找项目

        Raises:
            NotFoundError: 项目不存在
        """
        for project in await self.list_projects():
            if _same_id(project, project_id):
                return project
        raise NotFoundError(f"project {project_id} not found")

    async def create_project(self, data: Mapping[str, Any]) -> Any:
        """
        创建项目

        Args:
            data: 项目字段，name/code/type/api_key 必填

        Returns:
            引擎响应
        """
        payload = build_project_payload(data)
        require_fields(payload, PROJECT_REQUIRED)
        logger.info(f"Creating project code={payload['code']}")
        return await self.client.request("POST", "/projects", json=payload)

    async def update_project(self, project_id: Any, data: Mapping[str, Any]) -> Any:
        """
        更新项目

        先读取当前记录再合并变更，保证未提交的字段不会被清空
        """
        current = await self.get_project(project_id)
        payload = build_project_payload({**current, **dict(data)})
        logger.info(f"Updating project {project_id}")
        return await self.client.request("PUT", f"/projects/{project_id}", json=payload)

    async def delete_project(self, project_id: Any) -> Any:
        """删除项目（引擎侧级联删除实例和数据）"""
        logger.warning(f"Deleting project {project_id}")
        return await self.client.request("DELETE", f"/projects/{project_id}")

    # ============ 实例 ============

    async def list_instances(self, project_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        """
        列出实例

        Args:
            project_id: 按项目过滤（可选）
        """
        params = {"project_id": project_id} if project_id else None
        return _unwrap_list(await self.client.request("GET", "/instances", params=params))

    async def create_instance(self, data: Mapping[str, Any]) -> Any:
        """
        创建实例

        Args:
            data: 实例字段，project_id/client_name/email/name/code 必填
        """
        payload = build_instance_payload(data)
        require_fields(payload, INSTANCE_REQUIRED)
        logger.info(
            f"Creating instance code={payload['code']} for project {payload['project_id']}"
        )
        return await self.client.request("POST", "/instances", json=payload)

    async def update_instance(self, instance_id: Any, data: Mapping[str, Any]) -> Any:
        """
        更新实例

        需要 project_id 才能在该项目的实例列表中找到当前记录
        """
        require_fields(data, ("project_id",))
        instances = await self.list_instances(data["project_id"])
        current = next((i for i in instances if _same_id(i, instance_id)), None)
        if current is None:
            raise NotFoundError(f"instance {instance_id} not found")

        payload = build_instance_payload({**current, **dict(data)})
        logger.info(f"Updating instance {instance_id}")
        return await self.client.request("PUT", f"/instances/{instance_id}", json=payload)

    async def delete_instance(self, instance_id: Any) -> Any:
        """删除实例"""
        logger.warning(f"Deleting instance {instance_id}")
        return await self.client.request("DELETE", f"/instances/{instance_id}")
