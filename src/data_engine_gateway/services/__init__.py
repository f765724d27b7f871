"""
服务层模块
"""

from .engine_client import DataEngineClient
from .data_engine_service import DataEngineService
from .project_service import ProjectService
from .schema_service import SchemaService

__all__ = [
    "DataEngineClient",
    "DataEngineService",
    "ProjectService",
    "SchemaService",
]
