"""
API 路由
"""

from .data import router as data_router
from .admin import router as admin_router

__all__ = ["data_router", "admin_router"]
