"""
数据引擎网关

把 CRUD/聚合请求和项目、表结构管理调用转发给外部数据引擎
"""

__version__ = "1.0.0"
