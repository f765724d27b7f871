"""
配置管理模块

使用 Pydantic Settings 管理环境变量配置，进程启动时加载一次
"""

from functools import lru_cache
from typing import List, Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# 在所有配置类之前加载 .env 到 os.environ
load_dotenv()


class AppSettings(BaseSettings):
    """应用基础配置"""

    app_name: str = Field(default="data-engine-gateway", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    app_env: Literal["development", "staging", "production"] = Field(
        default="production", alias="APP_ENV"
    )
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    # 管理面板会话密钥，会话登录不在网关内实现
    session_secret: str = Field(default="super_secret", alias="SESSION_SECRET")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


class EngineSettings(BaseSettings):
    """下游数据引擎配置"""

    engine_base_url: str = Field(
        default="http://localhost:8080", alias="DATA_ENGINE_URL"
    )
    internal_token: Optional[str] = Field(default=None, alias="INTERNAL_TOKEN")
    engine_timeout: float = Field(default=30.0, alias="DATA_ENGINE_TIMEOUT")
    # 熔断：连续失败次数阈值（0 禁用）和 OPEN 冷却秒数
    breaker_failure_threshold: int = Field(default=5, alias="DATA_ENGINE_BREAKER_THRESHOLD")
    breaker_reset_timeout: float = Field(default=30.0, alias="DATA_ENGINE_BREAKER_RESET")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


class AuthSettings(BaseSettings):
    """入站 API Key 配置"""

    api_keys: str = Field(default="", alias="API_KEYS", validate_default=True)

    @field_validator("api_keys")
    @classmethod
    def parse_api_keys(cls, v: Optional[str]) -> List[str]:
        """解析逗号分隔的 API Key 白名单"""
        if not v:
            return []
        return [key.strip() for key in v.split(",") if key.strip()]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


class LogSettings(BaseSettings):
    """日志配置"""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_format: Literal["json", "text"] = Field(default="json", alias="LOG_FORMAT")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


class Settings:
    """全局配置管理器"""

    def __init__(
        self,
        app: Optional[AppSettings] = None,
        engine: Optional[EngineSettings] = None,
        auth: Optional[AuthSettings] = None,
        log: Optional[LogSettings] = None,
    ):
        self.app = app or AppSettings()
        self.engine = engine or EngineSettings()
        self.auth = auth or AuthSettings()
        self.log = log or LogSettings()


@lru_cache
def get_settings() -> Settings:
    """
    获取进程级配置实例

    Returns:
        首次调用时加载的配置，之后复用同一实例
    """
    return Settings()
