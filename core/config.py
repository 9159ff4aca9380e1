"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./payments.db"
    echo: bool = False


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Razorpay Payment Reconciler")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    # 日志配置：LOG_LEVEL 为空时按 DEBUG 推断；LOG_JSON 强制 JSON 输出
    LOG_LEVEL: Optional[str] = Field(default=None)
    LOG_JSON: bool = Field(default=False)

    # 分组配置：DATABASE__URL 等
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # 部署在可信反向代理之后时才读取 X-Forwarded-For
    TRUST_PROXY_HEADERS: bool = Field(default=False)

    # CORS配置
    CORS_ORIGINS: list = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
