"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class SwiftSettings(BaseModel):
    # Keystone / TempAuth
    auth_url: Optional[str] = None
    user: Optional[str] = None
    key: Optional[str] = None
    auth_version: str = "3"
    project_name: Optional[str] = None
    user_domain_name: str = "Default"
    project_domain_name: str = "Default"
    region_name: Optional[str] = None

    # 预认证（跳过 auth 流程）
    preauthurl: Optional[str] = None
    preauthtoken: Optional[str] = None

    # 容器绑定
    container: Optional[str] = None
    prefix: Optional[str] = None
    create_container: bool = False

    # 连接参数
    retries: int = 5
    timeout: Optional[float] = 30.0
    insecure: bool = False
    max_retry_attempts: int = 3


class FilesystemSettings(BaseModel):
    type: str = "swift"
    validation_enabled: bool = False
    max_file_size: int = 100 * 1024 * 1024  # 100MB
    allowed_types: Optional[list[str]] = None

    @field_validator("allowed_types", mode="before")
    @classmethod
    def _parse_allowed_types(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if v is None or isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return None
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            return [item.strip() for item in s.split(",") if item.strip()]
        return v


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="swift-filesystem-adapter", env=["PROJECT_NAME", "APP_NAME"])
    VERSION: str = Field(default="1.0.0", env=["VERSION", "APP_VERSION"])
    DEBUG: bool = Field(default=False, env="DEBUG")
    ENVIRONMENT: str = Field(default="development", env="ENVIRONMENT")

    # 日志配置
    LOG_LEVEL: Optional[str] = Field(default=None, env="LOG_LEVEL")
    LOG_JSON: Optional[bool] = Field(default=None, env="LOG_JSON")

    # 分组配置：Swift / Filesystem 采用嵌套模型
    swift: SwiftSettings = Field(default_factory=SwiftSettings)
    filesystem: FilesystemSettings = Field(default_factory=FilesystemSettings)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):
        """统一转为大写，空字符串视为未设置。"""
        if v is None:
            return None
        s = str(v).strip()
        return s.upper() or None

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL
        return "DEBUG" if self.DEBUG else "INFO"

    @property
    def log_json(self) -> bool:
        if self.LOG_JSON is not None:
            return self.LOG_JSON
        return not self.DEBUG


# 创建全局配置实例
settings = Settings()
