from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

    PROJECT_NAME: str = "车队管理系统"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # CORS配置
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # 数据库配置（异步驱动）
    DATABASE_URI: str = "sqlite+aiosqlite:///./fleet_erp.db"

    # 单租户：所有数据归属的公司
    DEFAULT_COMPANY_ID: int = 1

    # 业务规则参数
    MAINTENANCE_WARNING_RATIO: float = Field(
        default=0.1, description="距下次更换小于该比例的周期时进入预警"
    )
    MAX_SOLD_VACATION_DAYS: int = 10
    PAYROLL_MAX_MONTHS_BACK: int = 1

    # 假期状态同步任务
    VACATION_SYNC_ENABLED: bool = True
    VACATION_SYNC_HOUR: int = 0  # 每天执行时间（小时，0-23）
    VACATION_SYNC_MINUTE: int = 5


settings = Settings()
logger.info(f"加载配置: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
