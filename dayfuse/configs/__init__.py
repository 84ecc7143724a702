from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .database import DatabaseConfig
from .push import PushConfig
from .redis import RedisConfig
from .reminder import ReminderConfig


class DayFuseConfig(BaseSettings):
    """Root configuration, populated from ``DAYFUSE_*`` environment variables.

    Nested sections use ``_`` as delimiter, e.g. ``DAYFUSE_Push_SweepIntervalSecs=10``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DAYFUSE_",
        env_nested_delimiter="_",
        case_sensitive=False,
        extra="ignore",
    )

    Debug: bool = Field(default=False, description="Enable debug mode")
    Host: str = Field(default="0.0.0.0", description="Bind host")
    Port: int = Field(default=5000, description="Bind port")
    Env: str = Field(default="development", description="Deployment environment name")

    Database: DatabaseConfig = Field(default_factory=lambda: DatabaseConfig(), description="Database configuration")
    Redis: RedisConfig = Field(default_factory=lambda: RedisConfig(), description="Redis configuration")
    Push: PushConfig = Field(default_factory=lambda: PushConfig(), description="Web Push configuration")
    Reminder: ReminderConfig = Field(default_factory=lambda: ReminderConfig(), description="Reminder configuration")


configs = DayFuseConfig()

__all__ = ["configs", "DayFuseConfig"]
