import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="FAMILYHUB_DATABASE_URL")
    database_pool_size: int = Field(10, alias="FAMILYHUB_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="FAMILYHUB_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="FAMILYHUB_DATABASE_ECHO")
    database_telemetry: bool = Field(False, alias="FAMILYHUB_DB_TELEMETRY")
    default_timezone: str = Field("America/Los_Angeles", alias="FAMILYHUB_DEFAULT_TIMEZONE")
    math_reward_points: int = Field(1, ge=0, alias="FAMILYHUB_MATH_REWARD_POINTS")
    sight_word_reward_points: int = Field(1, ge=0, alias="FAMILYHUB_SIGHT_WORD_REWARD_POINTS")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", alias="FAMILYHUB_LOG_LEVEL")
    log_requests: bool = Field(False, alias="FAMILYHUB_LOG_REQUESTS")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
