from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    database_url: Optional[str] = Field(None, alias="DATABASE_URL")
    storage_key: str = Field("split-bill-storage-v3", alias="STORAGE_KEY")
    default_tax_rate: float = Field(0.0, alias="DEFAULT_TAX_RATE", ge=0)
    default_service_rate: float = Field(0.0, alias="DEFAULT_SERVICE_RATE", ge=0)
    protect_owner: bool = Field(True, alias="PROTECT_OWNER")
    log_level: str = Field("INFO", alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
