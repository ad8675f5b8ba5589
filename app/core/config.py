from pydantic import Field, AliasChoices, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Optional


class Settings(BaseSettings):
    PROJECT_NAME: str = "Generic Data Repository"
    VERSION: str = "0.1.0"

    # Database
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "changethis"
    POSTGRES_DB: str = "repository"
    POSTGRES_PORT: int = 5432
    SQLALCHEMY_DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info) -> Any:
        if isinstance(v, str):
            return v
        data = info.data if hasattr(info, "data") else {}
        # No server configured: local SQLite file
        if not data.get("POSTGRES_SERVER"):
            return "sqlite+aiosqlite:///./data/repository.db"

        return f"postgresql+asyncpg://{data.get('POSTGRES_USER')}:{data.get('POSTGRES_PASSWORD')}@{data.get('POSTGRES_SERVER')}:{data.get('POSTGRES_PORT')}/{data.get('POSTGRES_DB') or ''}"

    # Engine
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 3
    DB_MAX_OVERFLOW: int = 2
    DB_POOL_RECYCLE: int = 300

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = Field(
        default=True,
        validation_alias=AliasChoices("LOG_JSON", "JSON_LOGS"),
    )

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
