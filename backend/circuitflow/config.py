from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    app_name: str = "CircuitFlow"
    debug: bool = False
    env: str = "development"
    log_level: str = "INFO"

    # Server
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:3000",
    ]

    # Persistence (async SQLAlchemy URL)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./circuitflow.db", alias="DATABASE_URL"
    )
    auto_migrate_on_startup: bool = False

    # Stamped into exported circuit files
    build: str = "dev"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
