from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    SERVICE_PORT: int = 8080
    LOG_JSON: bool = True
    # Store backend selection: "sqlite" or "memory"
    STORE_BACKEND: Literal["sqlite", "memory"] = "sqlite"
    DATABASE_URL: str = "eventledger.db"
    DB_TIMEOUT_SECONDS: float = 1.0
    # Listing limits for GET /events
    DEFAULT_EVENT_LIMIT: int = 50
    MAX_EVENT_LIMIT: int = 1000
    MAX_EVENT_SIZE: int = 65536
    STRICT_TIMESTAMPS: bool = False
    # Authentication (HTTP Basic)
    REQUIRE_AUTH: bool = False
    API_USERNAME: str = ""
    API_PASSWORD: str = ""
    WS_MESSAGE_INTERVAL: float = 1.0

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
