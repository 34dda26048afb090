from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "crud-engine"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite+pysqlite:///./crud_engine.db"

    JWT_SECRET: str = "change_me"
    JWT_TTL_MINUTES: int = 240

    CORS_ORIGINS: str = "http://localhost:3000"

    # List endpoint controls
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 500
    DEFAULT_SORT: str = "id:asc"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
