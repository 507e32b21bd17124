from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "shipsheet"
    POSTGRES_USER: str = "shipsheet"
    POSTGRES_PASSWORD: str = "shipsheet"
    # Full SQLAlchemy URL; overrides the POSTGRES_* settings when set
    DATABASE_URL: Optional[str] = None
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    LOG_LEVEL: str = "INFO"
    SERVICE_VERSION: str = "1.0.0"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

@lru_cache
def get_settings() -> Settings:
    return Settings()
