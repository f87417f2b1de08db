from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent  # project root
ENV_PATH = BASE_DIR / ".env"

# Load .env into the environment first so plain os.getenv callers see it too
load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",  # ignore unknown keys in .env
        case_sensitive=False,
    )

    DATABASE_URL: str = "sqlite+aiosqlite:///./promocode.db"
    DATABASE_ECHO: bool = False

    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    CACHE_BACKEND: str = "redis"  # redis | memory
    CACHE_TTL_SECONDS: int = 0  # 0 = keep until invalidated

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_ACCESS_MINUTES: int = 30
    JWT_REFRESH_DAYS: int = 14

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    SYSTEM_REDEEMER: str = "System - Redeemed"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip() and o.strip() != "*"]


settings = Settings()
