from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional, Tuple

class Settings(BaseSettings):
    PROJECT_NAME: str = "Advisory Planning API"
    API_V1_STR: str = "/api"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./advisory.db"

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: str) -> str:
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("CORS_ORIGIN_URLS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str]) -> list[str] | str:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    CORS_ORIGIN_URLS: list[str] | str = []

    # Planning assumptions (annual rates as fractions)
    DEFAULT_INFLATION_RATE: float = 0.06
    DEFAULT_EXPECTED_RETURN: float = 0.12
    INCOME_REPLACEMENT_RATIO: float = 0.7
    SAFE_WITHDRAWAL_RATE: float = 0.04

    # Health score: (net worth threshold, points), highest threshold first
    NET_WORTH_TIERS: List[Tuple[float, int]] = [
        (5_000_000, 25),
        (2_000_000, 20),
        (1_000_000, 15),
        (500_000, 10),
        (0, 5),
    ]

    # Comparisons
    RECENT_COMPARISON_DAYS: int = 30
    DEFAULT_HISTORY_LIMIT: int = 10

    # AI
    AI_PROVIDER: str = "google" # 'google', 'ollama' or '' to disable
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "deepseek-r1:latest"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

settings = Settings()
