from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class DatabaseConfig:
    host: str
    port: int
    database: str
    user: str
    password: str

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass(frozen=True)
class AppConfig:
    db_dsn: str
    deepseek_api_key: str
    groq_api_key: str
    anthropic_api_key: str
    commentary_provider: str = "deepseek"
    commentary_model: str = ""
    commentary_max_tokens: int = 2048
    price_cache_minutes: int = 15


def load_config() -> AppConfig:
    """Load application config from environment variables.

    Loads .env file if present in the current directory. DATABASE_URL wins;
    otherwise the DSN is assembled from DB_HOST / DB_PORT / DB_NAME / DB_USER /
    DB_PASSWORD when DB_HOST is set.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    db_dsn = os.environ.get("DATABASE_URL", "")
    if not db_dsn and os.environ.get("DB_HOST"):
        db_dsn = DatabaseConfig(
            host=os.environ["DB_HOST"],
            port=int(os.environ.get("DB_PORT", "5432")),
            database=os.environ.get("DB_NAME", "stockledger"),
            user=os.environ.get("DB_USER", "postgres"),
            password=os.environ.get("DB_PASSWORD", ""),
        ).dsn

    return AppConfig(
        db_dsn=db_dsn,
        deepseek_api_key=os.environ.get("DEEPSEEK_API_KEY", ""),
        groq_api_key=os.environ.get("GROQ_API_KEY", ""),
        anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        commentary_provider=os.environ.get("COMMENTARY_PROVIDER", "deepseek"),
        commentary_model=os.environ.get("COMMENTARY_MODEL", ""),
        commentary_max_tokens=int(os.environ.get("COMMENTARY_MAX_TOKENS", "2048")),
        price_cache_minutes=int(os.environ.get("PRICE_CACHE_MINUTES", "15")),
    )
