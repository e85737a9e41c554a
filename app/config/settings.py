import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field


def _split_csv(raw: str | None, default: list[str]) -> list[str]:
    values = [s.strip().upper() for s in (raw or "").split(",") if s.strip()]
    return values or list(default)


def _env_flag(raw: str | None) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    COINGECKO_API_KEY: str | None = None
    COINGECKO_API_PLAN: Literal["demo", "pro"] = "demo"
    COINGECKO_BASE_URL: str | None = None
    HOST: str = "0.0.0.0"
    PORT: int = Field(default=3000, ge=1, le=65535)
    PRICE_REQUEST_TIMEOUT_SEC: float = Field(default=10.0, gt=0)
    SYMBOL_REFRESH_ENABLED: bool = False
    SYMBOL_REFRESH_INTERVAL_SEC: int = Field(default=3600, ge=1)
    SYMBOL_REFRESH_EXCHANGE: str = "gdax"
    SYMBOL_QUOTE_SUFFIXES: list[str] = ["USD", "USDT"]

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "COINGECKO_API_KEY": os.getenv("COINGECKO_API_KEY") or None,
            "COINGECKO_API_PLAN": os.getenv("COINGECKO_API_PLAN", "demo").strip().lower(),
            "COINGECKO_BASE_URL": os.getenv("COINGECKO_BASE_URL") or None,
            "HOST": os.getenv("HOST", "0.0.0.0"),
            "PORT": os.getenv("PORT", "3000"),
            "PRICE_REQUEST_TIMEOUT_SEC": os.getenv("PRICE_REQUEST_TIMEOUT_SEC", "10"),
            "SYMBOL_REFRESH_ENABLED": _env_flag(os.getenv("SYMBOL_REFRESH_ENABLED")),
            "SYMBOL_REFRESH_INTERVAL_SEC": os.getenv("SYMBOL_REFRESH_INTERVAL_SEC", "3600"),
            "SYMBOL_REFRESH_EXCHANGE": os.getenv("SYMBOL_REFRESH_EXCHANGE", "gdax").strip() or "gdax",
            "SYMBOL_QUOTE_SUFFIXES": _split_csv(os.getenv("SYMBOL_QUOTE_SUFFIXES"), ["USD", "USDT"]),
        }
        return cls.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
