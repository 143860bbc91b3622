"""
Stoa Assistant — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from stoa/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # LLM, provider-agnostic (gemini, anthropic, openai, cohere)
    LLM_PROVIDER: str = "gemini"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str = ""

    # SQLite
    DATABASE_PATH: str = "data/stoa.db"

    # Security (empty → open to everyone)
    ALLOWED_USER_IDS: list[int] = []

    # Daily reminders
    REMINDER_HOUR: int = 8
    TIMEZONE: str = "UTC"

    # Typing reveal for AI chat messages
    REVEAL_TICK_MS: int = 20
    REVEAL_RENDER_INTERVAL_MS: int = 1000

    # Free tier limits (paywall prompts above these)
    FREE_HABIT_LIMIT: int = 3
    FREE_TASK_LIMIT: int = 5

    # Share service (empty → only client-side import links work)
    SHARE_API_URL: str = ""

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator(
        "REMINDER_HOUR",
        "REVEAL_TICK_MS",
        "REVEAL_RENDER_INTERVAL_MS",
        "FREE_HABIT_LIMIT",
        "FREE_TASK_LIMIT",
        mode="before",
    )
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @property
    def reveal_tick_seconds(self) -> float:
        return self.REVEAL_TICK_MS / 1000

    @property
    def reveal_render_interval_seconds(self) -> float:
        return self.REVEAL_RENDER_INTERVAL_MS / 1000


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        LLM_PROVIDER=os.getenv("LLM_PROVIDER", "gemini"),
        LLM_MODEL=os.getenv("LLM_MODEL", ""),
        LLM_API_KEY=os.getenv("LLM_API_KEY", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/stoa.db"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        REMINDER_HOUR=os.getenv("REMINDER_HOUR", "8"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        REVEAL_TICK_MS=os.getenv("REVEAL_TICK_MS", "20"),
        REVEAL_RENDER_INTERVAL_MS=os.getenv("REVEAL_RENDER_INTERVAL_MS", "1000"),
        FREE_HABIT_LIMIT=os.getenv("FREE_HABIT_LIMIT", "3"),
        FREE_TASK_LIMIT=os.getenv("FREE_TASK_LIMIT", "5"),
        SHARE_API_URL=os.getenv("SHARE_API_URL", ""),
    )


# Singleton, imported by all other modules as:
#   from stoa.config import settings
settings = _load_settings()
