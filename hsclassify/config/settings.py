"""
config/settings.py
──────────────────────────────────────────────────────────────────────────────
Single source of truth for all tuneable parameters.

All values can be overridden via environment variables or a .env file placed
at the project root.  The frozen dataclass ensures settings are never mutated
at runtime.

To swap providers, change the relevant env var — no code edits required:
  LLM_PROVIDER   → gemini | openai
  GEMINI_MODEL   → swap Gemini model
  DB_DSN         → swap history database
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
load_dotenv(Path(__file__).parent.parent.parent / ".env")


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


@dataclass(frozen=True)
class Settings:
    """Immutable application settings loaded from environment variables."""

    # ── Provider selection ──────────────────────────────────────────────────
    # Valid values: "gemini" | "openai"
    llm_provider: str = field(
        default_factory=lambda: _env("LLM_PROVIDER", "gemini")
    )

    # ── Gemini (Google AI generateContent API) ─────────────────────────────
    gemini_api_key: str = field(
        default_factory=lambda: _env("GEMINI_API_KEY", "")
    )
    gemini_model: str = field(
        default_factory=lambda: _env("GEMINI_MODEL", "gemini-2.0-flash")
    )

    # ── OpenAI ─────────────────────────────────────────────────────────────
    openai_api_key: str = field(
        default_factory=lambda: _env("OPENAI_API_KEY", "")
    )
    openai_llm_model: str = field(
        default_factory=lambda: _env("OPENAI_LLM_MODEL", "gpt-4o")
    )

    # ── Network ────────────────────────────────────────────────────────────
    https_proxy: str = field(
        default_factory=lambda: _env("HTTPS_PROXY", "")
    )

    # ── History database ───────────────────────────────────────────────────
    db_dsn: str = field(
        default_factory=lambda: _env("DB_DSN", "dbname=hs_classifier")
    )
    history_table: str = field(
        default_factory=lambda: _env("HISTORY_TABLE", "classification_history")
    )

    # ── Authentication (Firebase Identity Toolkit) ─────────────────────────
    firebase_api_key: str = field(
        default_factory=lambda: _env("FIREBASE_API_KEY", "")
    )

    # ── HTTP timeouts (seconds) and retries ────────────────────────────────
    llm_timeout: int  = field(default_factory=lambda: _env_int("LLM_TIMEOUT", 90))
    auth_timeout: int = field(default_factory=lambda: _env_int("AUTH_TIMEOUT", 30))
    # 1 = single attempt, no retry
    llm_retries: int  = field(default_factory=lambda: _env_int("LLM_RETRIES", 1))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns a cached singleton Settings instance.

    Use this everywhere instead of instantiating Settings() directly —
    it guarantees a single object is shared across the entire process.
    """
    return Settings()
