"""Runtime settings, read from the environment (and a .env file if present)."""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    provider: str = "echo"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    provider_timeout: float = Field(30.0, gt=0)
    reversal_probability: float = Field(0.3, ge=0.0, le=1.0)
    log_level: str = "INFO"


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)

    openai_key = _env("OPENAI_API_KEY")
    gemini_key = _env("GEMINI_API_KEY")
    default_provider = "gemini" if gemini_key else "openai" if openai_key else "echo"

    return Settings(
        provider=_env("DIVINATION_PROVIDER") or default_provider,
        openai_api_key=openai_key,
        openai_model=_env("OPENAI_MODEL") or "gpt-4o-mini",
        gemini_api_key=gemini_key,
        gemini_model=_env("GEMINI_MODEL") or "gemini-2.0-flash",
        provider_timeout=float(_env("PROVIDER_TIMEOUT") or 30.0),
        reversal_probability=float(_env("REVERSAL_PROBABILITY") or 0.3),
        log_level=(_env("DIVINATION_LOG_LEVEL") or "INFO").upper(),
    )
