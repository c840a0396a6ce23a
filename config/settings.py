from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str) -> Optional[float]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    return float(raw)


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Built once at startup
    and handed to the relay explicitly; nothing else reads the environment.
    """

    def __init__(self, **overrides):
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.port: int = int(os.getenv("PORT", "3000"))

        self.openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
        self.openai_model: str = os.getenv("OPENAI_MODEL") or "gpt-4o-mini"
        self.openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
        # None means the outbound call waits as long as the upstream takes.
        self.upstream_timeout: Optional[float] = _env_float("UPSTREAM_TIMEOUT")

        self.assistant_name: str = os.getenv("ASSISTANT_NAME", "Kodofeeds")
        self.detect_language: bool = _env_bool("DETECT_LANGUAGE", True)

        self.cors_allow_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
            if origin.strip()
        ]
        self.widget_fallback_endpoint: str = os.getenv(
            "WIDGET_FALLBACK_ENDPOINT", "https://kodofeeds-chat-server.onrender.com/chat"
        )

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
