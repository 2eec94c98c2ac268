"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "campus_placement"

    # LLM (any OpenAI-compatible endpoint)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.deepseek.com/v1"
    llm_model: str = "deepseek-chat"
    llm_timeout_seconds: float = 10.0

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # First admin account, created at startup when both are set
    bootstrap_admin_email: str = ""
    bootstrap_admin_password: str = ""

    # Analysis caching (seconds)
    context_cache_ttl_seconds: int = 120
    fallback_answer_ttl_seconds: int = 600
    ai_answer_ttl_seconds: int = 1800

    # Placement rules
    enforce_cgpa_eligibility: bool = True

    # App
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    debug: bool = True

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
