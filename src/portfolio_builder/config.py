from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Loads keys from process env, and also from a local .env file for convenience.
    model_config = SettingsConfigDict(env_prefix="", extra="ignore", env_file=".env", env_file_encoding="utf-8")

    data_dir: str = "data"
    log_level: str = "INFO"

    # Keys
    gemini_api_key: str | None = None
    openai_api_key: str | None = None

    # Which provider drafts text; images always go through gemini.
    text_provider: str = "gemini"

    # Models (set via env vars as needed)
    gemini_text_model: str = "gemini-2.0-flash"
    gemini_image_model: str = "gemini-2.0-flash-preview-image-generation"
    openai_text_model: str = "gpt-4.1-mini"
    generation_timeout_s: float = 60.0

    # Publishing
    storage_key: str = "portfolioData"
    session_cookie: str = "portfolio_session"

    # In-memory sessions; least recently used are dropped past either limit.
    max_sessions: int = 500
    session_ttl_s: float = 3600.0

    avatar_base_url: str = "https://api.dicebear.com/8.x/initials/svg?seed="


settings = Settings()
