"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, HttpUrl, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_AUTH_BACKGROUND_URL = (
    "https://images.unsplash.com/photo-1552832230-c0197dd311b5"
    "?q=80&w=1996&auto=format&fit=crop"
)
DEFAULT_PLATFORM_SUBTITLE = "Sardegna Turistica piattaforma video tv"


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="ArcheoPlay", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    content_engine: Literal["gemini", "openrouter"] = Field(
        default="gemini", alias="CONTENT_ENGINE"
    )

    gemini_api_key: str | None = Field(
        default=None,
        alias="GEMINI_API_KEY",
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
    )
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_api_url: HttpUrl = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_API_URL",
    )

    openrouter_api_key: str | None = Field(
        default=None, alias="OPENROUTER_API_KEY"
    )
    openrouter_model: str = Field(
        default="google/gemini-2.5-flash", alias="OPENROUTER_MODEL"
    )
    openrouter_api_url: HttpUrl = Field(
        default="https://openrouter.ai/api/v1", alias="OPENROUTER_API_URL"
    )

    search_debounce_ms: int = Field(
        default=600, alias="SEARCH_DEBOUNCE_MS", ge=0, le=10_000
    )
    search_min_query_length: int = Field(
        default=2, alias="SEARCH_MIN_QUERY_LENGTH", ge=0, le=50
    )
    search_result_count: int = Field(
        default=6, alias="SEARCH_RESULT_COUNT", ge=1, le=50
    )

    auth_background_url: str = Field(
        default=DEFAULT_AUTH_BACKGROUND_URL, alias="AUTH_BACKGROUND_URL"
    )
    platform_subtitle: str = Field(
        default=DEFAULT_PLATFORM_SUBTITLE, alias="PLATFORM_SUBTITLE"
    )
    session_cookie_name: str = Field(
        default="archeoplay_session", alias="SESSION_COOKIE_NAME"
    )
    max_sessions: int = Field(default=1000, alias="MAX_SESSIONS", ge=1)

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("content_engine", mode="before")
    @classmethod
    def _normalise_engine(cls, value: object) -> object:
        """Accept engine names regardless of case or surrounding spaces."""

        if value is None:
            return "gemini"
        if isinstance(value, str):
            cleaned = value.strip().lower()
            return cleaned or "gemini"
        return value

    @field_validator("auth_background_url", "platform_subtitle", mode="before")
    @classmethod
    def _blank_to_default(cls, value: object, info: ValidationInfo) -> object:
        if isinstance(value, str) and not value.strip():
            if info.field_name == "auth_background_url":
                return DEFAULT_AUTH_BACKGROUND_URL
            return DEFAULT_PLATFORM_SUBTITLE
        return value

    @property
    def search_debounce_seconds(self) -> float:
        """Return the debounce window expressed in seconds."""

        return self.search_debounce_ms / 1000

    @property
    def content_api_url(self) -> str:
        """Return the base URL of the selected content engine."""

        if self.content_engine == "openrouter":
            return str(self.openrouter_api_url)
        return str(self.gemini_api_url)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
