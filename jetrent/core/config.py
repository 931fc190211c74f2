"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="JetRent Assistant", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    sqlite_path: Path = Field(
        default=Path("db/jetrent.db"),
        description="Conversation, bookmark and label DB path.",
    )

    openai_api_key: str | None = Field(
        default=None,
        description="Optional OpenAI API key. Without it the keyword extractor is used.",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of an OpenAI-compatible chat completions API.",
    )
    openai_model: str = Field(default="gpt-3.5-turbo", description="Chat model identifier.")
    llm_responses_enabled: bool = Field(
        default=True,
        description="Let the language model phrase greetings, acknowledgements and results.",
    )
    llm_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Transport timeout for language-model calls.",
    )

    scraper_url: str = Field(
        default="https://jetrent-api-a73336585698.herokuapp.com/api/scrape/zillow",
        description="Listings scrape API endpoint.",
    )
    scraper_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Transport timeout for the scrape API.",
    )
    search_backend: Literal["static", "remote"] = Field(
        default="static",
        description="Default search source used by the dispatcher.",
    )

    frontend_origin: AnyHttpUrl | None = Field(
        default=None,
        description="Allowed frontend origin (CORS). If omitted, defaults to localhost dev server.",
    )
    additional_origins: List[AnyHttpUrl] = Field(
        default_factory=list,
        description="Additional allowed CORS origins.",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Return the full list of allowed CORS origins."""

        origins: list[str] = []

        if self.frontend_origin:
            origins.append(str(self.frontend_origin).rstrip("/"))
        else:
            origins.extend([
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ])

        for origin in self.additional_origins:
            origins.append(str(origin).rstrip("/"))

        # Deduplicate while preserving order
        return list(dict.fromkeys(origins))

    @property
    def openai_enabled(self) -> bool:
        return bool(self.openai_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
