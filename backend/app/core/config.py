from functools import lru_cache
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _ensure_sqlalchemy_postgres_scheme(value: str) -> str:
    if not value.lower().startswith("postgres"):
        return value

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()

    if scheme == "postgres":
        scheme = "postgresql"

    if scheme == "postgresql":
        scheme = "postgresql+psycopg"

    if scheme not in {"postgresql+psycopg", "postgresql+asyncpg"}:
        scheme = "postgresql+psycopg"

    query_params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query_params.setdefault("target_session_attrs", "read-write")
    new_query = urlencode(query_params, doseq=True)

    return urlunparse(parsed._replace(scheme=scheme, query=new_query))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: AnyUrl | str = Field(
        default="sqlite:///../data/surebets.db",
        description="SQLAlchemy compatible database URL",
    )
    cors_origins: list[str] | str = Field(
        default_factory=list,
        description="Origins allowed to call the API from a browser",
    )
    llm_default_provider: str = Field(
        default="openai",
        description="Provider used for slip extraction (openai|gemini)",
    )
    extraction_model: str | None = Field(
        default=None,
        description="Override the provider's default vision model for slip extraction",
    )
    extraction_max_tokens: int = Field(
        default=800,
        description="Upper bound on tokens generated for a single slip extraction",
        ge=1,
    )
    extraction_timeout_seconds: float = Field(
        default=60.0,
        description="Seconds to wait for the vision model before giving up on a slip",
        gt=0,
    )
    openai_api_key: str | None = Field(
        default=None,
        description="API key used for OpenAI-powered slip extraction",
    )
    openai_api_base: AnyUrl | str | None = Field(
        default=None,
        description="Optional override for the OpenAI API base URL (Azure/proxy support)",
    )
    openai_org_id: str | None = Field(
        default=None,
        description="Optional OpenAI organization identifier",
    )
    openai_project_id: str | None = Field(
        default=None,
        description="Optional OpenAI project identifier for usage scoping",
    )
    gemini_api_key: str | None = Field(
        default=None,
        description="API key used for Gemini-powered slip extraction",
    )
    vocabulary_path: str | None = Field(
        default=None,
        description="YAML file extending the betting-house and bet-type vocabulary",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def _normalize_postgres_urls(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value
        if value.startswith("postgres://"):
            return "postgresql://" + value[len("postgres://") :]
        return value

    @field_validator("llm_default_provider")
    @classmethod
    def _lowercase_provider(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("cors_origins", mode="after")
    @classmethod
    def _parse_csv_list(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            candidate = value.strip()
            if not candidate:
                return []
            return [
                item for item in (part.strip() for part in candidate.split(",")) if item
            ]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        raise ValueError("Value must be provided as a list or comma-separated string")

    @property
    def resolved_database_url(self) -> str:
        return _ensure_sqlalchemy_postgres_scheme(str(self.database_url))


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
