"""Configuration settings for ProAthlete Coach."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.plans import to_camel


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_DB_PATH = Path.home() / ".proathlete" / "coach.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PROATHLETE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI
    openai_api_key: str = Field(
        default="",
        repr=False,
        validation_alias=AliasChoices("PROATHLETE_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    llm_model: str = DEFAULT_MODEL

    # Retry behaviour for plan requests
    max_retries: int = 3
    retry_base_delay: float = 1.0
    request_timeout: float = 120.0

    # Local state
    db_path: Path = DEFAULT_DB_PATH

    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class AppConfiguration(BaseModel):
    """
    Per-user configuration handed to the plan request client.

    Templates left as None (or blank) fall back to the built-in defaults.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    credential: str = Field(default="", repr=False, description="Model API key")
    # None defers to the fallback configuration
    model_identifier: Optional[str] = Field(default=None, description="Model to request plans from")
    initial_plan_template: Optional[str] = Field(default=None)
    iteration_plan_template: Optional[str] = Field(default=None)

    @property
    def has_credential(self) -> bool:
        return bool(self.credential and self.credential.strip())

    @property
    def model_name(self) -> str:
        """The model to call, falling back to the built-in default."""
        return self.model_identifier or DEFAULT_MODEL

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AppConfiguration":
        """Build a configuration from environment settings."""
        settings = settings or get_settings()
        return cls(
            credential=settings.openai_api_key,
            model_identifier=settings.llm_model,
        )

    def merged_with(self, fallback: "AppConfiguration") -> "AppConfiguration":
        """Fill blank fields from ``fallback`` (stored config over env config)."""
        return AppConfiguration(
            credential=self.credential if self.has_credential else fallback.credential,
            model_identifier=self.model_identifier or fallback.model_identifier,
            initial_plan_template=self.initial_plan_template or fallback.initial_plan_template,
            iteration_plan_template=self.iteration_plan_template or fallback.iteration_plan_template,
        )

    def to_dict(self) -> dict:
        """Convert to a camelCase dictionary for persistence."""
        return self.model_dump(mode="json", by_alias=True)
