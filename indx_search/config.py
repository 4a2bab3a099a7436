"""Runtime configuration based on environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indx_search.domain.models import (
    DEFAULT_BASE_URL,
    CoverageSetup,
    LcsCoverageSetup,
    ProtocolVersion,
    QueryConfiguration,
)


class SearchDefaults(BaseModel):
    results: int = Field(default=30, gt=0, description="Maximum records returned per query.")
    metric_score_min: int = Field(default=30, ge=0, le=255)
    apply_coverage: bool = True
    do_truncate: bool = True
    show_meta: bool = False
    remove_duplicates: bool = True
    key_include_filter: str | None = None
    key_exclude_filter: str | None = None
    log_prefix: str = ""
    timeout_ms: int = Field(default=1000, gt=0, description="Server-side and client-side search timeout.")
    records_for_applied_algorithm: int = Field(
        default=1000,
        gt=0,
        description="Candidates the server evaluates before cutting to `results`.",
    )


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="INDX_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    api_url: str = DEFAULT_BASE_URL
    username: str | None = None
    password: SecretStr | None = None
    dataset: str = "0"
    dataset_description: str = "My search demo"
    placeholder_text: str = "Type here to search"
    protocol_version: ProtocolVersion = "3.3"
    login_timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    datasets_retry_attempts: int = Field(default=3, ge=1, le=10)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    search: SearchDefaults = Field(default_factory=SearchDefaults)
    coverage: CoverageSetup = Field(default_factory=CoverageSetup)
    lcs_coverage: LcsCoverageSetup = Field(default_factory=LcsCoverageSetup)

    @field_validator("api_url")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        # Endpoint paths are appended directly to the base URL.
        return value if value.endswith("/") else f"{value}/"

    @field_validator("username", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password and self.password.get_secret_value())

    def query_configuration(self) -> QueryConfiguration:
        """Build the initial query configuration from these settings."""

        coverage = self.lcs_coverage if self.protocol_version == "3.2" else self.coverage
        return QueryConfiguration(
            base_url=self.api_url,
            dataset=self.dataset,
            protocol_version=self.protocol_version,
            coverage=coverage,
            **self.search.model_dump(),
        )


@lru_cache
def get_settings() -> ClientSettings:
    """Return cached settings instance."""

    return ClientSettings()


__all__ = ["ClientSettings", "SearchDefaults", "get_settings"]
