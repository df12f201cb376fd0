"""Application settings loaded from environment variables and config files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, NonNegativeFloat, PositiveFloat, PositiveInt, SecretStr
from pydantic.networks import PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from scorefree.config import CLASSIFIER_CONFIG, RATE_LIMITS_CONFIG

DEFAULT_CATALOG_BASE_URL = "https://www.googleapis.com/youtube/v3"


class ConfigurationError(RuntimeError):
    """Raised when a run cannot start because required configuration is missing or invalid."""


class ServiceRateLimit(BaseModel):
    """Rate limit configuration for an external service."""

    requests_per_day: Optional[PositiveInt] = None
    requests_per_hour: Optional[PositiveInt] = None
    requests_per_minute: Optional[PositiveInt] = None
    burst: Optional[PositiveInt] = None

    model_config = ConfigDict(extra="forbid")


class RateLimitConfig(BaseModel):
    """Top-level configuration for all service rate limits."""

    services: Dict[str, ServiceRateLimit] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ClassifierWeights(BaseModel):
    """Tunable constants used by the spoiler classifier.

    The defaults are the production heuristic; changing any of them changes
    which videos are reported as score-free.
    """

    literal_weight: PositiveInt = 1
    pattern_weight: PositiveInt = 2
    cross_reference_weight: PositiveInt = 1
    affinity_weight: PositiveInt = 1
    positive_multiplier: PositiveFloat = 0.5
    negative_multiplier: PositiveFloat = 1.0
    spoiler_ceiling: PositiveInt = 3
    base_confidence: NonNegativeFloat = Field(default=50.0, le=100.0)
    positive_confidence_step: NonNegativeFloat = 10.0
    negative_confidence_step: NonNegativeFloat = 15.0

    model_config = ConfigDict(extra="forbid", frozen=True)


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _load_rate_limits(rate_limit_path: Path) -> RateLimitConfig:
    raw_data = _read_yaml(rate_limit_path)

    services: Dict[str, ServiceRateLimit] = {}
    for service_name, config in (raw_data.get("services") or {}).items():
        services[service_name] = ServiceRateLimit(**(config or {}))
    return RateLimitConfig(services=services)


def load_classifier_weights(weights_path: Path = CLASSIFIER_CONFIG) -> ClassifierWeights:
    """Read classifier weights from YAML; a missing file yields the defaults."""

    raw_data = _read_yaml(weights_path)
    return ClassifierWeights(**(raw_data.get("weights") or {}))


class Settings(BaseSettings):
    """Primary application settings for the Scorefree pipeline and CLI."""

    database_url: PostgresDsn = Field(alias="DATABASE_URL")
    database_pool_size: PositiveInt = Field(default=5, alias="DATABASE_POOL_SIZE")
    youtube_api_key: Optional[SecretStr] = Field(default=None, alias="YOUTUBE_API_KEY")
    catalog_base_url: HttpUrl = Field(default=DEFAULT_CATALOG_BASE_URL, alias="CATALOG_BASE_URL")
    catalog_timeout_seconds: PositiveFloat = Field(default=10.0, alias="CATALOG_TIMEOUT_SECONDS")

    recency_hours: PositiveInt = Field(default=12, alias="RECENCY_HOURS")
    max_results_per_category: PositiveInt = Field(default=5, le=50, alias="MAX_RESULTS_PER_CATEGORY")
    ingest_concurrency: PositiveInt = Field(default=4, alias="INGEST_CONCURRENCY")
    classify_on_ingest: bool = Field(default=True, alias="CLASSIFY_ON_INGEST")
    reclassify_batch_limit: PositiveInt = Field(default=50, le=500, alias="RECLASSIFY_BATCH_LIMIT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    rate_limits: RateLimitConfig = Field(default_factory=lambda: _load_rate_limits(RATE_LIMITS_CONFIG))
    classifier: ClassifierWeights = Field(default_factory=lambda: load_classifier_weights())

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def verbose(self) -> bool:
        """Whether per-category progress lines should be logged."""

        return self.log_level.upper() in {"DEBUG", "INFO"}

    def require_api_key(self) -> str:
        """Return the catalog API key or raise :class:`ConfigurationError` when it is absent."""

        if self.youtube_api_key is None or not self.youtube_api_key.get_secret_value().strip():
            raise ConfigurationError("YOUTUBE_API_KEY is not configured; the catalog cannot be queried.")
        return self.youtube_api_key.get_secret_value().strip()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


__all__ = [
    "ClassifierWeights",
    "ConfigurationError",
    "RateLimitConfig",
    "ServiceRateLimit",
    "Settings",
    "get_settings",
    "load_classifier_weights",
]
