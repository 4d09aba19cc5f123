"""Operator settings.

Uses Pydantic Settings for type-safe configuration management
with support for environment variables and .env files.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ipapprover.version import __version__


class ReconcileSettings(BaseSettings):
    """Requeue timing for reconciliation passes."""

    model_config = SettingsConfigDict(
        env_prefix="IPA_RECONCILE_",
        extra="ignore",
    )

    requeue_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Delay before the next pass when nothing was approved and no mismatch was seen",
    )
    mismatch_requeue_interval_seconds: float = Field(
        default=180.0,
        gt=0,
        description="Delay before the next pass when an InstallPlan did not match its Subscription",
    )
    error_backoff_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Delay before retrying a pass that failed as a whole",
    )
    daemon_cancellation_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds a stopping approver daemon is given before it is cancelled",
    )

    @model_validator(mode="after")
    def validate_intervals(self) -> ReconcileSettings:
        """Ensure the mismatch interval is never the faster of the two."""
        if self.mismatch_requeue_interval_seconds < self.requeue_interval_seconds:
            msg = "mismatch_requeue_interval_seconds must be >= requeue_interval_seconds"
            raise ValueError(msg)
        return self

    @property
    def requeue_interval(self) -> timedelta:
        return timedelta(seconds=self.requeue_interval_seconds)

    @property
    def mismatch_requeue_interval(self) -> timedelta:
        return timedelta(seconds=self.mismatch_requeue_interval_seconds)


class KubernetesSettings(BaseSettings):
    """Kubernetes configuration."""

    model_config = SettingsConfigDict(
        env_prefix="IPA_K8S_",
        extra="ignore",
    )

    in_cluster: bool = Field(
        default=False,
        description="Whether running inside a Kubernetes cluster",
    )
    kubeconfig: str | None = Field(
        default=None,
        description="Path to kubeconfig file (if not in-cluster)",
    )
    context: str | None = Field(
        default=None,
        description="Kubernetes context to use",
    )
    namespace: str | None = Field(
        default=None,
        description="Namespace to watch (None = all namespaces)",
    )
    peering_id: str | None = Field(
        default=None,
        description="Kopf peering name for multi-instance coordination",
    )
    api_timeout: int = Field(
        default=30,
        ge=1,
        description="Timeout in seconds for each Kubernetes API request",
    )


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(
        env_prefix="IPA_OBSERVABILITY_",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics",
    )
    metrics_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port for metrics endpoint",
    )
    metrics_namespace: str = Field(
        default="ipa",
        description="Prefix for all Prometheus metric names",
    )
    liveness_port: int = Field(
        default=8081,
        ge=1,
        le=65535,
        description="Port for the kopf liveness endpoint",
    )


class Settings(BaseSettings):
    """Main operator configuration."""

    model_config = SettingsConfigDict(
        env_prefix="IPA_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    version: str = Field(default=__version__)
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    debug: bool = Field(default=False, description="Enable debug logging")

    reconcile: ReconcileSettings = Field(default_factory=ReconcileSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are cached after first load; call reload_settings() to
    pick up environment changes.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()


def reload_settings() -> Settings:
    """Force reload settings (clears cache).

    Returns:
        Settings: Fresh settings instance.
    """
    get_settings.cache_clear()
    return get_settings()
