"""Unit tests for operator settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ipapprover.config.settings import (
    KubernetesSettings,
    ObservabilitySettings,
    ReconcileSettings,
    Settings,
    get_settings,
    reload_settings,
)


class TestDefaults:
    def test_settings_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("IPA_ENVIRONMENT", raising=False)
        settings = Settings()

        assert settings.environment == "development"
        assert settings.is_production is False
        assert settings.reconcile.requeue_interval_seconds == 60
        assert settings.reconcile.mismatch_requeue_interval_seconds == 180
        assert settings.kubernetes.api_timeout == 30
        assert settings.kubernetes.namespace is None
        assert settings.observability.metrics_port == 8080
        assert settings.observability.liveness_port == 8081


class TestEnvironment:
    """Environment variable overrides."""

    def test_reconcile_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("IPA_RECONCILE_REQUEUE_INTERVAL_SECONDS", "30")
        monkeypatch.setenv("IPA_RECONCILE_MISMATCH_REQUEUE_INTERVAL_SECONDS", "300")

        settings = ReconcileSettings()

        assert settings.requeue_interval.total_seconds() == 30
        assert settings.mismatch_requeue_interval.total_seconds() == 300

    def test_kubernetes_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("IPA_K8S_NAMESPACE", "operators")
        monkeypatch.setenv("IPA_K8S_API_TIMEOUT", "5")

        settings = KubernetesSettings()

        assert settings.namespace == "operators"
        assert settings.api_timeout == 5

    def test_production(self, monkeypatch) -> None:
        monkeypatch.setenv("IPA_ENVIRONMENT", "production")

        assert Settings().is_production is True

    def test_invalid_log_format(self, monkeypatch) -> None:
        monkeypatch.setenv("IPA_OBSERVABILITY_LOG_FORMAT", "xml")

        with pytest.raises(ValidationError):
            ObservabilitySettings()


class TestValidation:
    def test_zero_requeue_interval_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReconcileSettings(requeue_interval_seconds=0)

    def test_equal_intervals_allowed(self) -> None:
        settings = ReconcileSettings(
            requeue_interval_seconds=90, mismatch_requeue_interval_seconds=90
        )

        assert settings.requeue_interval == settings.mismatch_requeue_interval


class TestCaching:
    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_reload_settings_picks_up_env(self, monkeypatch) -> None:
        first = get_settings()
        monkeypatch.setenv("IPA_DEBUG", "true")

        reloaded = reload_settings()

        assert reloaded is not first
        assert reloaded.debug is True
