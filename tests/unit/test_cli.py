"""Unit tests for the operator entry point."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from ipapprover.config.settings import get_settings
from ipapprover.k8s_operator import main as operator_main


@pytest.fixture
def mock_kopf_run():
    with patch("ipapprover.k8s_operator.main.kopf.run") as mock_run:
        yield mock_run


class TestHandlerRegistration:
    def test_main_imports_handler_modules(self) -> None:
        assert operator_main.handlers.approver.approver_daemon is not None
        assert operator_main.handlers.installplan.handle_install_plan_event is not None


class TestBuildKopfSettings:
    def test_standalone_without_peering(self) -> None:
        kopf_settings = operator_main.build_kopf_settings(None, 0)

        assert kopf_settings.peering.standalone is True
        assert kopf_settings.posting.level == logging.INFO
        assert kopf_settings.watching.server_timeout == 30
        assert kopf_settings.watching.client_timeout == 40

    def test_peering(self) -> None:
        kopf_settings = operator_main.build_kopf_settings("ipa-cluster", 100)

        assert kopf_settings.peering.standalone is False
        assert kopf_settings.peering.name == "ipa-cluster"
        assert kopf_settings.peering.priority == 100


class TestMain:
    """Tests for main()."""

    def test_cluster_wide_by_default(self, mock_kopf_run) -> None:
        with pytest.raises(SystemExit) as excinfo:
            operator_main.main()

        assert excinfo.value.code == 0
        kwargs = mock_kopf_run.call_args.kwargs
        assert kwargs["clusterwide"] is True
        assert kwargs["namespaces"] == []
        assert kwargs["standalone"] is True
        assert kwargs["liveness_endpoint"] == "http://0.0.0.0:8081/healthz"

    def test_single_namespace(self, mock_kopf_run) -> None:
        with pytest.raises(SystemExit):
            operator_main.main(namespace="operators", liveness_port=9000)

        kwargs = mock_kopf_run.call_args.kwargs
        assert kwargs["clusterwide"] is False
        assert kwargs["namespaces"] == ["operators"]
        assert kwargs["liveness_endpoint"] == "http://0.0.0.0:9000/healthz"

    def test_namespace_from_settings(self, mock_kopf_run, monkeypatch) -> None:
        monkeypatch.setenv("IPA_K8S_NAMESPACE", "from-env")

        with pytest.raises(SystemExit):
            operator_main.main()

        assert mock_kopf_run.call_args.kwargs["namespaces"] == ["from-env"]

    def test_dev_mode_raises_priority(self, mock_kopf_run) -> None:
        with pytest.raises(SystemExit):
            operator_main.main(peering_name="ipa", dev_mode=True)

        assert mock_kopf_run.call_args.kwargs["priority"] == 666

    def test_metrics_server_started_when_enabled(self, mock_kopf_run, monkeypatch) -> None:
        monkeypatch.setenv("IPA_OBSERVABILITY_METRICS_ENABLED", "true")

        with (
            patch("ipapprover.k8s_operator.main.start_metrics_server") as mock_metrics,
            pytest.raises(SystemExit),
        ):
            operator_main.main()

        mock_metrics.assert_called_once_with(8080)

    def test_keyboard_interrupt_exits_cleanly(self, mock_kopf_run) -> None:
        mock_kopf_run.side_effect = KeyboardInterrupt

        with pytest.raises(SystemExit) as excinfo:
            operator_main.main()

        assert excinfo.value.code == 0

    def test_crash_is_reraised(self, mock_kopf_run) -> None:
        mock_kopf_run.side_effect = RuntimeError("watch failed")

        with pytest.raises(RuntimeError, match="watch failed"):
            operator_main.main()


class TestCli:
    def test_arguments_forwarded(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "sys.argv",
            ["ipa-operator", "-n", "operators", "--peering", "ipa", "--priority", "5", "-v"],
        )

        with (
            patch("ipapprover.k8s_operator.main.main") as mock_main,
            patch("ipapprover.k8s_operator.main.setup_logging"),
        ):
            operator_main.cli()

        mock_main.assert_called_once_with(
            namespace="operators",
            peering_name="ipa",
            liveness_port=None,
            priority=5,
            dev_mode=False,
        )
        assert get_settings().debug is True
