"""InstallPlan Approver Kubernetes Operator.

Main entry point for the operator that approves OLM InstallPlans on behalf
of InstallPlanApprover policies, using the Kopf framework.

This operator provides:
- One reconciliation daemon per InstallPlanApprover
- Adaptive requeue (short when idle, longer while a plan mismatches its pin)
- InstallPlan watches that re-trigger approvers immediately
- Prometheus metrics and a liveness endpoint

Usage:
    # Run in development mode (verbose, pauses other operators)
    python -m ipapprover.k8s_operator.main --dev --verbose

    # Restrict watches to one namespace
    python -m ipapprover.k8s_operator.main --namespace=operators

    # Run with peering for multi-instance deployment
    python -m ipapprover.k8s_operator.main --peering=ipa-operator
"""

import argparse
import logging
import sys
from typing import NoReturn

import kopf

from ipapprover.config.settings import get_settings, reload_settings

# Import handlers to register their decorators
# This must happen before kopf.run() is called
from ipapprover.k8s_operator import handlers  # noqa: F401
from ipapprover.observability.logging import configure_logging, get_logger
from ipapprover.observability.metrics import start_metrics_server


logger = get_logger(__name__)


def setup_logging() -> None:
    """Configure logging from settings."""
    settings = get_settings()
    level = "DEBUG" if settings.debug else settings.observability.log_level
    log_format = "json" if settings.is_production else settings.observability.log_format
    configure_logging(level=level, format_type=log_format)


def build_kopf_settings(
    peering_name: str | None,
    priority: int,
) -> kopf.OperatorSettings:
    """Translate operator settings into kopf settings."""
    settings = get_settings()
    kopf_settings = kopf.OperatorSettings()

    kopf_settings.posting.level = logging.DEBUG if settings.debug else logging.INFO

    if peering_name:
        kopf_settings.peering.name = peering_name
        kopf_settings.peering.priority = priority
        kopf_settings.peering.standalone = False
    else:
        kopf_settings.peering.standalone = True

    kopf_settings.watching.server_timeout = settings.kubernetes.api_timeout
    kopf_settings.watching.client_timeout = settings.kubernetes.api_timeout + 10

    return kopf_settings


def main(
    namespace: str | None = None,
    peering_name: str | None = None,
    liveness_port: int | None = None,
    priority: int = 0,
    dev_mode: bool = False,
) -> NoReturn:
    """Main entry point for the approver operator.

    Configures and runs the Kopf-based operator with all registered
    handlers. Blocks until the operator is stopped.

    Args:
        namespace: Namespace to watch. If None, watches the whole cluster.
        peering_name: Peering name for multi-instance coordination. If None,
                     runs standalone.
        liveness_port: Port for the liveness endpoint. If None, uses settings.
        priority: Operator priority for peering (higher = more preferred).
        dev_mode: If True, runs with high priority and debug logging.

    Environment Variables:
        IPA_K8S_NAMESPACE: Override namespace
        IPA_K8S_PEERING_ID: Override peering name
        IPA_OBSERVABILITY_LIVENESS_PORT: Override liveness port
        IPA_DEBUG: Enable debug mode

    Raises:
        SystemExit: Never returns normally, exits with code 0 on success
    """
    settings = get_settings()

    namespace = namespace or settings.kubernetes.namespace
    peering_name = peering_name or settings.kubernetes.peering_id
    liveness_port = liveness_port or settings.observability.liveness_port
    if dev_mode:
        priority = max(priority, 666)

    logger.info(
        "operator_starting",
        version=settings.version,
        namespace=namespace or "all",
        peering=peering_name or "standalone",
        liveness_port=liveness_port,
        dev_mode=dev_mode,
        requeue_interval=settings.reconcile.requeue_interval_seconds,
        mismatch_requeue_interval=settings.reconcile.mismatch_requeue_interval_seconds,
    )

    if settings.observability.metrics_enabled:
        start_metrics_server(settings.observability.metrics_port)
        logger.info("metrics_server_started", port=settings.observability.metrics_port)

    kopf_settings = build_kopf_settings(peering_name, priority)

    try:
        kopf.run(
            settings=kopf_settings,
            standalone=kopf_settings.peering.standalone,
            priority=priority,
            peering_name=peering_name,
            liveness_endpoint=f"http://0.0.0.0:{liveness_port}/healthz",
            clusterwide=namespace is None,
            namespaces=[namespace] if namespace else [],
        )

    except KeyboardInterrupt:
        logger.info("operator_stopped_by_user")
        sys.exit(0)

    except Exception as error:
        logger.exception(
            "operator_crashed",
            error=str(error),
            error_type=type(error).__name__,
        )
        raise

    sys.exit(0)


def cli() -> NoReturn:
    """CLI entry point for the ipa-operator command."""
    parser = argparse.ArgumentParser(
        description="InstallPlan Approver - version-gated OLM InstallPlan approval",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch the whole cluster
  ipa-operator

  # Watch one namespace
  ipa-operator --namespace operators

  # Run in development mode (verbose)
  ipa-operator --dev --verbose

  # Run with peering for multi-instance
  ipa-operator --peering ipa-cluster --priority 100

Environment Variables:
  IPA_K8S_NAMESPACE                        - Default namespace to watch
  IPA_K8S_PEERING_ID                       - Peering name for multi-instance
  IPA_OBSERVABILITY_LIVENESS_PORT          - Port for liveness endpoint
  IPA_RECONCILE_REQUEUE_INTERVAL_SECONDS   - Idle requeue delay
  IPA_DEBUG                                - Enable debug logging
        """,
    )

    parser.add_argument(
        "--namespace",
        "-n",
        type=str,
        default=None,
        help="Namespace to watch (default: all namespaces)",
    )

    parser.add_argument(
        "--peering",
        type=str,
        default=None,
        help="Peering name for multi-instance coordination",
    )

    parser.add_argument(
        "--priority",
        type=int,
        default=0,
        help="Operator priority for peering (higher = preferred)",
    )

    parser.add_argument(
        "--liveness-port",
        type=int,
        default=None,
        help="Port for liveness probes",
    )

    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    reload_settings()
    if args.verbose or args.dev:
        get_settings().debug = True

    setup_logging()

    main(
        namespace=args.namespace,
        peering_name=args.peering,
        liveness_port=args.liveness_port,
        priority=args.priority,
        dev_mode=args.dev,
    )


if __name__ == "__main__":
    cli()
