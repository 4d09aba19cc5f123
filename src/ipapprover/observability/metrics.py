"""Prometheus metrics for the approver.

Counters for approvals and policy decisions, a histogram for pass
duration, and a gauge for the number of running approver daemons.
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, start_http_server

from ipapprover.config.settings import get_settings


_settings = get_settings()
_namespace = _settings.observability.metrics_namespace

registry = REGISTRY


# ============================================================================
# Counter Metrics
# ============================================================================

installplans_approved_total = Counter(
    name="installplans_approved_total",
    documentation="Total number of InstallPlans approved",
    labelnames=["namespace"],
    registry=registry,
    namespace=_namespace,
)

installplan_decisions_total = Counter(
    name="installplan_decisions_total",
    documentation="Approval policy decisions by outcome",
    labelnames=["decision"],
    registry=registry,
    namespace=_namespace,
)

installplan_update_failures_total = Counter(
    name="installplan_update_failures_total",
    documentation="InstallPlan approvals that failed to persist",
    labelnames=["namespace"],
    registry=registry,
    namespace=_namespace,
)

reconcile_passes_total = Counter(
    name="reconcile_passes_total",
    documentation="Reconciliation passes by outcome",
    labelnames=["outcome"],
    registry=registry,
    namespace=_namespace,
)


# ============================================================================
# Gauge / Histogram Metrics
# ============================================================================

approvers_active = Gauge(
    name="approvers_active",
    documentation="Number of InstallPlanApprover daemons currently running",
    registry=registry,
    namespace=_namespace,
)

reconcile_duration_seconds = Histogram(
    name="reconcile_duration_seconds",
    documentation="Time taken by one reconciliation pass",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=registry,
    namespace=_namespace,
)


def start_metrics_server(port: int | None = None) -> None:
    """Expose the default registry over HTTP."""
    start_http_server(port or _settings.observability.metrics_port, registry=registry)


__all__ = [
    "approvers_active",
    "installplan_decisions_total",
    "installplan_update_failures_total",
    "installplans_approved_total",
    "reconcile_duration_seconds",
    "reconcile_passes_total",
    "registry",
    "start_metrics_server",
]
