"""InstallPlanApprover handlers.

Kopf-based handlers that drive reconciliation:

1. Approver daemon - one per InstallPlanApprover; runs a pass, then sleeps
   for the requeue delay the pass returned, or until woken
2. Spec change handler - wakes the daemon when the approver spec is edited
3. Probe - number of running approver daemons

A pass that approved something returns no delay, so its daemon sleeps until
an InstallPlan event or a spec edit wakes it.
"""

import asyncio
from functools import lru_cache
from typing import Any

import kopf

from ipapprover.approval import ApprovalReconciler, ReconcileError
from ipapprover.config.settings import get_settings
from ipapprover.crd import (
    APPROVER_API_GROUP,
    APPROVER_API_VERSION,
    APPROVER_PLURAL,
    ObjectRef,
)
from ipapprover.k8s_operator.wakeups import wakeups
from ipapprover.kubernetes.gateway import get_gateway
from ipapprover.observability.logging import LogContext, get_logger
from ipapprover.observability.metrics import approvers_active


log = get_logger(__name__)


@lru_cache
def get_reconciler() -> ApprovalReconciler:
    """Get the process-wide reconciler."""
    return ApprovalReconciler(get_gateway(), get_settings().reconcile)


async def run_pass(
    reconciler: ApprovalReconciler,
    ref: ObjectRef,
    stopped: Any,
) -> float | None:
    """Run one pass off the event loop and return the seconds to sleep.

    None means sleep until woken. A pass that failed as a whole is retried
    after the error backoff.
    """
    try:
        result = await asyncio.to_thread(reconciler.reconcile, ref, lambda: bool(stopped))
    except ReconcileError as exc:
        backoff = reconciler.settings.error_backoff_seconds
        log.warning("reconcile_failed", approver=str(ref), error=str(exc), retry_in=backoff)
        return backoff

    if result.requeue_after is None:
        return None
    return result.requeue_after.total_seconds()


# ============================================================================
# Approver Daemon
# ============================================================================


@kopf.daemon(
    group=APPROVER_API_GROUP,
    version=APPROVER_API_VERSION,
    plural=APPROVER_PLURAL,
    cancellation_timeout=get_settings().reconcile.daemon_cancellation_timeout,
)
async def approver_daemon(
    *,
    name: str | None,
    namespace: str | None,
    stopped: kopf.DaemonStopped,
    **_kwargs: Any,
) -> None:
    """Reconcile one InstallPlanApprover for as long as it exists.

    Args:
        name: Approver name
        namespace: Approver namespace
        stopped: Daemon stop signal; also checked between namespaces
        **_kwargs: Additional kopf kwargs
    """
    if name is None:
        return

    ref = ObjectRef(namespace, name)
    reconciler = get_reconciler()

    wakeups.register(ref)
    approvers_active.inc()
    log.info("approver_daemon_started", approver=str(ref))

    try:
        with LogContext(approver=str(ref)):
            while not stopped:
                wakeups.clear(ref)
                delay = await run_pass(reconciler, ref, stopped)
                if stopped:
                    break
                woken = await wakeups.wait(ref, delay, stopped)
                log.debug("approver_daemon_resumed", woken=woken, slept=delay)
    finally:
        wakeups.discard(ref)
        approvers_active.dec()
        log.info("approver_daemon_stopped", approver=str(ref))


# ============================================================================
# Spec Change Handler
# ============================================================================


@kopf.on.field(
    group=APPROVER_API_GROUP,
    version=APPROVER_API_VERSION,
    plural=APPROVER_PLURAL,
    field="spec",
)
async def handle_approver_spec_change(
    *,
    old: Any | None,
    new: Any | None,
    name: str | None,
    namespace: str | None,
    **_kwargs: Any,
) -> None:
    """Re-run an approver right away when its spec is edited."""
    if name is None or old is None:
        return

    ref = ObjectRef(namespace, name)
    woken = wakeups.wake(ref)
    log.info(
        "approver_spec_changed",
        approver=str(ref),
        auto_approve=(new or {}).get("autoApprove"),
        woken=woken,
    )


# ============================================================================
# Probes
# ============================================================================


@kopf.on.probe(id="approvers")
def active_approvers_probe(**_kwargs: Any) -> int:
    """Liveness probe: number of approver daemons currently registered."""
    return len(wakeups)


__all__ = [
    "active_approvers_probe",
    "approver_daemon",
    "get_reconciler",
    "handle_approver_spec_change",
    "run_pass",
]
