"""Reconciliation of a single InstallPlanApprover.

One pass walks the approver's namespaces, approves what the policy allows,
records the approvals in the approver's status and decides when the next
pass should run:

    approvals made        -> persist status, no timer (watches re-trigger)
    nothing, no mismatch  -> requeue after the normal interval
    nothing, mismatch     -> requeue after the longer interval, since a
                             mismatched plan only changes when someone
                             edits the Subscription

approvedCount is written once per pass, after every namespace has been
processed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from ipapprover.approval.processor import NamespaceProcessor
from ipapprover.config.settings import ReconcileSettings, get_settings
from ipapprover.crd import InstallPlanApprover, ObjectRef
from ipapprover.kubernetes.errors import GatewayError, NotFoundError
from ipapprover.kubernetes.gateway import ResourceGateway
from ipapprover.observability.logging import get_logger
from ipapprover.observability.metrics import reconcile_duration_seconds, reconcile_passes_total


log = get_logger(__name__)


class ReconcileOutcome(str, Enum):
    """How a reconciliation pass ended."""

    APPROVED = "approved"
    IDLE = "idle"
    MISMATCH = "mismatch"
    INERT = "inert"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ReconcileResult:
    """Result of one pass and when to run the next one.

    requeue_after is None when no timer should be set.
    """

    outcome: ReconcileOutcome
    requeue_after: timedelta | None = None
    approved_count: int = 0
    found_mismatch: bool = False
    last_approved_plan: str | None = None
    last_approved_time: datetime | None = None


class ReconcileError(RuntimeError):
    """The pass could not run; the caller should retry it."""


class StatusPersistError(ReconcileError):
    """Approvals were made but the approver status could not be written."""


class ApprovalReconciler:
    """Runs reconciliation passes for InstallPlanApprovers.

    Attributes:
        gateway: Cluster access
        settings: Requeue intervals
        processor: Per-namespace InstallPlan processor
    """

    def __init__(
        self,
        gateway: ResourceGateway,
        settings: ReconcileSettings | None = None,
        processor: NamespaceProcessor | None = None,
    ) -> None:
        self.gateway = gateway
        self.settings = settings or get_settings().reconcile
        self.processor = processor or NamespaceProcessor(gateway)

    def reconcile(
        self,
        ref: ObjectRef,
        should_stop: Callable[[], bool] | None = None,
    ) -> ReconcileResult:
        """Run one pass for the approver identified by ref.

        Args:
            ref: Namespace and name of the InstallPlanApprover
            should_stop: Polled before each namespace; once it returns True
                the remaining namespaces are skipped

        Returns:
            ReconcileResult: Outcome and next requeue delay

        Raises:
            ReconcileError: If the approver or the namespace list could not
                be read
            StatusPersistError: If approvals could not be recorded
        """
        with reconcile_duration_seconds.time():
            try:
                result = self._reconcile(ref, should_stop or (lambda: False))
            except ReconcileError:
                reconcile_passes_total.labels(outcome="error").inc()
                raise
        reconcile_passes_total.labels(outcome=result.outcome.value).inc()
        return result

    def _reconcile(self, ref: ObjectRef, should_stop: Callable[[], bool]) -> ReconcileResult:
        try:
            approver = self.gateway.get_approver(ref)
        except NotFoundError:
            log.info("approver_not_found", approver=str(ref))
            return ReconcileResult(ReconcileOutcome.NOT_FOUND)
        except GatewayError as exc:
            log.error("approver_get_failed", approver=str(ref), error=str(exc))
            raise ReconcileError(f"failed to get approver {ref}") from exc

        if not approver.spec.auto_approve:
            log.info("auto_approve_disabled", approver=str(ref))
            return ReconcileResult(ReconcileOutcome.INERT)

        namespaces = self.resolve_namespaces(approver)

        approved_count = 0
        found_mismatch = False
        last_plan: str | None = None
        last_time: datetime | None = None
        cancelled = False

        for namespace in namespaces:
            if should_stop():
                log.info("reconcile_cancelled", approver=str(ref), next_namespace=namespace)
                cancelled = True
                break

            try:
                ns_result = self.processor.process(namespace, approver.spec.operator_names)
            except GatewayError as exc:
                log.error("namespace_processing_failed", namespace=namespace, error=str(exc))
                continue

            approved_count += ns_result.approved_count
            if ns_result.last_approved_plan:
                last_plan = f"{namespace}/{ns_result.last_approved_plan}"
                last_time = ns_result.last_approved_time
            found_mismatch = found_mismatch or ns_result.found_mismatch

        if approved_count > 0:
            status = approver.record_approvals(approved_count, last_plan, last_time)
            try:
                self.gateway.update_approver_status(approver, status)
            except NotFoundError:
                log.info("approver_deleted_during_pass", approver=str(ref))
                return ReconcileResult(ReconcileOutcome.NOT_FOUND, approved_count=approved_count)
            except GatewayError as exc:
                log.error("approver_status_update_failed", approver=str(ref), error=str(exc))
                raise StatusPersistError(f"failed to update status of approver {ref}") from exc

            log.info(
                "approver_status_updated",
                approver=str(ref),
                approved=approved_count,
                approved_total=status.approved_count,
                last_approved_plan=last_plan,
            )
            return ReconcileResult(
                ReconcileOutcome.APPROVED,
                approved_count=approved_count,
                found_mismatch=found_mismatch,
                last_approved_plan=last_plan,
                last_approved_time=last_time,
            )

        if cancelled:
            return ReconcileResult(ReconcileOutcome.CANCELLED, found_mismatch=found_mismatch)

        if found_mismatch:
            delay = self.settings.mismatch_requeue_interval
            log.debug("requeue_after_mismatch", approver=str(ref), delay=delay.total_seconds())
            return ReconcileResult(
                ReconcileOutcome.MISMATCH, requeue_after=delay, found_mismatch=True
            )

        delay = self.settings.requeue_interval
        log.debug("requeue_after_idle", approver=str(ref), delay=delay.total_seconds())
        return ReconcileResult(ReconcileOutcome.IDLE, requeue_after=delay)

    def resolve_namespaces(self, approver: InstallPlanApprover) -> list[str]:
        """Return the approver's target namespaces, or every namespace if unset."""
        if approver.spec.target_namespaces:
            return list(approver.spec.target_namespaces)
        try:
            return self.gateway.list_namespaces()
        except GatewayError as exc:
            log.error("namespace_list_failed", error=str(exc))
            raise ReconcileError("failed to list namespaces") from exc


__all__ = [
    "ApprovalReconciler",
    "ReconcileError",
    "ReconcileOutcome",
    "ReconcileResult",
    "StatusPersistError",
]
