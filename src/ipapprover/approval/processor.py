"""Per-namespace InstallPlan processing.

Lists the InstallPlans in one namespace, evaluates each against the
approval policy and flips spec.approved on the ones that pass. Failures
are contained to the plan they happen on; a plan that could not be
approved keeps approved=false and is picked up again on the next pass.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import ValidationError

from ipapprover.approval.evaluator import Decision, compare_versions, precheck
from ipapprover.crd import InstallPlan, Subscription
from ipapprover.kubernetes.errors import ConflictError, GatewayError, NotFoundError
from ipapprover.kubernetes.gateway import ResourceGateway
from ipapprover.observability.logging import get_logger
from ipapprover.observability.metrics import (
    installplan_decisions_total,
    installplan_update_failures_total,
    installplans_approved_total,
)


log = get_logger(__name__)


def utcnow() -> datetime:
    """Current time at the second precision Kubernetes timestamps carry."""
    return datetime.now(UTC).replace(microsecond=0)


@dataclass
class NamespaceResult:
    """Outcome of processing one namespace."""

    approved_count: int = 0
    last_approved_plan: str | None = None
    last_approved_time: datetime | None = None
    found_mismatch: bool = False


class NamespaceProcessor:
    """Applies the approval policy to every InstallPlan in a namespace.

    The processor never touches the approver's status; it reports how many
    plans it approved and the scheduler adds that to approvedCount.
    """

    def __init__(
        self,
        gateway: ResourceGateway,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.gateway = gateway
        self.clock = clock

    def process(self, namespace: str, allowed_names: Sequence[str]) -> NamespaceResult:
        """Evaluate and approve the InstallPlans in a namespace.

        Args:
            namespace: Namespace to scan
            allowed_names: Operator allow-list; empty means no filtering

        Returns:
            NamespaceResult: Approvals made and whether any plan mismatched

        Raises:
            GatewayError: If the InstallPlans could not be listed. A missing
                InstallPlan resource type is not an error.
        """
        try:
            items = self.gateway.list_install_plans(namespace)
        except NotFoundError:
            log.debug("installplan_kind_not_found", namespace=namespace)
            return NamespaceResult()

        result = NamespaceResult()
        for obj in items:
            try:
                plan = InstallPlan.from_kubernetes_object(obj)
            except ValidationError as exc:
                log.error(
                    "installplan_malformed",
                    installplan=(obj.get("metadata") or {}).get("name"),
                    namespace=namespace,
                    errors=exc.errors(include_url=False),
                )
                continue

            decision = self.decide(plan, namespace, allowed_names)
            installplan_decisions_total.labels(decision=decision.value).inc()

            if decision is Decision.VERSION_MISMATCH:
                result.found_mismatch = True
                continue
            if decision is not Decision.APPROVE:
                continue

            if self.approve(plan, namespace):
                result.approved_count += 1
                result.last_approved_plan = plan.name
                result.last_approved_time = self.clock()

        return result

    def decide(
        self, plan: InstallPlan, namespace: str, allowed_names: Sequence[str]
    ) -> Decision:
        """Evaluate one plan, reading its Subscription only when needed."""
        decision = precheck(plan, allowed_names)
        if decision is Decision.NOT_ALLOWED:
            log.debug("operator_not_allowed", installplan=plan.name, namespace=namespace)
        if decision is not None:
            return decision

        subscription = self.resolve_subscription(plan, namespace)
        decision = compare_versions(plan, subscription)

        if decision is Decision.VERSION_MISMATCH and subscription is not None:
            log.info(
                "installplan_csv_mismatch",
                installplan=plan.name,
                namespace=namespace,
                installplan_csv=plan.primary_csv,
                starting_csv=subscription.starting_csv,
                subscription=subscription.name,
            )
        elif subscription is not None and subscription.starting_csv:
            log.info(
                "installplan_csv_matches",
                installplan=plan.name,
                namespace=namespace,
                csv=plan.primary_csv,
                subscription=subscription.name,
            )
        return decision

    def resolve_subscription(self, plan: InstallPlan, namespace: str) -> Subscription | None:
        """Fetch the plan's owning Subscription.

        Returns None when the plan has no Subscription owner or the lookup
        fails, both of which let the plan through.
        """
        owner = plan.subscription_owner()
        if owner is None:
            log.debug("installplan_no_subscription_owner", installplan=plan.name)
            return None

        try:
            return self.gateway.get_subscription(namespace, owner)
        except GatewayError as exc:
            log.warning(
                "subscription_lookup_failed",
                subscription=owner,
                namespace=namespace,
                installplan=plan.name,
                error=str(exc),
            )
            return None

    def approve(self, plan: InstallPlan, namespace: str) -> bool:
        """Set spec.approved on a plan. Returns False if the update failed."""
        try:
            self.gateway.update_install_plan(plan.to_approved_body())
        except ConflictError:
            log.warning("installplan_update_conflict", installplan=plan.name, namespace=namespace)
            installplan_update_failures_total.labels(namespace=namespace).inc()
            return False
        except GatewayError as exc:
            log.error(
                "installplan_approve_failed",
                installplan=plan.name,
                namespace=namespace,
                status=exc.status,
                reason=exc.reason,
            )
            installplan_update_failures_total.labels(namespace=namespace).inc()
            return False

        log.info("installplan_approved", installplan=plan.name, namespace=namespace)
        installplans_approved_total.labels(namespace=namespace).inc()
        return True


__all__ = ["NamespaceProcessor", "NamespaceResult", "utcnow"]
