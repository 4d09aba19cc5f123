"""Maps InstallPlan changes to the approvers that must re-run.

Any InstallPlan change re-triggers every approver. Approvers with no
targetNamespaces cover the whole cluster, so filtering by namespace here
would not save much; the periodic requeue covers a missed listing.
"""

from __future__ import annotations

from typing import Any

from ipapprover.crd import ObjectRef
from ipapprover.kubernetes.errors import GatewayError
from ipapprover.kubernetes.gateway import ResourceGateway
from ipapprover.observability.logging import get_logger


log = get_logger(__name__)


def find_approvers_for_install_plan(
    gateway: ResourceGateway,
    install_plan: dict[str, Any] | None = None,
) -> set[ObjectRef]:
    """Return every InstallPlanApprover to reconcile after an InstallPlan change.

    Args:
        gateway: Cluster access
        install_plan: The changed InstallPlan; only used for logging

    Returns:
        set[ObjectRef]: All approvers, or an empty set if listing failed
    """
    try:
        approvers = gateway.list_approvers()
    except GatewayError as exc:
        metadata = (install_plan or {}).get("metadata") or {}
        log.warning(
            "approver_list_failed",
            installplan=metadata.get("name"),
            namespace=metadata.get("namespace"),
            error=str(exc),
        )
        return set()

    return {approver.ref for approver in approvers}


__all__ = ["find_approvers_for_install_plan"]
