"""Approval policy for a single InstallPlan.

The policy is a fixed two-stage check: an optional operator-name
allow-list, then a version pin taken from the owning Subscription's
startingCSV. Every case with missing data resolves to APPROVE; only an
explicit, differing pin blocks a plan.

Order of checks (first match wins):
  1. already approved            -> ALREADY_APPROVED
  2. allow-list set, no match    -> NOT_ALLOWED
  3. no CSV names                -> APPROVE
  4. no owning Subscription      -> APPROVE
  5. Subscription has no pin     -> APPROVE
  6. primary CSV == startingCSV  -> APPROVE, otherwise VERSION_MISMATCH

The evaluation is pure: it depends only on its arguments.
"""

from collections.abc import Iterable, Sequence
from enum import Enum

from ipapprover.crd import InstallPlan, Subscription


class Decision(str, Enum):
    """Outcome of evaluating one InstallPlan."""

    APPROVE = "approve"
    NOT_ALLOWED = "not_allowed"
    VERSION_MISMATCH = "version_mismatch"
    ALREADY_APPROVED = "already_approved"


def is_operator_allowed(csv_names: Iterable[str], allowed_names: Sequence[str]) -> bool:
    """Check whether any CSV name matches the allow-list.

    A CSV matches an entry when it equals the entry or starts with it, so
    "etcdoperator" admits "etcdoperator.v0.9.4". An empty allow-list admits
    everything.
    """
    if not allowed_names:
        return True
    return any(
        csv_name == allowed or csv_name.startswith(allowed)
        for csv_name in csv_names
        for allowed in allowed_names
    )


def precheck(plan: InstallPlan, allowed_names: Sequence[str]) -> Decision | None:
    """Run the checks that need only the plan (steps 1-3).

    Returns:
        The decision, or None when the Subscription pin must be compared.
    """
    if plan.approved:
        return Decision.ALREADY_APPROVED
    if not is_operator_allowed(plan.csv_names, allowed_names):
        return Decision.NOT_ALLOWED
    if plan.primary_csv is None:
        return Decision.APPROVE
    return None


def compare_versions(plan: InstallPlan, subscription: Subscription | None) -> Decision:
    """Compare the plan's primary CSV against the Subscription pin (steps 4-6).

    A missing Subscription covers both "no owner reference" and "owner
    could not be read".
    """
    if subscription is None:
        return Decision.APPROVE

    starting_csv = subscription.starting_csv
    if not starting_csv:
        return Decision.APPROVE

    if plan.primary_csv == starting_csv:
        return Decision.APPROVE
    return Decision.VERSION_MISMATCH


def evaluate(
    plan: InstallPlan,
    subscription: Subscription | None,
    allowed_names: Sequence[str],
) -> Decision:
    """Decide whether an InstallPlan should be approved.

    Args:
        plan: The InstallPlan under consideration
        subscription: Its owning Subscription, or None if it has none or
            it could not be read
        allowed_names: Operator allow-list; empty means no filtering

    Returns:
        Decision: The policy outcome
    """
    decision = precheck(plan, allowed_names)
    if decision is not None:
        return decision
    return compare_versions(plan, subscription)


__all__ = [
    "Decision",
    "compare_versions",
    "evaluate",
    "is_operator_allowed",
    "precheck",
]
