"""InstallPlan approval engine.

- evaluator.py: the per-InstallPlan approval policy
- processor.py: evaluation and approval within one namespace
- scheduler.py: one reconciliation pass per approver and its requeue delay
- router.py: which approvers to re-run when an InstallPlan changes
"""

from ipapprover.approval.evaluator import Decision, evaluate, is_operator_allowed
from ipapprover.approval.processor import NamespaceProcessor, NamespaceResult
from ipapprover.approval.router import find_approvers_for_install_plan
from ipapprover.approval.scheduler import (
    ApprovalReconciler,
    ReconcileError,
    ReconcileOutcome,
    ReconcileResult,
    StatusPersistError,
)


__all__ = [
    "ApprovalReconciler",
    "Decision",
    "NamespaceProcessor",
    "NamespaceResult",
    "ReconcileError",
    "ReconcileOutcome",
    "ReconcileResult",
    "StatusPersistError",
    "evaluate",
    "find_approvers_for_install_plan",
    "is_operator_allowed",
]
