"""Approver Operator Handlers.

Kopf-based event handlers:
- approver.py: per-InstallPlanApprover reconciliation daemon and spec watch
- installplan.py: InstallPlan watch that wakes the affected approvers

All handlers are registered when this module is imported.
The main operator (main.py) will invoke kopf.run() which discovers
and activates all decorated handlers.
"""

# Import all handler modules to register their decorators
from ipapprover.k8s_operator.handlers import approver, installplan


__all__ = [
    "approver",
    "installplan",
]
