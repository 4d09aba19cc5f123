"""Approver operator package.

The Kubernetes operator that runs InstallPlanApprover reconciliation.

Note: The module name 'k8s_operator' avoids shadowing the stdlib 'operator'.
"""
