"""InstallPlan Approver - version-gated auto-approval of OLM InstallPlans.

A Kubernetes operator that watches InstallPlanApprover policies and approves
pending InstallPlans whose CSV matches the owning Subscription's startingCSV.
"""

from ipapprover.version import __version__


__all__ = ["__version__"]
