"""Custom Resource Definition Models.

This module provides Pydantic models for parsing and working with
the Kubernetes custom resources the approver reads and writes.

Supported CRDs:
- InstallPlanApprover (operators.bapu.cloud/v1alpha1)
- InstallPlan, Subscription (operators.coreos.com/v1alpha1)
"""

from ipapprover.crd.approver_models import (
    APPROVER_API_GROUP,
    APPROVER_API_VERSION,
    APPROVER_KIND,
    APPROVER_PLURAL,
    APPROVER_SHORT_NAME,
    ApproverSpec,
    ApproverStatus,
    InstallPlanApprover,
)
from ipapprover.crd.meta import ObjectMetadata, ObjectRef, OwnerReference
from ipapprover.crd.olm_models import (
    INSTALL_PLAN_KIND,
    INSTALL_PLAN_PLURAL,
    OLM_API_GROUP,
    OLM_API_VERSION,
    SUBSCRIPTION_KIND,
    SUBSCRIPTION_PLURAL,
    InstallPlan,
    InstallPlanSpec,
    Subscription,
    SubscriptionSpec,
)


__all__ = [
    "APPROVER_API_GROUP",
    "APPROVER_API_VERSION",
    "APPROVER_KIND",
    "APPROVER_PLURAL",
    "APPROVER_SHORT_NAME",
    "INSTALL_PLAN_KIND",
    "INSTALL_PLAN_PLURAL",
    "OLM_API_GROUP",
    "OLM_API_VERSION",
    "SUBSCRIPTION_KIND",
    "SUBSCRIPTION_PLURAL",
    "ApproverSpec",
    "ApproverStatus",
    "InstallPlan",
    "InstallPlanApprover",
    "InstallPlanSpec",
    "ObjectMetadata",
    "ObjectRef",
    "OwnerReference",
    "Subscription",
    "SubscriptionSpec",
]
