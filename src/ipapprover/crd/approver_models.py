"""Pydantic models for the InstallPlanApprover Custom Resource.

An InstallPlanApprover is the user-authored policy: which namespaces to
scan, whether approval is enabled at all, and an optional operator name
allow-list. Its status records how many InstallPlans were approved.

API Group: operators.bapu.cloud
API Version: v1alpha1
Kind: InstallPlanApprover
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ipapprover.crd.meta import ObjectMetadata, ObjectRef


APPROVER_API_GROUP = "operators.bapu.cloud"
APPROVER_API_VERSION = "v1alpha1"
APPROVER_KIND = "InstallPlanApprover"
APPROVER_PLURAL = "installplanapprovers"
APPROVER_SHORT_NAME = "ipa"


class ApproverSpec(BaseModel):
    """Desired behaviour of an approver."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    target_namespaces: list[str] = Field(
        default_factory=list,
        alias="targetNamespaces",
        description="Namespaces to scan; empty means every namespace",
    )
    auto_approve: bool = Field(
        default=True,
        alias="autoApprove",
        description="Master switch; when false the approver does nothing",
    )
    operator_names: list[str] = Field(
        default_factory=list,
        alias="operatorNames",
        description="CSV names or name prefixes to approve; empty means all",
    )


class ApproverStatus(BaseModel):
    """Observed state of an approver."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    approved_count: int = Field(default=0, ge=0, alias="approvedCount")
    last_approved_plan: str | None = Field(default=None, alias="lastApprovedPlan")
    last_approved_time: datetime | None = Field(default=None, alias="lastApprovedTime")


class InstallPlanApprover(BaseModel):
    """InstallPlanApprover custom resource."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_version: str = Field(
        default=f"{APPROVER_API_GROUP}/{APPROVER_API_VERSION}", alias="apiVersion"
    )
    kind: str = Field(default=APPROVER_KIND)
    metadata: ObjectMetadata
    spec: ApproverSpec = Field(default_factory=ApproverSpec)
    status: ApproverStatus = Field(default_factory=ApproverStatus)

    @property
    def ref(self) -> ObjectRef:
        return self.metadata.ref

    def record_approvals(
        self,
        count: int,
        last_plan: str | None,
        last_time: datetime | None,
    ) -> ApproverStatus:
        """Return a new status with a batch of approvals applied.

        The count only ever grows; the last-approved fields are overwritten.
        """
        if count < 0:
            msg = "approval count delta must not be negative"
            raise ValueError(msg)
        return ApproverStatus(
            approved_count=self.status.approved_count + count,
            last_approved_plan=last_plan,
            last_approved_time=last_time,
        )

    def to_status_patch(self, status: ApproverStatus) -> dict[str, Any]:
        """Return a merge patch that sets the status subresource."""
        return {"status": status.model_dump(by_alias=True, exclude_none=True, mode="json")}

    @classmethod
    def from_kubernetes_object(cls, obj: dict[str, Any]) -> "InstallPlanApprover":
        """Create an InstallPlanApprover from a raw Kubernetes API response."""
        return cls.model_validate(obj)


__all__ = [
    "APPROVER_API_GROUP",
    "APPROVER_API_VERSION",
    "APPROVER_KIND",
    "APPROVER_PLURAL",
    "APPROVER_SHORT_NAME",
    "ApproverSpec",
    "ApproverStatus",
    "InstallPlanApprover",
]
