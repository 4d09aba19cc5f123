"""Pydantic models for the OLM resources the approver reads.

Only the fields used by the approval policy are modelled. Absent fields
fall back to defaults. A malformed CSV name list reads as empty; other
fields present with the wrong type fail validation so a malformed object
can be skipped on its own.

API Group: operators.coreos.com
API Version: v1alpha1
Kinds: InstallPlan, Subscription
"""

import copy
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictBool,
    StrictStr,
    field_validator,
)

from ipapprover.crd.meta import ObjectMetadata, ObjectRef


OLM_API_GROUP = "operators.coreos.com"
OLM_API_VERSION = "v1alpha1"
INSTALL_PLAN_KIND = "InstallPlan"
INSTALL_PLAN_PLURAL = "installplans"
SUBSCRIPTION_KIND = "Subscription"
SUBSCRIPTION_PLURAL = "subscriptions"


class InstallPlanSpec(BaseModel):
    """InstallPlan spec fields relevant to approval."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    approved: StrictBool = Field(default=False)
    approval: str | None = Field(default=None, description="Automatic or Manual")
    cluster_service_version_names: list[StrictStr] = Field(
        default_factory=list, alias="clusterServiceVersionNames"
    )

    @field_validator("cluster_service_version_names", mode="before")
    @classmethod
    def malformed_names_as_empty(cls, value: Any) -> Any:
        """Read a null or non-string-list value as no CSV names."""
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return value
        return []


class InstallPlan(BaseModel):
    """An OLM InstallPlan awaiting (or past) approval."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    metadata: ObjectMetadata
    spec: InstallPlanSpec = Field(default_factory=InstallPlanSpec)

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    @property
    def ref(self) -> ObjectRef:
        return self.metadata.ref

    @property
    def approved(self) -> bool:
        return self.spec.approved

    @property
    def csv_names(self) -> list[str]:
        return self.spec.cluster_service_version_names

    @property
    def primary_csv(self) -> str | None:
        """First CSV name, the version this plan installs."""
        return self.csv_names[0] if self.csv_names else None

    def subscription_owner(self) -> str | None:
        """Name of the first owning Subscription, if any."""
        for owner in self.metadata.owner_references:
            if owner.kind == SUBSCRIPTION_KIND:
                return owner.name
        return None

    def to_approved_body(self) -> dict[str, Any]:
        """Return the original object with spec.approved set to true.

        The body keeps metadata.resourceVersion so the replace is rejected
        if the plan changed since it was listed.
        """
        body = copy.deepcopy(self._raw)
        body.setdefault("spec", {})["approved"] = True
        return body

    @classmethod
    def from_kubernetes_object(cls, obj: dict[str, Any]) -> "InstallPlan":
        """Create an InstallPlan from a raw Kubernetes API response."""
        plan = cls.model_validate(obj)
        plan._raw = copy.deepcopy(obj)
        return plan


class SubscriptionSpec(BaseModel):
    """Subscription spec fields relevant to approval."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    package: str | None = Field(default=None, alias="name")
    channel: str | None = Field(default=None)
    source: str | None = Field(default=None)
    starting_csv: StrictStr | None = Field(default=None, alias="startingCSV")


class Subscription(BaseModel):
    """An OLM Subscription, read-only."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    metadata: ObjectMetadata
    spec: SubscriptionSpec = Field(default_factory=SubscriptionSpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def starting_csv(self) -> str | None:
        """Pinned CSV, or None when unset or empty."""
        return self.spec.starting_csv or None

    @classmethod
    def from_kubernetes_object(cls, obj: dict[str, Any]) -> "Subscription":
        """Create a Subscription from a raw Kubernetes API response."""
        return cls.model_validate(obj)


__all__ = [
    "INSTALL_PLAN_KIND",
    "INSTALL_PLAN_PLURAL",
    "OLM_API_GROUP",
    "OLM_API_VERSION",
    "SUBSCRIPTION_KIND",
    "SUBSCRIPTION_PLURAL",
    "InstallPlan",
    "InstallPlanSpec",
    "Subscription",
    "SubscriptionSpec",
]
