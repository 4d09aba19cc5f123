"""Shared Kubernetes object metadata models."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class ObjectRef(NamedTuple):
    """Namespace-qualified name of a Kubernetes object."""

    namespace: str | None
    name: str

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name


class OwnerReference(BaseModel):
    """Back-link from an object to the object that owns it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_version: str | None = Field(default=None, alias="apiVersion")
    kind: str
    name: str
    uid: str | None = Field(default=None)
    controller: bool | None = Field(default=None)


class ObjectMetadata(BaseModel):
    """Subset of ObjectMeta the operator reads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    namespace: str | None = Field(default=None)
    uid: str | None = Field(default=None)
    resource_version: str | None = Field(default=None, alias="resourceVersion")
    owner_references: list[OwnerReference] = Field(
        default_factory=list, alias="ownerReferences"
    )

    @property
    def ref(self) -> ObjectRef:
        return ObjectRef(self.namespace, self.name)


__all__ = ["ObjectMetadata", "ObjectRef", "OwnerReference"]
