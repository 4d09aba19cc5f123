"""Pytest configuration and fixtures for approver tests."""

from __future__ import annotations

import copy
import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import pytest

from ipapprover.crd import (
    ApproverStatus,
    InstallPlanApprover,
    ObjectRef,
    Subscription,
)
from ipapprover.kubernetes.errors import ConflictError, GatewayError, NotFoundError
from ipapprover.kubernetes.gateway import ResourceGateway

if TYPE_CHECKING:
    from collections.abc import Generator


# Ensure we're using test configuration
os.environ.setdefault("IPA_ENVIRONMENT", "development")
os.environ.setdefault("IPA_OBSERVABILITY_METRICS_ENABLED", "false")


FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None, None, None]:
    """Reset settings cache before each test."""
    from ipapprover.config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================================
# Object factories
# ============================================================================


def make_install_plan(
    name: str,
    namespace: str = "operators",
    *,
    csv_names: list[str] | None = None,
    approved: Any = False,
    subscription: str | None = None,
    resource_version: str = "100",
) -> dict[str, Any]:
    """Raw InstallPlan as returned by the API server."""
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "resourceVersion": resource_version,
    }
    if subscription:
        metadata["ownerReferences"] = [
            {
                "apiVersion": "operators.coreos.com/v1alpha1",
                "kind": "Subscription",
                "name": subscription,
                "uid": f"uid-{subscription}",
            }
        ]
    return {
        "apiVersion": "operators.coreos.com/v1alpha1",
        "kind": "InstallPlan",
        "metadata": metadata,
        "spec": {
            "approval": "Manual",
            "approved": approved,
            "clusterServiceVersionNames": list(csv_names or []),
        },
    }


def make_subscription(
    name: str,
    namespace: str = "operators",
    *,
    starting_csv: str | None = None,
) -> dict[str, Any]:
    """Raw Subscription as returned by the API server."""
    spec: dict[str, Any] = {
        "name": name,
        "channel": "stable",
        "source": "operatorhubio-catalog",
        "sourceNamespace": "olm",
    }
    if starting_csv is not None:
        spec["startingCSV"] = starting_csv
    return {
        "apiVersion": "operators.coreos.com/v1alpha1",
        "kind": "Subscription",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


def make_approver(
    name: str = "approver",
    namespace: str = "ipa-system",
    *,
    target_namespaces: list[str] | None = None,
    auto_approve: bool | None = None,
    operator_names: list[str] | None = None,
    status: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Raw InstallPlanApprover as returned by the API server."""
    spec: dict[str, Any] = {}
    if target_namespaces is not None:
        spec["targetNamespaces"] = target_namespaces
    if auto_approve is not None:
        spec["autoApprove"] = auto_approve
    if operator_names is not None:
        spec["operatorNames"] = operator_names
    obj: dict[str, Any] = {
        "apiVersion": "operators.bapu.cloud/v1alpha1",
        "kind": "InstallPlanApprover",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": "7"},
        "spec": spec,
    }
    if status is not None:
        obj["status"] = status
    return obj


# ============================================================================
# In-memory gateway
# ============================================================================


class FakeGateway(ResourceGateway):
    """ResourceGateway over plain dicts that records every call.

    Failures are injected per operation through the *_errors mappings,
    keyed by the argument the real call would fail on.
    """

    def __init__(self) -> None:
        self.approvers: dict[ObjectRef, dict[str, Any]] = {}
        self.namespaces: list[str] = []
        self.install_plans: dict[str, list[dict[str, Any]]] = {}
        self.subscriptions: dict[tuple[str, str], dict[str, Any]] = {}

        self.approver_errors: dict[ObjectRef, GatewayError] = {}
        self.list_approvers_error: GatewayError | None = None
        self.list_namespaces_error: GatewayError | None = None
        self.list_errors: dict[str, GatewayError] = {}
        self.subscription_errors: dict[tuple[str, str], GatewayError] = {}
        self.update_errors: dict[str, GatewayError] = {}
        self.status_error: GatewayError | None = None

        self.calls: list[tuple[str, Any]] = []
        self.updated_plans: list[dict[str, Any]] = []
        self.status_writes: list[tuple[ObjectRef, ApproverStatus]] = []

    # Seeding helpers

    def add_approver(self, obj: dict[str, Any]) -> ObjectRef:
        ref = ObjectRef(obj["metadata"]["namespace"], obj["metadata"]["name"])
        self.approvers[ref] = obj
        return ref

    def add_install_plan(self, obj: dict[str, Any]) -> None:
        namespace = obj["metadata"]["namespace"]
        self.install_plans.setdefault(namespace, []).append(obj)
        if namespace not in self.namespaces:
            self.namespaces.append(namespace)

    def add_subscription(self, obj: dict[str, Any]) -> None:
        key = (obj["metadata"]["namespace"], obj["metadata"]["name"])
        self.subscriptions[key] = obj

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    # ResourceGateway

    def get_approver(self, ref: ObjectRef) -> InstallPlanApprover:
        self.calls.append(("get_approver", ref))
        if ref in self.approver_errors:
            raise self.approver_errors[ref]
        if ref not in self.approvers:
            raise NotFoundError(f"{ref} not found", kind="InstallPlanApprover", status=404)
        return InstallPlanApprover.from_kubernetes_object(copy.deepcopy(self.approvers[ref]))

    def list_approvers(self) -> list[InstallPlanApprover]:
        self.calls.append(("list_approvers", None))
        if self.list_approvers_error is not None:
            raise self.list_approvers_error
        return [InstallPlanApprover.from_kubernetes_object(obj) for obj in self.approvers.values()]

    def list_namespaces(self) -> list[str]:
        self.calls.append(("list_namespaces", None))
        if self.list_namespaces_error is not None:
            raise self.list_namespaces_error
        return list(self.namespaces)

    def list_install_plans(self, namespace: str) -> list[dict[str, Any]]:
        self.calls.append(("list_install_plans", namespace))
        if namespace in self.list_errors:
            raise self.list_errors[namespace]
        return copy.deepcopy(self.install_plans.get(namespace, []))

    def get_subscription(self, namespace: str, name: str) -> Subscription:
        self.calls.append(("get_subscription", (namespace, name)))
        key = (namespace, name)
        if key in self.subscription_errors:
            raise self.subscription_errors[key]
        if key not in self.subscriptions:
            raise NotFoundError(f"{namespace}/{name} not found", kind="Subscription", status=404)
        return Subscription.from_kubernetes_object(self.subscriptions[key])

    def update_install_plan(self, body: dict[str, Any]) -> dict[str, Any]:
        name = body["metadata"]["name"]
        self.calls.append(("update_install_plan", name))
        if name in self.update_errors:
            raise self.update_errors[name]
        self.updated_plans.append(body)
        namespace = body["metadata"]["namespace"]
        stored = self.install_plans.get(namespace, [])
        for index, obj in enumerate(stored):
            if obj["metadata"]["name"] == name:
                stored[index] = copy.deepcopy(body)
        return body

    def update_approver_status(
        self, approver: InstallPlanApprover, status: ApproverStatus
    ) -> None:
        self.calls.append(("update_approver_status", approver.ref))
        if self.status_error is not None:
            raise self.status_error
        self.status_writes.append((approver.ref, status))
        stored = self.approvers.get(approver.ref)
        if stored is not None:
            stored["status"] = approver.to_status_patch(status)["status"]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def gateway() -> FakeGateway:
    """Empty in-memory gateway."""
    return FakeGateway()


@pytest.fixture
def fixed_clock() -> MagicMock:
    """Clock that always returns FIXED_NOW."""
    return MagicMock(return_value=FIXED_NOW)


@pytest.fixture
def conflict_error() -> ConflictError:
    return ConflictError(
        "InstallPlan operators/install-abc: 409 Conflict",
        kind="InstallPlan",
        status=409,
        reason="Conflict",
    )


@pytest.fixture
def server_error() -> GatewayError:
    return GatewayError(
        "request failed: 500 Internal Server Error",
        kind="InstallPlan",
        status=500,
        reason="Internal Server Error",
    )


@pytest.fixture
def plan_factory() -> Any:
    """Factory for raw InstallPlan objects."""
    return make_install_plan


@pytest.fixture
def subscription_factory() -> Any:
    """Factory for raw Subscription objects."""
    return make_subscription


@pytest.fixture
def approver_factory() -> Any:
    """Factory for raw InstallPlanApprover objects."""
    return make_approver
