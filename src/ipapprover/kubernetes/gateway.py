"""Resource gateway over the Kubernetes API.

The approval engine talks to the cluster only through ResourceGateway.
KubernetesGateway implements it with the official client: typed methods
on top of a generic get/list/replace keyed by ResourceKind. Every call
carries a request timeout. InstallPlan replaces are conditional on the
resourceVersion carried in the body; status writes are merge patches.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Any

from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client import ApiException
from pydantic import ValidationError
from urllib3.exceptions import HTTPError

from ipapprover.config.settings import KubernetesSettings, get_settings
from ipapprover.crd import (
    APPROVER_API_GROUP,
    APPROVER_API_VERSION,
    APPROVER_KIND,
    APPROVER_PLURAL,
    INSTALL_PLAN_KIND,
    INSTALL_PLAN_PLURAL,
    OLM_API_GROUP,
    OLM_API_VERSION,
    SUBSCRIPTION_KIND,
    SUBSCRIPTION_PLURAL,
    ApproverStatus,
    InstallPlanApprover,
    ObjectRef,
    Subscription,
)
from ipapprover.kubernetes.errors import (
    GatewayError,
    translate_api_exception,
    transport_error,
)
from ipapprover.observability.logging import get_logger


log = get_logger(__name__)

_CONFIG_LOCK = Lock()
_CONFIG_LOADED = False


@dataclass(frozen=True)
class ResourceKind:
    """Coordinates of a custom resource type."""

    kind: str
    group: str
    version: str
    plural: str
    namespaced: bool = True


APPROVER = ResourceKind(APPROVER_KIND, APPROVER_API_GROUP, APPROVER_API_VERSION, APPROVER_PLURAL)
INSTALL_PLAN = ResourceKind(INSTALL_PLAN_KIND, OLM_API_GROUP, OLM_API_VERSION, INSTALL_PLAN_PLURAL)
SUBSCRIPTION = ResourceKind(SUBSCRIPTION_KIND, OLM_API_GROUP, OLM_API_VERSION, SUBSCRIPTION_PLURAL)


class ResourceGateway(ABC):
    """Read/list/update access to the resources the approver uses.

    Implementations raise NotFoundError for missing objects or unregistered
    kinds, ConflictError for stale writes and GatewayError otherwise.
    """

    @abstractmethod
    def get_approver(self, ref: ObjectRef) -> InstallPlanApprover:
        """Fetch one InstallPlanApprover."""

    @abstractmethod
    def list_approvers(self) -> list[InstallPlanApprover]:
        """List InstallPlanApprovers across the cluster."""

    @abstractmethod
    def list_namespaces(self) -> list[str]:
        """List the names of all namespaces."""

    @abstractmethod
    def list_install_plans(self, namespace: str) -> list[dict[str, Any]]:
        """List raw InstallPlan objects in a namespace."""

    @abstractmethod
    def get_subscription(self, namespace: str, name: str) -> Subscription:
        """Fetch one Subscription."""

    @abstractmethod
    def update_install_plan(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace an InstallPlan, conditional on its resourceVersion."""

    @abstractmethod
    def update_approver_status(
        self, approver: InstallPlanApprover, status: ApproverStatus
    ) -> None:
        """Write the status subresource of an InstallPlanApprover.

        Unconditional: each approver has a single writer.
        """


def load_kubernetes_config(k8s_settings: KubernetesSettings) -> None:
    """Load cluster credentials once per process.

    In-cluster config is tried first unless a kubeconfig was configured.
    """
    global _CONFIG_LOADED  # noqa: PLW0603

    with _CONFIG_LOCK:
        if _CONFIG_LOADED:
            return
        if k8s_settings.in_cluster:
            k8s_config.load_incluster_config()
        elif k8s_settings.kubeconfig or k8s_settings.context:
            k8s_config.load_kube_config(
                config_file=k8s_settings.kubeconfig,
                context=k8s_settings.context,
            )
        else:
            try:
                k8s_config.load_incluster_config()
            except k8s_config.ConfigException:
                k8s_config.load_kube_config()
        _CONFIG_LOADED = True


class KubernetesGateway(ResourceGateway):
    """ResourceGateway backed by CoreV1Api and CustomObjectsApi.

    Attributes:
        core_api: Kubernetes CoreV1Api client
        custom_api: Kubernetes CustomObjectsApi client
        request_timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        core_api: client.CoreV1Api | None = None,
        custom_api: client.CustomObjectsApi | None = None,
        request_timeout: int | None = None,
    ) -> None:
        self.core_api = core_api or client.CoreV1Api()
        self.custom_api = custom_api or client.CustomObjectsApi()
        self.request_timeout = request_timeout or get_settings().kubernetes.api_timeout

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------

    def get_object(
        self, kind: ResourceKind, name: str, namespace: str | None = None
    ) -> dict[str, Any]:
        try:
            if kind.namespaced and namespace:
                return self.custom_api.get_namespaced_custom_object(
                    group=kind.group,
                    version=kind.version,
                    namespace=namespace,
                    plural=kind.plural,
                    name=name,
                    _request_timeout=self.request_timeout,
                )
            return self.custom_api.get_cluster_custom_object(
                group=kind.group,
                version=kind.version,
                plural=kind.plural,
                name=name,
                _request_timeout=self.request_timeout,
            )
        except ApiException as exc:
            raise translate_api_exception(
                exc, kind=kind.kind, name=name, namespace=namespace
            ) from exc
        except HTTPError as exc:
            raise transport_error(exc, kind=kind.kind, name=name, namespace=namespace) from exc

    def list_objects(
        self, kind: ResourceKind, namespace: str | None = None
    ) -> list[dict[str, Any]]:
        try:
            if namespace:
                response = self.custom_api.list_namespaced_custom_object(
                    group=kind.group,
                    version=kind.version,
                    namespace=namespace,
                    plural=kind.plural,
                    _request_timeout=self.request_timeout,
                )
            else:
                response = self.custom_api.list_cluster_custom_object(
                    group=kind.group,
                    version=kind.version,
                    plural=kind.plural,
                    _request_timeout=self.request_timeout,
                )
        except ApiException as exc:
            raise translate_api_exception(exc, kind=kind.kind, namespace=namespace) from exc
        except HTTPError as exc:
            raise transport_error(exc, kind=kind.kind, namespace=namespace) from exc
        return list(response.get("items") or [])

    def replace_object(self, kind: ResourceKind, body: dict[str, Any]) -> dict[str, Any]:
        name, namespace = _identity(body)
        try:
            if kind.namespaced and namespace:
                return self.custom_api.replace_namespaced_custom_object(
                    group=kind.group,
                    version=kind.version,
                    namespace=namespace,
                    plural=kind.plural,
                    name=name,
                    body=body,
                    _request_timeout=self.request_timeout,
                )
            return self.custom_api.replace_cluster_custom_object(
                group=kind.group,
                version=kind.version,
                plural=kind.plural,
                name=name,
                body=body,
                _request_timeout=self.request_timeout,
            )
        except ApiException as exc:
            raise translate_api_exception(
                exc, kind=kind.kind, name=name, namespace=namespace
            ) from exc
        except HTTPError as exc:
            raise transport_error(exc, kind=kind.kind, name=name, namespace=namespace) from exc

    def patch_object_status(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str | None,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            if kind.namespaced and namespace:
                return self.custom_api.patch_namespaced_custom_object_status(
                    group=kind.group,
                    version=kind.version,
                    namespace=namespace,
                    plural=kind.plural,
                    name=name,
                    body=body,
                    _request_timeout=self.request_timeout,
                )
            return self.custom_api.patch_cluster_custom_object_status(
                group=kind.group,
                version=kind.version,
                plural=kind.plural,
                name=name,
                body=body,
                _request_timeout=self.request_timeout,
            )
        except ApiException as exc:
            raise translate_api_exception(
                exc, kind=kind.kind, name=name, namespace=namespace
            ) from exc
        except HTTPError as exc:
            raise transport_error(exc, kind=kind.kind, name=name, namespace=namespace) from exc

    # ------------------------------------------------------------------
    # Typed access
    # ------------------------------------------------------------------

    def get_approver(self, ref: ObjectRef) -> InstallPlanApprover:
        obj = self.get_object(APPROVER, ref.name, ref.namespace)
        try:
            return InstallPlanApprover.from_kubernetes_object(obj)
        except ValidationError as exc:
            raise GatewayError(
                f"{APPROVER_KIND} {ref} is malformed: {exc.error_count()} error(s)",
                kind=APPROVER_KIND,
                name=ref.name,
                namespace=ref.namespace,
                reason="Invalid",
            ) from exc

    def list_approvers(self) -> list[InstallPlanApprover]:
        approvers = []
        for obj in self.list_objects(APPROVER):
            try:
                approvers.append(InstallPlanApprover.from_kubernetes_object(obj))
            except ValidationError as exc:
                log.warning(
                    "approver_malformed",
                    name=(obj.get("metadata") or {}).get("name"),
                    errors=exc.error_count(),
                )
        return approvers

    def list_namespaces(self) -> list[str]:
        try:
            response = self.core_api.list_namespace(_request_timeout=self.request_timeout)
        except ApiException as exc:
            raise translate_api_exception(exc, kind="Namespace") from exc
        except HTTPError as exc:
            raise transport_error(exc, kind="Namespace") from exc
        return [ns.metadata.name for ns in response.items]

    def list_install_plans(self, namespace: str) -> list[dict[str, Any]]:
        return self.list_objects(INSTALL_PLAN, namespace)

    def get_subscription(self, namespace: str, name: str) -> Subscription:
        obj = self.get_object(SUBSCRIPTION, name, namespace)
        try:
            return Subscription.from_kubernetes_object(obj)
        except ValidationError as exc:
            raise GatewayError(
                f"{SUBSCRIPTION_KIND} {namespace}/{name} is malformed",
                kind=SUBSCRIPTION_KIND,
                name=name,
                namespace=namespace,
                reason="Invalid",
            ) from exc

    def update_install_plan(self, body: dict[str, Any]) -> dict[str, Any]:
        return self.replace_object(INSTALL_PLAN, body)

    def update_approver_status(
        self, approver: InstallPlanApprover, status: ApproverStatus
    ) -> None:
        ref = approver.ref
        body = approver.to_status_patch(status)
        self.patch_object_status(APPROVER, ref.name, ref.namespace, body)


def _identity(body: dict[str, Any]) -> tuple[str, str | None]:
    metadata = body.get("metadata") or {}
    return metadata.get("name", ""), metadata.get("namespace")


@lru_cache
def get_gateway() -> KubernetesGateway:
    """Get the process-wide gateway, loading cluster config on first use."""
    load_kubernetes_config(get_settings().kubernetes)
    return KubernetesGateway()


__all__ = [
    "APPROVER",
    "INSTALL_PLAN",
    "SUBSCRIPTION",
    "KubernetesGateway",
    "ResourceGateway",
    "ResourceKind",
    "get_gateway",
    "load_kubernetes_config",
]
