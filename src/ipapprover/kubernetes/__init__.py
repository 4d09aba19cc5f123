"""Kubernetes access for the approver.

- gateway.py: ResourceGateway interface and the kubernetes-client implementation
- errors.py: NotFound / Conflict / generic gateway errors
"""

from ipapprover.kubernetes.errors import ConflictError, GatewayError, NotFoundError
from ipapprover.kubernetes.gateway import (
    KubernetesGateway,
    ResourceGateway,
    ResourceKind,
    get_gateway,
)


__all__ = [
    "ConflictError",
    "GatewayError",
    "KubernetesGateway",
    "NotFoundError",
    "ResourceGateway",
    "ResourceKind",
    "get_gateway",
]
