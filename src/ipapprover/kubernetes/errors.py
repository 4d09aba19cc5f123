"""Gateway error hierarchy.

Kubernetes API failures are translated by HTTP status so the engine can
tell "already gone" and "stale write" apart from everything else.
"""

from __future__ import annotations

from typing import Any

from kubernetes.client import ApiException


HTTP_404_NOT_FOUND = 404
HTTP_409_CONFLICT = 409


class GatewayError(RuntimeError):
    """A Kubernetes API call failed."""

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        name: str | None = None,
        namespace: str | None = None,
        status: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.status = status
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        """Flatten the error for structured log fields."""
        return {
            "kind": self.kind,
            "name": self.name,
            "namespace": self.namespace,
            "status": self.status,
            "reason": self.reason,
        }


class NotFoundError(GatewayError):
    """The object, or its resource type, does not exist."""


class ConflictError(GatewayError):
    """A conditional write lost against a newer resourceVersion."""


def translate_api_exception(
    exc: ApiException,
    *,
    kind: str,
    name: str | None = None,
    namespace: str | None = None,
) -> GatewayError:
    """Map an ApiException onto the gateway error hierarchy."""
    error_cls: type[GatewayError] = GatewayError
    if exc.status == HTTP_404_NOT_FOUND:
        error_cls = NotFoundError
    elif exc.status == HTTP_409_CONFLICT:
        error_cls = ConflictError

    target = f"{kind} {namespace}/{name}" if namespace and name else f"{kind} {name or ''}".strip()
    return error_cls(
        f"{target}: {exc.status} {exc.reason}",
        kind=kind,
        name=name,
        namespace=namespace,
        status=exc.status,
        reason=exc.reason,
    )


def transport_error(
    exc: Exception,
    *,
    kind: str,
    name: str | None = None,
    namespace: str | None = None,
) -> GatewayError:
    """Wrap a connection or timeout failure that never produced a response."""
    return GatewayError(
        f"{kind} request failed: {exc}",
        kind=kind,
        name=name,
        namespace=namespace,
        reason=type(exc).__name__,
    )


__all__ = [
    "HTTP_404_NOT_FOUND",
    "HTTP_409_CONFLICT",
    "ConflictError",
    "GatewayError",
    "NotFoundError",
    "translate_api_exception",
    "transport_error",
]
