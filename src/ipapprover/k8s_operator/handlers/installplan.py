"""InstallPlan watch handler.

Every InstallPlan event, including the initial listing, wakes the daemons
of the approvers the change router returns.
"""

import asyncio
from typing import Any

import kopf

from ipapprover.approval import find_approvers_for_install_plan
from ipapprover.crd import INSTALL_PLAN_PLURAL, OLM_API_GROUP, OLM_API_VERSION
from ipapprover.k8s_operator.wakeups import wakeups
from ipapprover.kubernetes.gateway import get_gateway
from ipapprover.observability.logging import get_logger


log = get_logger(__name__)


@kopf.on.event(
    group=OLM_API_GROUP,
    version=OLM_API_VERSION,
    plural=INSTALL_PLAN_PLURAL,
)
async def handle_install_plan_event(
    *,
    name: str | None,
    namespace: str | None,
    body: kopf.Body,
    **_kwargs: Any,
) -> None:
    """Wake approvers after an InstallPlan was added, changed or deleted.

    Args:
        name: InstallPlan name
        namespace: InstallPlan namespace
        body: Full InstallPlan body
        **_kwargs: Additional kopf kwargs
    """
    refs = await asyncio.to_thread(find_approvers_for_install_plan, get_gateway(), dict(body))
    woken = sorted(str(ref) for ref in refs if wakeups.wake(ref))

    if woken:
        log.debug(
            "approvers_woken",
            installplan=name,
            namespace=namespace,
            approvers=woken,
        )


__all__ = ["handle_install_plan_event"]
