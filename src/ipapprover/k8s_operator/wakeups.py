"""Wake-up signals for approver daemons.

Each running approver daemon sleeps between passes on its own event. Watch
handlers set the event to cut the sleep short when something relevant
changed. The sleep also ends as soon as kopf asks the daemon to stop.
Waking an approver with no running daemon is a no-op.
"""

import asyncio

import kopf

from ipapprover.crd import ObjectRef


class WakeupRegistry:
    """Per-approver asyncio events, keyed by approver reference."""

    def __init__(self) -> None:
        self._events: dict[ObjectRef, asyncio.Event] = {}

    def register(self, ref: ObjectRef) -> asyncio.Event:
        return self._events.setdefault(ref, asyncio.Event())

    def discard(self, ref: ObjectRef) -> None:
        self._events.pop(ref, None)

    def clear(self, ref: ObjectRef) -> None:
        """Forget earlier wake-ups; called right before a pass starts."""
        self.register(ref).clear()

    def wake(self, ref: ObjectRef) -> bool:
        """Wake the daemon for ref. Returns False if none is registered."""
        event = self._events.get(ref)
        if event is None:
            return False
        event.set()
        return True

    async def wait(
        self,
        ref: ObjectRef,
        timeout: float | None,
        stopped: kopf.DaemonStopped | None = None,
    ) -> bool:
        """Sleep until woken or stopped, or until timeout elapses.

        A timeout of None sleeps until woken or stopped.

        Returns:
            bool: True if woken, False on timeout or stop
        """
        event = self.register(ref)
        waiters = {asyncio.ensure_future(event.wait())}
        if stopped is not None:
            waiters.add(asyncio.ensure_future(stopped.wait()))
        try:
            await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
        return event.is_set()

    def __contains__(self, ref: object) -> bool:
        return ref in self._events

    def __len__(self) -> int:
        return len(self._events)


wakeups = WakeupRegistry()


__all__ = ["WakeupRegistry", "wakeups"]
