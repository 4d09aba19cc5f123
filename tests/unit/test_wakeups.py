"""Unit tests for approver daemon wake-ups."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from ipapprover.crd import ObjectRef
from ipapprover.k8s_operator.wakeups import WakeupRegistry


REF = ObjectRef("ipa-system", "approver")


class TestWakeupRegistry:
    def test_wake_unregistered_is_noop(self) -> None:
        registry = WakeupRegistry()

        assert registry.wake(REF) is False
        assert REF not in registry

    def test_register_and_discard(self) -> None:
        registry = WakeupRegistry()

        registry.register(REF)
        assert REF in registry
        assert len(registry) == 1

        registry.discard(REF)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_wait_times_out(self) -> None:
        registry = WakeupRegistry()
        registry.register(REF)

        assert await registry.wait(REF, 0.01) is False

    @pytest.mark.asyncio
    async def test_wake_before_wait_is_not_lost(self) -> None:
        registry = WakeupRegistry()
        registry.register(REF)

        registry.wake(REF)

        assert await registry.wait(REF, 1.0) is True

    @pytest.mark.asyncio
    async def test_clear_drops_earlier_wakeups(self) -> None:
        registry = WakeupRegistry()
        registry.register(REF)
        registry.wake(REF)

        registry.clear(REF)

        assert await registry.wait(REF, 0.01) is False

    @pytest.mark.asyncio
    async def test_wake_interrupts_unbounded_wait(self) -> None:
        registry = WakeupRegistry()
        registry.register(REF)

        waiter = asyncio.create_task(registry.wait(REF, None))
        await asyncio.sleep(0)
        assert registry.wake(REF) is True

        assert await asyncio.wait_for(waiter, 1.0) is True

    @pytest.mark.asyncio
    async def test_stop_ends_unbounded_wait(self) -> None:
        registry = WakeupRegistry()
        registry.register(REF)
        stop_requested = asyncio.Event()
        stopped = MagicMock()
        stopped.wait = stop_requested.wait

        waiter = asyncio.create_task(registry.wait(REF, None, stopped))
        await asyncio.sleep(0)
        stop_requested.set()

        assert await asyncio.wait_for(waiter, 1.0) is False

    @pytest.mark.asyncio
    async def test_wake_wins_over_idle_stop_signal(self) -> None:
        registry = WakeupRegistry()
        registry.register(REF)
        stopped = MagicMock()
        stopped.wait = asyncio.Event().wait

        registry.wake(REF)

        assert await registry.wait(REF, None, stopped) is True
