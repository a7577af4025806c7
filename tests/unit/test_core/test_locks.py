"""Tests for per-election in-process locks."""

import asyncio

from ballot_api.core.locks import ElectionLockRegistry


class TestElectionLockRegistry:
    def test_same_election_shares_lock(self) -> None:
        registry = ElectionLockRegistry()
        assert registry.lock_for(1) is registry.lock_for(1)
        assert registry.lock_for(1) is not registry.lock_for(2)

    async def test_hold_serializes_one_election(self) -> None:
        registry = ElectionLockRegistry()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with registry.hold(7):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])

    async def test_different_elections_do_not_block(self) -> None:
        registry = ElectionLockRegistry()
        async with registry.hold(1):
            async with asyncio.timeout(1):
                async with registry.hold(2):
                    assert registry.lock_for(1).locked()

    async def test_discard_skips_held_lock(self) -> None:
        registry = ElectionLockRegistry()
        async with registry.hold(3):
            held = registry.lock_for(3)
            registry.discard(3)
            assert registry.lock_for(3) is held
        registry.discard(3)
        assert registry.lock_for(3) is not held

    async def test_released_lock_is_forgotten(self) -> None:
        registry = ElectionLockRegistry()
        for election_id in range(50):
            async with registry.hold(election_id):
                assert len(registry) == 1
        assert len(registry) == 0

    async def test_lock_kept_while_waiters_remain(self) -> None:
        registry = ElectionLockRegistry()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def first() -> None:
            async with registry.hold(5):
                entered.set()
                await release.wait()

        async def second() -> asyncio.Lock:
            async with registry.hold(5):
                return registry.lock_for(5)

        holder = asyncio.create_task(first())
        await entered.wait()
        shared = registry.lock_for(5)
        waiter = asyncio.create_task(second())
        await asyncio.sleep(0)
        release.set()

        assert await waiter is shared
        await holder
        assert len(registry) == 0

    async def test_cancelled_waiter_is_not_tracked(self) -> None:
        registry = ElectionLockRegistry()
        async with registry.hold(9):

            async def wait_for_lock() -> None:
                async with registry.hold(9):
                    pass

            waiter = asyncio.create_task(wait_for_lock())
            await asyncio.sleep(0)
            waiter.cancel()
            await asyncio.gather(waiter, return_exceptions=True)
        assert len(registry) == 0
