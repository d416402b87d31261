"""Tests for the session registry: lifecycle, locks and timers."""

import asyncio

import pytest

from src.conversation.session import SessionRegistry, TimerStage
from src.core.schemas import Classification


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def registry(clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(clock=clock)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
class TestLifecycle:
    def test_create_and_get(self, registry: SessionRegistry) -> None:
        session = registry.create("5551")
        assert registry.get("5551") is session
        assert session.classification is Classification.UNCLASSIFIED
        assert not session.is_under_manual_control
        assert "5551" in registry
        assert len(registry) == 1

    def test_get_unknown(self, registry: SessionRegistry) -> None:
        assert registry.get("nobody") is None

    def test_create_replaces(self, registry: SessionRegistry) -> None:
        first = registry.create("5551", Classification.COMPANY)
        second = registry.create("5551")
        assert second is not first
        assert registry.get("5551").classification is Classification.UNCLASSIFIED

    def test_remove(self, registry: SessionRegistry) -> None:
        registry.create("5551")
        assert registry.remove("5551") is not None
        assert registry.remove("5551") is None
        assert "5551" not in registry

    def test_touch_and_idle(self, registry: SessionRegistry, clock: FakeClock) -> None:
        session = registry.create("5551")
        clock.advance(30)
        assert registry.idle_ms(session) == 30_000
        registry.touch("5551")
        assert registry.idle_ms(session) == 0

    def test_sessions_and_clear(self, registry: SessionRegistry) -> None:
        registry.create("a")
        registry.create("b")
        assert {s.contact_id for s in registry.sessions()} == {"a", "b"}
        registry.clear()
        assert len(registry) == 0


class TestLocks:
    def test_same_lock_per_contact(self, registry: SessionRegistry) -> None:
        assert registry.lock("a") is registry.lock("a")
        assert registry.lock("a") is not registry.lock("b")

    async def test_lock_serializes(self, registry: SessionRegistry) -> None:
        order: list[str] = []

        async def work(tag: str) -> None:
            async with registry.lock("a"):
                order.append(f"{tag}-start")
                await asyncio.sleep(0)
                order.append(f"{tag}-end")

        await asyncio.gather(work("x"), work("y"))
        assert order == ["x-start", "x-end", "y-start", "y-end"]

    async def test_lock_dropped_once_session_removed(self, registry: SessionRegistry) -> None:
        for i in range(100):
            contact = f"c{i}"
            registry.create(contact)
            async with registry.hold(contact):
                registry.remove(contact)
        assert len(registry) == 0
        assert registry._locks == {}

    async def test_lock_kept_while_session_lives(self, registry: SessionRegistry) -> None:
        registry.create("a")
        async with registry.hold("a"):
            pass
        assert "a" in registry._locks
        registry.remove("a")
        assert "a" not in registry._locks

    async def test_lock_kept_for_waiters(self, registry: SessionRegistry) -> None:
        registry.create("a")
        entered = asyncio.Event()
        order: list[str] = []

        async def first() -> None:
            async with registry.hold("a"):
                entered.set()
                await asyncio.sleep(0)
                registry.remove("a")
                await asyncio.sleep(0)
                order.append("first")

        async def second() -> None:
            await entered.wait()
            async with registry.hold("a"):
                order.append("second")

        await asyncio.gather(first(), second())
        assert order == ["first", "second"]
        assert "a" not in registry._locks


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------
class TestTimers:
    async def test_arm_sets_stage_and_deadline(self, registry: SessionRegistry, clock: FakeClock) -> None:
        registry.create("a")
        generation = registry.arm_timer("a", 60, TimerStage.INACTIVITY, lambda c, g: None)
        session = registry.get("a")
        assert session.timer_stage is TimerStage.INACTIVITY
        assert session.timer_deadline == clock.now + 60
        assert registry.is_current("a", generation)
        registry.clear()

    async def test_arm_requires_session(self, registry: SessionRegistry) -> None:
        with pytest.raises(KeyError):
            registry.arm_timer("ghost", 1, TimerStage.INACTIVITY, lambda c, g: None)

    async def test_fires_callback(self, registry: SessionRegistry) -> None:
        fired: list[tuple[str, int]] = []
        registry.create("a")
        generation = registry.arm_timer("a", 0.01, TimerStage.INACTIVITY, lambda c, g: fired.append((c, g)))
        await asyncio.sleep(0.05)
        assert fired == [("a", generation)]

    async def test_rearm_cancels_previous(self, registry: SessionRegistry) -> None:
        fired: list[int] = []
        registry.create("a")
        first = registry.arm_timer("a", 0.01, TimerStage.INACTIVITY, lambda c, g: fired.append(g))
        second = registry.arm_timer("a", 0.02, TimerStage.FOLLOW_UP, lambda c, g: fired.append(g))
        await asyncio.sleep(0.06)
        assert fired == [second]
        assert not registry.is_current("a", first)

    async def test_cancel(self, registry: SessionRegistry) -> None:
        fired: list[int] = []
        registry.create("a")
        generation = registry.arm_timer("a", 0.01, TimerStage.INACTIVITY, lambda c, g: fired.append(g))
        registry.cancel_timer("a")
        await asyncio.sleep(0.03)
        assert fired == []
        assert not registry.is_current("a", generation)
        assert registry.get("a").timer_stage is None

    async def test_generation_survives_recreate(self, registry: SessionRegistry) -> None:
        registry.create("a")
        old = registry.arm_timer("a", 60, TimerStage.INACTIVITY, lambda c, g: None)
        registry.create("a")
        new = registry.arm_timer("a", 60, TimerStage.INACTIVITY, lambda c, g: None)
        assert new != old
        assert not registry.is_current("a", old)
        registry.clear()

    async def test_remove_cancels_timer(self, registry: SessionRegistry) -> None:
        fired: list[int] = []
        registry.create("a")
        registry.arm_timer("a", 0.01, TimerStage.INACTIVITY, lambda c, g: fired.append(g))
        registry.remove("a")
        await asyncio.sleep(0.03)
        assert fired == []
