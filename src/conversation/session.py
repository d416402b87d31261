"""In-memory per-contact sessions, locks and timers."""

import asyncio
import itertools
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from src.core.schemas import Classification

logger = logging.getLogger(__name__)

TimerCallback = Callable[[str, int], object]


class TimerStage(str, Enum):
    INACTIVITY = "inactivity"
    FOLLOW_UP = "follow_up"
    MANUAL_GRACE = "manual_grace"


@dataclass
class ConversationSession:
    """Live state of one contact's conversation.

    Times ending in ``_at`` come from the registry's monotonic clock;
    ``last_activity_wall`` is the matching wall-clock time for display.
    """

    contact_id: str
    classification: Classification = Classification.UNCLASSIFIED
    is_under_manual_control: bool = False
    manual_agent_id: str | None = None
    manual_taken_at: datetime | None = None
    last_activity_at: float = 0.0
    last_activity_wall: datetime = field(default_factory=datetime.now)
    history_length: int = 0
    flow_turns: int = 0
    entered_by_keyword: bool = False
    timer_stage: TimerStage | None = None
    timer_generation: int = 0
    timer_deadline: float | None = None
    timer_handle: asyncio.TimerHandle | None = field(default=None, repr=False)


class SessionRegistry:
    """Owns every session plus the per-contact lock and pending timer.

    At most one timer is pending per contact. Arming a timer cancels the
    previous one and gives the session a new generation number, unique
    across the registry, so a callback that fired late can tell it is stale.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}
        self._generations = itertools.count(1)
        self.clock = clock

    def lock(self, contact_id: str) -> asyncio.Lock:
        if contact_id not in self._locks:
            self._locks[contact_id] = asyncio.Lock()
        return self._locks[contact_id]

    @asynccontextmanager
    async def hold(self, contact_id: str) -> AsyncIterator[None]:
        """Serialize work for one contact.

        The contact's lock is dropped once nobody holds or awaits it and
        the contact has no session, so finished contacts don't pile up.
        """
        self._holders[contact_id] = self._holders.get(contact_id, 0) + 1
        try:
            async with self.lock(contact_id):
                yield
        finally:
            self._holders[contact_id] -= 1
            self._prune_lock(contact_id)

    def _prune_lock(self, contact_id: str) -> None:
        if self._holders.get(contact_id, 0) > 0 or contact_id in self._sessions:
            return
        self._holders.pop(contact_id, None)
        lock = self._locks.get(contact_id)
        if lock is not None and not lock.locked():
            del self._locks[contact_id]

    def get(self, contact_id: str) -> ConversationSession | None:
        return self._sessions.get(contact_id)

    def create(
        self,
        contact_id: str,
        classification: Classification = Classification.UNCLASSIFIED,
    ) -> ConversationSession:
        """Start a fresh session, replacing (and disarming) any previous one."""
        previous = self._sessions.get(contact_id)
        if previous is not None:
            self._cancel(previous)
        session = ConversationSession(
            contact_id=contact_id,
            classification=classification,
            last_activity_at=self.clock(),
        )
        self._sessions[contact_id] = session
        return session

    def remove(self, contact_id: str) -> ConversationSession | None:
        session = self._sessions.pop(contact_id, None)
        if session is not None:
            self._cancel(session)
        self._prune_lock(contact_id)
        return session

    def touch(self, contact_id: str) -> None:
        session = self._sessions.get(contact_id)
        if session is not None:
            session.last_activity_at = self.clock()
            session.last_activity_wall = datetime.now()

    def idle_ms(self, session: ConversationSession) -> float:
        return (self.clock() - session.last_activity_at) * 1000

    def arm_timer(
        self,
        contact_id: str,
        delay_s: float,
        stage: TimerStage,
        callback: TimerCallback,
    ) -> int:
        """Schedule ``callback(contact_id, generation)`` after ``delay_s`` seconds.

        Must be called from inside the running event loop.

        Returns:
            The generation of the new timer.

        Raises:
            KeyError: If the contact has no session.
        """
        session = self._sessions[contact_id]
        self._cancel(session)
        generation = next(self._generations)
        session.timer_generation = generation
        loop = asyncio.get_running_loop()
        session.timer_handle = loop.call_later(delay_s, callback, contact_id, generation)
        session.timer_stage = stage
        session.timer_deadline = self.clock() + delay_s
        logger.debug("Armed %s timer for %s (%.0fs, gen %d)", stage.value, contact_id, delay_s, generation)
        return generation

    def cancel_timer(self, contact_id: str) -> None:
        session = self._sessions.get(contact_id)
        if session is not None:
            self._cancel(session)

    def is_current(self, contact_id: str, generation: int) -> bool:
        session = self._sessions.get(contact_id)
        return (
            session is not None
            and session.timer_stage is not None
            and session.timer_generation == generation
        )

    def sessions(self) -> list[ConversationSession]:
        return list(self._sessions.values())

    def clear(self) -> None:
        for session in self._sessions.values():
            self._cancel(session)
        self._sessions.clear()
        for contact_id in list(self._locks):
            self._prune_lock(contact_id)

    @staticmethod
    def _cancel(session: ConversationSession) -> None:
        if session.timer_handle is not None:
            session.timer_handle.cancel()
        session.timer_handle = None
        session.timer_stage = None
        session.timer_deadline = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, contact_id: object) -> bool:
        return contact_id in self._sessions
