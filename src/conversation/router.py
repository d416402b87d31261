"""Conversation router: applies transitions and dispatches side effects.

All work for one contact (inbound messages, timer firings, operator
actions) runs under that contact's lock. Different contacts proceed
concurrently on the same event loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.catalog.loader import JobCatalog
from src.conversation import messages
from src.conversation.business_hours import BusinessHours
from src.conversation.session import ConversationSession, SessionRegistry, TimerStage
from src.conversation.state_machine import Action, SessionView, next_transition
from src.conversation.store import AGENT, USER, ConversationStore
from src.core.config import Settings
from src.core.schemas import Classification, ConversationStatus, InboundMessage
from src.pipeline import heuristics
from src.pipeline.formatter import compose_candidate_reply
from src.pipeline.scorer import find_matching_jobs
from src.profile.assistant import RecruitingAssistant
from src.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManualControlInfo:
    contact_id: str
    agent_id: str
    taken_at: datetime


class ConversationRouter:
    def __init__(
        self,
        settings: Settings,
        catalog: JobCatalog,
        assistant: RecruitingAssistant,
        store: ConversationStore,
        business_hours: BusinessHours | None = None,
        registry: SessionRegistry | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._settings = settings
        self._company = settings.company
        self._conv = settings.conversation
        self._catalog = catalog
        self._assistant = assistant
        self._store = store
        self._hours = business_hours or BusinessHours(settings.business_hours, settings.company)
        self._registry = registry if registry is not None else SessionRegistry()
        self._transport = transport
        self._timer_tasks: set[asyncio.Task[Any]] = set()
        self._inbound_tasks: set[asyncio.Task[Any]] = set()

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def store(self) -> ConversationStore:
        return self._store

    def attach_transport(self, transport: Transport) -> None:
        self._transport = transport

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    async def handle_inbound(self, message: InboundMessage) -> str | None:
        """Process one inbound message and return the reply sent, if any."""
        if message.from_self:
            return None

        contact = message.contact_id
        async with self._registry.hold(contact):
            try:
                return await self._route(contact, message.text)
            except Exception:
                logger.exception("Error handling message from %s", contact)
                await self._send(contact, messages.APOLOGY)
                return messages.APOLOGY

    async def _route(self, contact: str, text: str) -> str | None:
        session = self._registry.get(contact)
        idle_ms = self._registry.idle_ms(session) if session is not None else 0.0
        transition = next_transition(
            SessionView.of(session, idle_ms),
            text,
            restart_threshold_ms=self._conv.restart_threshold_ms,
            end_suppression_history=self._conv.end_suppression_history,
        )
        logger.debug("Message from %s -> %s", contact, transition)

        if transition.action is Action.PERSIST_ONLY:
            logger.info("Message from %s under manual control, not answering", contact)
            self._store.append_message(contact, text, USER)
            self._registry.touch(contact)
            self._arm(contact, TimerStage.MANUAL_GRACE)
            return None

        if transition.action is Action.RESTART:
            return await self._restart(contact, text)

        assert session is not None
        self._registry.touch(contact)
        self._arm(contact, TimerStage.INACTIVITY)
        self._store.append_message(contact, text, USER)
        session.history_length += 1

        if transition.action is Action.END:
            closing = messages.end_of_conversation(self._company)
            logger.info("%s ended the conversation", contact)
            await self._finalize(contact, closing)
            return closing

        if transition.action is Action.TRANSFER_TO_ATTENDANT:
            return await self._transfer_to_attendant(session, text)

        if transition.action is Action.ENTER_FLOW:
            assert transition.classification is not None
            self._enter_flow(session, transition.classification, text, via_keyword=True)
        elif transition.action is Action.CLASSIFY:
            classification = await self._assistant.classify(text)
            self._enter_flow(session, classification, text, via_keyword=False)

        return await self._dispatch(session, text)

    async def _restart(self, contact: str, text: str) -> str:
        self._store.clear(contact)
        session = self._registry.create(contact)
        self._store.create_conversation(contact)
        self._store.append_message(contact, text, USER)
        session.history_length = 1
        self._arm(contact, TimerStage.INACTIVITY)
        logger.info("New conversation with %s", contact)
        return await self._reply(session, messages.greeting(self._company))

    async def _transfer_to_attendant(self, session: ConversationSession, text: str) -> str:
        contact = session.contact_id
        category = (
            session.classification.value
            if session.classification is not Classification.UNCLASSIFIED
            else Classification.CANDIDATE.value
        )
        self._store.notify(
            category,
            contact,
            "👤 Usuário Quer Atendente",
            f'Usuário {contact} solicitou atendimento humano: "{text}"',
        )
        return await self._reply(session, messages.human_transfer(self._company))

    def _enter_flow(
        self,
        session: ConversationSession,
        classification: Classification,
        text: str,
        *,
        via_keyword: bool,
    ) -> None:
        contact = session.contact_id
        if classification is session.classification:
            logger.debug("%s re-selected %s", contact, classification.value)
            return

        logger.info("%s classified as %s", contact, classification.value)
        session.classification = classification
        session.entered_by_keyword = via_keyword
        session.flow_turns = 0
        self._store.update_classification(contact, classification)

        if classification is Classification.COMPANY:
            self._store.notify(
                "company",
                contact,
                "🏢 Nova Empresa Interessada",
                f'Empresa {contact} entrou em contato para contratar serviços: "{text}"',
            )
        elif classification is Classification.OTHER:
            self._store.notify(
                "other",
                contact,
                "❓ Outros Assuntos",
                f'Contato {contact} tem outras dúvidas: "{text}"',
            )

    async def _dispatch(self, session: ConversationSession, text: str) -> str:
        if session.classification is Classification.COMPANY:
            return await self._company_flow(session, text)
        if session.classification is Classification.OTHER:
            return await self._other_flow(session)
        return await self._candidate_flow(session, text)

    async def _company_flow(self, session: ConversationSession, text: str) -> str:
        self._store.record_company_message(session.contact_id, text)
        if self._hours.is_business_hours():
            return await self._reply(session, messages.human_transfer(self._company))
        logger.info("Company %s wrote outside business hours", session.contact_id)
        return await self._reply(session, self._hours.out_of_hours_message())

    async def _other_flow(self, session: ConversationSession) -> str:
        """Hand off on the first turn, then answer freely from the stored history."""
        turn = session.flow_turns
        session.flow_turns += 1
        if turn == 0:
            return await self._reply(session, messages.human_transfer(self._company, recruiting=False))

        history = [
            {"role": "user" if row["sender"] == USER else "assistant", "content": row["content"]}
            for row in self._store.history(session.contact_id)
        ]
        reply = await self._assistant.converse(
            history,
            {
                "user_type": session.classification.value,
                "business_hours": self._hours.is_business_hours(),
                "job_count": len(self._catalog),
            },
        )
        return await self._reply(session, reply)

    async def _candidate_flow(self, session: ConversationSession, text: str) -> str:
        turn = session.flow_turns
        session.flow_turns += 1
        if session.entered_by_keyword and turn == 0:
            return await self._reply(session, messages.candidate_onboarding(self._company))

        intent = heuristics.candidate_intent(text)
        if intent is heuristics.CandidateIntent.NEGATIVE:
            return await self._reply(session, messages.NEGATIVE_FEEDBACK_PROMPT)
        if intent in (heuristics.CandidateIntent.MORE, heuristics.CandidateIntent.DIFFERENT):
            return await self._reply(session, messages.MORE_OPTIONS_PROMPT)

        profile = await self._assistant.extract_profile(text)
        jobs = find_matching_jobs(self._catalog, profile, text)
        logger.info("Found %d jobs for %s", len(jobs), session.contact_id)
        reply = compose_candidate_reply(jobs, profile, self._company.registration_link)
        return await self._reply(session, reply)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def _reply(self, session: ConversationSession, text: str) -> str:
        await self._send(session.contact_id, text)
        self._store.append_message(session.contact_id, text, AGENT)
        session.history_length += 1
        return text

    async def _send(self, contact: str, text: str) -> bool:
        transport = self._transport
        if transport is None or not transport.is_connected():
            logger.warning("Transport not connected; dropping message to %s", contact)
            return False
        try:
            await transport.send(contact, text)
        except TransportError:
            logger.error("Failed to send message to %s", contact, exc_info=True)
            return False
        return True

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _arm(self, contact: str, stage: TimerStage) -> None:
        delay_ms = {
            TimerStage.INACTIVITY: self._conv.timeout_ms,
            TimerStage.FOLLOW_UP: self._conv.follow_up_timeout_ms,
            TimerStage.MANUAL_GRACE: self._conv.manual_grace_timeout_ms,
        }[stage]
        self._registry.arm_timer(contact, delay_ms / 1000, stage, self._on_timer)

    def _on_timer(self, contact: str, generation: int) -> None:
        task = asyncio.create_task(self.handle_timeout(contact, generation))
        self._timer_tasks.add(task)
        task.add_done_callback(self._timer_tasks.discard)

    async def handle_timeout(self, contact: str, generation: int | None = None) -> bool:
        """Act on an expired timer. Returns False for unknown contacts and stale timers.

        Args:
            contact: The contact whose timer fired.
            generation: The timer's generation. None skips the staleness
                check (used when forcing a timeout).
        """
        async with self._registry.hold(contact):
            session = self._registry.get(contact)
            if session is None:
                return False
            if generation is not None and not self._registry.is_current(contact, generation):
                logger.debug("Ignoring stale timer for %s (gen %d)", contact, generation)
                return False

            stage = session.timer_stage or (
                TimerStage.MANUAL_GRACE if session.is_under_manual_control else TimerStage.INACTIVITY
            )
            try:
                follow_up = (
                    stage is TimerStage.INACTIVITY
                    and not session.is_under_manual_control
                    and session.classification in (Classification.COMPANY, Classification.OTHER)
                )
                if follow_up:
                    await self._send_follow_up(session)
                else:
                    logger.info("%s timer expired for %s", stage.value, contact)
                    await self._finalize(contact)
            except Exception:
                logger.exception("Error handling timeout for %s", contact)
                self._registry.remove(contact)
            return True

    async def _send_follow_up(self, session: ConversationSession) -> None:
        idle_minutes = max(1, round(self._conv.timeout_ms / 60_000))
        logger.info("Sending follow-up to %s", session.contact_id)
        await self._reply(session, messages.follow_up(self._company, idle_minutes))
        self._registry.touch(session.contact_id)
        self._arm(session.contact_id, TimerStage.FOLLOW_UP)

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    async def _finalize(self, contact: str, closing: str | None = None) -> bool:
        session = self._registry.remove(contact)
        if session is None:
            return False
        text = closing or messages.inactivity_closing(self._company)
        await self._send(contact, text)
        self._store.append_message(contact, text, AGENT)
        self._store.finalize(contact)
        logger.info("Finalized conversation with %s", contact)
        return True

    async def finalize_conversation(self, contact: str, closing: str | None = None) -> bool:
        """End a conversation now. Returns False if the contact has no session."""
        async with self._registry.hold(contact):
            return await self._finalize(contact, closing)

    # ------------------------------------------------------------------
    # Manual control
    # ------------------------------------------------------------------

    async def take_manual_control(self, contact: str, agent_id: str = "atendente") -> ManualControlInfo:
        """Hand the conversation to a human agent.

        The bot stops answering and the inactivity timer is replaced by the
        longer manual grace timer. Creates the session if there is none.
        """
        async with self._registry.hold(contact):
            session = self._registry.get(contact) or self._registry.create(contact)
            self._registry.cancel_timer(contact)
            taken_at = datetime.now()
            session.is_under_manual_control = True
            session.manual_agent_id = agent_id
            session.manual_taken_at = taken_at
            self._registry.touch(contact)
            self._arm(contact, TimerStage.MANUAL_GRACE)
            self._store.update_status(contact, ConversationStatus.MANUAL_CONTROL)
            await self._send(contact, messages.manual_started(agent_id, taken_at))
            logger.info("Manual control of %s taken by %s", contact, agent_id)
            return ManualControlInfo(contact_id=contact, agent_id=agent_id, taken_at=taken_at)

    async def release_manual_control(self, contact: str) -> bool:
        """Give the conversation back to the bot and restart the flow.

        Returns False when the contact is not under manual control.
        """
        async with self._registry.hold(contact):
            session = self._registry.get(contact)
            if session is None or not session.is_under_manual_control:
                return False

            agent_id = session.manual_agent_id or "atendente"
            self._store.update_status(contact, ConversationStatus.ACTIVE)
            await self._send(contact, messages.manual_finished(self._company, agent_id))
            await self._send(contact, messages.bot_is_back(self._company))

            self._store.clear(contact)
            fresh = self._registry.create(contact)
            self._store.create_conversation(contact)
            await self._reply(fresh, messages.greeting(self._company))
            self._arm(contact, TimerStage.INACTIVITY)
            logger.info("Manual control of %s released by %s", contact, agent_id)
            return True

    def get_manual_control_info(self, contact: str) -> ManualControlInfo | None:
        session = self._registry.get(contact)
        if session is None or not session.is_under_manual_control:
            return None
        return ManualControlInfo(
            contact_id=contact,
            agent_id=session.manual_agent_id or "atendente",
            taken_at=session.manual_taken_at or session.last_activity_wall,
        )

    async def send_operator_message(self, contact: str, text: str) -> bool:
        """Send a message typed by an operator. Requires a connected transport."""
        if self._transport is None or not self._transport.is_connected():
            logger.warning("Cannot send operator message to %s: transport not connected", contact)
            return False
        async with self._registry.hold(contact):
            if not await self._send(contact, text):
                return False
            self._store.append_message(contact, text, AGENT)
            self._registry.touch(contact)
            return True

    # ------------------------------------------------------------------
    # Introspection and lifecycle
    # ------------------------------------------------------------------

    def active_conversations_stats(self) -> dict[str, Any]:
        now = self._registry.clock()
        automated: list[dict[str, Any]] = []
        manual: list[dict[str, Any]] = []
        for session in self._registry.sessions():
            remaining = (
                max(0, int(session.timer_deadline - now)) if session.timer_deadline is not None else 0
            )
            info: dict[str, Any] = {
                "contact_id": session.contact_id,
                "classification": session.classification.value,
                "last_activity": session.last_activity_wall.isoformat(),
                "idle_s": int(self._registry.idle_ms(session) / 1000),
                "remaining_s": remaining,
                "timer_stage": session.timer_stage.value if session.timer_stage else None,
                "is_manual_control": session.is_under_manual_control,
            }
            if session.is_under_manual_control:
                control = self.get_manual_control_info(session.contact_id)
                assert control is not None
                info["manual_control"] = {
                    "agent_id": control.agent_id,
                    "taken_at": control.taken_at.isoformat(),
                }
                manual.append(info)
            else:
                automated.append(info)

        return {
            "total": len(automated) + len(manual),
            "conversations": automated,
            "manual_control": {"total": len(manual), "conversations": manual},
        }

    async def serve(self, transport: Transport) -> None:
        """Feed every inbound message from ``transport`` to the router.

        Each message is handled in its own task so slow LLM calls for one
        contact don't hold up the others. Returns when the transport's
        message stream ends, after in-flight messages finish.
        """
        self.attach_transport(transport)
        async for message in transport.messages():
            task = asyncio.create_task(self.handle_inbound(message))
            self._inbound_tasks.add(task)
            task.add_done_callback(self._inbound_tasks.discard)
        if self._inbound_tasks:
            await asyncio.gather(*self._inbound_tasks)

    async def close(self) -> None:
        """Disarm every timer and cancel pending timer work."""
        self._registry.clear()
        tasks = list(self._timer_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Router closed")
