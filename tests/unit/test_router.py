"""Tests for the conversation router: transitions, side effects, timers, manual control."""

from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.catalog.loader import JobCatalog
from src.conversation import messages
from src.conversation.business_hours import BusinessHours
from src.conversation.router import ConversationRouter
from src.conversation.session import SessionRegistry, TimerStage
from src.conversation.store import AGENT, USER, ConversationStore
from src.core.config import CompanyConfig, Settings
from src.core.schemas import CandidateProfile, Classification, InboundMessage
from src.profile.assistant import RecruitingAssistant
from src.transport.base import Transport, TransportError

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
CONTACT = "5551999"
COMPANY = CompanyConfig()


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport(Transport):
    """Records outbound messages and replays a fixed inbound list."""

    def __init__(self, inbound: list[InboundMessage] | None = None) -> None:
        self.sent: list[tuple[str, str]] = []
        self.connected = True
        self._inbound = inbound or []

    @property
    def kind(self) -> str:
        return "fake"

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    async def send(self, contact_id: str, text: str) -> None:
        if not self.connected:
            msg = "closed"
            raise TransportError(msg)
        self.sent.append((contact_id, text))

    async def messages(self) -> AsyncIterator[InboundMessage]:
        for message in self._inbound:
            yield message

    def texts(self, contact: str = CONTACT) -> list[str]:
        return [text for to, text in self.sent if to == contact]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def assistant() -> MagicMock:
    mock = MagicMock(spec=RecruitingAssistant)
    mock.classify = AsyncMock(return_value=Classification.CANDIDATE)
    mock.extract_profile = AsyncMock(
        return_value=CandidateProfile(name="João", skills="motorista", location="Lajeado")
    )
    mock.converse = AsyncMock(return_value="Nosso escritório fica em Lajeado.")
    return mock


@pytest.fixture()
def hours() -> MagicMock:
    mock = MagicMock(spec=BusinessHours)
    mock.is_business_hours.return_value = True
    mock.out_of_hours_message.return_value = "Estamos fora do horário."
    return mock


@pytest.fixture()
async def router(
    tmp_path: Path,
    clock: FakeClock,
    transport: FakeTransport,
    assistant: MagicMock,
    hours: MagicMock,
) -> AsyncIterator[ConversationRouter]:
    store = ConversationStore.open(str(tmp_path / "test.db"))
    r = ConversationRouter(
        Settings(),
        JobCatalog.from_csv(FIXTURES_DIR / "jobs.csv"),
        assistant,
        store,
        business_hours=hours,
        registry=SessionRegistry(clock=clock),
        transport=transport,
    )
    yield r
    await r.close()
    store.close()


async def _say(router: ConversationRouter, text: str, contact: str = CONTACT) -> str | None:
    return await router.handle_inbound(InboundMessage(contact_id=contact, text=text))


# ---------------------------------------------------------------------------
# Greeting and restart
# ---------------------------------------------------------------------------
class TestGreeting:
    async def test_first_message_greets(self, router: ConversationRouter, transport: FakeTransport) -> None:
        reply = await _say(router, "oi")
        assert reply == messages.greeting(COMPANY)
        assert transport.texts() == [reply]
        session = router.registry.get(CONTACT)
        assert session.classification is Classification.UNCLASSIFIED
        assert session.history_length == 2
        assert session.timer_stage is TimerStage.INACTIVITY

    async def test_first_message_keyword_still_only_greets(
        self, router: ConversationRouter, assistant: MagicMock
    ) -> None:
        reply = await _say(router, "empresa")
        assert reply == messages.greeting(COMPANY)
        assert router.registry.get(CONTACT).classification is Classification.UNCLASSIFIED
        assistant.classify.assert_not_awaited()

    async def test_persists_both_sides(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        history = router.store.history(CONTACT)
        assert [(h["sender"], h["content"][:3]) for h in history] == [(USER, "oi"), (AGENT, "Olá")]

    async def test_long_idle_restarts(
        self, router: ConversationRouter, clock: FakeClock, transport: FakeTransport
    ) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        clock.advance(301)
        reply = await _say(router, "olá de novo")
        assert reply == messages.greeting(COMPANY)
        assert router.registry.get(CONTACT).classification is Classification.UNCLASSIFIED
        assert router.store.stats()["total"] == 1

    async def test_own_messages_ignored(self, router: ConversationRouter, transport: FakeTransport) -> None:
        message = InboundMessage(contact_id=CONTACT, text="oi", from_self=True)
        assert await router.handle_inbound(message) is None
        assert transport.sent == []
        assert CONTACT not in router.registry


# ---------------------------------------------------------------------------
# Classification and flows
# ---------------------------------------------------------------------------
class TestCompanyFlow:
    async def test_keyword_enters_company_without_llm(
        self, router: ConversationRouter, assistant: MagicMock
    ) -> None:
        await _say(router, "oi")
        reply = await _say(router, "empresa")
        assert reply == messages.human_transfer(COMPANY)
        assert router.registry.get(CONTACT).classification is Classification.COMPANY
        assistant.classify.assert_not_awaited()

    async def test_notification_and_audit_record(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        await _say(router, "Somos uma empresa e precisamos contratar")
        notifications = router.store.notifications()
        assert [n["category"] for n in notifications] == ["company"]
        assert notifications[0]["title"] == "🏢 Nova Empresa Interessada"
        records = router.store.company_messages()
        assert records[0]["content"] == "Somos uma empresa e precisamos contratar"
        assert router.store.stats()["by_classification"] == {"company": 1}

    async def test_out_of_hours(self, router: ConversationRouter, hours: MagicMock) -> None:
        hours.is_business_hours.return_value = False
        await _say(router, "oi")
        assert await _say(router, "empresa") == "Estamos fora do horário."

    async def test_reselect_does_not_notify_twice(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        await _say(router, "empresa")
        assert len(router.store.notifications()) == 1
        assert len(router.store.company_messages()) == 2


class TestOtherFlow:
    async def test_other_keyword(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        reply = await _say(router, "outros assuntos")
        assert reply == messages.human_transfer(COMPANY, recruiting=False)
        assert [n["category"] for n in router.store.notifications()] == ["other"]

    async def test_later_messages_answered_from_history(
        self, router: ConversationRouter, assistant: MagicMock
    ) -> None:
        await _say(router, "oi")
        await _say(router, "outros assuntos")
        reply = await _say(router, "Qual o endereço do escritório?")

        assert reply == "Nosso escritório fica em Lajeado."
        history, context = assistant.converse.await_args.args
        assert history[0] == {"role": "user", "content": "oi"}
        assert history[1]["role"] == "assistant"
        assert history[-1] == {"role": "user", "content": "Qual o endereço do escritório?"}
        assert context == {"user_type": "other", "business_hours": True, "job_count": 5}
        assert router.store.history(CONTACT)[-1]["content"] == reply
        assert len(router.store.notifications()) == 1


class TestCandidateFlow:
    async def test_keyword_gets_onboarding_then_jobs(
        self, router: ConversationRouter, assistant: MagicMock
    ) -> None:
        await _say(router, "oi")
        assert await _say(router, "candidato") == messages.candidate_onboarding(COMPANY)
        assistant.extract_profile.assert_not_awaited()

        reply = await _say(router, "Sou o João, motorista em Lajeado")
        assistant.extract_profile.assert_awaited_once_with("Sou o João, motorista em Lajeado")
        assert reply.startswith("🎯 *Vagas encontradas para você:*")
        assert "1. 🏢 *Motorista de Caminhão*" in reply
        assert "Olá João!" in reply
        assert reply.count(COMPANY.registration_link) == 1

    async def test_llm_classified_candidate_skips_onboarding(
        self, router: ConversationRouter, assistant: MagicMock
    ) -> None:
        await _say(router, "oi")
        reply = await _say(router, "bom dia, sou motorista")
        assistant.classify.assert_awaited_once_with("bom dia, sou motorista")
        assistant.extract_profile.assert_awaited_once()
        assert "Motorista de Caminhão" in reply

    async def test_llm_company(self, router: ConversationRouter, assistant: MagicMock) -> None:
        assistant.classify.return_value = Classification.COMPANY
        await _say(router, "oi")
        reply = await _say(router, "gostaria de uma parceria de recrutamento")
        assert reply == messages.human_transfer(COMPANY)
        assert router.registry.get(CONTACT).classification is Classification.COMPANY

    async def test_end_keyword_suppressed_mid_flow(
        self, router: ConversationRouter, assistant: MagicMock
    ) -> None:
        await _say(router, "oi")
        await _say(router, "candidato")
        assert router.registry.get(CONTACT).history_length > 2

        reply = await _say(router, "obrigado")
        assert reply != messages.end_of_conversation(COMPANY)
        assert CONTACT in router.registry
        assert router.registry.get(CONTACT).classification is Classification.CANDIDATE
        assistant.extract_profile.assert_awaited_once_with("obrigado")

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("não quero essas", messages.NEGATIVE_FEEDBACK_PROMPT),
            ("tem mais vagas?", messages.MORE_OPTIONS_PROMPT),
            ("quero algo diferente", messages.MORE_OPTIONS_PROMPT),
        ],
    )
    async def test_intent_prompts(
        self, router: ConversationRouter, assistant: MagicMock, text: str, expected: str
    ) -> None:
        await _say(router, "oi")
        await _say(router, "candidato")
        assert await _say(router, text) == expected
        assistant.extract_profile.assert_not_awaited()

    async def test_empty_profile_lists_first_jobs(
        self, router: ConversationRouter, assistant: MagicMock
    ) -> None:
        assistant.extract_profile.return_value = CandidateProfile()
        await _say(router, "oi")
        reply = await _say(router, "quero trabalhar")
        assert reply.startswith("🎯 *Vagas encontradas para você:*")
        assert "compatível" not in reply
        assert "Perfeito!" in reply


class TestEndAndAttendant:
    async def test_end_finalizes(self, router: ConversationRouter, transport: FakeTransport) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        reply = await _say(router, "tchau")
        assert reply.startswith("✅ *Atendimento Finalizado*")
        assert "finalizado pelo usuário" in reply
        assert CONTACT not in router.registry
        assert router.store.stats()["by_status"] == {"finalized": 1}
        assert transport.texts()[-1] == reply

    async def test_end_while_unclassified(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        await _say(router, "ok, tchau")
        assert CONTACT not in router.registry

    async def test_attendant_request_notifies(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        reply = await _say(router, "quero falar com uma atendente")
        assert reply == messages.human_transfer(COMPANY)
        notifications = router.store.notifications()
        assert notifications[0]["category"] == "candidate"
        assert notifications[0]["title"] == "👤 Usuário Quer Atendente"
        assert router.registry.get(CONTACT).classification is Classification.UNCLASSIFIED

    async def test_attendant_request_uses_classification(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        await _say(router, "preciso de atendimento humano")
        categories = [n["category"] for n in router.store.notifications()]
        assert categories == ["company", "company"]


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------
class TestTimeouts:
    async def test_company_follow_up_then_finalize(
        self, router: ConversationRouter, transport: FakeTransport
    ) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        session = router.registry.get(CONTACT)

        assert await router.handle_timeout(CONTACT, session.timer_generation)
        assert transport.texts()[-1] == messages.follow_up(COMPANY, 2)
        assert session.timer_stage is TimerStage.FOLLOW_UP
        assert CONTACT in router.registry

        assert await router.handle_timeout(CONTACT, session.timer_generation)
        assert transport.texts()[-1] == messages.inactivity_closing(COMPANY)
        assert CONTACT not in router.registry
        assert router.store.stats()["by_status"] == {"finalized": 1}

    async def test_other_gets_follow_up(self, router: ConversationRouter, transport: FakeTransport) -> None:
        await _say(router, "oi")
        await _say(router, "outros")
        session = router.registry.get(CONTACT)
        await router.handle_timeout(CONTACT, session.timer_generation)
        assert session.timer_stage is TimerStage.FOLLOW_UP

    async def test_candidate_finalized_directly(
        self, router: ConversationRouter, transport: FakeTransport
    ) -> None:
        await _say(router, "oi")
        await _say(router, "candidato")
        generation = router.registry.get(CONTACT).timer_generation
        assert await router.handle_timeout(CONTACT, generation)
        assert transport.texts()[-1] == messages.inactivity_closing(COMPANY)
        assert CONTACT not in router.registry

    async def test_message_resets_timer(self, router: ConversationRouter, transport: FakeTransport) -> None:
        await _say(router, "oi")
        stale = router.registry.get(CONTACT).timer_generation
        await _say(router, "empresa")
        sent = len(transport.sent)
        assert await router.handle_timeout(CONTACT, stale) is False
        assert len(transport.sent) == sent

    async def test_unknown_contact(self, router: ConversationRouter) -> None:
        assert await router.handle_timeout("nobody", 1) is False

    async def test_reply_after_follow_up_rearms_inactivity(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        session = router.registry.get(CONTACT)
        await router.handle_timeout(CONTACT, session.timer_generation)
        await _say(router, "ainda quero contratar")
        assert session.timer_stage is TimerStage.INACTIVITY
        assert CONTACT in router.registry


# ---------------------------------------------------------------------------
# Manual control
# ---------------------------------------------------------------------------
class TestManualControl:
    async def test_take_and_persist_only(
        self, router: ConversationRouter, transport: FakeTransport
    ) -> None:
        await _say(router, "oi")
        info = await router.take_manual_control(CONTACT, "Maria")
        assert info.agent_id == "Maria"
        assert transport.texts()[-1].startswith("👤 *Atendimento Iniciado*")
        sent = len(transport.sent)

        assert await _say(router, "tchau, quero um emprego") is None
        assert len(transport.sent) == sent
        assert router.store.history(CONTACT)[-1]["content"] == "tchau, quero um emprego"
        session = router.registry.get(CONTACT)
        assert session.is_under_manual_control
        assert session.timer_stage is TimerStage.MANUAL_GRACE
        assert router.store.stats()["by_status"] == {"manual_control": 1}

    async def test_take_without_session(self, router: ConversationRouter) -> None:
        await router.take_manual_control(CONTACT)
        info = router.get_manual_control_info(CONTACT)
        assert info is not None
        assert info.agent_id == "atendente"

    async def test_release_restarts_unclassified(
        self, router: ConversationRouter, transport: FakeTransport
    ) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        await router.take_manual_control(CONTACT, "Maria")
        sent = len(transport.sent)

        assert await router.release_manual_control(CONTACT) is True
        texts = transport.texts()[sent:]
        assert len(texts) == 3
        assert "finalizado por Maria" in texts[0]
        assert texts[1] == messages.bot_is_back(COMPANY)
        assert texts[2] == messages.greeting(COMPANY)

        session = router.registry.get(CONTACT)
        assert session.classification is Classification.UNCLASSIFIED
        assert not session.is_under_manual_control
        assert session.timer_stage is TimerStage.INACTIVITY
        assert router.get_manual_control_info(CONTACT) is None

    async def test_release_not_manual(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        assert await router.release_manual_control(CONTACT) is False
        assert await router.release_manual_control("nobody") is False

    async def test_grace_timeout_finalizes(
        self, router: ConversationRouter, transport: FakeTransport
    ) -> None:
        await _say(router, "oi")
        await _say(router, "empresa")
        await router.take_manual_control(CONTACT)
        generation = router.registry.get(CONTACT).timer_generation
        assert await router.handle_timeout(CONTACT, generation)
        assert CONTACT not in router.registry
        assert transport.texts()[-1] == messages.inactivity_closing(COMPANY)

    async def test_operator_message(self, router: ConversationRouter, transport: FakeTransport) -> None:
        await router.take_manual_control(CONTACT)
        assert await router.send_operator_message(CONTACT, "Olá, sou a Maria")
        assert transport.texts()[-1] == "Olá, sou a Maria"
        assert router.store.history(CONTACT)[-1]["sender"] == AGENT

    async def test_operator_message_disconnected(
        self, router: ConversationRouter, transport: FakeTransport
    ) -> None:
        transport.connected = False
        assert await router.send_operator_message(CONTACT, "oi") is False


# ---------------------------------------------------------------------------
# Errors, stats and serving
# ---------------------------------------------------------------------------
class TestErrorsAndStats:
    def test_uses_injected_registry(self, tmp_path: Path) -> None:
        injected = SessionRegistry()
        store = ConversationStore.open(str(tmp_path / "injected.db"))
        router = ConversationRouter(Settings(), JobCatalog(), MagicMock(), store, registry=injected)
        assert router.registry is injected
        store.close()

    async def test_finished_contact_releases_lock(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        assert CONTACT in router.registry._locks
        await router.finalize_conversation(CONTACT)
        assert CONTACT not in router.registry._locks

    async def test_handler_error_sends_apology(
        self, router: ConversationRouter, assistant: MagicMock, transport: FakeTransport
    ) -> None:
        assistant.extract_profile.side_effect = RuntimeError("boom")
        await _say(router, "oi")
        assert await _say(router, "sou motorista") == messages.APOLOGY
        assert transport.texts()[-1] == messages.APOLOGY

    async def test_disconnected_transport_still_tracks_state(
        self, router: ConversationRouter, transport: FakeTransport
    ) -> None:
        transport.connected = False
        reply = await _say(router, "oi")
        assert reply == messages.greeting(COMPANY)
        assert transport.sent == []
        assert CONTACT in router.registry

    async def test_active_conversations_stats(self, router: ConversationRouter) -> None:
        await _say(router, "oi", contact="a")
        await _say(router, "oi", contact="b")
        await router.take_manual_control("b", "Maria")
        stats = router.active_conversations_stats()
        assert stats["total"] == 2
        assert [c["contact_id"] for c in stats["conversations"]] == ["a"]
        assert stats["conversations"][0]["timer_stage"] == "inactivity"
        assert stats["conversations"][0]["remaining_s"] == 120
        manual = stats["manual_control"]
        assert manual["total"] == 1
        assert manual["conversations"][0]["manual_control"]["agent_id"] == "Maria"

    async def test_finalize_conversation(self, router: ConversationRouter) -> None:
        await _say(router, "oi")
        assert await router.finalize_conversation(CONTACT) is True
        assert await router.finalize_conversation(CONTACT) is False

    async def test_serve_keeps_per_contact_order(self, router: ConversationRouter) -> None:
        inbound = [
            InboundMessage(contact_id="a", text="oi"),
            InboundMessage(contact_id="b", text="oi"),
            InboundMessage(contact_id="a", text="empresa"),
        ]
        transport = FakeTransport(inbound)
        await router.serve(transport)
        assert transport.texts("a") == [messages.greeting(COMPANY), messages.human_transfer(COMPANY)]
        assert transport.texts("b") == [messages.greeting(COMPANY)]
