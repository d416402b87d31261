"""Tests for the operator control surface and console commands."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.catalog.loader import JobCatalog
from src.conversation.operator import USAGE, OperatorControl
from src.conversation.router import ConversationRouter
from src.conversation.store import ConversationStore
from src.core.config import Settings
from src.core.schemas import Classification, InboundMessage
from src.profile.assistant import RecruitingAssistant
from src.transport.console import ConsoleTransport


@pytest.fixture()
async def operator(tmp_path: Path):  # type: ignore[no-untyped-def]
    settings = Settings()
    store = ConversationStore.open(str(tmp_path / "test.db"))
    assistant = MagicMock(spec=RecruitingAssistant)
    assistant.classify = AsyncMock(return_value=Classification.CANDIDATE)
    transport = ConsoleTransport(settings.transport, stdout=MagicMock())
    await transport.connect()
    router = ConversationRouter(settings, JobCatalog(), assistant, store, transport=transport)
    yield OperatorControl(router)
    await router.close()
    store.close()


async def _greet(operator: OperatorControl, contact: str = "5551") -> None:
    await operator._router.handle_inbound(InboundMessage(contact_id=contact, text="oi"))


class TestOperatorControl:
    async def test_take_and_status(self, operator: OperatorControl) -> None:
        result = await operator.take_control("5551", "Maria")
        assert result["success"] is True
        assert result["agent_id"] == "Maria"
        status = operator.control_status("5551")
        assert status["is_manual_control"] is True
        assert status["agent_id"] == "Maria"

    async def test_status_not_manual(self, operator: OperatorControl) -> None:
        assert operator.control_status("5551") == {"contact_id": "5551", "is_manual_control": False}

    async def test_release(self, operator: OperatorControl) -> None:
        await operator.take_control("5551")
        assert (await operator.release_control("5551"))["success"] is True
        result = await operator.release_control("5551")
        assert result["success"] is False
        assert "não está em atendimento manual" in result["error"]

    async def test_send_message(self, operator: OperatorControl) -> None:
        assert (await operator.send_message("5551", "Olá!"))["success"] is True
        assert (await operator.send_message("5551", "  "))["error"] == "mensagem vazia"

    async def test_stats(self, operator: OperatorControl) -> None:
        await _greet(operator)
        stats = operator.stats()
        assert stats["active"]["total"] == 1
        assert stats["conversations"]["total"] == 1
        assert stats["company_messages"]["total"] == 0

    async def test_notifications_marked_read(self, operator: OperatorControl) -> None:
        await _greet(operator)
        await operator._router.handle_inbound(InboundMessage(contact_id="5551", text="empresa"))
        first = operator.notifications()
        assert [n["category"] for n in first] == ["company"]
        assert operator.notifications() == []


class TestDispatch:
    async def test_take_command(self, operator: OperatorControl) -> None:
        output = json.loads(await operator.dispatch("/take 5551 Maria Silva"))
        assert output["success"] is True
        assert output["agent_id"] == "Maria Silva"

    async def test_take_default_agent(self, operator: OperatorControl) -> None:
        output = json.loads(await operator.dispatch("/take 5551"))
        assert output["agent_id"] == "atendente"

    async def test_send_command_keeps_spaces(self, operator: OperatorControl) -> None:
        output = json.loads(await operator.dispatch("/send 5551 Olá, tudo bem?"))
        assert output["success"] is True
        history = operator._router.store.history("5551")
        assert history[-1]["content"] == "Olá, tudo bem?"

    async def test_status_and_release_commands(self, operator: OperatorControl) -> None:
        await operator.dispatch("/take 5551")
        assert json.loads(await operator.dispatch("/status 5551"))["is_manual_control"] is True
        assert json.loads(await operator.dispatch("/release 5551"))["success"] is True

    async def test_stats_command(self, operator: OperatorControl) -> None:
        output = json.loads(await operator.dispatch("/stats"))
        assert set(output) == {"active", "conversations", "company_messages"}

    async def test_notifications_command(self, operator: OperatorControl) -> None:
        assert json.loads(await operator.dispatch("/notifications company")) == []

    @pytest.mark.parametrize("line", ["", "/take", "/send 5551", "/unknown", "hello"])
    async def test_usage(self, operator: OperatorControl, line: str) -> None:
        assert await operator.dispatch(line) == USAGE

    async def test_accented_output_not_escaped(self, operator: OperatorControl) -> None:
        output = await operator.dispatch("/release 5551")
        assert "não está" in output
