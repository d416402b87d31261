"""Operator control surface: take over, release and inspect conversations.

Console commands map one-to-one onto router methods:

    /take <contact> [agent]      take manual control
    /release <contact>           give the conversation back to the bot
    /status <contact>            manual-control status
    /send <contact> <text>       send a message as the operator
    /stats                       live sessions plus persisted counts
    /notifications [category]    unread notifications (marks them read)
"""

import json
import logging
from typing import Any

from src.conversation.router import ConversationRouter

logger = logging.getLogger(__name__)

USAGE = (
    "Comandos: /take <contato> [atendente] | /release <contato> | /status <contato> | "
    "/send <contato> <texto> | /stats | /notifications [categoria]"
)


class OperatorControl:
    def __init__(self, router: ConversationRouter) -> None:
        self._router = router

    async def take_control(self, contact: str, agent_id: str = "atendente") -> dict[str, Any]:
        info = await self._router.take_manual_control(contact, agent_id)
        return {
            "success": True,
            "contact_id": contact,
            "agent_id": info.agent_id,
            "taken_at": info.taken_at.isoformat(),
        }

    async def release_control(self, contact: str) -> dict[str, Any]:
        released = await self._router.release_manual_control(contact)
        if not released:
            return {"success": False, "error": f"{contact} não está em atendimento manual"}
        return {"success": True, "contact_id": contact}

    def control_status(self, contact: str) -> dict[str, Any]:
        info = self._router.get_manual_control_info(contact)
        if info is None:
            return {"contact_id": contact, "is_manual_control": False}
        return {
            "contact_id": contact,
            "is_manual_control": True,
            "agent_id": info.agent_id,
            "taken_at": info.taken_at.isoformat(),
        }

    async def send_message(self, contact: str, text: str) -> dict[str, Any]:
        if not text.strip():
            return {"success": False, "error": "mensagem vazia"}
        sent = await self._router.send_operator_message(contact, text)
        if not sent:
            return {"success": False, "error": "transporte desconectado ou falha no envio"}
        return {"success": True, "contact_id": contact}

    def stats(self) -> dict[str, Any]:
        store = self._router.store
        return {
            "active": self._router.active_conversations_stats(),
            "conversations": store.stats(),
            "company_messages": store.company_message_stats(),
        }

    def notifications(self, category: str | None = None, mark_read: bool = True) -> list[dict[str, Any]]:
        store = self._router.store
        unread = store.notifications(category=category, unread_only=True)
        if mark_read and unread:
            store.mark_notifications_read([n["id"] for n in unread])
        return unread

    async def dispatch(self, line: str) -> str:
        """Run one console command and return its printable result."""
        parts = line.strip().split(maxsplit=2)
        if not parts:
            return USAGE
        command, args = parts[0].lower(), parts[1:]
        logger.debug("Operator command: %s %s", command, args)

        if command == "/take" and args:
            rest = args[1].strip() if len(args) > 1 else "atendente"
            result: Any = await self.take_control(args[0], rest)
        elif command == "/release" and args:
            result = await self.release_control(args[0])
        elif command == "/status" and args:
            result = self.control_status(args[0])
        elif command == "/send" and len(args) == 2:
            result = await self.send_message(args[0], args[1])
        elif command == "/stats":
            result = self.stats()
        elif command == "/notifications":
            result = self.notifications(args[0] if args else None)
        else:
            return USAGE

        return json.dumps(result, ensure_ascii=False, indent=2, default=str)
