"""Persistence facade used by the router.

Database errors are logged and swallowed: a failed write must not stop
the conversation, which carries on from in-memory session state.
"""

import logging
import sqlite3
from collections.abc import Callable
from typing import Any, TypeVar

from src.core import db
from src.core.schemas import Classification, ConversationStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER = "user"
AGENT = "agent"


class ConversationStore:
    def __init__(self, conn: sqlite3.Connection, max_history: int = 10) -> None:
        self._conn = conn
        self._max_history = max_history

    @classmethod
    def open(cls, path: str, max_history: int = 10) -> "ConversationStore":
        return cls(db.init_db(path), max_history=max_history)

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    def _run(self, action: str, default: T, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(self._conn, *args)
        except sqlite3.Error:
            logger.warning("Database error while trying to %s", action, exc_info=True)
            return default

    # -- conversations -----------------------------------------------------

    def create_conversation(
        self,
        contact_id: str,
        classification: Classification = Classification.UNCLASSIFIED,
    ) -> int | None:
        return self._run("create conversation", None, db.create_conversation, contact_id, classification)

    def update_classification(self, contact_id: str, classification: Classification) -> bool:
        return self._run(
            "update classification", False, db.update_classification, contact_id, classification
        )

    def update_status(self, contact_id: str, status: ConversationStatus) -> bool:
        """Set the open conversation's status, opening a conversation if there is none."""
        if self._run("open conversation", None, db.ensure_conversation, contact_id) is None:
            return False
        return self._run("update status", False, db.update_status, contact_id, status)

    def finalize(self, contact_id: str) -> bool:
        return self._run("finalize conversation", False, db.finalize_conversation, contact_id)

    def clear(self, contact_id: str) -> int:
        return self._run("clear conversation data", 0, db.clear_conversation_data, contact_id)

    def stats(self) -> dict[str, Any]:
        return self._run("read conversation stats", {}, db.conversation_stats)

    # -- messages ----------------------------------------------------------

    def append_message(self, contact_id: str, content: str, sender: str) -> int | None:
        return self._run("save message", None, db.append_message, contact_id, content, sender)

    def history(self, contact_id: str, limit: int | None = None) -> list[dict[str, Any]]:
        rows = self._run(
            "read history", [], db.get_history, contact_id, limit or self._max_history
        )
        return [dict(row) for row in rows]

    # -- notifications -----------------------------------------------------

    def notify(self, category: str, contact_id: str, title: str, body: str) -> int | None:
        notification_id = self._run(
            "create notification", None, db.create_notification, category, contact_id, title, body
        )
        if notification_id is not None:
            logger.info("Notification [%s] for %s: %s", category, contact_id, title)
        return notification_id

    def notifications(
        self,
        category: str | None = None,
        unread_only: bool = False,
    ) -> list[dict[str, Any]]:
        rows = self._run(
            "list notifications", [], db.list_notifications, category, unread_only
        )
        return [dict(row) for row in rows]

    def mark_notifications_read(self, ids: list[int]) -> int:
        return self._run("mark notifications read", 0, db.mark_notifications_read, ids)

    # -- company messages --------------------------------------------------

    def record_company_message(self, contact_id: str, content: str) -> int | None:
        return self._run(
            "save company message", None, db.create_company_message, contact_id, content
        )

    def company_messages(self, status: str | None = None) -> list[dict[str, Any]]:
        rows = self._run("list company messages", [], db.list_company_messages, status)
        return [dict(row) for row in rows]

    def update_company_message_status(self, message_id: int, status: str) -> bool:
        """Raises ValueError for an unknown status."""
        return self._run(
            "update company message", False, db.update_company_message_status, message_id, status
        )

    def company_message_stats(self) -> dict[str, int]:
        return self._run("read company message stats", {}, db.company_message_stats)

    def close(self) -> None:
        self._conn.close()
