"""SQLite database layer for conversations, messages, notifications and company messages."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from src.core.schemas import Classification, ConversationStatus

_CONVERSATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS conversations (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    contact_id      TEXT    NOT NULL,
    classification  TEXT    NOT NULL DEFAULT 'unclassified',
    status          TEXT    NOT NULL DEFAULT 'active',
    created_at      TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL,
    finalized_at    TEXT
);
"""

_MESSAGES_TABLE = """
CREATE TABLE IF NOT EXISTS messages (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id  INTEGER NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    sender           TEXT    NOT NULL,
    content          TEXT    NOT NULL,
    created_at       TEXT    NOT NULL
);
"""

_NOTIFICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS notifications (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    category    TEXT    NOT NULL,
    contact_id  TEXT    NOT NULL,
    title       TEXT    NOT NULL,
    body        TEXT    NOT NULL,
    is_read     INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT    NOT NULL
);
"""

_COMPANY_MESSAGES_TABLE = """
CREATE TABLE IF NOT EXISTS company_messages (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    contact_id  TEXT    NOT NULL,
    content     TEXT    NOT NULL,
    status      TEXT    NOT NULL DEFAULT 'pending',
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
);
"""

_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_conversations_contact ON conversations(contact_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages(conversation_id)",
)

COMPANY_MESSAGE_STATUSES = ("pending", "answered", "archived")


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute(_CONVERSATIONS_TABLE)
    conn.execute(_MESSAGES_TABLE)
    conn.execute(_NOTIFICATIONS_TABLE)
    conn.execute(_COMPANY_MESSAGES_TABLE)
    for statement in _INDEXES:
        conn.execute(statement)
    conn.commit()
    return conn


def _now() -> str:
    return datetime.now().isoformat()


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


def create_conversation(
    conn: sqlite3.Connection,
    contact_id: str,
    classification: Classification = Classification.UNCLASSIFIED,
) -> int:
    """Open a new conversation for a contact. Returns the row ID."""
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO conversations (contact_id, classification, status, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (contact_id, classification.value, ConversationStatus.ACTIVE.value, now, now),
    )
    conn.commit()
    return cursor.lastrowid or 0


def get_conversation(conn: sqlite3.Connection, contact_id: str) -> sqlite3.Row | None:
    """Return the contact's latest conversation that is not finalized."""
    return conn.execute(  # type: ignore[no-any-return]
        """
        SELECT * FROM conversations
        WHERE contact_id = ? AND status != ?
        ORDER BY id DESC
        LIMIT 1
        """,
        (contact_id, ConversationStatus.FINALIZED.value),
    ).fetchone()


def ensure_conversation(conn: sqlite3.Connection, contact_id: str) -> int:
    """Return the ID of the contact's open conversation, opening one if needed."""
    row = get_conversation(conn, contact_id)
    if row is None:
        return create_conversation(conn, contact_id)
    return int(row["id"])


def update_classification(
    conn: sqlite3.Connection,
    contact_id: str,
    classification: Classification,
) -> bool:
    """Set the classification of the contact's open conversation."""
    cursor = conn.execute(
        """
        UPDATE conversations SET classification = ?, updated_at = ?
        WHERE contact_id = ? AND status != ?
        """,
        (classification.value, _now(), contact_id, ConversationStatus.FINALIZED.value),
    )
    conn.commit()
    return cursor.rowcount > 0


def update_status(
    conn: sqlite3.Connection,
    contact_id: str,
    status: ConversationStatus,
) -> bool:
    """Set the status of the contact's open conversation."""
    cursor = conn.execute(
        """
        UPDATE conversations SET status = ?, updated_at = ?
        WHERE contact_id = ? AND status != ?
        """,
        (status.value, _now(), contact_id, ConversationStatus.FINALIZED.value),
    )
    conn.commit()
    return cursor.rowcount > 0


def finalize_conversation(conn: sqlite3.Connection, contact_id: str) -> bool:
    """Mark the contact's open conversation as finalized."""
    now = _now()
    cursor = conn.execute(
        """
        UPDATE conversations SET status = ?, updated_at = ?, finalized_at = ?
        WHERE contact_id = ? AND status != ?
        """,
        (
            ConversationStatus.FINALIZED.value,
            now,
            now,
            contact_id,
            ConversationStatus.FINALIZED.value,
        ),
    )
    conn.commit()
    return cursor.rowcount > 0


def clear_conversation_data(conn: sqlite3.Connection, contact_id: str) -> int:
    """Delete the contact's open conversations and their messages.

    Finalized conversations are kept. Returns the number of conversations removed.
    """
    finalized = ConversationStatus.FINALIZED.value
    conn.execute(
        """
        DELETE FROM messages WHERE conversation_id IN (
            SELECT id FROM conversations WHERE contact_id = ? AND status != ?
        )
        """,
        (contact_id, finalized),
    )
    cursor = conn.execute(
        "DELETE FROM conversations WHERE contact_id = ? AND status != ?",
        (contact_id, finalized),
    )
    conn.commit()
    return cursor.rowcount


def conversation_stats(conn: sqlite3.Connection) -> dict[str, Any]:
    """Count conversations by status and by classification."""
    by_status = {
        row["status"]: row["n"]
        for row in conn.execute(
            "SELECT status, COUNT(*) AS n FROM conversations GROUP BY status"
        ).fetchall()
    }
    by_classification = {
        row["classification"]: row["n"]
        for row in conn.execute(
            "SELECT classification, COUNT(*) AS n FROM conversations GROUP BY classification"
        ).fetchall()
    }
    total_messages = conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_classification": by_classification,
        "messages": total_messages,
    }


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def append_message(
    conn: sqlite3.Connection,
    contact_id: str,
    content: str,
    sender: str,
) -> int:
    """Append a message to the contact's open conversation, opening one if needed."""
    conversation_id = ensure_conversation(conn, contact_id)
    cursor = conn.execute(
        """
        INSERT INTO messages (conversation_id, sender, content, created_at)
        VALUES (?, ?, ?, ?)
        """,
        (conversation_id, sender, content, _now()),
    )
    conn.commit()
    return cursor.lastrowid or 0


def get_history(
    conn: sqlite3.Connection,
    contact_id: str,
    limit: int = 10,
) -> list[sqlite3.Row]:
    """Return the last ``limit`` messages of the open conversation, oldest first."""
    row = get_conversation(conn, contact_id)
    if row is None:
        return []
    rows = conn.execute(
        """
        SELECT sender, content, created_at FROM messages
        WHERE conversation_id = ?
        ORDER BY id DESC
        LIMIT ?
        """,
        (row["id"], limit),
    ).fetchall()
    return list(reversed(rows))


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def create_notification(
    conn: sqlite3.Connection,
    category: str,
    contact_id: str,
    title: str,
    body: str,
) -> int:
    """Record a notification for the operators. Returns the row ID."""
    cursor = conn.execute(
        """
        INSERT INTO notifications (category, contact_id, title, body, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (category, contact_id, title, body, _now()),
    )
    conn.commit()
    return cursor.lastrowid or 0


def list_notifications(
    conn: sqlite3.Connection,
    category: str | None = None,
    unread_only: bool = False,
) -> list[sqlite3.Row]:
    """List notifications, newest first, optionally by category or unread state."""
    clauses: list[str] = []
    params: list[Any] = []
    if category is not None:
        clauses.append("category = ?")
        params.append(category)
    if unread_only:
        clauses.append("is_read = 0")
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return conn.execute(
        f"SELECT * FROM notifications {where} ORDER BY id DESC",  # noqa: S608
        params,
    ).fetchall()


def mark_notifications_read(conn: sqlite3.Connection, ids: list[int]) -> int:
    """Mark the given notifications as read. Returns how many rows changed."""
    if not ids:
        return 0
    placeholders = ", ".join("?" for _ in ids)
    cursor = conn.execute(
        f"UPDATE notifications SET is_read = 1 WHERE id IN ({placeholders}) AND is_read = 0",  # noqa: S608
        ids,
    )
    conn.commit()
    return cursor.rowcount


# ---------------------------------------------------------------------------
# Company messages
# ---------------------------------------------------------------------------


def create_company_message(conn: sqlite3.Connection, contact_id: str, content: str) -> int:
    """Store an audit record of a message sent by a company contact."""
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO company_messages (contact_id, content, status, created_at, updated_at)
        VALUES (?, ?, 'pending', ?, ?)
        """,
        (contact_id, content, now, now),
    )
    conn.commit()
    return cursor.lastrowid or 0


def list_company_messages(
    conn: sqlite3.Connection,
    status: str | None = None,
) -> list[sqlite3.Row]:
    """List company messages, newest first, optionally filtered by status."""
    if status is None:
        return conn.execute("SELECT * FROM company_messages ORDER BY id DESC").fetchall()
    return conn.execute(
        "SELECT * FROM company_messages WHERE status = ? ORDER BY id DESC",
        (status,),
    ).fetchall()


def update_company_message_status(
    conn: sqlite3.Connection,
    message_id: int,
    status: str,
) -> bool:
    """Change the status of a company message."""
    if status not in COMPANY_MESSAGE_STATUSES:
        msg = f"status must be one of {list(COMPANY_MESSAGE_STATUSES)}, got '{status}'"
        raise ValueError(msg)
    cursor = conn.execute(
        "UPDATE company_messages SET status = ?, updated_at = ? WHERE id = ?",
        (status, _now(), message_id),
    )
    conn.commit()
    return cursor.rowcount > 0


def company_message_stats(conn: sqlite3.Connection) -> dict[str, int]:
    """Count company messages per status (every known status is present)."""
    stats = {status: 0 for status in COMPANY_MESSAGE_STATUSES}
    for row in conn.execute(
        "SELECT status, COUNT(*) AS n FROM company_messages GROUP BY status"
    ).fetchall():
        stats[row["status"]] = row["n"]
    stats["total"] = sum(stats.values())
    return stats
