"""Console transport: one terminal standing in for many chat contacts.

Input lines look like ``contact: message``. Lines without a prefix come
from the default contact. Lines starting with ``/`` are operator
commands and are handed to ``on_command`` instead of the chat flow.
"""

import asyncio
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TextIO

from src.core.config import TransportConfig
from src.core.schemas import InboundMessage
from src.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

CommandHandler = Callable[[str], Awaitable[str]]


def parse_line(line: str, default_contact: str) -> tuple[str, str]:
    """Split ``contact: text`` into its parts."""
    head, sep, tail = line.partition(":")
    contact = head.strip()
    if sep and contact and " " not in contact:
        return contact, tail.strip()
    return default_contact, line.strip()


class ConsoleTransport(Transport):
    def __init__(
        self,
        config: TransportConfig,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._config = config
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._connected = False
        self.on_command: CommandHandler | None = None

    @property
    def kind(self) -> str:
        return "console"

    async def connect(self) -> None:
        self._connected = True
        logger.info("Console transport ready (default contact: %s)", self._config.default_contact)

    async def close(self) -> None:
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    async def send(self, contact_id: str, text: str) -> None:
        if not self._connected:
            msg = f"Console transport is closed; cannot send to {contact_id}"
            raise TransportError(msg)
        self._stdout.write(f"\n[bot → {contact_id}]\n{text}\n")
        self._stdout.flush()

    async def messages(self) -> AsyncIterator[InboundMessage]:
        while self._connected:
            line = await asyncio.to_thread(self._stdin.readline)
            if not line:
                logger.info("End of console input")
                self._connected = False
                return
            if not line.strip():
                continue
            if line.startswith("/") and self.on_command is not None:
                output = await self.on_command(line.strip())
                self._stdout.write(f"{output}\n")
                self._stdout.flush()
                continue
            contact, text = parse_line(line, self._config.default_contact)
            yield InboundMessage(contact_id=contact, text=text)
