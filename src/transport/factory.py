"""Transport factory with lazy registry and bounded reconnect."""

import asyncio
import importlib
import logging

from src.core.config import TransportConfig
from src.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

# Lazy registry: maps transport kind → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "console": ("src.transport.console", "ConsoleTransport"),
}


def available_transports() -> list[str]:
    return sorted(_REGISTRY)


class TransportFactory:
    """Builds transports from one shared config and reconnects them.

    Every (re)connection uses the same TransportConfig, so a reconnect
    cannot drift from the initial setup.
    """

    def __init__(self, config: TransportConfig) -> None:
        if config.kind not in _REGISTRY:
            valid = ", ".join(available_transports())
            msg = f"Unknown transport '{config.kind}'. Available: {valid}"
            raise ValueError(msg)
        self._config = config
        self.current: Transport | None = None

    @property
    def config(self) -> TransportConfig:
        return self._config

    def create(self) -> Transport:
        module_path, class_name = _REGISTRY[self._config.kind]
        module = importlib.import_module(module_path)
        cls = getattr(module, class_name)
        self.current = cls(self._config)
        return self.current  # type: ignore[no-any-return]

    async def connect(self) -> Transport:
        transport = self.create()
        await transport.connect()
        return transport

    async def reconnect(self) -> Transport:
        """Close the current transport and connect a fresh one.

        Retries up to ``max_retries`` extra times, waiting ``retry_delay_s``
        between attempts.

        Raises:
            TransportError: If every attempt fails.
        """
        if self.current is not None:
            try:
                await self.current.close()
            except Exception:
                logger.warning("Error closing %s transport", self._config.kind, exc_info=True)

        attempts = self._config.max_retries + 1
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                transport = await self.connect()
            except Exception as e:
                last_error = e
                logger.warning(
                    "Connect attempt %d/%d for %s failed: %s",
                    attempt,
                    attempts,
                    self._config.kind,
                    e,
                )
                if attempt < attempts:
                    await asyncio.sleep(self._config.retry_delay_s)
                continue
            logger.info("Reconnected %s transport (attempt %d)", self._config.kind, attempt)
            return transport

        msg = f"Could not reconnect {self._config.kind} transport after {attempts} attempts"
        raise TransportError(msg) from last_error
