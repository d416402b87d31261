"""Business-hours calendar for company contacts."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from src.core.config import BusinessHoursConfig, CompanyConfig

logger = logging.getLogger(__name__)

_WEEKDAY_NAMES = ("Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado", "Domingo")


class BusinessHours:
    """Answers whether humans are available right now, in the office timezone."""

    def __init__(self, config: BusinessHoursConfig, company: CompanyConfig) -> None:
        self._config = config
        self._company = company
        self._tz = ZoneInfo(config.timezone)

    def is_business_hours(self, now: datetime | None = None) -> bool:
        """True when ``now`` (default: current time) falls inside an opening window.

        Naive datetimes are taken as already being in the office timezone.
        """
        if now is None:
            local = datetime.now(self._tz)
        elif now.tzinfo is None:
            local = now.replace(tzinfo=self._tz)
        else:
            local = now.astimezone(self._tz)

        if local.weekday() not in self._config.weekdays:
            return False
        current = local.time().replace(tzinfo=None)
        return any(start <= current < end for start, end in self._config.windows)

    def describe(self) -> str:
        """Human-readable schedule, e.g. 'Segunda a Sexta, 08h00-12h00 e 13h30-18h00'."""
        days = sorted(self._config.weekdays)
        if days and days == list(range(days[0], days[-1] + 1)) and len(days) > 1:
            day_text = f"{_WEEKDAY_NAMES[days[0]]} a {_WEEKDAY_NAMES[days[-1]]}"
        else:
            day_text = ", ".join(_WEEKDAY_NAMES[d] for d in days)
        windows = " e ".join(
            f"{start:%Hh%M}-{end:%Hh%M}" for start, end in self._config.windows
        )
        return f"{day_text}, {windows}"

    def out_of_hours_message(self) -> str:
        return f"""Olá! 👋

Obrigado pelo seu contato com a {self._company.name}!

🕐 No momento estamos fora do nosso horário de atendimento ({self.describe()}).

📞 Registramos sua mensagem e um de nossos especialistas retornará o contato assim que possível.

Enquanto isso, você pode conhecer mais sobre nossos serviços em: {self._company.website}
📧 Ou nos escrever em: {self._company.email}

Obrigado pela compreensão! 🙏"""
