"""Core data models for the recruiting intake agent."""

import unicodedata
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def fold_text(text: str) -> str:
    """Lower-case and strip accents, so 'Sênior' and 'senior' compare equal."""
    decomposed = unicodedata.normalize("NFKD", text.lower().strip())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


class SeniorityLevel(str, Enum):
    INTERN = "intern"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"

    @property
    def rank(self) -> int:
        return _SENIORITY_RANKS[self]

    @property
    def label(self) -> str:
        """Display label used in chat replies."""
        return _SENIORITY_LABELS[self]

    @classmethod
    def parse(cls, value: "str | SeniorityLevel") -> "SeniorityLevel":
        """Parse a Portuguese or English level label.

        Unknown labels map to JUNIOR, the rank the matcher assumes for
        postings it cannot place.
        """
        if isinstance(value, SeniorityLevel):
            return value
        return _SENIORITY_ALIASES.get(fold_text(value), cls.JUNIOR)


_SENIORITY_RANKS: dict[SeniorityLevel, int] = {
    SeniorityLevel.INTERN: 1,
    SeniorityLevel.JUNIOR: 2,
    SeniorityLevel.MID: 3,
    SeniorityLevel.SENIOR: 4,
}

_SENIORITY_LABELS: dict[SeniorityLevel, str] = {
    SeniorityLevel.INTERN: "Estágio",
    SeniorityLevel.JUNIOR: "Júnior",
    SeniorityLevel.MID: "Pleno",
    SeniorityLevel.SENIOR: "Sênior",
}

_SENIORITY_ALIASES: dict[str, SeniorityLevel] = {
    "estagio": SeniorityLevel.INTERN,
    "estagiario": SeniorityLevel.INTERN,
    "intern": SeniorityLevel.INTERN,
    "junior": SeniorityLevel.JUNIOR,
    "pleno": SeniorityLevel.MID,
    "mid": SeniorityLevel.MID,
    "senior": SeniorityLevel.SENIOR,
}


class Classification(str, Enum):
    UNCLASSIFIED = "unclassified"
    COMPANY = "company"
    CANDIDATE = "candidate"
    OTHER = "other"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    MANUAL_CONTROL = "manual_control"
    FINALIZED = "finalized"


class JobPosting(BaseModel):
    """A job posting from the catalog. Identity is its catalog position."""

    model_config = ConfigDict(frozen=True)

    title: str
    seniority: SeniorityLevel = SeniorityLevel.JUNIOR
    location: str = ""
    description: str = ""

    @field_validator("seniority", mode="before")
    @classmethod
    def parse_seniority(cls, v: Any) -> SeniorityLevel:
        if isinstance(v, str):
            return SeniorityLevel.parse(v)
        return v  # type: ignore[no-any-return]


class CandidateProfile(BaseModel):
    """Profile fields extracted from a single candidate message.

    Every field is optional; the LLM returns null for anything the
    message did not mention.
    """

    name: str | None = None
    experience: str | None = None
    skills: str | None = None
    location: str | None = None
    current_position: str | None = None
    desired_salary: str | None = None
    interests: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> str | None:
        if v is None:
            return None
        if isinstance(v, (list, tuple)):
            v = ", ".join(str(item).strip() for item in v if str(item).strip())
        text = str(v).strip()
        if not text or text.lower() in ("null", "none"):
            return None
        return text

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class ScoredJob(BaseModel):
    """Wrapper that pairs a frozen JobPosting with its match score.

    score is None for unscored pass-through results.
    """

    model_config = ConfigDict(frozen=True)

    job: JobPosting
    score: float | None = Field(default=None, ge=0.0, le=1.0)
    is_suggestion: bool = False


class InboundMessage(BaseModel):
    """A chat message delivered by the transport."""

    model_config = ConfigDict(frozen=True)

    contact_id: str
    text: str
    from_self: bool = False
    received_at: datetime = Field(default_factory=datetime.now)
