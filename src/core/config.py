"""Configuration models and YAML loader for the recruiting intake agent."""

from datetime import time
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class CompanyConfig(BaseModel):
    """Identity of the recruiting company the assistant speaks for."""

    name: str = "Evolux Soluções de RH"
    website: str = "https://evoluxrh.com.br"
    email: str = "contato@evoluxrh.com.br"
    registration_link: str = "https://app.pipefy.com/public/form/a19wdDh_"


class ConversationConfig(BaseModel):
    """Timers and thresholds driving the per-contact state machine."""

    timeout_ms: int = Field(default=120_000, ge=1)
    follow_up_timeout_ms: int = Field(default=300_000, ge=1)
    manual_grace_timeout_ms: int = Field(default=1_800_000, ge=1)
    restart_threshold_ms: int = Field(default=300_000, ge=1)
    max_history: int = Field(default=10, ge=1)
    end_suppression_history: int = Field(default=2, ge=0)


class BusinessHoursConfig(BaseModel):
    """Weekly opening windows. Weekdays use Python numbering (Monday=0)."""

    timezone: str = "America/Sao_Paulo"
    weekdays: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])
    windows: list[tuple[time, time]] = Field(
        default_factory=lambda: [
            (time(8, 0), time(12, 0)),
            (time(13, 30), time(18, 0)),
        ],
    )

    @field_validator("weekdays")
    @classmethod
    def weekdays_in_range(cls, v: list[int]) -> list[int]:
        for day in v:
            if not 0 <= day <= 6:
                msg = f"weekday must be between 0 and 6, got {day}"
                raise ValueError(msg)
        return v

    @field_validator("windows")
    @classmethod
    def windows_ordered(cls, v: list[tuple[time, time]]) -> list[tuple[time, time]]:
        for start, end in v:
            if start >= end:
                msg = f"window start {start} must be before end {end}"
                raise ValueError(msg)
        return v


class LLMConfig(BaseModel):
    """LLM provider selection for classification, extraction and free chat."""

    provider: str = "groq"
    model: str | None = None
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=512, gt=0)


class CatalogConfig(BaseModel):
    """Location of the job catalog CSV."""

    path: str = "data/jobs.csv"


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/recruiting.db"


class TransportConfig(BaseModel):
    """Chat transport configuration, shared by every (re)connection."""

    kind: str = "console"
    default_contact: str = "console"
    max_retries: int = Field(default=3, ge=0)
    retry_delay_s: float = Field(default=5.0, ge=0.0)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    company: CompanyConfig = Field(default_factory=CompanyConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)

    @model_validator(mode="after")
    def follow_up_longer_than_timeout(self) -> "Settings":
        conv = self.conversation
        if conv.follow_up_timeout_ms < conv.timeout_ms:
            msg = "follow_up_timeout_ms must not be shorter than timeout_ms"
            raise ValueError(msg)
        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
