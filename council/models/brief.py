"""Daily brief models: the council result plus the LLM narrative."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from council.models.council import ActionItem, CouncilPick, Horizon

DEFAULT_SUMMARY = "The Council is currently in recess. Algorithmic defaults applied."


class DebateMessage(BaseModel):
    """One chat bubble in the agents' debate."""

    agent_id: str
    text: str
    timestamp: str = ""

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: object) -> str:
        """LLMs sometimes return null for the HH:MM stamp."""
        return "" if v is None else str(v)


class Source(BaseModel):
    title: str
    uri: str


class Narrative(BaseModel):
    """Debate + chief summary as returned by the narrator."""

    debate: list[DebateMessage] = Field(default_factory=list)
    chief_summary: str = DEFAULT_SUMMARY
    sources: list[Source] = Field(default_factory=list)

    @field_validator("chief_summary", mode="before")
    @classmethod
    def _default_summary(cls, v: object) -> str:
        if not v:
            return DEFAULT_SUMMARY
        return str(v)


class DailyBrief(BaseModel):
    """Everything the dashboard shows for one horizon on one day."""

    as_of: datetime = Field(default_factory=datetime.now)
    horizon: Horizon
    buy5: list[CouncilPick] = Field(default_factory=list)
    sell_or_avoid: list[ActionItem] = Field(default_factory=list)
    debate: list[DebateMessage] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)
    chief_summary: str = DEFAULT_SUMMARY
