"""Council models: per-agent recommendations, picks, and action items."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Horizon = Literal["INTRADAY", "ONE_YEAR", "THREE_YEAR"]
HORIZONS: tuple[Horizon, ...] = ("INTRADAY", "ONE_YEAR", "THREE_YEAR")

AgentId = Literal["momentum_v1", "value_v1", "quality_v1"]
MOMENTUM: AgentId = "momentum_v1"
VALUE: AgentId = "value_v1"
QUALITY: AgentId = "quality_v1"
AGENT_IDS: tuple[AgentId, ...] = (MOMENTUM, VALUE, QUALITY)

COUNCIL_AGGREGATE = "council_aggregate"


class AgentRecommendation(BaseModel):
    """One scorer's view of one stock for one horizon."""

    agent_id: str
    symbol: str
    score: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=20.0, le=95.0)
    tags: list[str] = Field(default_factory=list)
    why: list[str] = Field(default_factory=list)
    risk_flags: list[str] = Field(default_factory=list)


class CouncilPick(AgentRecommendation):
    """Consensus recommendation for a buy-list member."""

    agent_id: str = COUNCIL_AGGREGATE
    consensus_count: int = Field(ge=0, le=3)
    target_price: float
    projected_return: float
    prediction_methodology: str


class ActionItem(BaseModel):
    """SELL / AVOID call for a stock that did not make the buy-list."""

    symbol: str
    action: Literal["SELL", "AVOID"]
    reason: str
    priority: Literal["HIGH", "MEDIUM"]


class CouncilResult(BaseModel):
    """Output of one council run."""

    horizon: Horizon
    buy: list[CouncilPick] = Field(default_factory=list)
    sell_or_avoid: list[ActionItem] = Field(default_factory=list)
