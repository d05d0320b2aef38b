"""Base agent: abstract class all signal scorers inherit from."""

from __future__ import annotations

from council.models.council import AgentRecommendation, Horizon
from council.models.market_data import StockSnapshot


def clamp(value: float, low: float, high: float) -> float:
    """Clamp *value* into ``[low, high]``."""
    return max(low, min(high, value))


class BaseAgent:
    """Abstract base for the council's signal scorers.

    Scorers are pure: one snapshot + one horizon in, one
    AgentRecommendation out. No I/O, no shared state, so the council can
    call them for every stock in any order.
    """

    # Subclasses set this as a class attribute
    agent_id: str = ""

    def __init__(self) -> None:
        if not self.agent_id:
            raise ValueError(f"{self.__class__.__name__} has no agent_id set")

    def score(self, stock: StockSnapshot, horizon: Horizon) -> AgentRecommendation:
        """Score *stock* for *horizon*. Subclasses must implement."""
        raise NotImplementedError("Subclasses must implement score()")

    def _recommend(
        self,
        stock: StockSnapshot,
        *,
        score: float,
        confidence: float,
        tags: list[str],
        why: list[str],
        risk_flags: list[str] | None = None,
    ) -> AgentRecommendation:
        """Build the recommendation with score in [0, 1] and confidence in [20, 95]."""
        return AgentRecommendation(
            agent_id=self.agent_id,
            symbol=stock.symbol,
            score=clamp(score, 0.0, 1.0),
            confidence=clamp(confidence, 20.0, 95.0),
            tags=tags,
            why=why,
            risk_flags=risk_flags or [],
        )
