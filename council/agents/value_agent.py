"""Value agent: cheap earnings backed by returns on equity."""

from __future__ import annotations

from council.agents.base_agent import BaseAgent
from council.models.council import VALUE, AgentRecommendation, Horizon
from council.models.market_data import StockSnapshot


class ValueAgent(BaseAgent):
    """Rewards low P/E and high ROE; leverage only matters for 3-year holds."""

    agent_id = VALUE

    def score(self, stock: StockSnapshot, horizon: Horizon) -> AgentRecommendation:
        f = stock.fundamentals
        score = 0.0

        if f.pe_ttm < 15:
            score += 0.5
        elif f.pe_ttm < 25:
            score += 0.3

        if f.roe_ttm > 0.20:
            score += 0.3

        if horizon == "THREE_YEAR" and f.debt_to_equity < 0.8:
            score += 0.2

        cheap = f.pe_ttm < 20
        verdict = "undervaluation" if cheap else "fair pricing"
        return self._recommend(
            stock,
            score=score,
            confidence=65 + (15 if cheap else 0),
            tags=["Fundamental Value"],
            why=[f"P/E of {f.pe_ttm:.1f}x indicates {verdict}."],
            risk_flags=["Elevated Debt Levels"] if f.debt_to_equity > 1.5 else [],
        )
