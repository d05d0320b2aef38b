"""Quality agent: profitability and drawdown resilience."""

from __future__ import annotations

from council.agents.base_agent import BaseAgent
from council.models.council import QUALITY, AgentRecommendation, Horizon
from council.models.market_data import StockSnapshot


class QualityAgent(BaseAgent):
    agent_id = QUALITY

    def score(self, stock: StockSnapshot, horizon: Horizon) -> AgentRecommendation:
        f = stock.fundamentals
        score = 0.0

        if f.roe_ttm > 0.25:
            score += 0.5
        if stock.risk.max_drawdown_6m > -0.15:
            score += 0.4
        # Short-term quality = stable daily moves
        if horizon == "INTRADAY" and stock.risk.vol20d < 0.015:
            score += 0.1

        return self._recommend(
            stock,
            score=score,
            confidence=80,
            tags=["Capital Efficiency"],
            why=[f"Return on Equity of {f.roe_ttm * 100:.1f}% shows high operational quality."],
        )
