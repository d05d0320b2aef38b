"""Momentum agent: price strength and trend persistence."""

from __future__ import annotations

from council.agents.base_agent import BaseAgent
from council.models.council import MOMENTUM, AgentRecommendation, Horizon
from council.models.market_data import StockSnapshot

HIGH_VOLATILITY = 0.03


class MomentumAgent(BaseAgent):
    """Scores recent returns, the 50-day trend and a volatility penalty.

    The lookback blend depends on the horizon: intraday leans on the
    last week and day, longer horizons on the last quarter and month.
    A zero blended return lands at a neutral 0.5.
    """

    agent_id = MOMENTUM

    @staticmethod
    def lookback_return(stock: StockSnapshot, horizon: Horizon) -> float:
        r = stock.returns
        if horizon == "INTRADAY":
            return r.one_week * 0.7 + r.one_day * 0.3
        return r.three_month * 0.6 + r.one_month * 0.4

    def score(self, stock: StockSnapshot, horizon: Horizon) -> AgentRecommendation:
        lookback = self.lookback_return(stock, horizon)

        score = lookback / 15
        confidence = 50 + (20 if lookback > 0 else -10)

        if stock.trend.above_ma50:
            score += 0.2
            confidence += 10

        high_vol = stock.risk.vol20d > HIGH_VOLATILITY
        if high_vol:
            score -= 0.3
            confidence -= 15

        performance = "superior" if lookback > 0 else "lagging"
        return self._recommend(
            stock,
            score=score + 0.5,
            confidence=confidence,
            tags=["Velocity Play" if horizon == "INTRADAY" else "Trend Leader"],
            why=[f"Price performance over relevant horizon is {performance}."],
            risk_flags=["High Intraday Volatility"] if high_vol else [],
        )
