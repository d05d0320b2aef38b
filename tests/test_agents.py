"""Tests for the three signal scorers (momentum, value, quality)."""

from __future__ import annotations

import pytest

from council.agents.base_agent import BaseAgent, clamp
from council.agents.momentum_agent import MomentumAgent
from council.agents.quality_agent import QualityAgent
from council.agents.value_agent import ValueAgent
from council.models.council import HORIZONS


# ══════════════════════════════════════════════════════════════════════
# 1.  Momentum
# ══════════════════════════════════════════════════════════════════════


class TestMomentumAgent:
    agent = MomentumAgent()

    def test_upper_clamp_one_year(self, make_snapshot):
        """lookback 0.6*30 + 0.4*10 = 22 → 22/15 + 0.5 + 0.2 clamps to 1."""
        stock = make_snapshot(
            returns={"3M": 30, "1M": 10},
            risk={"vol20d": 0.01},
            trend={"above_ma50": True, "ma50": 90},
        )
        rec = self.agent.score(stock, "ONE_YEAR")
        assert rec.score == 1.0
        assert rec.confidence == 80
        assert rec.tags == ["Trend Leader"]
        assert rec.risk_flags == []
        assert "superior" in rec.why[0]

    def test_zero_return_is_neutral(self, make_snapshot):
        rec = self.agent.score(make_snapshot(), "INTRADAY")
        assert rec.score == pytest.approx(0.5)
        assert rec.confidence == 40
        assert rec.tags == ["Velocity Play"]
        assert "lagging" in rec.why[0]

    def test_intraday_uses_week_and_day(self, make_snapshot):
        # 0.7*3 + 0.3*1 = 2.4 → 0.16 + 0.5
        stock = make_snapshot(returns={"1W": 3, "1D": 1, "3M": -50})
        rec = self.agent.score(stock, "INTRADAY")
        assert rec.score == pytest.approx(2.4 / 15 + 0.5)
        assert rec.confidence == 70

    def test_high_volatility_penalty(self, make_snapshot):
        stock = make_snapshot(risk={"vol20d": 0.05})
        rec = self.agent.score(stock, "ONE_YEAR")
        assert rec.score == pytest.approx(0.2)
        assert rec.confidence == 25
        assert rec.risk_flags == ["High Intraday Volatility"]

    def test_lower_clamp(self, make_snapshot):
        stock = make_snapshot(returns={"3M": -60, "1M": -20}, risk={"vol20d": 0.08})
        rec = self.agent.score(stock, "THREE_YEAR")
        assert rec.score == 0.0
        assert 20 <= rec.confidence <= 95


# ══════════════════════════════════════════════════════════════════════
# 2.  Value
# ══════════════════════════════════════════════════════════════════════


class TestValueAgent:
    agent = ValueAgent()

    def test_full_score_three_year(self, make_snapshot):
        stock = make_snapshot(
            fundamentals={"pe_ttm": 12, "roe_ttm": 0.22, "debt_to_equity": 0.5}
        )
        rec = self.agent.score(stock, "THREE_YEAR")
        assert rec.score == pytest.approx(1.0)
        assert rec.confidence == 80
        assert rec.tags == ["Fundamental Value"]
        assert rec.why == ["P/E of 12.0x indicates undervaluation."]

    def test_debt_bonus_only_for_three_year(self, make_snapshot):
        stock = make_snapshot(
            fundamentals={"pe_ttm": 12, "roe_ttm": 0.22, "debt_to_equity": 0.5}
        )
        assert self.agent.score(stock, "ONE_YEAR").score == pytest.approx(0.8)
        assert self.agent.score(stock, "INTRADAY").score == pytest.approx(0.8)

    def test_mid_pe_fair_pricing(self, make_snapshot):
        stock = make_snapshot(fundamentals={"pe_ttm": 22, "roe_ttm": 0.1})
        rec = self.agent.score(stock, "ONE_YEAR")
        assert rec.score == pytest.approx(0.3)
        assert rec.confidence == 65
        assert "fair pricing" in rec.why[0]

    def test_expensive_stock_scores_zero(self, make_snapshot):
        rec = self.agent.score(make_snapshot(fundamentals={"pe_ttm": 40}), "ONE_YEAR")
        assert rec.score == 0.0

    def test_elevated_debt_flag(self, make_snapshot):
        stock = make_snapshot(fundamentals={"pe_ttm": 30, "debt_to_equity": 2.1})
        rec = self.agent.score(stock, "THREE_YEAR")
        assert rec.risk_flags == ["Elevated Debt Levels"]


# ══════════════════════════════════════════════════════════════════════
# 3.  Quality
# ══════════════════════════════════════════════════════════════════════


class TestQualityAgent:
    agent = QualityAgent()

    def test_full_score_intraday(self, make_snapshot):
        stock = make_snapshot(
            fundamentals={"roe_ttm": 0.3},
            risk={"max_drawdown_6m": -0.1, "vol20d": 0.01},
        )
        rec = self.agent.score(stock, "INTRADAY")
        assert rec.score == pytest.approx(1.0)
        assert rec.confidence == 80
        assert rec.risk_flags == []
        assert rec.why == ["Return on Equity of 30.0% shows high operational quality."]

    def test_stability_bonus_only_intraday(self, make_snapshot):
        stock = make_snapshot(
            fundamentals={"roe_ttm": 0.3},
            risk={"max_drawdown_6m": -0.1, "vol20d": 0.01},
        )
        assert self.agent.score(stock, "ONE_YEAR").score == pytest.approx(0.9)

    def test_deep_drawdown_low_roe(self, make_snapshot):
        stock = make_snapshot(fundamentals={"roe_ttm": 0.1}, risk={"max_drawdown_6m": -0.3})
        assert self.agent.score(stock, "THREE_YEAR").score == 0.0


# ══════════════════════════════════════════════════════════════════════
# 4.  Shared bounds
# ══════════════════════════════════════════════════════════════════════


class TestScoreBounds:
    @pytest.mark.parametrize("horizon", HORIZONS)
    @pytest.mark.parametrize(
        "parts",
        [
            {},
            {"returns": {"1D": 40, "1W": 80, "1M": 90, "3M": 200}, "trend": {"above_ma50": True}},
            {"returns": {"1D": -40, "1W": -80, "1M": -90, "3M": -200}, "risk": {"vol20d": 0.2}},
            {"fundamentals": {"pe_ttm": -5, "roe_ttm": 2.0, "debt_to_equity": 9}},
        ],
    )
    def test_every_scorer_stays_in_range(self, make_snapshot, horizon, parts):
        stock = make_snapshot(**parts)
        for agent in (MomentumAgent(), ValueAgent(), QualityAgent()):
            rec = agent.score(stock, horizon)
            assert 0.0 <= rec.score <= 1.0
            assert 20.0 <= rec.confidence <= 95.0
            assert rec.symbol == "TEST"

    def test_clamp(self):
        assert clamp(1.7, 0.0, 1.0) == 1.0
        assert clamp(-0.2, 0.0, 1.0) == 0.0
        assert clamp(0.4, 0.0, 1.0) == 0.4

    def test_agent_without_id_rejected(self):
        class Nameless(BaseAgent):
            pass

        with pytest.raises(ValueError):
            Nameless()
