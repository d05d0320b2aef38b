"""Aggregator: pools the three agents' recommendations into a consensus."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from council.agents.base_agent import BaseAgent, clamp
from council.agents.momentum_agent import MomentumAgent
from council.agents.quality_agent import QualityAgent
from council.agents.value_agent import ValueAgent
from council.engine.constants import CONSENSUS_THRESHOLD, HORIZON_WEIGHTS, WeightTable
from council.engine.target_price import TargetEstimate, projected_return_pct
from council.models.council import AgentRecommendation, CouncilPick, Horizon
from council.models.market_data import StockSnapshot
from council.utils.logger import logger


def _ordered_unique(items: Iterable[str]) -> list[str]:
    """Deduplicate while keeping first-occurrence order."""
    return list(dict.fromkeys(items))


@dataclass(frozen=True)
class Consensus:
    """Weighted view of one stock before a target price is attached."""

    stock: StockSnapshot
    horizon: Horizon
    recommendations: tuple[AgentRecommendation, ...]
    weighted_score: float
    confidence: float
    consensus_count: int
    tags: list[str]
    why: list[str]
    risk_flags: list[str]

    @property
    def symbol(self) -> str:
        return self.stock.symbol

    def to_summary(self) -> dict:
        """Return a summary dict for logging."""
        return {
            "symbol": self.symbol,
            "horizon": self.horizon,
            "weighted_score": round(self.weighted_score, 4),
            "confidence": round(self.confidence, 1),
            "consensus_count": self.consensus_count,
            "scores": {r.agent_id: round(r.score, 3) for r in self.recommendations},
        }


class Aggregator:
    """Scores a stock with every agent and combines them with horizon weights.

    The agent order is fixed (momentum, value, quality) and drives the
    order of the combined rationale, tags and risk flags.
    """

    def __init__(
        self,
        weights: WeightTable = HORIZON_WEIGHTS,
        agents: Sequence[BaseAgent] | None = None,
    ) -> None:
        self.weights = weights
        self.agents: tuple[BaseAgent, ...] = tuple(
            agents or (MomentumAgent(), ValueAgent(), QualityAgent())
        )

    def pool(self, stock: StockSnapshot, horizon: Horizon) -> Consensus:
        """Run every agent on *stock* and fold the results together."""
        row = self.weights[horizon]
        recs = tuple(agent.score(stock, horizon) for agent in self.agents)

        # Rows sum to 1 within float tolerance; keep the result inside [0, 1]
        weighted = clamp(sum(r.score * row[r.agent_id] for r in recs), 0.0, 1.0)
        confidence = sum(r.confidence for r in recs) / len(recs)
        agreeing = sum(1 for r in recs if r.score > CONSENSUS_THRESHOLD)

        consensus = Consensus(
            stock=stock,
            horizon=horizon,
            recommendations=recs,
            weighted_score=weighted,
            confidence=confidence,
            consensus_count=agreeing,
            tags=_ordered_unique(t for r in recs for t in r.tags)[:2],
            why=[r.why[0] if r.why else "" for r in recs],
            risk_flags=_ordered_unique(f for r in recs for f in r.risk_flags),
        )
        logger.debug("Pooled consensus: %s", consensus.to_summary())
        return consensus

    @staticmethod
    def to_pick(consensus: Consensus, estimate: TargetEstimate) -> CouncilPick:
        """Attach a target price; rounding happens here and nowhere earlier."""
        price = consensus.stock.price
        return CouncilPick(
            symbol=consensus.symbol,
            score=consensus.weighted_score,
            confidence=round(consensus.confidence),
            consensus_count=consensus.consensus_count,
            tags=consensus.tags,
            why=consensus.why,
            risk_flags=consensus.risk_flags,
            target_price=round(estimate.target_price, 2),
            projected_return=round(projected_return_pct(price, estimate.target_price), 1),
            prediction_methodology=estimate.methodology,
        )
