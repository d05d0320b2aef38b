"""Static council configuration: horizon weights, sector clusters, agent metadata.

Everything here is built once at import time as read-only mappings.
The aggregator and diversifier take these as explicit arguments; the
module-level values are only the defaults.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from council.models.council import MOMENTUM, QUALITY, VALUE, AgentId, Horizon

WeightTable = Mapping[Horizon, Mapping[AgentId, float]]
ClusterMap = Mapping[str, frozenset[str]]

OTHER_CLUSTER = "Other"


def make_weight_table(rows: Mapping[Horizon, Mapping[AgentId, float]]) -> WeightTable:
    """Freeze a horizon → agent → weight table, rejecting rows that don't sum to 1."""
    frozen: dict[Horizon, Mapping[AgentId, float]] = {}
    for horizon, row in rows.items():
        missing = {MOMENTUM, VALUE, QUALITY} - set(row)
        if missing:
            raise ValueError(f"Weight row for {horizon} missing agents: {sorted(missing)}")
        total = sum(row.values())
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Weights for {horizon} sum to {total}, expected 1.0")
        frozen[horizon] = MappingProxyType(dict(row))
    return MappingProxyType(frozen)


def make_cluster_map(clusters: Mapping[str, Iterable[str]]) -> ClusterMap:
    """Freeze a cluster name → symbols map. Insertion order is the match order."""
    return MappingProxyType(
        {name: frozenset(s.upper() for s in symbols) for name, symbols in clusters.items()}
    )


HORIZON_WEIGHTS: WeightTable = make_weight_table({
    "INTRADAY": {MOMENTUM: 0.70, QUALITY: 0.20, VALUE: 0.10},
    "ONE_YEAR": {MOMENTUM: 0.35, QUALITY: 0.35, VALUE: 0.30},
    "THREE_YEAR": {MOMENTUM: 0.10, QUALITY: 0.40, VALUE: 0.50},
})

SECTOR_CLUSTERS: ClusterMap = make_cluster_map({
    "Big Tech": ["AAPL", "MSFT", "GOOGL", "META", "NVDA", "AVGO"],
    "Consumer/Retail": ["AMZN", "COST"],
    "Financials": ["V", "JPM"],
    "Healthcare": ["LLY"],
    "Automotive": ["TSLA"],
})

# Display data for the narrative layer and /api/agents
AGENT_METADATA: Mapping[AgentId, Mapping[str, str]] = MappingProxyType({
    MOMENTUM: MappingProxyType({
        "name": "Momentum Max",
        "description": "Focuses on price strength and trend persistence.",
    }),
    VALUE: MappingProxyType({
        "name": "Deep Value",
        "description": "Looks for undervalued assets with strong fundamentals.",
    }),
    QUALITY: MappingProxyType({
        "name": "Guardian Quality",
        "description": "Prioritizes low volatility and high profitability.",
    }),
})

MAX_PICKS = 5
MAX_PER_CLUSTER = 2
MAX_ACTIONS = 5
CONSENSUS_THRESHOLD = 0.6
