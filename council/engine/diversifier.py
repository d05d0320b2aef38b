"""Sector diversifier: top picks by consensus score with a per-cluster cap.

No quota per cluster: a cluster just stops contributing once it holds
``max_per_cluster`` picks, and the next-best names from other clusters
fill the remaining slots.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from council.engine.constants import (
    MAX_PER_CLUSTER,
    MAX_PICKS,
    OTHER_CLUSTER,
    SECTOR_CLUSTERS,
    ClusterMap,
)
from council.models.council import CouncilPick
from council.utils.logger import logger


def build_cluster_index(clusters: ClusterMap) -> Mapping[str, str]:
    """Invert cluster → symbols into symbol → cluster. First cluster wins."""
    index: dict[str, str] = {}
    for name, symbols in clusters.items():
        for symbol in symbols:
            index.setdefault(symbol, name)
    return MappingProxyType(index)


class SectorDiversifier:
    """Greedy top-N selection that caps how many picks share one cluster."""

    def __init__(
        self,
        clusters: ClusterMap = SECTOR_CLUSTERS,
        max_picks: int = MAX_PICKS,
        max_per_cluster: int = MAX_PER_CLUSTER,
    ) -> None:
        self.max_picks = max_picks
        self.max_per_cluster = max_per_cluster
        self._index = build_cluster_index(clusters)

    def cluster_of(self, symbol: str) -> str:
        return self._index.get(symbol, OTHER_CLUSTER)

    def select(self, candidates: Iterable[CouncilPick]) -> list[CouncilPick]:
        """Return at most ``max_picks`` candidates, best score first.

        ``sorted`` is stable, so equal scores keep their input order.
        """
        ranked = sorted(candidates, key=lambda c: c.score, reverse=True)

        picks: list[CouncilPick] = []
        per_cluster: Counter[str] = Counter()
        for cand in ranked:
            if len(picks) >= self.max_picks:
                break
            cluster = self.cluster_of(cand.symbol)
            if per_cluster[cluster] >= self.max_per_cluster:
                logger.debug(
                    "[Diversifier] %s skipped, cluster %s already has %d picks",
                    cand.symbol, cluster, per_cluster[cluster],
                )
                continue
            picks.append(cand)
            per_cluster[cluster] += 1

        logger.info(
            "[Diversifier] Selected %s from %d candidates (clusters: %s)",
            [p.symbol for p in picks], len(ranked), dict(per_cluster),
        )
        return picks
