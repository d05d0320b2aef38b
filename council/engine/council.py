"""Council: the decision engine's single entry point.

    snapshots + horizon
        → 3 agents per stock → Aggregator (+ one price-target lookup per stock)
        → SectorDiversifier → buy-list
        → RiskClassifier    → sell/avoid list

Scoring is pure and synchronous. The only awaits are the price-target
lookups, which run concurrently (bounded by a semaphore). A failed lookup
only sends that stock's target to its fallback formula.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping

from council.config import settings
from council.engine.aggregator import Aggregator
from council.engine.constants import HORIZON_WEIGHTS, SECTOR_CLUSTERS, ClusterMap, WeightTable
from council.engine.diversifier import SectorDiversifier
from council.engine.risk_classifier import RiskClassifier
from council.engine.target_price import estimate_target
from council.engine.validation import coerce_snapshots, normalize_horizon
from council.models.council import CouncilPick, CouncilResult
from council.models.market_data import PriceTarget, StockSnapshot
from council.utils.logger import logger

PriceTargetFetcher = Callable[[str], Awaitable["PriceTarget | Mapping | None"]]


async def _no_price_target(symbol: str) -> None:
    """Default lookup: no analyst data, every target uses its fallback."""
    return None


class Council:
    """Runs the full ranking for one snapshot set and horizon."""

    def __init__(
        self,
        fetch_price_target: PriceTargetFetcher | None = None,
        weights: WeightTable = HORIZON_WEIGHTS,
        clusters: ClusterMap = SECTOR_CLUSTERS,
        concurrency: int | None = None,
    ) -> None:
        self._fetch = fetch_price_target or _no_price_target
        self.aggregator = Aggregator(weights=weights)
        self.diversifier = SectorDiversifier(clusters=clusters)
        self.classifier = RiskClassifier()
        self.concurrency = max(1, concurrency or settings.PRICE_TARGET_CONCURRENCY)

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    async def run(
        self,
        snapshots: Iterable[StockSnapshot | Mapping],
        horizon: str,
    ) -> CouncilResult:
        """Rank *snapshots* for *horizon* into a buy-list and a sell/avoid list.

        Raises SnapshotValidationError before any scoring or lookups if
        an input snapshot is malformed.
        """
        hz = normalize_horizon(horizon)
        stocks = coerce_snapshots(snapshots)
        logger.info("[Council] Run start: %d stocks, horizon=%s", len(stocks), hz)

        consensus = [self.aggregator.pool(s, hz) for s in stocks]
        targets = await self._lookup_all([s.symbol for s in stocks])

        candidates: list[CouncilPick] = [
            self.aggregator.to_pick(c, estimate_target(c.stock, hz, targets.get(c.symbol)))
            for c in consensus
        ]

        buy = self.diversifier.select(candidates)
        actions = self.classifier.classify(stocks, buy, hz)

        logger.info(
            "[Council] Run done (%s): buy=%s, sell/avoid=%s",
            hz,
            [p.symbol for p in buy],
            [f"{a.symbol}:{a.action}" for a in actions],
        )
        return CouncilResult(horizon=hz, buy=buy, sell_or_avoid=actions)

    # ------------------------------------------------------------------
    # Price-target lookups
    # ------------------------------------------------------------------

    async def _lookup_all(self, symbols: list[str]) -> dict[str, PriceTarget | None]:
        """Fetch every symbol's consensus once, concurrently."""
        sem = asyncio.Semaphore(self.concurrency)

        async def _one(symbol: str) -> PriceTarget | None:
            async with sem:
                return await self._lookup(symbol)

        results = await asyncio.gather(*[_one(s) for s in symbols])
        return dict(zip(symbols, results))

    async def _lookup(self, symbol: str) -> PriceTarget | None:
        """One lookup for one symbol; any failure means "no data"."""
        try:
            raw = await self._fetch(symbol)
        except Exception as e:
            logger.warning("[Council] Price target lookup failed for %s: %s", symbol, e)
            return None

        if raw is None:
            return None
        if isinstance(raw, Mapping):
            try:
                raw = PriceTarget.model_validate({**raw, "symbol": symbol})
            except ValueError as e:
                logger.warning("[Council] Unusable price target for %s: %s", symbol, e)
                return None
        if not isinstance(raw, PriceTarget):
            logger.warning(
                "[Council] Ignoring %s price target of type %s", symbol, type(raw).__name__
            )
            return None
        if raw.symbol.upper() != symbol:
            logger.warning(
                "[Council] Discarding price target for %s returned under %s",
                symbol, raw.symbol,
            )
            return None
        return raw


async def run_council(
    snapshots: Iterable[StockSnapshot | Mapping],
    horizon: str,
    fetch_price_target: PriceTargetFetcher | None = None,
    *,
    weights: WeightTable = HORIZON_WEIGHTS,
    clusters: ClusterMap = SECTOR_CLUSTERS,
) -> CouncilResult:
    """Convenience wrapper around ``Council(...).run(...)``."""
    council = Council(fetch_price_target=fetch_price_target, weights=weights, clusters=clusters)
    return await council.run(snapshots, horizon)


def run_council_sync(
    snapshots: Iterable[StockSnapshot | Mapping],
    horizon: str,
    fetch_price_target: PriceTargetFetcher | None = None,
    **kwargs,
) -> CouncilResult:
    """Blocking variant for scripts and tests with no running event loop."""
    return asyncio.run(run_council(snapshots, horizon, fetch_price_target, **kwargs))
