"""Brief service: load the universe, run the council, narrate, cache per day.

One DailyBrief per (calendar day, horizon) is kept in memory. Nothing is
written to disk; a process restart starts fresh.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime

from council.collectors.factory import MarketCollector, build_collector
from council.config import settings
from council.engine.council import Council
from council.engine.validation import CouncilError, normalize_horizon
from council.models.brief import DailyBrief, Narrative
from council.models.council import Horizon
from council.services.narrator import Narrator
from council.utils.logger import logger


class BriefUnavailableError(RuntimeError):
    """The council could not produce a brief for the requested horizon."""

    def __init__(self, horizon: str) -> None:
        super().__init__(f"Unable to produce a brief for {horizon}.")
        self.horizon = horizon


class BriefService:
    """Orchestrates one brief per horizon per day."""

    def __init__(
        self,
        collector: MarketCollector | None = None,
        narrator: Narrator | None = None,
        universe: list[str] | None = None,
        narrative_enabled: bool | None = None,
    ) -> None:
        self.collector = collector or build_collector()
        self.narrator = narrator or Narrator()
        self.universe = list(universe or settings.UNIVERSE)
        self.narrative_enabled = (
            settings.NARRATIVE_ENABLED if narrative_enabled is None else narrative_enabled
        )
        self._cache: dict[tuple[date, Horizon], DailyBrief] = {}
        self._locks: dict[Horizon, asyncio.Lock] = {}

    def clear(self) -> int:
        """Forget every cached brief; returns how many were dropped."""
        count = len(self._cache)
        self._cache.clear()
        return count

    def cached(self, horizon: Horizon, day: date | None = None) -> DailyBrief | None:
        return self._cache.get((day or date.today(), horizon))

    async def get_brief(self, horizon: str, refresh: bool = False) -> DailyBrief:
        """Return today's brief for *horizon*, building it on first request.

        Raises BriefUnavailableError when no snapshots load or the engine
        rejects the input. Lookup errors never surface here.
        """
        try:
            hz = normalize_horizon(horizon)
        except CouncilError as e:
            raise BriefUnavailableError(str(horizon)) from e

        # One build per horizon at a time; concurrent callers share it
        lock = self._locks.setdefault(hz, asyncio.Lock())
        async with lock:
            key = (date.today(), hz)
            if not refresh and key in self._cache:
                logger.info("[Brief] Serving cached %s brief", hz)
                return self._cache[key]

            brief = await self._build(hz)
            self._drop_stale(key[0])
            self._cache[key] = brief
            return brief

    def _drop_stale(self, today: date) -> None:
        """Forget briefs from earlier days."""
        for key in [k for k in self._cache if k[0] != today]:
            del self._cache[key]

    async def _build(self, horizon: Horizon) -> DailyBrief:
        logger.info("[Brief] Building %s brief for %d symbols", horizon, len(self.universe))
        try:
            stocks = await self.collector.load_universe(self.universe)
        except Exception as e:
            logger.error("[Brief] Universe load failed for %s: %s", horizon, e)
            raise BriefUnavailableError(horizon) from e
        if not stocks:
            logger.error("[Brief] No snapshots loaded for %s", horizon)
            raise BriefUnavailableError(horizon)

        council = Council(fetch_price_target=self.collector.fetch_price_target)
        try:
            result = await council.run(stocks, horizon)
        except CouncilError as e:
            logger.error("[Brief] Council rejected %s run: %s", horizon, e)
            raise BriefUnavailableError(horizon) from e

        if self.narrative_enabled:
            narrative = await self.narrator.narrate(
                horizon, result.buy, result.sell_or_avoid, stocks
            )
        else:
            narrative = Narrative()

        return DailyBrief(
            as_of=datetime.now(),
            horizon=horizon,
            buy5=result.buy,
            sell_or_avoid=result.sell_or_avoid,
            debate=narrative.debate,
            sources=narrative.sources,
            chief_summary=narrative.chief_summary,
        )
