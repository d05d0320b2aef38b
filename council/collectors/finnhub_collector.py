"""Finnhub collector: quotes, metrics, news, candles and analyst price targets.

  • Price targets are cached in DuckDB for PRICE_TARGET_CACHE_TTL seconds
  • Snapshots are cached in-process for QUOTE_CACHE_TTL seconds
  • Universe loads run in batches of 3 with a short pause (free-tier limits)
  • Every public fetch returns None on failure instead of raising
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta
from typing import Any

import httpx
from pydantic import ValidationError

from council.config import settings
from council.database import load_cached_price_target, store_price_target
from council.models.market_data import (
    Fundamentals,
    NewsItem,
    PriceTarget,
    Returns,
    RiskIndicators,
    StockSnapshot,
    Trend,
)
from council.utils.logger import logger

PROVIDER = "finnhub"

# Used when the metric feed has no beta to derive volatility from
_VOLATILITY_FLOOR = 0.015


def _pct_to_fraction(value: Any) -> float:
    """Finnhub reports ROE / growth / leverage in percent."""
    return float(value) / 100 if value else 0.0


class FinnhubCollector:
    """Async Finnhub REST client producing council inputs."""

    # (expiry_epoch, snapshot) per symbol, shared across instances
    _snapshot_cache: dict[str, tuple[float, StockSnapshot]] = {}

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        use_cache: bool = True,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.FINNHUB_API_KEY
        self.base_url = (base_url or settings.FINNHUB_BASE_URL).rstrip("/")
        self._client = client
        self.use_cache = use_cache

    @classmethod
    def clear_cache(cls, symbol: str | None = None) -> None:
        """Drop cached snapshot(s)."""
        if symbol:
            cls._snapshot_cache.pop(symbol, None)
        else:
            cls._snapshot_cache.clear()

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.FINNHUB_TIMEOUT, connect=5.0),
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _get(self, path: str, **params: Any) -> Any:
        """GET ``{base_url}{path}`` and return parsed JSON. Raises on HTTP errors."""
        params["token"] = self.api_key
        resp = await self._get_client().get(f"{self.base_url}{path}", params=params)
        resp.raise_for_status()
        return resp.json()

    # ------------------------------------------------------------------
    # Analyst price targets
    # ------------------------------------------------------------------

    async def fetch_price_target(self, symbol: str) -> PriceTarget | None:
        """Institutional consensus for *symbol*, or None when unavailable."""
        if self.use_cache:
            cached = load_cached_price_target(symbol, PROVIDER, settings.PRICE_TARGET_CACHE_TTL)
            if cached:
                logger.debug("Price target for %s served from cache", symbol)
                return cached

        try:
            data = await self._get("/stock/price-target", symbol=symbol)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch price target for %s: %s", symbol, e)
            return None

        if not isinstance(data, dict) or not data:
            return None

        target = PriceTarget(
            symbol=symbol,
            target_mean=data.get("targetMean"),
            target_high=data.get("targetHigh"),
            target_low=data.get("targetLow"),
            target_median=data.get("targetMedian"),
            last_updated=data.get("lastUpdated"),
        )
        if self.use_cache:
            store_price_target(target, PROVIDER, raw=data)
        logger.info(
            "Price target for %s: mean=%s high=%s",
            symbol, target.target_mean, target.target_high,
        )
        return target

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def fetch_stock_data(self, symbol: str) -> StockSnapshot | None:
        """Build a StockSnapshot from quote + metrics + the last week of news."""
        if self.use_cache:
            hit = self._snapshot_cache.get(symbol)
            if hit and hit[0] > time.time():
                return hit[1]

        today = datetime.now().date()
        week_ago = today - timedelta(days=7)

        try:
            quote, metric_data, news = await asyncio.gather(
                self._get("/quote", symbol=symbol),
                self._get("/stock/metric", symbol=symbol, metric="all"),
                self._fetch_news(symbol, week_ago.isoformat(), today.isoformat()),
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Finnhub fetch error for %s: %s", symbol, e)
            return None

        price = quote.get("c") if isinstance(quote, dict) else None
        if not price:
            logger.warning("No quote for %s, skipping", symbol)
            return None

        try:
            snapshot = self._build_snapshot(symbol, quote, metric_data, news)
        except (ValidationError, TypeError, ValueError, AttributeError, OverflowError, OSError) as e:
            logger.warning("Malformed Finnhub data for %s, skipping: %s", symbol, e)
            return None

        if self.use_cache:
            self._snapshot_cache[symbol] = (time.time() + settings.QUOTE_CACHE_TTL, snapshot)
        return snapshot

    async def _fetch_news(self, symbol: str, start: str, end: str) -> list[dict]:
        """News is optional; an error here must not sink the snapshot."""
        try:
            data = await self._get("/company-news", symbol=symbol, **{"from": start, "to": end})
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("No news for %s: %s", symbol, e)
            return []
        return data if isinstance(data, list) else []

    @staticmethod
    def _build_snapshot(
        symbol: str,
        quote: dict,
        metric_data: dict,
        news: list[dict],
    ) -> StockSnapshot:
        """Map raw Finnhub payloads onto a snapshot. Missing metrics become 0."""
        m = (metric_data or {}).get("metric") or {}
        price = float(quote["c"])
        ma50 = m.get("50DayMovingAverage") or 0.0
        high_52w = m.get("52WeekHigh") or 0.0
        beta = m.get("beta")

        items = []
        for n in news[:3]:
            ts = n.get("datetime")
            items.append(NewsItem(
                headline=n.get("headline") or "",
                source=n.get("source") or "",
                url=n.get("url") or "",
                published_at=datetime.fromtimestamp(ts) if ts else None,
            ))

        return StockSnapshot(
            symbol=symbol,
            price=price,
            change_pct=quote.get("dp") or 0.0,
            returns=Returns(**{
                "1D": quote.get("dp") or 0.0,
                # Weekly proxy: average week of the 52-week return
                "1W": (m.get("52WeekPriceReturnDaily") or 0.0) / 52,
                "1M": m.get("1MonthPriceReturnDaily") or 0.0,
                "3M": m.get("3MonthPriceReturnDaily") or 0.0,
            }),
            trend=Trend(
                ma20=m.get("20DayMovingAverage") or 0.0,
                ma50=ma50,
                above_ma50=bool(ma50) and price > ma50,
            ),
            risk=RiskIndicators(
                vol20d=beta / 100 if beta else _VOLATILITY_FLOOR,
                max_drawdown_6m=-(high_52w - price) / high_52w if high_52w else 0.0,
            ),
            fundamentals=Fundamentals(
                pe_ttm=m.get("peBasicExclExtraTTM") or m.get("peExclExtraTTM") or 0.0,
                roe_ttm=_pct_to_fraction(m.get("roeTTM")),
                debt_to_equity=_pct_to_fraction(m.get("totalDebt/totalEquityTTM")),
                revenue_growth_ttm=_pct_to_fraction(m.get("revenueGrowthTTM")),
            ),
            news=tuple(items),
        )

    async def load_universe(
        self,
        symbols: list[str],
        batch_size: int = 3,
        pause: float = 0.5,
    ) -> list[StockSnapshot]:
        """Fetch snapshots in small batches; symbols that fail are skipped."""
        results: list[StockSnapshot] = []
        for i in range(0, len(symbols), batch_size):
            batch = symbols[i : i + batch_size]
            snaps = await asyncio.gather(*[self.fetch_stock_data(s) for s in batch])
            results.extend(s for s in snaps if s is not None)
            if i + batch_size < len(symbols) and pause > 0:
                await asyncio.sleep(pause)

        logger.info("Loaded %d/%d snapshots from Finnhub", len(results), len(symbols))
        return results

    # ------------------------------------------------------------------
    # Candles (dashboard charts)
    # ------------------------------------------------------------------

    async def fetch_candles(
        self,
        symbol: str,
        days: int = 30,
        resolution: str = "D",
    ) -> list[dict] | None:
        """Closing prices as ``[{"name": label, "value": close}, ...]``."""
        end = int(time.time())
        start = end - days * 24 * 60 * 60
        try:
            data = await self._get(
                "/stock/candle", symbol=symbol, resolution=resolution, **{"from": start, "to": end}
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch candles for %s: %s", symbol, e)
            return None

        if not isinstance(data, dict) or data.get("s") != "ok" or not data.get("t"):
            return None

        points = []
        for ts, close in zip(data["t"], data["c"]):
            d = datetime.fromtimestamp(ts)
            label = f"{d:%b} {d:%y}" if days > 365 else f"{d:%b} {d.day}"
            points.append({"name": label, "value": round(float(close), 2)})
        return points
