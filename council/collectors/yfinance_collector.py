"""yFinance collector: snapshots computed from daily history, plus analyst targets.

Used when DATA_PROVIDER=yfinance or no Finnhub key is configured.
yfinance is synchronous, so every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import pandas as pd
import yfinance as yf
from pydantic import ValidationError

from council.collectors.indicators import (
    daily_volatility,
    max_drawdown,
    moving_average,
    window_returns,
)
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

PROVIDER = "yfinance"


def _num(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


class YFinanceCollector:
    """Builds council inputs from yfinance."""

    # ------------------------------------------------------------------
    # Ticker cache: avoid creating a new yf.Ticker per method call
    # ------------------------------------------------------------------
    _ticker_cache: dict[str, yf.Ticker] = {}

    def __init__(self, use_cache: bool = True) -> None:
        self.use_cache = use_cache

    @classmethod
    def _get_ticker(cls, symbol: str) -> yf.Ticker:
        """Return a cached yf.Ticker, creating one on first access."""
        if symbol not in cls._ticker_cache:
            cls._ticker_cache[symbol] = yf.Ticker(symbol)
        return cls._ticker_cache[symbol]

    @classmethod
    def clear_cache(cls, symbol: str | None = None) -> None:
        if symbol:
            cls._ticker_cache.pop(symbol, None)
        else:
            cls._ticker_cache.clear()

    # ------------------------------------------------------------------
    # Analyst price targets
    # ------------------------------------------------------------------

    async def fetch_price_target(self, symbol: str) -> PriceTarget | None:
        """Analyst mean/high targets for *symbol*, or None when unavailable."""
        if self.use_cache:
            cached = load_cached_price_target(symbol, PROVIDER, settings.PRICE_TARGET_CACHE_TTL)
            if cached:
                return cached

        try:
            targets = await asyncio.to_thread(lambda: self._get_ticker(symbol).analyst_price_targets)
        except Exception as e:
            logger.warning("Could not fetch analyst targets for %s: %s", symbol, e)
            return None

        if isinstance(targets, pd.DataFrame):
            targets = targets.iloc[0].to_dict() if not targets.empty else None
        if not targets or not isinstance(targets, dict):
            return None

        target = PriceTarget(
            symbol=symbol,
            target_mean=targets.get("mean"),
            target_high=targets.get("high"),
            target_low=targets.get("low"),
            target_median=targets.get("median"),
        )
        if self.use_cache:
            store_price_target(target, PROVIDER, raw=targets)
        return target

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def fetch_stock_data(self, symbol: str) -> StockSnapshot | None:
        try:
            hist, info, news = await asyncio.to_thread(self._download, symbol)
        except Exception as e:
            logger.error("yfinance fetch error for %s: %s", symbol, e)
            return None

        if hist is None or hist.empty or "Close" not in hist.columns:
            logger.warning("Empty price history for %s, skipping", symbol)
            return None

        closes = hist["Close"].dropna().astype(float).tolist()
        if not closes:
            return None
        try:
            return self.build_snapshot(symbol, closes, info, news)
        except (ValidationError, TypeError, ValueError, AttributeError, OverflowError, OSError) as e:
            logger.warning("Malformed yfinance data for %s, skipping: %s", symbol, e)
            return None

    def _download(self, symbol: str) -> tuple[pd.DataFrame, dict, list]:
        """Blocking yfinance calls, run in a worker thread."""
        t = self._get_ticker(symbol)
        hist = t.history(period="6mo", interval="1d", auto_adjust=True)
        try:
            info = t.info or {}
        except Exception as e:
            logger.warning("No .info for %s: %s", symbol, e)
            info = {}
        try:
            news = t.news or []
        except Exception:
            news = []
        return hist, info, news

    @staticmethod
    def build_snapshot(
        symbol: str,
        closes: list[float],
        info: dict,
        news: list[dict],
    ) -> StockSnapshot:
        """Derive trend / risk indicators from *closes* and map fundamentals."""
        price = closes[-1]
        ma50 = moving_average(closes, 50)
        returns = window_returns(closes)

        items = []
        for n in news[:3]:
            # Newer yfinance releases nest the article under "content"
            content = n.get("content") or n
            provider = content.get("provider")
            source = (
                provider.get("displayName", "") if isinstance(provider, dict)
                else str(content.get("publisher") or "")
            )
            link = content.get("canonicalUrl")
            url = link.get("url", "") if isinstance(link, dict) else str(content.get("link") or "")
            published = content.get("pubDate") or content.get("providerPublishTime")
            if isinstance(published, (int, float)):
                published = datetime.fromtimestamp(published)
            items.append(NewsItem(
                headline=content.get("title") or "",
                source=source,
                url=url,
                published_at=published or None,
            ))

        return StockSnapshot(
            symbol=symbol,
            price=price,
            change_pct=returns["1D"],
            returns=Returns(**returns),
            trend=Trend(
                ma20=moving_average(closes, 20),
                ma50=ma50,
                above_ma50=bool(ma50) and price > ma50,
            ),
            risk=RiskIndicators(
                vol20d=daily_volatility(closes, 20),
                max_drawdown_6m=max_drawdown(closes),
            ),
            fundamentals=Fundamentals(
                pe_ttm=_num(info.get("trailingPE")),
                roe_ttm=_num(info.get("returnOnEquity")),
                # yfinance reports debt/equity in percent
                debt_to_equity=_num(info.get("debtToEquity")) / 100,
                revenue_growth_ttm=_num(info.get("revenueGrowth")),
            ),
            news=tuple(items),
        )

    async def load_universe(self, symbols: list[str]) -> list[StockSnapshot]:
        snaps = await asyncio.gather(*[self.fetch_stock_data(s) for s in symbols])
        results = [s for s in snaps if s is not None]
        logger.info("Loaded %d/%d snapshots from yfinance", len(results), len(symbols))
        return results
