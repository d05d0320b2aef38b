"""Pick the market-data collector from settings."""

from __future__ import annotations

from council.collectors.finnhub_collector import FinnhubCollector
from council.collectors.yfinance_collector import YFinanceCollector
from council.config import settings
from council.utils.logger import logger

MarketCollector = FinnhubCollector | YFinanceCollector


def build_collector(kind: str | None = None) -> MarketCollector:
    """Return the collector for *kind* ("finnhub" | "yfinance").

    Finnhub without an API key falls back to yfinance.
    """
    mode = (kind or settings.DATA_PROVIDER).strip().lower()
    if mode == "finnhub":
        if not settings.FINNHUB_API_KEY:
            logger.warning("FINNHUB_API_KEY not set, using yfinance collector")
            return YFinanceCollector()
        return FinnhubCollector()
    if mode == "yfinance":
        return YFinanceCollector()
    raise ValueError(f"Unsupported data provider: {kind}")
