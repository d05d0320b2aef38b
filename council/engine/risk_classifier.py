"""Risk classifier: SELL / AVOID calls for everything outside the buy-list.

  • INTRADAY    →  SELL when price is under a known 50-day MA
  • ONE_YEAR    →  SELL when price is under a known 50-day MA
  • THREE_YEAR  →  SELL when trailing ROE is under 8%
  • otherwise   →  AVOID (relative weakness)

The list keeps snapshot order and is cut to ``max_actions`` after
classification, so a SELL past the cut can lose its slot to an earlier
AVOID.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from council.engine.constants import MAX_ACTIONS
from council.models.council import ActionItem, CouncilPick, Horizon
from council.models.market_data import StockSnapshot
from council.utils.logger import logger

MIN_LONG_TERM_ROE = 0.08

AVOID_REASON = "Relative weakness compared to top Council leaders."


class RiskClassifier:
    """Labels non-picked stocks for one horizon."""

    def __init__(self, max_actions: int = MAX_ACTIONS) -> None:
        self.max_actions = max_actions

    def classify(
        self,
        stocks: Sequence[StockSnapshot],
        buy: Iterable[CouncilPick],
        horizon: Horizon,
    ) -> list[ActionItem]:
        picked = {p.symbol for p in buy}
        items = [self.classify_one(s, horizon) for s in stocks if s.symbol not in picked]
        if len(items) > self.max_actions:
            logger.info(
                "[RiskClassifier] Truncating %d action items to %d",
                len(items), self.max_actions,
            )
        return items[: self.max_actions]

    @staticmethod
    def classify_one(stock: StockSnapshot, horizon: Horizon) -> ActionItem:
        ma50 = stock.trend.ma50
        below_ma50 = ma50 > 0 and stock.price < ma50
        reason: str | None = None

        if horizon == "INTRADAY":
            if below_ma50:
                reason = "Price below 50-Day Moving Average; intraday trend is bearish."
        elif horizon == "ONE_YEAR":
            if below_ma50:
                reason = "Long-term trend proxy (MA50) broken; risk of further distribution."
        elif stock.fundamentals.roe_ttm < MIN_LONG_TERM_ROE:
            reason = "Capital efficiency (ROE < 8%) is insufficient for long-term compounding."

        if reason is None:
            return ActionItem(
                symbol=stock.symbol, action="AVOID", reason=AVOID_REASON, priority="MEDIUM",
            )
        return ActionItem(symbol=stock.symbol, action="SELL", reason=reason, priority="HIGH")
