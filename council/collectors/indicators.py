"""Snapshot indicators from a daily close series: pure numpy, no I/O.

Returns are percent (3.2 = +3.2%); volatility and drawdown are fractions.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

# Trading days per lookback window
RETURN_WINDOWS: dict[str, int] = {"1D": 1, "1W": 5, "1M": 21, "3M": 63}
SIX_MONTHS = 126


def pct_return(closes: np.ndarray, days: int) -> float:
    """Percent change over the last *days* sessions (0.0 if history is short)."""
    if len(closes) <= days or closes[-days - 1] <= 0:
        return 0.0
    return float((closes[-1] / closes[-days - 1] - 1) * 100)


def window_returns(closes: Sequence[float]) -> dict[str, float]:
    arr = np.asarray(closes, dtype=float)
    return {label: pct_return(arr, days) for label, days in RETURN_WINDOWS.items()}


def moving_average(closes: Sequence[float], window: int) -> float:
    """Simple moving average of the last *window* closes (0.0 = not enough data)."""
    arr = np.asarray(closes, dtype=float)
    if len(arr) < window:
        return 0.0
    return float(np.mean(arr[-window:]))


def daily_volatility(closes: Sequence[float], window: int = 20) -> float:
    """Sample std-dev of the last *window* daily returns."""
    arr = np.asarray(closes, dtype=float)
    if len(arr) < 3:
        return 0.0
    recent = arr[-(window + 1):]
    returns = np.diff(recent) / recent[:-1]
    if len(returns) < 2:
        return 0.0
    return float(np.std(returns, ddof=1))


def max_drawdown(closes: Sequence[float], window: int = SIX_MONTHS) -> float:
    """Worst peak-to-trough decline over the last *window* closes (≤ 0)."""
    arr = np.asarray(closes, dtype=float)[-window:]
    if len(arr) == 0:
        return 0.0
    peak = np.maximum.accumulate(arr)
    dd = (arr - peak) / peak
    return float(np.min(dd))
