"""Market data models: stock snapshots, news items, analyst price targets."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _zero_if_missing(v: object) -> float:
    """Data feeds return null or junk for absent metrics; treat as 0.0."""
    if v is None:
        return 0.0
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


class Returns(BaseModel):
    """Percent price returns keyed by lookback window ("1D", "1W", "1M", "3M")."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    one_day: float = Field(default=0.0, alias="1D")
    one_week: float = Field(default=0.0, alias="1W")
    one_month: float = Field(default=0.0, alias="1M")
    three_month: float = Field(default=0.0, alias="3M")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: object) -> float:
        return _zero_if_missing(v)

    def window(self, key: str) -> float:
        """Look up a return by its window label, e.g. ``"3M"``."""
        for name, field in type(self).model_fields.items():
            if field.alias == key:
                return getattr(self, name)
        raise KeyError(key)


class Trend(BaseModel):
    """Moving-average trend indicators. A zero MA means "not available"."""

    model_config = ConfigDict(frozen=True)

    ma20: float = 0.0
    ma50: float = 0.0
    above_ma50: bool = False

    @field_validator("ma20", "ma50", mode="before")
    @classmethod
    def _coerce_ma(cls, v: object) -> float:
        return _zero_if_missing(v)

    @field_validator("above_ma50", mode="before")
    @classmethod
    def _coerce_flag(cls, v: object) -> bool:
        return bool(v) if v is not None else False


class RiskIndicators(BaseModel):
    """20-day daily volatility and the worst 6-month drawdown (negative)."""

    model_config = ConfigDict(frozen=True)

    vol20d: float = 0.0
    max_drawdown_6m: float = 0.0

    @field_validator("vol20d", "max_drawdown_6m", mode="before")
    @classmethod
    def _coerce(cls, v: object) -> float:
        return _zero_if_missing(v)


class Fundamentals(BaseModel):
    """Trailing fundamentals. Ratios are fractions (ROE 0.22 = 22%)."""

    model_config = ConfigDict(frozen=True)

    pe_ttm: float = 0.0
    roe_ttm: float = 0.0
    debt_to_equity: float = 0.0
    revenue_growth_ttm: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: object) -> float:
        return _zero_if_missing(v)


class NewsItem(BaseModel):
    """A recent headline attached to a snapshot."""

    model_config = ConfigDict(frozen=True)

    headline: str = ""
    source: str = ""
    url: str = ""
    published_at: datetime | None = None


class StockSnapshot(BaseModel):
    """Point-in-time view of one stock, the only input the council scores."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(min_length=1)
    price: float = Field(gt=0.0)
    change_pct: float = 0.0
    ts: datetime = Field(default_factory=datetime.now)
    returns: Returns = Field(default_factory=Returns)
    trend: Trend = Field(default_factory=Trend)
    risk: RiskIndicators = Field(default_factory=RiskIndicators)
    fundamentals: Fundamentals = Field(default_factory=Fundamentals)
    news: tuple[NewsItem, ...] = ()

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("change_pct", mode="before")
    @classmethod
    def _coerce_change(cls, v: object) -> float:
        return _zero_if_missing(v)


class PriceTarget(BaseModel):
    """Institutional analyst consensus for one symbol.

    Every field is optional: a missing or non-positive value means
    "no data" and sends the target-price model to its fallback formula.
    """

    symbol: str
    target_mean: float | None = None
    target_high: float | None = None
    target_low: float | None = None
    target_median: float | None = None
    last_updated: str | None = None

    @field_validator(
        "target_mean", "target_high", "target_low", "target_median", mode="before"
    )
    @classmethod
    def _drop_junk(cls, v: object) -> float | None:
        if v is None:
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @property
    def has_data(self) -> bool:
        return bool(self.target_mean and self.target_mean > 0) or bool(
            self.target_high and self.target_high > 0
        )
