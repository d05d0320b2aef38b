"""Input checks for a council run: reject the whole run, never score half of it."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pydantic import ValidationError

from council.models.council import HORIZONS, Horizon
from council.models.market_data import StockSnapshot


class CouncilError(ValueError):
    """Base error for the decision engine."""


class SnapshotValidationError(CouncilError):
    """A snapshot lacks the symbol or price every formula depends on."""


def normalize_horizon(horizon: str) -> Horizon:
    """Accept any casing of a known horizon, e.g. ``"one_year"``."""
    value = str(horizon).strip().upper()
    if value not in HORIZONS:
        raise CouncilError(f"Unknown horizon {horizon!r}; expected one of {', '.join(HORIZONS)}")
    return value  # type: ignore[return-value]


def coerce_snapshots(items: Iterable[StockSnapshot | Mapping]) -> list[StockSnapshot]:
    """Validate raw dicts / snapshots into an ordered list of StockSnapshot.

    Raises SnapshotValidationError on the first malformed entry or on a
    duplicated symbol.
    """
    snapshots: list[StockSnapshot] = []
    seen: set[str] = set()

    for i, item in enumerate(items):
        if isinstance(item, StockSnapshot):
            snap = item
        else:
            try:
                snap = StockSnapshot.model_validate(item)
            except ValidationError as e:
                label = item.get("symbol") if isinstance(item, Mapping) else None
                raise SnapshotValidationError(
                    f"Snapshot #{i} ({label or 'no symbol'}) is malformed: "
                    f"{e.error_count()} error(s), first: {e.errors()[0]['msg']}"
                ) from e

        # model_construct() skips validation, so check the essentials again
        if not snap.symbol:
            raise SnapshotValidationError(f"Snapshot #{i} has no symbol")
        if snap.price is None or snap.price <= 0:
            raise SnapshotValidationError(
                f"Snapshot #{i} ({snap.symbol}) has no usable price: {snap.price!r}"
            )
        if snap.symbol in seen:
            raise SnapshotValidationError(f"Duplicate snapshot for {snap.symbol}")

        seen.add(snap.symbol)
        snapshots.append(snap)

    return snapshots
