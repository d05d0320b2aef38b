import os
import tempfile

# Route DuckDB and log files to a throwaway directory before council is imported
_test_dir = tempfile.mkdtemp(prefix="council_test_")
os.environ.setdefault("COUNCIL_DATA_DIR", os.path.join(_test_dir, "data"))
os.environ.setdefault("COUNCIL_LOGS_DIR", os.path.join(_test_dir, "logs"))
os.environ.setdefault("NARRATIVE_ENABLED", "false")

import pytest  # noqa: E402

from council.models.market_data import StockSnapshot  # noqa: E402


@pytest.fixture
def make_snapshot():
    """Factory for StockSnapshot with neutral defaults.

    Keyword groups map onto the nested models, e.g.
    ``make_snapshot("AAPL", returns={"3M": 30}, fundamentals={"roe_ttm": 0.3})``.
    """

    def _make(symbol: str = "TEST", price: float = 100.0, **parts) -> StockSnapshot:
        return StockSnapshot.model_validate({"symbol": symbol, "price": price, **parts})

    return _make


@pytest.fixture
def clean_price_targets():
    """Empty the cached price-target table around a test."""
    from council.database import clear_price_targets

    clear_price_targets()
    yield
    clear_price_targets()
