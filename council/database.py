"""DuckDB session management: caches analyst price targets between runs.

Only external lookups are stored here. Council picks are never persisted.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta

import duckdb

from council.config import settings
from council.models.market_data import PriceTarget
from council.utils.logger import logger

_connection: duckdb.DuckDBPyConnection | None = None


def get_db() -> duckdb.DuckDBPyConnection:
    """Return the singleton DuckDB connection, creating tables on first call."""
    global _connection  # noqa: PLW0603
    if _connection is None:
        db_path = str(settings.DB_PATH)
        logger.info("Opening DuckDB at %s", db_path)
        _connection = duckdb.connect(db_path)
        _init_tables(_connection)
    return _connection


def close_db() -> None:
    """Close the singleton connection (tests re-point DB_PATH between sessions)."""
    global _connection  # noqa: PLW0603
    if _connection is not None:
        _connection.close()
        _connection = None


def _init_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Create tables if they don't exist."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS price_targets (
            symbol         VARCHAR NOT NULL,
            provider       VARCHAR NOT NULL,
            fetched_at     TIMESTAMP NOT NULL,
            target_mean    DOUBLE,
            target_high    DOUBLE,
            target_low     DOUBLE,
            target_median  DOUBLE,
            last_updated   VARCHAR,
            raw_json       VARCHAR,
            PRIMARY KEY (symbol, provider)
        );
    """)


def load_cached_price_target(
    symbol: str,
    provider: str,
    ttl_seconds: int,
) -> PriceTarget | None:
    """Return the stored target for *symbol* if fetched within *ttl_seconds*."""
    cutoff = datetime.now() - timedelta(seconds=ttl_seconds)
    row = get_db().execute(
        """SELECT symbol, target_mean, target_high, target_low, target_median, last_updated
           FROM price_targets
           WHERE symbol = ? AND provider = ? AND fetched_at >= ?""",
        [symbol, provider, cutoff],
    ).fetchone()
    if not row:
        return None
    return PriceTarget(
        symbol=row[0],
        target_mean=row[1],
        target_high=row[2],
        target_low=row[3],
        target_median=row[4],
        last_updated=row[5],
    )


def store_price_target(target: PriceTarget, provider: str, raw: object = None) -> None:
    """Upsert one fetched target."""
    get_db().execute(
        """
        INSERT OR REPLACE INTO price_targets
            (symbol, provider, fetched_at, target_mean, target_high,
             target_low, target_median, last_updated, raw_json)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            target.symbol, provider, datetime.now(), target.target_mean,
            target.target_high, target.target_low, target.target_median,
            target.last_updated, json.dumps(raw, default=str) if raw is not None else None,
        ],
    )


def clear_price_targets(provider: str | None = None) -> int:
    """Delete cached targets; returns the number of rows removed."""
    db = get_db()
    if provider:
        count = db.execute(
            "SELECT COUNT(*) FROM price_targets WHERE provider = ?", [provider]
        ).fetchone()[0]
        db.execute("DELETE FROM price_targets WHERE provider = ?", [provider])
    else:
        count = db.execute("SELECT COUNT(*) FROM price_targets").fetchone()[0]
        db.execute("DELETE FROM price_targets")
    return int(count)
