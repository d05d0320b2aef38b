"""Application configuration: environment variables and defaults.

Data provider keys, LLM provider URLs and runtime paths live HERE.
Static engine data (weights, sector clusters) lives in
``council.engine.constants``.
"""

import os
from pathlib import Path


def _env_list(name: str, default: str) -> list[str]:
    """Read a comma-separated env var into a list of upper-case symbols."""
    raw = os.getenv(name, default)
    return [s.strip().upper() for s in raw.split(",") if s.strip()]


class Settings:
    """Central configuration pulled from environment with safe defaults."""

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = Path(os.getenv("COUNCIL_DATA_DIR", str(BASE_DIR / "data")))
    LOGS_DIR: Path = Path(os.getenv("COUNCIL_LOGS_DIR", str(BASE_DIR / "logs")))

    # Logging: console level and how many per-run log files to keep
    LOG_LEVEL: str = os.getenv("COUNCIL_LOG_LEVEL", "INFO").upper()
    LOG_KEEP_RUNS: int = int(os.getenv("COUNCIL_LOG_KEEP_RUNS", "10"))

    # Database (price-target cache only; picks are never persisted)
    DB_PATH: Path = DATA_DIR / "council.duckdb"

    # ── Market data ───────────────────────────────────────────────
    # Which provider loads the universe: "finnhub" | "yfinance"
    DATA_PROVIDER: str = os.getenv("DATA_PROVIDER", "finnhub")
    FINNHUB_BASE_URL: str = os.getenv("FINNHUB_BASE_URL", "https://finnhub.io/api/v1")
    FINNHUB_API_KEY: str = os.getenv("FINNHUB_API_KEY", "")
    FINNHUB_TIMEOUT: float = float(os.getenv("FINNHUB_TIMEOUT", "10.0"))

    UNIVERSE: list[str] = _env_list(
        "UNIVERSE",
        "AAPL,MSFT,GOOGL,AMZN,NVDA,META,TSLA,V,JPM,AVGO,COST,LLY",
    )

    # Concurrent price-target lookups per council run
    PRICE_TARGET_CONCURRENCY: int = int(os.getenv("PRICE_TARGET_CONCURRENCY", "4"))
    # Seconds a stored price target stays fresh
    PRICE_TARGET_CACHE_TTL: int = int(os.getenv("PRICE_TARGET_CACHE_TTL", "3600"))
    # Seconds an in-process stock snapshot stays fresh
    QUOTE_CACHE_TTL: int = int(os.getenv("QUOTE_CACHE_TTL", "60"))

    # ── LLM Provider URLs (narrative brief) ───────────────────────
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    LMSTUDIO_URL: str = os.getenv("LMSTUDIO_URL", "http://localhost:1234")

    # Which provider to use: "ollama" | "lmstudio"
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "ollama")

    LLM_MODEL: str = os.getenv("LLM_MODEL", "gemma3:27b")
    LLM_CONTEXT_SIZE: int = int(os.getenv("LLM_CONTEXT_SIZE", "8192"))
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.3"))

    # OpenAI-compatible API key (LM Studio usually doesn't need one)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")

    # Skip the debate/summary LLM call entirely
    NARRATIVE_ENABLED: bool = os.getenv("NARRATIVE_ENABLED", "true").lower() == "true"

    @property
    def LLM_BASE_URL(self) -> str:
        """Computed: returns the active provider URL based on LLM_PROVIDER."""
        if self.LLM_PROVIDER == "lmstudio":
            return self.LMSTUDIO_URL.rstrip("/")
        return self.OLLAMA_URL.rstrip("/")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    def __init__(self) -> None:
        """Ensure runtime directories exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    def get_public_config(self) -> dict:
        """Return non-secret settings for the health endpoint."""
        return {
            "data_provider": self.DATA_PROVIDER,
            "finnhub_key_set": bool(self.FINNHUB_API_KEY),
            "universe": list(self.UNIVERSE),
            "price_target_concurrency": self.PRICE_TARGET_CONCURRENCY,
            "llm_provider": self.LLM_PROVIDER,
            "llm_model": self.LLM_MODEL,
            "llm_base_url": self.LLM_BASE_URL,
            "narrative_enabled": self.NARRATIVE_ENABLED,
        }


settings = Settings()
