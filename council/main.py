"""FastAPI application: council brief API."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from council.collectors.finnhub_collector import FinnhubCollector
from council.config import settings
from council.engine.constants import AGENT_METADATA, HORIZON_WEIGHTS, SECTOR_CLUSTERS
from council.engine.validation import CouncilError, normalize_horizon
from council.models.brief import DailyBrief
from council.models.council import AGENT_IDS, HORIZONS
from council.services.brief_service import BriefService, BriefUnavailableError
from council.services.llm_service import LLMService
from council.utils.logger import logger

app = FastAPI(
    title="Investment Council",
    description="Horizon-aware buy / sell-avoid briefs from a three-agent council",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Singleton services ──────────────────────────────────────────────
brief_service = BriefService()
candle_source = FinnhubCollector()


@app.get("/api/health")
async def health() -> dict:
    """Health check including LLM status."""
    llm_status = await LLMService().health_check() if settings.NARRATIVE_ENABLED else None
    return {"api": "ok", "llm": llm_status, "config": settings.get_public_config()}


@app.get("/api/brief", response_model=DailyBrief)
async def get_brief(
    horizon: str = Query(default="ONE_YEAR"),
    refresh: bool = Query(default=False),
) -> DailyBrief:
    """Today's brief for *horizon* (cached per day unless refresh=true)."""
    try:
        hz = normalize_horizon(horizon)
    except CouncilError as e:
        raise HTTPException(
            status_code=400, detail=f"horizon must be one of {', '.join(HORIZONS)}"
        ) from e

    logger.info("API: brief horizon=%s refresh=%s", hz, refresh)
    try:
        return await brief_service.get_brief(hz, refresh=refresh)
    except BriefUnavailableError as e:
        raise HTTPException(
            status_code=503, detail="Unable to produce a brief for this horizon."
        ) from e


@app.post("/api/brief/clear")
async def clear_briefs() -> dict:
    return {"cleared": brief_service.clear()}


@app.get("/api/agents")
async def agents() -> dict:
    """Council members, their weights per horizon and the sector clusters."""
    return {
        "agents": [{"id": a, **AGENT_METADATA[a]} for a in AGENT_IDS],
        "weights": {h: dict(row) for h, row in HORIZON_WEIGHTS.items()},
        "clusters": {name: sorted(symbols) for name, symbols in SECTOR_CLUSTERS.items()},
    }


@app.get("/api/candles/{symbol}")
async def candles(
    symbol: str,
    days: int = Query(default=30, ge=1, le=365 * 5),
    resolution: str = Query(default="D"),
) -> dict:
    """Closing-price series for the dashboard chart (Finnhub)."""
    symbol = symbol.upper().strip()
    points = await candle_source.fetch_candles(symbol, days=days, resolution=resolution)
    if points is None:
        raise HTTPException(status_code=404, detail=f"No candle data for {symbol}")
    return {"symbol": symbol, "points": points}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("council.main:app", host=settings.HOST, port=settings.PORT)
