"""Tests for the brief service, the narrator and the HTTP API."""

from __future__ import annotations

import json
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from council.models.brief import DEFAULT_SUMMARY, DailyBrief, Narrative
from council.models.council import ActionItem, CouncilPick
from council.services.brief_service import BriefService, BriefUnavailableError
from council.services.llm_service import LLMService
from council.services.narrator import Narrator


def _collector(stocks, target=None):
    collector = MagicMock()
    collector.load_universe = AsyncMock(return_value=stocks)
    collector.fetch_price_target = AsyncMock(return_value=target)
    return collector


@pytest.fixture
def stocks(make_snapshot):
    return [
        make_snapshot("AAPL", returns={"3M": 20}, fundamentals={"pe_ttm": 12, "roe_ttm": 0.3}),
        make_snapshot("JPM", fundamentals={"pe_ttm": 11, "roe_ttm": 0.15}),
        make_snapshot("TSLA", price=90, trend={"ma50": 100}, fundamentals={"pe_ttm": 70}),
    ]


# ══════════════════════════════════════════════════════════════════════
# 1.  BriefService
# ══════════════════════════════════════════════════════════════════════


class TestBriefService:
    @pytest.mark.asyncio
    async def test_builds_brief_without_narrative(self, stocks):
        collector = _collector(stocks)
        svc = BriefService(collector=collector, universe=["AAPL", "JPM", "TSLA"], narrative_enabled=False)

        brief = await svc.get_brief("one_year")

        assert brief.horizon == "ONE_YEAR"
        assert {p.symbol for p in brief.buy5} == {"AAPL", "JPM", "TSLA"}
        assert brief.chief_summary == DEFAULT_SUMMARY
        assert brief.debate == []
        collector.load_universe.assert_awaited_once_with(["AAPL", "JPM", "TSLA"])
        assert collector.fetch_price_target.await_count == 3

    @pytest.mark.asyncio
    async def test_cached_per_day_and_horizon(self, stocks):
        collector = _collector(stocks)
        svc = BriefService(collector=collector, universe=["AAPL"], narrative_enabled=False)

        first = await svc.get_brief("ONE_YEAR")
        second = await svc.get_brief("ONE_YEAR")
        await svc.get_brief("INTRADAY")

        assert first is second
        assert collector.load_universe.await_count == 2
        assert svc.cached("ONE_YEAR") is first

    @pytest.mark.asyncio
    async def test_refresh_rebuilds(self, stocks):
        collector = _collector(stocks)
        svc = BriefService(collector=collector, universe=["AAPL"], narrative_enabled=False)

        first = await svc.get_brief("ONE_YEAR")
        second = await svc.get_brief("ONE_YEAR", refresh=True)

        assert first is not second
        assert collector.load_universe.await_count == 2

    @pytest.mark.asyncio
    async def test_clear(self, stocks):
        svc = BriefService(collector=_collector(stocks), universe=["AAPL"], narrative_enabled=False)
        await svc.get_brief("ONE_YEAR")
        await svc.get_brief("THREE_YEAR")
        assert svc.clear() == 2
        assert svc.cached("ONE_YEAR") is None

    @pytest.mark.asyncio
    async def test_empty_universe_unavailable(self):
        svc = BriefService(collector=_collector([]), universe=["AAPL"], narrative_enabled=False)
        with pytest.raises(BriefUnavailableError, match="ONE_YEAR"):
            await svc.get_brief("ONE_YEAR")

    @pytest.mark.asyncio
    async def test_universe_load_error_unavailable(self):
        collector = MagicMock()
        collector.load_universe = AsyncMock(side_effect=TypeError("bad payload"))
        svc = BriefService(collector=collector, universe=["AAPL"], narrative_enabled=False)
        with pytest.raises(BriefUnavailableError):
            await svc.get_brief("ONE_YEAR")

    @pytest.mark.asyncio
    async def test_previous_days_dropped(self, stocks):
        svc = BriefService(collector=_collector(stocks), universe=["AAPL"], narrative_enabled=False)
        yesterday = date.today() - timedelta(days=1)
        svc._cache[(yesterday, "ONE_YEAR")] = DailyBrief(horizon="ONE_YEAR")

        await svc.get_brief("INTRADAY")

        assert svc.cached("ONE_YEAR", yesterday) is None
        assert svc.cached("INTRADAY") is not None

    @pytest.mark.asyncio
    async def test_bad_horizon_unavailable(self, stocks):
        svc = BriefService(collector=_collector(stocks), universe=["AAPL"], narrative_enabled=False)
        with pytest.raises(BriefUnavailableError):
            await svc.get_brief("DECADE")

    @pytest.mark.asyncio
    async def test_narrative_attached(self, stocks):
        narrator = MagicMock()
        narrator.narrate = AsyncMock(return_value=Narrative(chief_summary="Stay long quality."))
        svc = BriefService(
            collector=_collector(stocks), narrator=narrator, universe=["AAPL"], narrative_enabled=True
        )
        brief = await svc.get_brief("THREE_YEAR")
        assert brief.chief_summary == "Stay long quality."
        narrator.narrate.assert_awaited_once()


# ══════════════════════════════════════════════════════════════════════
# 2.  Narrator + JSON cleanup
# ══════════════════════════════════════════════════════════════════════


def _pick(symbol: str) -> CouncilPick:
    return CouncilPick(
        symbol=symbol, score=0.8, confidence=70, consensus_count=2,
        target_price=110.0, projected_return=10.0, prediction_methodology="test",
    )


class TestNarrator:
    def test_prompt_contains_metrics(self, stocks):
        sell = [ActionItem(symbol="TSLA", action="SELL", reason="Trend broken.", priority="HIGH")]
        prompt = Narrator.build_prompt("ONE_YEAR", [_pick("AAPL")], sell, stocks)
        assert "Horizon: ONE_YEAR" in prompt
        assert "AAPL: PE 12.0, ROE 30.0%, 3M Ret 20.0%" in prompt
        assert "TSLA (Trend broken.)" in prompt

    @pytest.mark.asyncio
    async def test_parses_debate_and_drops_outsiders(self, stocks):
        reply = "```json\n" + json.dumps({
            "debate": [
                {"agent_id": "momentum_v1", "text": "AAPL is flying.", "timestamp": "09:30"},
                {"agent_id": "intruder", "text": "Buy crypto.", "timestamp": "09:31"},
                {"agent_id": "value_v1", "text": "P/E still fair.", "timestamp": None},
            ],
            "chief_summary": "Quality leads.",
        }) + "\n```"
        llm = MagicMock()
        llm.chat = AsyncMock(return_value=reply)

        narrative = await Narrator(llm=llm).narrate("ONE_YEAR", [_pick("AAPL")], [], stocks)

        assert [m.agent_id for m in narrative.debate] == ["momentum_v1", "value_v1"]
        assert narrative.debate[1].timestamp == ""
        assert narrative.chief_summary == "Quality leads."

    @pytest.mark.asyncio
    async def test_llm_down_falls_back(self, stocks):
        llm = MagicMock()
        llm.chat = AsyncMock(side_effect=httpx.ConnectError("refused"))
        narrative = await Narrator(llm=llm).narrate("ONE_YEAR", [], [], stocks)
        assert narrative.debate == []
        assert narrative.chief_summary == DEFAULT_SUMMARY

    @pytest.mark.asyncio
    async def test_garbage_falls_back(self, stocks):
        llm = MagicMock()
        llm.chat = AsyncMock(return_value="I am not JSON")
        narrative = await Narrator(llm=llm).narrate("ONE_YEAR", [], [], stocks)
        assert narrative.chief_summary == DEFAULT_SUMMARY

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "provider, body",
        [
            ("lmstudio", {"choices": []}),
            ("lmstudio", {"choices": [{"message": None}]}),
            ("ollama", {"message": None}),
        ],
    )
    async def test_malformed_llm_reply_falls_back(self, stocks, provider, body):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        )
        with patch(
            "council.services.llm_service._get_shared_client", AsyncMock(return_value=client)
        ):
            narrative = await Narrator(LLMService(provider=provider)).narrate(
                "ONE_YEAR", [_pick("AAPL")], [], stocks
            )
        assert narrative.debate == []
        assert narrative.chief_summary == DEFAULT_SUMMARY

    def test_clean_json_response(self):
        raw = 'Sure! ```json\n{"a": "brace } inside", "b": {"c": 1}}\n``` trailing'
        assert json.loads(LLMService.clean_json_response(raw)) == {"a": "brace } inside", "b": {"c": 1}}

    def test_empty_summary_defaults(self):
        assert Narrative(chief_summary="").chief_summary == DEFAULT_SUMMARY


# ══════════════════════════════════════════════════════════════════════
# 3.  HTTP API
# ══════════════════════════════════════════════════════════════════════


class TestAPI:
    @pytest.fixture
    def client(self):
        from council.main import app

        return TestClient(app)

    def test_agents(self, client):
        resp = client.get("/api/agents")
        assert resp.status_code == 200
        body = resp.json()
        assert [a["id"] for a in body["agents"]] == ["momentum_v1", "value_v1", "quality_v1"]
        assert body["weights"]["INTRADAY"]["momentum_v1"] == 0.7
        assert "JPM" in body["clusters"]["Financials"]

    def test_brief(self, client):
        brief = DailyBrief(horizon="ONE_YEAR", buy5=[_pick("AAPL")])
        with patch("council.main.brief_service") as svc:
            svc.get_brief = AsyncMock(return_value=brief)
            resp = client.get("/api/brief", params={"horizon": "one_year", "refresh": "true"})

        assert resp.status_code == 200
        assert resp.json()["buy5"][0]["symbol"] == "AAPL"
        svc.get_brief.assert_awaited_once_with("ONE_YEAR", refresh=True)

    def test_brief_bad_horizon(self, client):
        resp = client.get("/api/brief", params={"horizon": "WEEKLY"})
        assert resp.status_code == 400

    def test_brief_horizon_whitespace(self, client):
        brief = DailyBrief(horizon="THREE_YEAR")
        with patch("council.main.brief_service") as svc:
            svc.get_brief = AsyncMock(return_value=brief)
            resp = client.get("/api/brief", params={"horizon": " three_year "})
        assert resp.status_code == 200
        svc.get_brief.assert_awaited_once_with("THREE_YEAR", refresh=False)

    def test_brief_unavailable(self, client):
        with patch("council.main.brief_service") as svc:
            svc.get_brief = AsyncMock(side_effect=BriefUnavailableError("ONE_YEAR"))
            resp = client.get("/api/brief")
        assert resp.status_code == 503
        assert resp.json()["detail"] == "Unable to produce a brief for this horizon."

    def test_clear(self, client):
        with patch("council.main.brief_service") as svc:
            svc.clear.return_value = 3
            resp = client.post("/api/brief/clear")
        assert resp.json() == {"cleared": 3}

    def test_candles_not_found(self, client):
        with patch("council.main.candle_source") as src:
            src.fetch_candles = AsyncMock(return_value=None)
            resp = client.get("/api/candles/zzzz")
        assert resp.status_code == 404
        src.fetch_candles.assert_awaited_once_with("ZZZZ", days=30, resolution="D")

    def test_candles(self, client):
        points = [{"name": "May 1", "value": 170.0}]
        with patch("council.main.candle_source") as src:
            src.fetch_candles = AsyncMock(return_value=points)
            resp = client.get("/api/candles/aapl", params={"days": 7})
        assert resp.json() == {"symbol": "AAPL", "points": points}
