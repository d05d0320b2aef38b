"""Narrator: asks the LLM for the agents' debate and a chief strategist summary.

Narrative is decoration on top of the council result: if the LLM is
down or returns garbage, the brief ships with no debate and the default
summary.
"""

from __future__ import annotations

import json

import httpx
from pydantic import ValidationError

from council.engine.constants import AGENT_METADATA
from council.models.brief import Narrative
from council.models.council import AGENT_IDS, ActionItem, CouncilPick, Horizon
from council.models.market_data import StockSnapshot
from council.services.llm_service import LLMService
from council.utils.logger import logger

SYSTEM_PROMPT = """You are the Chief Strategist of an Investment Council.
The council has three members:
{members}

Respond ONLY with JSON of this shape:
{{
  "debate": [{{"agent_id": "momentum_v1" | "value_v1" | "quality_v1", "text": "...", "timestamp": "HH:MM"}}],
  "chief_summary": "..."
}}"""


class Narrator:
    """Turns a council result into a short debate and summary."""

    def __init__(self, llm: LLMService | None = None) -> None:
        self.llm = llm or LLMService()

    @staticmethod
    def build_prompt(
        horizon: Horizon,
        buy: list[CouncilPick],
        sell_or_avoid: list[ActionItem],
        universe: list[StockSnapshot],
    ) -> str:
        """User message: horizon, buy metrics and the sell/avoid list."""
        by_symbol = {s.symbol: s for s in universe}
        metric_lines = []
        for p in buy:
            s = by_symbol.get(p.symbol)
            if s is None:
                continue
            metric_lines.append(
                f"{p.symbol}: PE {s.fundamentals.pe_ttm:.1f}, "
                f"ROE {s.fundamentals.roe_ttm * 100:.1f}%, "
                f"3M Ret {s.returns.three_month:.1f}%"
            )
        sell_line = ", ".join(f"{a.symbol} ({a.reason})" for a in sell_or_avoid) or "none"

        return (
            f"Horizon: {horizon}\n\n"
            f"Candidates for BUY:\n" + "\n".join(metric_lines) + "\n\n"
            f"SELL/AVOID List:\n{sell_line}\n\n"
            "Task:\n"
            "1. Write a 4-message chat-style debate between the three members.\n"
            f"2. Members must use the PE, ROE and return figures above to challenge "
            f"or support the picks for a {horizon} horizon.\n"
            "3. Give a 2-sentence Chief Strategist summary of the outlook."
        )

    async def narrate(
        self,
        horizon: Horizon,
        buy: list[CouncilPick],
        sell_or_avoid: list[ActionItem],
        universe: list[StockSnapshot],
    ) -> Narrative:
        members = "\n".join(
            f"- {AGENT_METADATA[a]['name']} ({a}): {AGENT_METADATA[a]['description']}"
            for a in AGENT_IDS
        )
        try:
            raw = await self.llm.chat(
                system=SYSTEM_PROMPT.format(members=members),
                user=self.build_prompt(horizon, buy, sell_or_avoid, universe),
                response_format="json",
            )
            data = json.loads(LLMService.clean_json_response(raw))
            narrative = Narrative.model_validate(data)
        except (
            httpx.HTTPError,
            json.JSONDecodeError,
            ValidationError,
            KeyError,
            IndexError,
            TypeError,
            AttributeError,
        ) as e:
            logger.error("Council narrative failed for %s: %s", horizon, e)
            return Narrative()

        # Drop lines attributed to someone outside the council
        narrative.debate = [m for m in narrative.debate if m.agent_id in AGENT_IDS]
        return narrative
