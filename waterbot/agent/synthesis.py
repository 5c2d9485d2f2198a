"""
Risk synthesis: fuse specialist outputs into a Low/Medium/High water-shortage verdict.

Stage one (RiskAssessmentAgent) asks the model for a strict JSON object and
runs it through repair + schema validation; an unusable reply is a
SynthesisParseError, never a default risk level. Stage two
(WaterShortageForecastAgent) records which sources were available, invokes
stage one, and renders the reply text.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from waterbot.agent.llm import CompletionService
from waterbot.core.errors import SynthesisParseError
from waterbot.core.json_repair import parse_json_object
from waterbot.core.result import AgentResult, Failure, Success
from waterbot.schemas.agent import Forecast, RiskAssessment

logger = logging.getLogger(__name__)

RISK_SYSTEM = """You are a water-security analyst. Assess the risk of water shortage for a location
using ONLY the weather, news, and climate data provided.

Return ONLY a JSON object with exactly these keys:
- "risk": one of "Low", "Medium", "High"
- "summary": one or two sentences for the user
- "reasoning": a short explanation of how the data supports the risk level
- "sources": an array of URLs taken from the provided data

Do not add any commentary, markdown, or code fences outside the JSON object."""

_SOURCE_LABELS = (("weather", "Weather data"), ("news", "News search"), ("climate", "Climate research"))


def _payload(result: AgentResult | None) -> Any:
    if result is None:
        return None
    if not result.ok:
        return {"unavailable": result.error}
    data = result.data
    if hasattr(data, "model_dump"):
        return data.model_dump()
    return data


class RiskAssessmentAgent:
    def __init__(self, llm: CompletionService) -> None:
        self.llm = llm

    def build_prompt(self, location: str, weather: AgentResult, news: AgentResult, climate: AgentResult) -> str:
        data = {
            "location": location,
            "weather": _payload(weather),
            "news": _payload(news),
            "climate": _payload(climate),
        }
        return f"Location: {location}\n\nCollected data (JSON):\n{json.dumps(data, indent=2, default=str)}"

    @staticmethod
    def parse(raw: str) -> RiskAssessment:
        """Repair, parse, and validate model output. Raises SynthesisParseError."""
        try:
            return RiskAssessment.model_validate(parse_json_object(raw))
        except (ValueError, ValidationError) as e:
            raise SynthesisParseError(f"Risk assessment output was not valid: {e}") from e

    async def run(self, location: str, weather: AgentResult, news: AgentResult, climate: AgentResult) -> AgentResult:
        logger.info("[risk_assessment] IN  location=%r", location)
        messages = [
            {"role": "system", "content": RISK_SYSTEM},
            {"role": "user", "content": self.build_prompt(location, weather, news, climate)},
        ]
        try:
            raw = await self.llm.complete(messages)
            logger.info("[risk_assessment] llm_raw=%r", raw[:500])
            assessment = self.parse(raw)
        except Exception as e:
            logger.warning("[risk_assessment] failed: %s", e)
            return Failure.from_exception(e)
        logger.info("[risk_assessment] OUT risk=%s sources=%d", assessment.risk, len(assessment.sources))
        return Success(assessment)


def data_collection_log(weather: AgentResult | None, news: AgentResult | None, climate: AgentResult | None) -> str:
    results = {"weather": weather, "news": news, "climate": climate}
    lines = ["Data Collection:"]
    for key, label in _SOURCE_LABELS:
        result = results[key]
        if result is None:
            lines.append(f"- {label}: not requested")
        elif result.ok:
            lines.append(f"- {label}: available")
        else:
            lines.append(f"- {label}: unavailable ({result.error})")
    return "\n".join(lines)


def render_forecast_message(location: str, assessment: RiskAssessment, trail: str) -> str:
    sources = ", ".join(assessment.sources) if assessment.sources else "none"
    return (
        f"Water shortage risk for {location}: {assessment.risk}\n\n"
        f"{assessment.summary}\n\n"
        f"{trail}\n\n"
        f"Reasoning: {assessment.reasoning}\n\n"
        f"Sources: {sources}"
    )


class WaterShortageForecastAgent:
    def __init__(self, risk_agent: RiskAssessmentAgent) -> None:
        self.risk_agent = risk_agent

    async def run(self, location: str, weather: AgentResult, news: AgentResult, climate: AgentResult) -> AgentResult:
        trail = data_collection_log(weather, news, climate)
        logger.info("[forecast] IN  location=%r\n%s", location, trail)
        result = await self.risk_agent.run(location, weather, news, climate)
        if not result.ok:
            return result
        assessment: RiskAssessment = result.data
        forecast = Forecast(
            location=location,
            assessment=assessment,
            message_text=render_forecast_message(location, assessment, trail),
        )
        logger.info("[forecast] OUT risk=%s", assessment.risk)
        return Success(forecast)
