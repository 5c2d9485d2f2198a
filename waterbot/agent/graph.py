"""
LangGraph turn pipeline: classify → (general | resolve location → weather | collect → synthesize).

Nodes return partial state updates. A node that receives a Failure raises
TurnAborted via ``unwrap``; the orchestrator turns that back into a Failure.
The formatting helpers here are the only place MapCommands are built.
"""

import logging
from dataclasses import dataclass
from typing import Literal, TypedDict

from langgraph.graph import END, StateGraph

from waterbot.agent.classifier import IntentClassifier, LocationExtractor
from waterbot.agent.general import GeneralKnowledgeAgent
from waterbot.agent.specialists import Specialist
from waterbot.agent.synthesis import WaterShortageForecastAgent
from waterbot.core.memory import ChatTurn
from waterbot.core.result import AgentResult, unwrap
from waterbot.schemas.agent import Forecast, Intent, MapCommand, TurnReply, WeatherReport
from waterbot.services.collection import SpecialistFailurePolicy, collect, run_with_deadline

logger = logging.getLogger(__name__)


class TurnState(TypedDict, total=False):
    prompt: str
    history: list[ChatTurn]
    intent: Intent
    location: str
    results: dict[str, AgentResult]
    reply: TurnReply


@dataclass
class TurnAgents:
    """Everything the turn graph calls. Specialists are composed, not subclassed."""

    classifier: IntentClassifier
    location_extractor: LocationExtractor
    general: GeneralKnowledgeAgent
    weather: Specialist
    news: Specialist
    climate: Specialist
    forecaster: WaterShortageForecastAgent
    specialist_timeout: float
    policy: SpecialistFailurePolicy = SpecialistFailurePolicy.ABORT


def format_weather_reply(report: WeatherReport) -> TurnReply:
    return TurnReply(message_text=report.summary, map_commands=[])


def format_forecast_reply(forecast: Forecast) -> TurnReply:
    command = MapCommand(
        command="UPDATE_MARKER",
        location=forecast.location,
        risk=forecast.assessment.risk,
        summary=forecast.assessment.summary,
    )
    return TurnReply(message_text=forecast.message_text, map_commands=[command])


def _route_intent(state: TurnState) -> Literal["general", "resolve_location"]:
    return "general" if state["intent"].agent == "general" else "resolve_location"


def _route_location(state: TurnState) -> Literal["weather_report", "collect"]:
    return "weather_report" if state["intent"].agent == "weather" else "collect"


def build_turn_graph(agents: TurnAgents):
    """Build and compile the per-turn graph over ``agents``."""

    async def classify(state: TurnState) -> dict:
        intent = await agents.classifier.classify(state["prompt"], state.get("history") or [])
        return {"intent": intent}

    async def general(state: TurnState) -> dict:
        answer = unwrap(await agents.general.run(state["prompt"]))
        return {"reply": TurnReply(message_text=answer)}

    async def resolve_location(state: TurnState) -> dict:
        location = state["intent"].location
        if not location:
            logger.info("[graph:resolve_location] intent has no location; extracting")
            location = unwrap(await agents.location_extractor.run(state["prompt"], state.get("history") or []))
        logger.info("[graph:resolve_location] OUT location=%r", location)
        return {"location": location}

    async def weather_report(state: TurnState) -> dict:
        report = unwrap(await run_with_deadline(agents.weather, state["location"], agents.specialist_timeout))
        return {"reply": format_weather_reply(report)}

    async def collect_data(state: TurnState) -> dict:
        results = await collect(
            [agents.weather, agents.news, agents.climate],
            state["location"],
            timeout=agents.specialist_timeout,
            policy=agents.policy,
        )
        return {"results": results}

    async def synthesize(state: TurnState) -> dict:
        results = state["results"]
        forecast = unwrap(
            await agents.forecaster.run(
                state["location"],
                results.get(agents.weather.name),
                results.get(agents.news.name),
                results.get(agents.climate.name),
            )
        )
        return {"reply": format_forecast_reply(forecast)}

    graph = StateGraph(TurnState)

    graph.add_node("classify", classify)
    graph.add_node("general", general)
    graph.add_node("resolve_location", resolve_location)
    graph.add_node("weather_report", weather_report)
    graph.add_node("collect", collect_data)
    graph.add_node("synthesize", synthesize)

    graph.set_entry_point("classify")
    graph.add_conditional_edges("classify", _route_intent)
    graph.add_conditional_edges("resolve_location", _route_location)
    graph.add_edge("collect", "synthesize")
    graph.add_edge("general", END)
    graph.add_edge("weather_report", END)
    graph.add_edge("synthesize", END)

    return graph.compile()
