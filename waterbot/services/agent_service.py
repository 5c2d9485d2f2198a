"""
Agent: orchestrate intent classification, specialist data collection, and risk synthesis.

Responsibility: Own one session's conversation memory, run each turn through
the turn graph, and return a single AgentResult. Called by the API; no HTTP here.
"""

import asyncio
import logging
from typing import Any
from functools import lru_cache

from waterbot.agent.classifier import IntentClassifier, LocationExtractor
from waterbot.agent.general import GeneralKnowledgeAgent
from waterbot.agent.graph import TurnAgents, build_turn_graph
from waterbot.agent.llm import ChatCompletionClient, CompletionService
from waterbot.agent.specialists import ClimateResearcher, NewsAgent, Specialist, WeatherAgent
from waterbot.agent.synthesis import RiskAssessmentAgent, WaterShortageForecastAgent
from waterbot.agent.tools import OpenMeteoTool, WebSearchTool, WikipediaTool
from waterbot.core.config import HISTORY_WINDOW, SPECIALIST_FAILURE_POLICY, SPECIALIST_TIMEOUT, TURN_TIMEOUT
from waterbot.core.errors import UpstreamTimeout
from waterbot.core.memory import ChatTurn, ConversationMemory
from waterbot.core.result import AgentResult, Failure, Success
from waterbot.services.collection import SpecialistFailurePolicy

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Sole entry point for a session's turns.

    ``graph`` is a compiled turn graph (see ``build_turn_graph``); it may be
    shared between orchestrators. Turns are serialized by a per-instance lock
    because memory is appended sequentially. The user turn is appended before processing; the assistant
    turn only when the turn succeeds. No exception escapes ``handle_turn``.
    """

    def __init__(
        self,
        graph: Any,
        memory: ConversationMemory | None = None,
        turn_timeout: float = TURN_TIMEOUT,
        history_window: int = HISTORY_WINDOW,
    ) -> None:
        self.memory = memory if memory is not None else ConversationMemory()
        self.turn_timeout = turn_timeout
        self.history_window = history_window
        self.graph = graph
        self._lock = asyncio.Lock()

    def seed(self, turns: list[ChatTurn]) -> None:
        """Load prior turns (e.g. client-held history) into an empty memory."""
        for turn in turns:
            self.memory.append(turn)

    async def handle_turn(self, prompt: str) -> AgentResult:
        prompt = (prompt or "").strip()
        if not prompt:
            return Failure(error="A non-empty user message is required.", kind="invalid_request")
        async with self._lock:
            index = len(self.memory)
            self.memory.append(ChatTurn(role="user", text=prompt))
            history = self.memory.recent(self.history_window, before=index)
            logger.info("[orchestrator] IN  prompt=%r history_len=%d", prompt, len(history))
            try:
                final = await asyncio.wait_for(
                    self.graph.ainvoke({"prompt": prompt, "history": history}),
                    timeout=self.turn_timeout,
                )
                reply = final["reply"]
            except asyncio.TimeoutError:
                logger.warning("[orchestrator] turn timed out after %gs", self.turn_timeout)
                return Failure.from_exception(
                    UpstreamTimeout(f"The request took longer than {self.turn_timeout:g}s and was cancelled.")
                )
            except Exception as e:
                logger.warning("[orchestrator] turn failed: %s", e)
                return Failure.from_exception(e)
            self.memory.append(
                ChatTurn(role="assistant", text=reply.message_text, map_commands=tuple(reply.map_commands))
            )
        logger.info("[orchestrator] OUT message_len=%d map_commands=%d", len(reply.message_text), len(reply.map_commands))
        return Success(reply)

    async def clear(self) -> None:
        async with self._lock:
            self.memory.clear()


@lru_cache(maxsize=1)
def get_completion_client() -> ChatCompletionClient:
    return ChatCompletionClient()


@lru_cache(maxsize=1)
def get_specialists() -> dict[str, Specialist]:
    """Process-wide specialists. The web search tool (and its rate limiter) is shared."""
    search = WebSearchTool()
    agents: list[Specialist] = [
        WeatherAgent(OpenMeteoTool()),
        NewsAgent(search),
        ClimateResearcher(WikipediaTool(), search),
    ]
    return {a.name: a for a in agents}


def build_turn_agents(
    llm: CompletionService | None = None,
    specialists: dict[str, Specialist] | None = None,
    policy: SpecialistFailurePolicy | None = None,
    specialist_timeout: float = SPECIALIST_TIMEOUT,
) -> TurnAgents:
    llm = llm or get_completion_client()
    specialists = specialists or get_specialists()
    return TurnAgents(
        classifier=IntentClassifier(llm),
        location_extractor=LocationExtractor(llm),
        general=GeneralKnowledgeAgent(llm),
        weather=specialists["weather"],
        news=specialists["news"],
        climate=specialists["climate"],
        forecaster=WaterShortageForecastAgent(RiskAssessmentAgent(llm)),
        specialist_timeout=specialist_timeout,
        policy=policy or SpecialistFailurePolicy.from_setting(SPECIALIST_FAILURE_POLICY),
    )


@lru_cache(maxsize=1)
def get_turn_graph():
    """Compiled turn graph over the process-wide agents. It holds no per-session state."""
    return build_turn_graph(build_turn_agents())


def build_orchestrator() -> Orchestrator:
    """New orchestrator with empty memory over the shared compiled graph."""
    return Orchestrator(get_turn_graph())
