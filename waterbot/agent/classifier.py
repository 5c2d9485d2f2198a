"""
Intent classification and location extraction for a conversational turn.

The classifier is the one component allowed to swallow a fault: whatever goes
wrong, it answers ``Intent(agent="general")`` so the turn degrades to a plain
answer. The location extractor reports failure instead, because specialists
cannot run without a place.
"""

import logging

from pydantic import ValidationError

from waterbot.agent.llm import CompletionService, format_history
from waterbot.core.errors import ClassificationError, LocationUnresolved
from waterbot.core.json_repair import parse_json_object
from waterbot.core.memory import ChatTurn
from waterbot.core.result import AgentResult, Failure, Success
from waterbot.schemas.agent import Intent

logger = logging.getLogger(__name__)

CLASSIFIER_SYSTEM = """You route messages for a water-security assistant.
Classify the user's latest message into exactly one agent:
- "weather": the user asks about current weather or a forecast for a place.
- "waterShortage": the user asks about water shortage, drought, water supply, or water risk for a place.
- "general": anything else.
If the message (or the recent conversation it refers to) names a place, include it as "location".

Return ONLY a JSON object, no prose and no code fences, for example:
{"agent": "waterShortage", "location": "Chennai"}
{"agent": "general"}"""

LOCATION_SYSTEM = """Extract the place the user is asking about.
Use the recent conversation to resolve references such as "there" or "that city".
Answer with the place name only (e.g. "Chennai" or "Cape Town, South Africa").
If no place can be determined, answer NONE."""

_NO_LOCATION = {"", "none", "null", "n/a", "unknown"}


def _user_block(prompt: str, history: list[ChatTurn]) -> str:
    return f"{format_history(history)}Current message: {prompt}"


class IntentClassifier:
    def __init__(self, llm: CompletionService) -> None:
        self.llm = llm

    async def _classify(self, prompt: str, history: list[ChatTurn]) -> Intent:
        messages = [
            {"role": "system", "content": CLASSIFIER_SYSTEM},
            {"role": "user", "content": _user_block(prompt, history)},
        ]
        raw = await self.llm.complete(messages, max_tokens=100)
        logger.info("[classifier] llm_raw=%r", raw[:300])
        try:
            return Intent.model_validate(parse_json_object(raw))
        except (ValueError, ValidationError) as e:
            raise ClassificationError(f"Unusable classifier output: {e}") from e

    async def classify(self, prompt: str, history: list[ChatTurn]) -> Intent:
        """Label the turn. Never raises: any fault yields Intent(agent="general")."""
        logger.info("[classifier] IN  prompt=%r history_len=%d", prompt, len(history))
        try:
            intent = await self._classify(prompt, history)
        except Exception as e:
            logger.warning("[classifier] falling back to general intent: %s", e)
            intent = Intent(agent="general")
        logger.info("[classifier] OUT agent=%s location=%r", intent.agent, intent.location)
        return intent


class LocationExtractor:
    def __init__(self, llm: CompletionService) -> None:
        self.llm = llm

    async def run(self, prompt: str, history: list[ChatTurn]) -> AgentResult:
        logger.info("[location_extractor] IN  prompt=%r history_len=%d", prompt, len(history))
        messages = [
            {"role": "system", "content": LOCATION_SYSTEM},
            {"role": "user", "content": _user_block(prompt, history)},
        ]
        try:
            raw = await self.llm.complete(messages, max_tokens=30)
        except Exception as e:
            logger.warning("[location_extractor] completion failed: %s", e)
            return Failure.from_exception(LocationUnresolved(f"Could not determine a location: {e}"))
        location = raw.strip().splitlines()[0] if raw.strip() else ""
        location = location.strip().strip("\"'`").rstrip(".!?").strip()
        if location.lower() in _NO_LOCATION:
            return Failure.from_exception(
                LocationUnresolved("I couldn't tell which place you mean. Could you name the city or region?")
            )
        logger.info("[location_extractor] OUT location=%r", location)
        return Success(location)
