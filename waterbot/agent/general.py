"""General-knowledge agent: single-shot answer for turns outside the water/weather domain."""

import logging

from waterbot.agent.llm import CompletionService
from waterbot.core.result import AgentResult, Failure, Success

logger = logging.getLogger(__name__)

GENERAL_SYSTEM = (
    "You are a helpful assistant. Answer the user's message clearly and concisely "
    "in a natural, friendly tone."
)


class GeneralKnowledgeAgent:
    def __init__(self, llm: CompletionService) -> None:
        self.llm = llm

    async def run(self, prompt: str) -> AgentResult:
        logger.info("[general] IN  prompt=%r", prompt)
        messages = [
            {"role": "system", "content": GENERAL_SYSTEM},
            {"role": "user", "content": prompt},
        ]
        try:
            answer = await self.llm.complete(messages)
        except Exception as e:
            logger.warning("[general] failed: %s", e)
            return Failure.from_exception(e)
        logger.info("[general] OUT answer_len=%d", len(answer))
        return Success(answer)
