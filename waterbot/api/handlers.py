"""
API handlers: read request data, call the orchestrator, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and failure-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import logging

from fastapi.responses import JSONResponse

from waterbot.core import session_store
from waterbot.core.memory import ChatTurn
from waterbot.core.result import Failure
from waterbot.schemas.chat import AgentReply, AgentRequest, AgentResponse, ChatMessage
from waterbot.services.agent_service import build_orchestrator

logger = logging.getLogger(__name__)

_SENDER_ROLES = {"user": "user", "bot": "assistant"}

# Failure kinds caused by the request rather than the server
_CLIENT_ERROR_KINDS = {"invalid_request"}


def map_sender_role(sender: str) -> str:
    return _SENDER_ROLES.get((sender or "").strip().lower(), "system")


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def status_for_failure(failure: Failure) -> int:
    if failure.kind in _CLIENT_ERROR_KINDS:
        return 400
    if failure.kind == "upstream_timeout":
        return 504
    return 500


def _seed_turns(messages: list[ChatMessage]) -> list[ChatTurn]:
    return [ChatTurn(role=map_sender_role(m.sender), text=m.text) for m in messages if m.text.strip()]


async def handle_agent_request(body: AgentRequest) -> JSONResponse:
    """
    Run the last (user) message through an orchestrator. With a session_id the
    server-side session is used; otherwise a one-off orchestrator is seeded
    with the earlier messages.
    """
    prompt_message = body.messages[-1]
    if map_sender_role(prompt_message.sender) != "user":
        return error_response("The last message must be from the user.", 400)
    if not prompt_message.text.strip():
        return error_response("The last message must not be empty.", 400)

    if body.session_id:
        orchestrator = session_store.get_orchestrator(body.session_id, build_orchestrator)
    else:
        orchestrator = build_orchestrator()
        orchestrator.seed(_seed_turns(body.messages[:-1]))

    result = await orchestrator.handle_turn(prompt_message.text)
    if not result.ok:
        logger.info("[api:handle_agent_request] failure kind=%s error=%r", result.kind, result.error)
        return error_response(result.error, status_for_failure(result))

    reply = AgentResponse(
        data=AgentReply(message_text=result.data.message_text, map_commands=result.data.map_commands)
    )
    return JSONResponse(content=reply.model_dump(by_alias=True, exclude_none=True))


async def handle_clear_session(session_id: str) -> dict:
    orchestrator = session_store.find_orchestrator(session_id)
    if orchestrator is not None:
        await orchestrator.clear()
    existed = session_store.drop_session(session_id)
    return {"cleared": existed}
