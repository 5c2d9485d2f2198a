"""
API route aggregator: register endpoints; no logic — only delegate to handlers.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from waterbot.api.handlers import handle_agent_request, handle_clear_session
from waterbot.core.session_store import get_history
from waterbot.schemas.chat import AgentRequest, AgentResponse, ErrorResponse

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Water risk agent backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Agent ---

@router.post(
    "/agent",
    response_model=AgentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
    tags=["agent"],
    summary="Answer one conversational turn",
    description=(
        "Send the conversation (last message from the user); receive messageText and mapCommands. "
        "400 on invalid input, 500 on agent failure, 504 when the turn runs past its deadline."
    ),
)
async def post_agent(body: AgentRequest) -> JSONResponse:
    logger.info("[api:post_agent] IN  messages=%d session_id=%s", len(body.messages), body.session_id)
    return await handle_agent_request(body)


# --- Sessions ---

@router.get("/sessions/{session_id}/history", tags=["sessions"], summary="Conversation memory for a session")
def get_session_history(session_id: str) -> dict:
    return {"session_id": session_id, "turns": get_history(session_id)}


@router.delete("/sessions/{session_id}", tags=["sessions"], summary="Clear a session's conversation memory")
async def delete_session(session_id: str) -> dict:
    return await handle_clear_session(session_id)
