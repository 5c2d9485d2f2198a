"""Schemas for the agent endpoint."""

from pydantic import BaseModel, ConfigDict, Field

from waterbot.schemas.agent import MapCommand


class ChatMessage(BaseModel):
    """One message as held by the chat widget. sender is "user" or "bot"; anything else maps to system."""

    sender: str = Field(..., description='"user" or "bot".')
    text: str = Field(..., description="Message text.")


class AgentRequest(BaseModel):
    """Request body for POST /agent. The last message is the prompt and must come from the user."""

    messages: list[ChatMessage] = Field(..., min_length=1, description="Conversation so far, oldest first.")
    session_id: str | None = Field(
        None,
        min_length=1,
        description="Optional session ID; when set, conversation memory is kept on the server for this session.",
    )


class AgentReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_text: str = Field(..., alias="messageText")
    map_commands: list[MapCommand] = Field(default_factory=list, alias="mapCommands")


class AgentResponse(BaseModel):
    """Response for POST /agent."""

    data: AgentReply

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "data": {
                        "messageText": "Water shortage risk for Chennai: High\n\n...",
                        "mapCommands": [
                            {"command": "UPDATE_MARKER", "location": "Chennai", "risk": "High", "summary": "..."}
                        ],
                    }
                }
            ]
        }
    }


class ErrorResponse(BaseModel):
    error: str


class LocationRequest(BaseModel):
    """Request body for the MCP specialist tools."""

    location: str = ""
