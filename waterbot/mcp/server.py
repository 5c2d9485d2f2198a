"""
Minimal MCP-style tool server: exposes the specialist agents as a standardized
tool interface so external agents can fetch weather, water-shortage news, and
climate background for a location.
"""

import logging
from typing import Any

from fastapi import APIRouter

from waterbot.schemas.chat import LocationRequest
from waterbot.services.agent_service import get_specialists

logger = logging.getLogger(__name__)

# MCP tool schema for discovery / documentation
tools = [
    {
        "name": "get_weather",
        "specialist": "weather",
        "description": "Today's forecast for a location: temperature, humidity, wind, rain sum, and a summary",
        "input_schema": {"location": "string"},
    },
    {
        "name": "search_water_news",
        "specialist": "news",
        "description": "Web search results for water shortage news about a location",
        "input_schema": {"location": "string"},
    },
    {
        "name": "research_climate",
        "specialist": "climate",
        "description": "Encyclopedia (or web) results describing a location's climate",
        "input_schema": {"location": "string"},
    },
]

mcp_router = APIRouter(tags=["mcp"])


@mcp_router.get("/tools", summary="MCP tool discovery")
def mcp_list_tools() -> dict[str, list[dict[str, Any]]]:
    return {"tools": [{k: v for k, v in t.items() if k != "specialist"} for t in tools]}


async def _run_specialist(name: str, body: LocationRequest) -> dict[str, Any]:
    logger.info("MCP tool called: %s", name)
    location = (body.location or "").strip()
    if not location:
        return {"ok": False, "error": "location is required", "kind": "invalid_request"}
    result = await get_specialists()[name].run(location)
    return result.to_dict()


@mcp_router.post("/tools/get_weather", summary="MCP tool: get_weather")
async def mcp_get_weather(body: LocationRequest) -> dict[str, Any]:
    """Run the weather specialist for a location."""
    return await _run_specialist("weather", body)


@mcp_router.post("/tools/search_water_news", summary="MCP tool: search_water_news")
async def mcp_search_water_news(body: LocationRequest) -> dict[str, Any]:
    return await _run_specialist("news", body)


@mcp_router.post("/tools/research_climate", summary="MCP tool: research_climate")
async def mcp_research_climate(body: LocationRequest) -> dict[str, Any]:
    return await _run_specialist("climate", body)
