"""
Specialist agents: each wraps exactly one external tool behind
``async run(location) -> AgentResult``.

There is no shared base class; the orchestrator composes anything that
satisfies ``Specialist``. Every agent converts its own faults into a Failure,
so nothing but cancellation escapes ``run``.
"""

import logging
from datetime import date
from typing import Any, Protocol

from waterbot.agent.tools import OpenMeteoTool, WebSearchTool, WikipediaTool, describe_weather_code
from waterbot.core.result import AgentResult, Failure, Success
from waterbot.schemas.agent import WeatherReport

logger = logging.getLogger(__name__)


class Specialist(Protocol):
    name: str

    async def run(self, location: str) -> AgentResult: ...


def _first(values: Any) -> Any:
    if isinstance(values, list) and values:
        return values[0]
    return None


def render_weather_summary(report: WeatherReport) -> str:
    parts = [f"Weather for {report.location} on {report.date}:"]
    if report.conditions:
        parts.append(f"Conditions: {report.conditions}")
    if report.temperature is not None:
        parts.append(f"Temperature: {report.temperature} °C")
    if report.temperature_min is not None and report.temperature_max is not None:
        parts.append(f"Range: {report.temperature_min} °C to {report.temperature_max} °C")
    if report.humidity is not None:
        parts.append(f"Relative humidity: {report.humidity}%")
    if report.wind_speed is not None:
        parts.append(f"Wind speed: {report.wind_speed} km/h")
    if report.rain_sum is not None:
        parts.append(f"Rain today: {report.rain_sum} mm")
    return "\n".join(parts)


class WeatherAgent:
    name = "weather"

    def __init__(self, tool: OpenMeteoTool | None = None) -> None:
        self.tool = tool or OpenMeteoTool()

    async def run(self, location: str) -> AgentResult:
        logger.info("[specialist:weather] IN  location=%r", location)
        today = date.today()
        try:
            data = await self.tool.forecast(location, start_date=today, end_date=today)
            current = data.get("current") or {}
            daily = data.get("daily") or {}
            place = data.get("place") or {}
            name = place.get("name") or location
            if place.get("country_code"):
                name = f"{name} ({place['country_code']})"
            report = WeatherReport(
                location=name,
                latitude=place.get("latitude", 0.0),
                longitude=place.get("longitude", 0.0),
                date=_first(daily.get("time")) or today.isoformat(),
                conditions=describe_weather_code(current.get("weather_code")),
                temperature=current.get("temperature_2m"),
                temperature_max=_first(daily.get("temperature_2m_max")),
                temperature_min=_first(daily.get("temperature_2m_min")),
                humidity=current.get("relative_humidity_2m"),
                wind_speed=current.get("wind_speed_10m"),
                rain_sum=_first(daily.get("rain_sum")),
                precipitation_sum=_first(daily.get("precipitation_sum")),
            )
            report = report.model_copy(update={"summary": render_weather_summary(report)})
        except Exception as e:
            logger.warning("[specialist:weather] failed: %s", e)
            return Failure(error=f"Weather lookup failed: {e}", kind="upstream")
        logger.info("[specialist:weather] OUT rain_sum=%s temperature=%s", report.rain_sum, report.temperature)
        return Success(report)


class NewsAgent:
    name = "news"

    def __init__(self, search: WebSearchTool | None = None) -> None:
        self.search = search or WebSearchTool()

    async def run(self, location: str) -> AgentResult:
        query = f"water shortage in {location}"
        logger.info("[specialist:news] IN  query=%r", query)
        try:
            hits = await self.search.search(query)
        except Exception as e:
            logger.warning("[specialist:news] failed: %s", e)
            return Failure(error=f"News search failed: {e}", kind="upstream")
        return Success({"query": query, "results": [h.model_dump() for h in hits]})


class ClimateResearcher:
    """Encyclopedia lookup for "<location> climate", falling back to web search when it finds nothing."""

    name = "climate"

    def __init__(self, encyclopedia: WikipediaTool | None = None, search: WebSearchTool | None = None) -> None:
        self.encyclopedia = encyclopedia or WikipediaTool()
        self.search = search or WebSearchTool()

    async def run(self, location: str) -> AgentResult:
        query = f"{location} climate"
        logger.info("[specialist:climate] IN  query=%r", query)
        try:
            hits = await self.encyclopedia.search(query)
            source = "wikipedia"
            if not hits:
                logger.info("[specialist:climate] no encyclopedia results; falling back to web search")
                hits = await self.search.search(query)
                source = "web"
        except Exception as e:
            logger.warning("[specialist:climate] failed: %s", e)
            return Failure(error=f"Climate research failed: {e}", kind="upstream")
        logger.info("[specialist:climate] OUT source=%s results=%d", source, len(hits))
        return Success({"query": query, "source": source, "results": [h.model_dump() for h in hits]})
