"""
External data tools wrapped by the specialist agents.

Tools: OpenMeteoTool (geocode + daily forecast, no key), WebSearchTool
(DuckDuckGo via ddgs), WikipediaTool (MediaWiki search API). Tools raise on
failure; the specialist agents turn faults into Failure results.
"""

import asyncio
import html
import logging
import re
from datetime import date
from typing import Any

import httpx
from ddgs import DDGS

from waterbot.core.config import (
    OPEN_METEO_FORECAST,
    OPEN_METEO_GEOCODE,
    SEARCH_MAX_RESULTS,
    SEARCH_MIN_INTERVAL,
    TOOLS_HTTP_TIMEOUT,
    WIKIPEDIA_API,
    WIKIPEDIA_PAGE_URL,
)
from waterbot.core.errors import UpstreamError
from waterbot.core.rate_limit import RateLimiter
from waterbot.core.retry import retry_async
from waterbot.schemas.agent import SearchHit

logger = logging.getLogger(__name__)

# WMO weather codes (abbreviated) for Open-Meteo
_WMO_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

_TAG_RE = re.compile(r"<[^>]+>")


def describe_weather_code(code: Any) -> str:
    if code is None:
        return ""
    return _WMO_CODES.get(code, f"Weather code {code}")


class OpenMeteoTool:
    """Fetch current conditions and today's daily aggregates from Open-Meteo (free, no API key)."""

    name = "open_meteo"

    def __init__(self, timeout: float = TOOLS_HTTP_TIMEOUT) -> None:
        self.timeout = timeout

    async def _get_json(self, client: httpx.AsyncClient, url: str, params: dict[str, Any]) -> dict[str, Any]:
        async def call() -> dict[str, Any]:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()

        return await retry_async(call, name=self.name)

    async def forecast(self, location: str, start_date: date | None = None, end_date: date | None = None) -> dict[str, Any]:
        """
        Geocode ``location`` and return the forecast for [start_date, end_date]
        (today when omitted) with the resolved place attached under "place".
        """
        location = (location or "").strip()
        if not location:
            raise ValueError("location is required")
        start = start_date or date.today()
        end = end_date or start
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            geo = await self._get_json(client, OPEN_METEO_GEOCODE, {"name": location, "count": 1})
            results = geo.get("results") or []
            if not results:
                raise UpstreamError(f"No location found for: {location}.")
            place = results[0]
            lat = place.get("latitude")
            lon = place.get("longitude")
            if lat is None or lon is None:
                raise UpstreamError("Could not get coordinates for that location.")
            data = await self._get_json(
                client,
                OPEN_METEO_FORECAST,
                {
                    "latitude": lat,
                    "longitude": lon,
                    "current": "temperature_2m,relative_humidity_2m,wind_speed_10m,weather_code",
                    "daily": "temperature_2m_max,temperature_2m_min,rain_sum,precipitation_sum",
                    "timezone": "auto",
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                },
            )
        data["place"] = {
            "name": place.get("name", location),
            "country_code": place.get("country_code", ""),
            "latitude": lat,
            "longitude": lon,
        }
        logger.info("[tools:open_meteo] OUT place=%s lat=%s lon=%s", data["place"]["name"], lat, lon)
        return data


class WebSearchTool:
    """DuckDuckGo text search. ddgs is blocking, so it runs in a worker thread."""

    name = "web_search"

    def __init__(self, max_results: int = SEARCH_MAX_RESULTS, limiter: RateLimiter | None = None) -> None:
        self.max_results = max_results
        self.limiter = limiter or RateLimiter(SEARCH_MIN_INTERVAL, name="web_search")

    def _search_sync(self, query: str) -> list[dict[str, Any]]:
        return list(DDGS().text(query, max_results=self.max_results) or [])

    async def search(self, query: str) -> list[SearchHit]:
        q = (query or "").strip()
        if not q:
            raise ValueError("query is required")

        async def call() -> list[dict[str, Any]]:
            await self.limiter.acquire()
            return await asyncio.to_thread(self._search_sync, q)

        raw = await retry_async(call, name=self.name)
        hits = [
            SearchHit(
                title=(r.get("title") or "").strip(),
                url=(r.get("href") or r.get("url") or "").strip(),
                description=(r.get("body") or r.get("description") or "").strip(),
            )
            for r in raw[: self.max_results]
        ]
        logger.info("[tools:web_search] query=%r OUT results=%d", q, len(hits))
        return hits


class WikipediaTool:
    """Search English Wikipedia and return title, page URL, and a plain-text snippet per hit."""

    name = "wikipedia"

    def __init__(self, max_results: int = SEARCH_MAX_RESULTS, timeout: float = TOOLS_HTTP_TIMEOUT) -> None:
        self.max_results = max_results
        self.timeout = timeout

    async def search(self, query: str) -> list[SearchHit]:
        q = (query or "").strip()
        if not q:
            raise ValueError("query is required")
        params = {
            "action": "query",
            "list": "search",
            "srsearch": q,
            "srlimit": self.max_results,
            "format": "json",
            "utf8": 1,
        }

        async def call() -> dict[str, Any]:
            async with httpx.AsyncClient(timeout=self.timeout, headers={"User-Agent": "waterbot/0.1"}) as client:
                response = await client.get(WIKIPEDIA_API, params=params)
            response.raise_for_status()
            return response.json()

        data = await retry_async(call, name=self.name)
        items = (data.get("query") or {}).get("search") or []
        hits = []
        for item in items[: self.max_results]:
            title = (item.get("title") or "").strip()
            snippet = html.unescape(_TAG_RE.sub("", item.get("snippet") or "")).strip()
            hits.append(
                SearchHit(
                    title=title,
                    url=WIKIPEDIA_PAGE_URL + title.replace(" ", "_") if title else "",
                    description=snippet,
                )
            )
        logger.info("[tools:wikipedia] query=%r OUT results=%d", q, len(hits))
        return hits
