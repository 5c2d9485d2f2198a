"""
Tests for the specialist agents over fake tools, and for WebSearchTool with ddgs patched.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from waterbot.agent.specialists import ClimateResearcher, NewsAgent, WeatherAgent
from waterbot.agent.tools import WebSearchTool, describe_weather_code
from waterbot.core.errors import UpstreamError
from waterbot.core.rate_limit import RateLimiter
from waterbot.schemas.agent import SearchHit


class FakeForecastTool:
    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error

    async def forecast(self, location, start_date=None, end_date=None):
        if self.error:
            raise self.error
        return self.data


class FakeSearchTool:
    def __init__(self, hits=None, error=None):
        self.hits = hits or []
        self.error = error
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.hits


OPEN_METEO_DATA = {
    "current": {"temperature_2m": 8.5, "relative_humidity_2m": 81, "wind_speed_10m": 22.3, "weather_code": 61},
    "daily": {
        "time": ["2026-10-19"],
        "temperature_2m_max": [9.8],
        "temperature_2m_min": [4.1],
        "rain_sum": [3.6],
        "precipitation_sum": [3.9],
    },
    "place": {"name": "Reykjavík", "country_code": "IS", "latitude": 64.14, "longitude": -21.94},
}


def test_weather_agent_builds_report() -> None:
    result = asyncio.run(WeatherAgent(FakeForecastTool(OPEN_METEO_DATA)).run("Reykjavik"))
    assert result.ok
    report = result.data
    assert report.location == "Reykjavík (IS)"
    assert report.date == "2026-10-19"
    assert report.conditions == "Slight rain"
    assert report.rain_sum == 3.6
    assert report.temperature_min == 4.1
    assert report.summary.startswith("Weather for Reykjavík (IS) on 2026-10-19:")
    assert "Rain today: 3.6 mm" in report.summary


def test_weather_agent_fault_is_failure() -> None:
    tool = FakeForecastTool(error=UpstreamError("No location found for: Atlantis."))
    result = asyncio.run(WeatherAgent(tool).run("Atlantis"))
    assert not result.ok
    assert result.kind == "upstream"
    assert "Atlantis" in result.error


def test_news_agent_queries_water_shortage() -> None:
    search = FakeSearchTool([SearchHit(title="Taps run dry", url="https://x.example", description="...")])
    result = asyncio.run(NewsAgent(search).run("Cape Town"))
    assert result.ok
    assert search.queries == ["water shortage in Cape Town"]
    assert result.data["results"][0]["title"] == "Taps run dry"


def test_news_agent_fault_is_failure() -> None:
    result = asyncio.run(NewsAgent(FakeSearchTool(error=RuntimeError("blocked"))).run("Cape Town"))
    assert not result.ok
    assert result.error == "News search failed: blocked"


def test_climate_researcher_prefers_encyclopedia() -> None:
    wiki = FakeSearchTool([SearchHit(title="Climate of Lima", url="https://en.wikipedia.org/wiki/Climate_of_Lima")])
    web = FakeSearchTool()
    result = asyncio.run(ClimateResearcher(wiki, web).run("Lima"))
    assert result.ok
    assert result.data["source"] == "wikipedia"
    assert wiki.queries == ["Lima climate"]
    assert web.queries == []


def test_climate_researcher_falls_back_to_web_search() -> None:
    wiki = FakeSearchTool([])
    web = FakeSearchTool([SearchHit(title="Lima weather and climate", url="https://w.example")])
    result = asyncio.run(ClimateResearcher(wiki, web).run("Lima"))
    assert result.ok
    assert result.data["source"] == "web"
    assert web.queries == ["Lima climate"]


def test_climate_researcher_fault_is_failure() -> None:
    result = asyncio.run(ClimateResearcher(FakeSearchTool(error=RuntimeError("503")), FakeSearchTool()).run("Lima"))
    assert not result.ok
    assert result.kind == "upstream"


def test_describe_weather_code() -> None:
    assert describe_weather_code(0) == "Clear sky"
    assert describe_weather_code(42) == "Weather code 42"
    assert describe_weather_code(None) == ""


class TestWebSearchTool:
    """Tests for WebSearchTool.search() with DDGS patched."""

    def test_maps_ddgs_rows_to_hits(self) -> None:
        rows = [
            {"title": " Dry taps ", "href": "https://a.example", "body": "Reservoirs low."},
            {"title": "Second", "href": "https://b.example", "body": ""},
        ]
        with patch("waterbot.agent.tools.DDGS") as ddgs_cls:
            ddgs_cls.return_value.text.return_value = rows
            tool = WebSearchTool(max_results=1, limiter=RateLimiter(0))
            hits = asyncio.run(tool.search("water shortage in Chennai"))
        assert hits == [SearchHit(title="Dry taps", url="https://a.example", description="Reservoirs low.")]
        ddgs_cls.return_value.text.assert_called_once_with("water shortage in Chennai", max_results=1)

    def test_calls_go_through_the_limiter(self) -> None:
        limiter = MagicMock(spec=RateLimiter)
        limiter.acquire = AsyncMock(return_value=0.0)
        with patch("waterbot.agent.tools.DDGS") as ddgs_cls:
            ddgs_cls.return_value.text.return_value = []
            asyncio.run(WebSearchTool(limiter=limiter).search("Lima climate"))
        limiter.acquire.assert_awaited_once()
