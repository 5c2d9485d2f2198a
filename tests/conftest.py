"""
Shared fakes: a scripted completion service and scripted specialists, so
tests never reach OpenAI, DuckDuckGo, Wikipedia, or Open-Meteo.
"""

import asyncio
from typing import Any

import pytest

from waterbot.agent.graph import build_turn_graph
from waterbot.core import session_store
from waterbot.core.result import Success
from waterbot.schemas.agent import WeatherReport
from waterbot.services.agent_service import Orchestrator, build_turn_agents
from waterbot.services.collection import SpecialistFailurePolicy

# Substrings of each agent's system prompt, used to route fake completions
_PROMPT_KEYS = {
    "You route messages": "classify",
    "Extract the place": "location",
    "water-security analyst": "risk",
    "You are a helpful assistant": "general",
}


class FakeLLM:
    """Deterministic completion service. ``responses`` maps classify/location/risk/general to text or an exception."""

    def __init__(self, **responses: Any) -> None:
        self.responses = responses
        self.calls: list[tuple[str, list[dict[str, str]]]] = []

    def _key(self, messages: list[dict[str, str]]) -> str:
        system = messages[0]["content"] if messages else ""
        for marker, key in _PROMPT_KEYS.items():
            if marker in system:
                return key
        raise AssertionError(f"unexpected prompt: {system[:80]!r}")

    def calls_for(self, key: str) -> list[list[dict[str, str]]]:
        return [m for k, m in self.calls if k == key]

    async def complete(self, messages: list[dict[str, str]], max_tokens: int | None = None) -> str:
        key = self._key(messages)
        self.calls.append((key, messages))
        response = self.responses.get(key)
        if isinstance(response, Exception):
            raise response
        if response is None:
            raise AssertionError(f"no scripted response for {key}")
        return response


class FakeSpecialist:
    """Returns a fixed result (or raises) after an optional delay, recording every location it is asked for."""

    def __init__(self, name: str, result: Any = None, delay: float = 0.0) -> None:
        self.name = name
        self.result = result
        self.delay = delay
        self.calls: list[str] = []
        self.cancelled = False

    async def run(self, location: str):
        self.calls.append(location)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def weather_report(location: str = "Chennai", rain_sum: float = 0.2) -> WeatherReport:
    return WeatherReport(
        location=location,
        latitude=13.08,
        longitude=80.27,
        date="2026-10-19",
        conditions="Clear sky",
        temperature=34.0,
        humidity=55.0,
        wind_speed=12.0,
        rain_sum=rain_sum,
        summary=f"Weather for {location} on 2026-10-19:\nConditions: Clear sky\nRain today: {rain_sum} mm",
    )


@pytest.fixture(autouse=True)
def _reset_sessions():
    session_store.clear_all()
    yield
    session_store.clear_all()


@pytest.fixture
def specialists() -> dict[str, FakeSpecialist]:
    return {
        "weather": FakeSpecialist("weather", Success(weather_report())),
        "news": FakeSpecialist(
            "news",
            Success(
                {
                    "query": "water shortage in Chennai",
                    "results": [
                        {
                            "title": "Chennai announces water restrictions",
                            "url": "https://news.example.com/chennai-water",
                            "description": "City imposes water restrictions as reservoirs run low.",
                        }
                    ],
                }
            ),
        ),
        "climate": FakeSpecialist(
            "climate",
            Success(
                {
                    "query": "Chennai climate",
                    "source": "wikipedia",
                    "results": [
                        {
                            "title": "Climate of Chennai",
                            "url": "https://en.wikipedia.org/wiki/Climate_of_Chennai",
                            "description": "Chennai is prone to drought when the monsoon fails.",
                        }
                    ],
                }
            ),
        ),
    }


@pytest.fixture
def make_orchestrator():
    def _make(
        llm: FakeLLM,
        specialists: dict[str, FakeSpecialist],
        policy: SpecialistFailurePolicy = SpecialistFailurePolicy.ABORT,
        specialist_timeout: float = 5.0,
        turn_timeout: float = 10.0,
    ) -> Orchestrator:
        agents = build_turn_agents(llm=llm, specialists=specialists, policy=policy, specialist_timeout=specialist_timeout)
        return Orchestrator(build_turn_graph(agents), turn_timeout=turn_timeout)

    return _make


@pytest.fixture
def fake_llm_cls():
    return FakeLLM


@pytest.fixture
def fake_specialist_cls():
    return FakeSpecialist


RISK_HIGH_JSON = (
    '{"risk": "High", "summary": "Chennai faces a high risk of water shortage.", '
    '"reasoning": "Almost no rain, active water restrictions, and a drought-prone climate.", '
    '"sources": ["https://news.example.com/chennai-water", "https://en.wikipedia.org/wiki/Climate_of_Chennai"]}'
)


@pytest.fixture
def risk_high_json() -> str:
    return RISK_HIGH_JSON


@pytest.fixture
def make_weather_report():
    return weather_report
