"""
Tests for IntentClassifier (fail-safe, idempotent) and LocationExtractor.
"""

import asyncio

import pytest

from waterbot.agent.classifier import IntentClassifier, LocationExtractor
from waterbot.core.errors import UpstreamError
from waterbot.core.memory import ChatTurn
from waterbot.schemas.agent import Intent


@pytest.mark.parametrize(
    "raw",
    [
        "I'm not sure what you mean.",
        '{"agent": "flood", "location": "Lagos"}',
        '{"location": "Lagos"}',
        "[]",
        "",
    ],
)
def test_malformed_output_falls_back_to_general(fake_llm_cls, raw: str) -> None:
    llm = fake_llm_cls(classify=raw)
    intent = asyncio.run(IntentClassifier(llm).classify("Is Lagos running out of water?", []))
    assert intent == Intent(agent="general")


def test_completion_error_falls_back_to_general(fake_llm_cls) -> None:
    llm = fake_llm_cls(classify=UpstreamError("service down"))
    intent = asyncio.run(IntentClassifier(llm).classify("Hello", []))
    assert intent == Intent(agent="general")


def test_repairs_near_valid_output(fake_llm_cls) -> None:
    llm = fake_llm_cls(classify='```json\n{agent: "waterShortage", location: "Chennai",\n```')
    intent = asyncio.run(IntentClassifier(llm).classify("Water shortage risk in Chennai?", []))
    assert intent == Intent(agent="waterShortage", location="Chennai")


def test_blank_location_is_none(fake_llm_cls) -> None:
    llm = fake_llm_cls(classify='{"agent": "weather", "location": "  "}')
    intent = asyncio.run(IntentClassifier(llm).classify("What's the weather?", []))
    assert intent.agent == "weather"
    assert intent.location is None


def test_same_input_yields_same_intent(fake_llm_cls) -> None:
    llm = fake_llm_cls(classify='{"agent": "weather", "location": "Reykjavik"}')
    classifier = IntentClassifier(llm)
    history = [ChatTurn(role="user", text="Hi"), ChatTurn(role="assistant", text="Hello!")]
    first = asyncio.run(classifier.classify("What's the weather in Reykjavik?", history))
    second = asyncio.run(classifier.classify("What's the weather in Reykjavik?", history))
    assert first == second
    assert llm.calls[0][1] == llm.calls[1][1]


def test_history_included_in_prompt(fake_llm_cls) -> None:
    llm = fake_llm_cls(classify='{"agent": "general"}')
    history = [ChatTurn(role="user", text="Tell me about Cape Town"), ChatTurn(role="assistant", text="Cape Town is...")]
    asyncio.run(IntentClassifier(llm).classify("Is it dry there?", history))
    user_content = llm.calls_for("classify")[0][1]["content"]
    assert "User: Tell me about Cape Town" in user_content
    assert "Assistant: Cape Town is..." in user_content
    assert user_content.endswith("Current message: Is it dry there?")


class TestLocationExtractor:
    """Tests for LocationExtractor.run()."""

    def test_returns_bare_location(self, fake_llm_cls) -> None:
        llm = fake_llm_cls(location='"Cape Town."')
        result = asyncio.run(LocationExtractor(llm).run("Is it dry there?", []))
        assert result.ok
        assert result.data == "Cape Town"

    def test_none_is_failure(self, fake_llm_cls) -> None:
        llm = fake_llm_cls(location="NONE")
        result = asyncio.run(LocationExtractor(llm).run("Will it rain?", []))
        assert not result.ok
        assert result.kind == "location_unresolved"

    def test_completion_error_is_failure(self, fake_llm_cls) -> None:
        llm = fake_llm_cls(location=UpstreamError("service down"))
        result = asyncio.run(LocationExtractor(llm).run("Will it rain?", []))
        assert not result.ok
        assert result.kind == "location_unresolved"
