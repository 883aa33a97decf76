"""Tests for the search decision module."""

from __future__ import annotations

import pytest

from scribe.agent.decision import (
    HINT_LIKELY,
    HINT_UNKNOWN,
    SearchDecider,
    SearchOutcome,
    parse_decision,
    recency_hint,
)
from tests.fakes import FakeCompletion


@pytest.mark.parametrize(
    "message",
    [
        "What's the weather today in Paris?",
        "Give me the LATEST news on the launch",
        "Who won the game last night?",
        "current price of gold",
    ],
)
def test_recency_hint_matches_time_sensitive_words(message):
    assert recency_hint(message) is True


@pytest.mark.parametrize(
    "message",
    [
        "Help me rewrite this paragraph",
        "Suggest a title for my essay",
        "scoreboard design ideas",  # word boundary: "score" inside a longer word
    ],
)
def test_recency_hint_ignores_timeless_requests(message):
    assert recency_hint(message) is False


class TestParseDecision:
    def test_plain_json(self):
        outcome = parse_decision('{"needsSearch": true, "query": "Paris weather today"}')
        assert outcome == SearchOutcome(needs_search=True, query="Paris weather today")

    def test_json_wrapped_in_prose_and_fences(self):
        text = 'Sure!\n```json\n{"needsSearch": false, "query": ""}\n```\nHope this helps.'
        assert parse_decision(text) == SearchOutcome(needs_search=False, query=None)

    def test_string_boolean(self):
        outcome = parse_decision('{"needsSearch": "true", "query": "x"}')
        assert outcome.needs_search is True

    def test_missing_braces_raises(self):
        with pytest.raises(ValueError):
            parse_decision("yes, search for it")

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_decision("{needsSearch: yes}")


class TestSearchDecider:
    @pytest.mark.asyncio
    async def test_model_decision_is_used(self):
        completion = FakeCompletion(decision='{"needsSearch": true, "query": "Paris weather today"}')
        decider = SearchDecider(completion, model="decider")

        outcome = await decider.decide("What's the weather today in Paris?", "SYSTEM")

        assert outcome == SearchOutcome(needs_search=True, query="Paris weather today")

    @pytest.mark.asyncio
    async def test_classification_call_carries_hint_and_context(self):
        completion = FakeCompletion()
        decider = SearchDecider(completion, model="decider", temperature=0.2)

        await decider.decide("latest news please", "SYSTEM PROMPT")

        call = completion.chat_calls[0]
        assert call["model"] == "decider"
        assert call["message"] == "latest news please"
        assert call["temperature"] == 0.2
        assert call["preamble"].startswith("SYSTEM PROMPT")
        assert f"Heuristic hint: {HINT_LIKELY}." in call["preamble"]
        assert '{"needsSearch": boolean, "query": string}' in call["preamble"]

    @pytest.mark.asyncio
    async def test_unknown_hint_for_timeless_message(self):
        completion = FakeCompletion()
        await SearchDecider(completion, model="m").decide("fix my grammar", "SYSTEM")
        assert f"Heuristic hint: {HINT_UNKNOWN}." in completion.chat_calls[0]["preamble"]

    @pytest.mark.asyncio
    async def test_malformed_response_falls_back_to_heuristic(self):
        message = "Tell me the latest news about the election"
        decider = SearchDecider(FakeCompletion(decision="I think you should search."), model="m")

        outcome = await decider.decide(message, "SYSTEM")

        assert outcome == SearchOutcome(needs_search=True, query=message)

    @pytest.mark.asyncio
    async def test_malformed_response_without_hint_means_no_search(self):
        decider = SearchDecider(FakeCompletion(decision="{broken"), model="m")

        outcome = await decider.decide("Polish this sentence", "SYSTEM")

        assert outcome == SearchOutcome(needs_search=False, query=None)

    @pytest.mark.asyncio
    async def test_call_failure_falls_back_to_heuristic(self):
        completion = FakeCompletion(decision_error=ConnectionError("provider down"))
        message = "What's the score today?"

        outcome = await SearchDecider(completion, model="m").decide(message, "SYSTEM")

        assert outcome == SearchOutcome(needs_search=True, query=message)

    @pytest.mark.asyncio
    async def test_heuristic_never_overrides_model(self):
        completion = FakeCompletion(decision='{"needsSearch": false, "query": ""}')

        outcome = await SearchDecider(completion, model="m").decide("latest news", "SYSTEM")

        assert outcome.needs_search is False

    @pytest.mark.asyncio
    async def test_search_without_query_uses_message(self):
        completion = FakeCompletion(decision='{"needsSearch": true, "query": "  "}')

        outcome = await SearchDecider(completion, model="m").decide("Who won?", "SYSTEM")

        assert outcome == SearchOutcome(needs_search=True, query="Who won?")
