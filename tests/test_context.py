"""Tests for prompt and preamble building."""

from __future__ import annotations

from datetime import date

from scribe.agent.context import (
    build_decision_preamble,
    build_search_preamble,
    build_system_prompt,
    format_current_date,
)


def test_format_current_date():
    assert format_current_date(date(2024, 1, 5)) == "January 5, 2024"


def test_system_prompt_general_context():
    prompt = build_system_prompt(today=date(2024, 3, 1))

    assert "You are an expert AI Writing Assistant." in prompt
    assert "**Current Date**: March 1, 2024" in prompt
    assert prompt.endswith("**Writing Context**: General writing assistance.")


def test_system_prompt_with_writing_task():
    prompt = build_system_prompt("Cover letter", today=date(2024, 3, 1))
    assert prompt.endswith("**Writing Context**: Writing Task: Cover letter")


def test_decision_preamble_embeds_context_and_hint():
    preamble = build_decision_preamble("CONTEXT", "LIKELY")

    assert preamble.startswith("CONTEXT\n\nYou are a decision-making module.")
    assert '{"needsSearch": boolean, "query": string}' in preamble
    assert preamble.endswith("Heuristic hint: LIKELY.")


def test_search_preamble_embeds_results_and_guidelines():
    preamble = build_search_preamble("SYSTEM", '{"results": []}')

    assert preamble.startswith("SYSTEM\n\nThe system performed a web search")
    assert '=== WEB_SEARCH_RESULTS (JSON) ===\n{"results": []}\n=== END_RESULTS ===' in preamble
    assert "cite them at the end of the response" in preamble
    assert "say so briefly" in preamble
