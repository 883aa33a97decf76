"""
Context Assembly
================

Builds the instruction text (preambles) sent to the model:

- the writing-assistant system prompt, with an optional task context
- the decision preamble used to classify whether web search is needed
- the search-augmented preamble that embeds web results as evidence

The model gets no other context besides these preambles and the
conversation history.
"""

from datetime import date

WRITING_ASSISTANT_PROMPT = """You are an expert AI Writing Assistant. Your primary purpose is to be a collaborative writing partner.

**Core Capabilities**
- Content creation, improvement, style adaptation, brainstorming, and writing coaching.
- You can leverage web search results when the system provides them.

**Current Date**: {current_date}

**Crucial Instructions**
1) If the task requires up-to-date facts, explicitly state that you used the provided search results.
2) When search results are provided, synthesize them and cite the included sources (if present).
3) Be direct and production-ready. Use clear formatting. Do not add unnecessary preambles.

**Writing Context**: {writing_context}"""

DECISION_PREAMBLE = """{context_prompt}

You are a decision-making module. Decide if the user's request requires web search for CURRENT information.
Respond in pure JSON with this shape:
{{"needsSearch": boolean, "query": string}}

Rules:
- If the question depends on recent events, data, or current facts, needsSearch = true and set "query" to an effective search query.
- Otherwise, needsSearch = false and query = "".

Heuristic hint: {hint}."""

SEARCH_PREAMBLE = """{system_prompt}

The system performed a web search for the user's request.

=== WEB_SEARCH_RESULTS (JSON) ===
{search_results}
=== END_RESULTS ===

Guidelines:
- Base current facts on these results when relevant.
- If results contain URLs, cite them at the end of the response.
- If results seem unrelated or low quality, say so briefly and proceed with best-effort answer."""


def format_current_date(today: date | None = None) -> str:
    """Format a date like 'January 31, 2024'."""
    today = today or date.today()
    return f"{today:%B} {today.day}, {today.year}"


def build_system_prompt(writing_task: str | None = None, today: date | None = None) -> str:
    """
    Build the writing-assistant system prompt.

    Args:
        writing_task: Optional task attached to the user's message
        today: Date shown to the model, defaults to today

    Returns:
        The system prompt text
    """
    writing_context = f"Writing Task: {writing_task}" if writing_task else "General writing assistance."
    return WRITING_ASSISTANT_PROMPT.format(
        current_date=format_current_date(today),
        writing_context=writing_context,
    )


def build_decision_preamble(context_prompt: str, hint: str) -> str:
    """Instructions for the search-need classification call."""
    return DECISION_PREAMBLE.format(context_prompt=context_prompt, hint=hint)


def build_search_preamble(system_prompt: str, search_results: str) -> str:
    """Extend the system prompt with serialized web search results."""
    return SEARCH_PREAMBLE.format(system_prompt=system_prompt, search_results=search_results)
