"""
Search Decision
===============

Decides whether a user message needs live web search, and with which
query.

Two signals are combined:

1. A lexical heuristic: words implying timeliness ("today", "latest",
   "price", ...) make search LIKELY.
2. A classification call: the model is asked for strict JSON
   {"needsSearch": bool, "query": str}, with the heuristic passed along
   as a hint.

The model's answer wins whenever it parses. When it does not (or the
call itself fails) the heuristic alone decides. decide() never raises.
"""

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from scribe.agent.context import build_decision_preamble
from scribe.utils.logger import Logger

if TYPE_CHECKING:
    from scribe.agent.completion import CompletionClient

logger = Logger("Decision")

RECENCY_PATTERN = re.compile(
    r"\b(today|yesterday|latest|news|current|recent|update|price|who won|score|weather|release|launch)\b",
    re.IGNORECASE,
)

HINT_LIKELY = "LIKELY"
HINT_UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class SearchOutcome:
    """Whether to search, and the query to search for."""
    needs_search: bool
    query: str | None = None


def recency_hint(message: str) -> bool:
    """True when the message mentions something time-sensitive."""
    return RECENCY_PATTERN.search(message) is not None


def parse_decision(text: str) -> SearchOutcome:
    """
    Parse the JSON object embedded in a model answer.

    Only the span from the first "{" to the last "}" is parsed, so prose
    or code fences around the object are tolerated.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    text = text.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ValueError("No JSON object in decision response")

    parsed = json.loads(text[start:end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("Decision response is not a JSON object")

    needs_search = parsed.get("needsSearch")
    if isinstance(needs_search, str):
        needs_search = needs_search.strip().lower() == "true"

    query = parsed.get("query")
    query = query.strip() if isinstance(query, str) else ""

    return SearchOutcome(needs_search=bool(needs_search), query=query or None)


class SearchDecider:
    """
    Classifies messages as needing web search or not.

    Example:
        decider = SearchDecider(completion, model="gpt-4o-mini")
        outcome = await decider.decide("Who won the match today?", system_prompt)
        if outcome.needs_search:
            results = await search.search(outcome.query)
    """

    def __init__(
        self,
        completion: "CompletionClient",
        model: str,
        temperature: float = 0.2
    ):
        self.completion = completion
        self.model = model
        self.temperature = temperature

    async def decide(self, user_message: str, context_prompt: str) -> SearchOutcome:
        """
        Decide whether the message needs search.

        Args:
            user_message: The raw user message
            context_prompt: The system prompt the reply will use

        Returns:
            SearchOutcome; query is set whenever needs_search is True
        """
        heuristic = recency_hint(user_message)
        fallback = SearchOutcome(
            needs_search=heuristic,
            query=user_message if heuristic else None,
        )
        preamble = build_decision_preamble(
            context_prompt,
            HINT_LIKELY if heuristic else HINT_UNKNOWN,
        )

        try:
            answer = await self.completion.chat(
                model=self.model,
                message=user_message,
                preamble=preamble,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error("Decision call failed, using heuristic", e)
            return fallback

        try:
            outcome = parse_decision(answer)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning(f"Unparseable decision response, using heuristic: {e}")
            return fallback

        if outcome.needs_search and not outcome.query:
            outcome = SearchOutcome(needs_search=True, query=user_message)

        logger.debug(
            "Search decision",
            {"heuristic": heuristic, "needs_search": outcome.needs_search, "query": outcome.query},
        )
        return outcome
