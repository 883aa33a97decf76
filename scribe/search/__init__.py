"""
Web Search
==========

Live web search used to ground replies that need current information.
"""

from scribe.search.tavily import TavilySearchClient

__all__ = ["TavilySearchClient"]
