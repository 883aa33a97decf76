"""
Tavily Web Search
=================

Single-request web search against the Tavily API.

The result is returned as a JSON string and fed to the model verbatim,
so this module never interprets the results. Failures are returned the
same way, as a JSON object with an "error" field:

    {"error": "Web search is not available. API key not configured."}
    {"error": "Search failed with status: 401", "details": "..."}
    {"error": "An exception occurred during the search.", "message": "..."}

Tavily API Notes:
- POST with a Bearer token
- Uses httpx for async HTTP requests
"""

import json

import httpx

from scribe.utils.config import SearchConfig
from scribe.utils.logger import Logger

logger = Logger("Search")


class TavilySearchClient:
    """
    Web search that never raises.

    Example:
        search = TavilySearchClient(config.search)
        payload = await search.search("Paris weather today")
        preamble = build_search_preamble(system_prompt, payload)

    An httpx.AsyncClient may be injected (e.g. one with a MockTransport);
    otherwise a client is opened per request.
    """

    def __init__(self, config: SearchConfig, http_client: httpx.AsyncClient | None = None):
        self.config = config
        self._http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    def _request_body(self, query: str) -> dict:
        return {
            "query": query,
            "search_depth": self.config.search_depth,
            "max_results": self.config.max_results,
            "include_answer": True,
            "include_raw_content": False,
        }

    async def _post(self, query: str) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }
        body = self._request_body(query)

        if self._http_client is not None:
            return await self._http_client.post(self.config.url, headers=headers, json=body)

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            return await client.post(self.config.url, headers=headers, json=body)

    async def search(self, query: str) -> str:
        """
        Search the web for a query.

        Args:
            query: The search query

        Returns:
            Serialized Tavily response, or a serialized error object
        """
        if not self.configured:
            logger.warning("Web search requested but TAVILY_API_KEY is not set")
            return json.dumps({
                "error": "Web search is not available. API key not configured.",
            })

        logger.info(f'Performing web search for: "{query}"')

        try:
            response = await self._post(query)

            if not response.is_success:
                logger.error(
                    f'Tavily search failed for query "{query}"',
                    data={"status": response.status_code, "body": response.text[:500]},
                )
                return json.dumps({
                    "error": f"Search failed with status: {response.status_code}",
                    "details": response.text,
                })

            data = response.json()

        except Exception as e:
            logger.error(f'An exception occurred during web search for "{query}"', e)
            return json.dumps({
                "error": "An exception occurred during the search.",
                "message": str(e) or type(e).__name__,
            })

        logger.info(f'Tavily search successful for query "{query}"')
        return json.dumps(data)
