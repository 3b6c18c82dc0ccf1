import os
from typing import Any, Dict, List, Optional

import requests
from langchain_tavily import TavilySearch

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
MAX_RESULTS = 5


def _fallback_request(query: str, api_key: str, timeout: float) -> Optional[List[Dict[str, Any]]]:
    """Hit the Tavily REST API directly when the langchain wrapper fails."""
    try:
        resp = requests.post(
            TAVILY_SEARCH_URL,
            json={
                "api_key": api_key,
                "query": query,
                "topic": "news",
                "max_results": MAX_RESULTS,
            },
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        return data.get("results")
    except Exception:
        return None


def format_results(results: List[Dict[str, Any]]) -> str:
    lines = []
    for idx, item in enumerate(results[:MAX_RESULTS], 1):
        title = (item.get("title") or item.get("url") or "Untitled").strip()
        snippet = (item.get("content") or item.get("snippet") or "").strip()
        url = item.get("url")

        line = f"{idx}. {title}"
        if url:
            line += f" ({url})"
        if snippet:
            line += f": {snippet}"
        lines.append(line)
    return "News results:\n" + "\n".join(lines)


def search_news(query: str, timeout: float = 8.0) -> str:
    """
    Search recent news coverage on the internet.
    - Input: search keywords
    - Output: titles, links and snippets of the top news results
    Returns an empty string when nothing was found so the caller can say so.
    """
    api_key = os.getenv("TAVILY_API_KEY")
    if not api_key:
        return "Error: TAVILY_API_KEY is not set."

    try:
        search = TavilySearch(api_key=api_key, max_results=MAX_RESULTS, topic="news")
        resp = search.invoke({"query": query})
        results = resp.get("results") if isinstance(resp, dict) else None
    except Exception:
        results = _fallback_request(query, api_key, timeout)

    if not results:
        return ""
    return format_results(results)
