"""
Web search used to ground expert answers.

The Serper API returns Google results; they are reduced to a list of
GroundingSource entries plus a plain-text context block that can be
pasted into a prompt.
"""

from dataclasses import dataclass
from typing import List

import requests

from config import SERPER_API_URL, SEARCH_TIMEOUT, TOP_SEARCH_RESULTS


@dataclass(frozen=True)
class GroundingSource:
    """A web page an answer was grounded on."""
    title: str
    uri: str
    snippet: str = ''


def perform_web_search(
    query: str,
    serper_api_key: str,
    top_k: int = TOP_SEARCH_RESULTS
) -> List[GroundingSource]:
    """
    Perform a web search using the Serper API.

    Args:
        query: The search query
        serper_api_key: API key for Serper
        top_k: Maximum number of organic results to keep

    Returns:
        Sources with a title and link, in ranking order

    Raises:
        ValueError: If no API key is configured
        requests.RequestException: On transport or HTTP errors
    """
    if not serper_api_key:
        raise ValueError("Serper API key is not configured.")

    response = requests.post(
        SERPER_API_URL,
        headers={
            'X-API-KEY': serper_api_key,
            'Content-Type': 'application/json'
        },
        json={"q": query},
        timeout=SEARCH_TIMEOUT
    )
    response.raise_for_status()
    search_results = response.json()

    sources = []
    for result in search_results.get("organic", [])[:top_k]:
        link = result.get("link")
        if not link:
            continue
        sources.append(GroundingSource(
            title=result.get("title", link),
            uri=link,
            snippet=result.get("snippet", "")
        ))
    return sources


def format_search_context(sources: List[GroundingSource]) -> str:
    """Render sources as a numbered block for inclusion in a prompt."""
    if not sources:
        return ""

    lines = ["Search Results:"]
    for i, source in enumerate(sources, 1):
        lines.append(f"{i}. Title: {source.title}\n   Link: {source.uri}\n   Snippet: {source.snippet}")
    return "\n".join(lines)
