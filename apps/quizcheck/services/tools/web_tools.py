from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from quizcheck.core.settings import settings
from quizcheck.services.web_search import search_web as _service_search_web

from ._tooling import llm_tool

logger = logging.getLogger(__name__)


class WebSearchArgs(BaseModel):
    query: str = Field(description="The search query")


def render_web_search_markdown(query: str, max_results: int | None = None) -> str:
    """Return markdown for a web search using service results.

    Provider failures are rendered as text so the model can carry on without
    the evidence instead of aborting the whole verification.
    """
    k = max(1, int(max_results or settings.search_num_results))
    logger.info("Starting web search: %s", query)
    try:
        payload = _service_search_web(q=query, num_results=k)
    except Exception as exc:
        logger.warning("web search failed: %s", exc)
        return f"### Web Search\n\nUnable to complete web search for: {query}.\n\nError: {exc}"

    hits = payload.get("hits", [])[:k]
    provider = payload.get("provider", "web")
    if not hits:
        return f"### Web Search (provider: {provider})\n\nNo results for: {query}"

    lines = [f"### Web Search (provider: {provider})", "", f"Query: {query}", ""]
    for i, h in enumerate(hits, start=1):
        title = h.get("title") or h.get("url") or "(untitled)"
        url = h.get("url") or ""
        snippet = (h.get("snippet") or "").strip()
        lines.append(f"{i}. [{title}]({url})")
        if snippet:
            lines.append(f"   - {snippet}")
    return "\n".join(lines)


@llm_tool(args_schema=WebSearchArgs)
def search_web(query: str) -> str:
    """Search the web.

    Returns a ranked markdown list of results with titles, links and snippets.
    """
    return render_web_search_markdown(query)
