from __future__ import annotations

from typing import Optional

from quizcheck.connectors.web_connector import WebConnector
from quizcheck.core.settings import settings


def search_web(
    q: str,
    mode: Optional[str] = None,
    *,
    num_results: Optional[int] = None,
) -> dict:
    conn = WebConnector(
        mode=mode or settings.search_provider,  # type: ignore[arg-type]
        num_results=num_results or settings.search_num_results,
    )
    resp = conn.search(q)
    return {
        "provider": resp.provider,
        "query": resp.query,
        "meta": resp.meta,
        "hits": [
            {"title": h.title, "url": h.url, "snippet": h.snippet, "source": h.source}
            for h in resp.hits
        ],
    }
