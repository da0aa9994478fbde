from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence

from quizcheck.core.rate_limit import web_rate_limiter
from quizcheck.core.settings import settings
from quizcheck.core.utils import clamp_int

logger = logging.getLogger(__name__)

Provider = Literal["exa", "tavily"]
DEFAULT_PROVIDER_PRIORITY: List[Provider] = ["exa", "tavily"]
Mode = Literal["auto", Provider]


@dataclass
class SearchHit:
    title: Optional[str]
    url: Optional[str]
    snippet: Optional[str]
    source: Provider
    raw: Any


@dataclass
class SearchResponse:
    provider: Provider | Literal["none"]
    query: str
    hits: List[SearchHit]
    meta: dict[str, Any] | None = None


def _env(key: str) -> Optional[str]:
    val = os.getenv(key)
    return val.strip() if val and val.strip() else None


_PROVIDER_ENV_KEYS: dict[Provider, str] = {
    "exa": "EXA_API_KEY",
    "tavily": "TAVILY_API_KEY",
}


def _api_key(provider: Provider) -> Optional[str]:
    """Resolve a provider key from env first, then settings.

    Env is re-read at call time so tests can toggle providers after `settings`
    has been loaded.
    """

    env_val = _env(_PROVIDER_ENV_KEYS[provider])
    if env_val:
        return env_val
    return getattr(settings, f"{provider}_api_key", None) or None


def _normalize_list_result(items: Any, provider: Provider) -> List[SearchHit]:
    hits: List[SearchHit] = []

    def norm_one(obj: Any) -> SearchHit:
        title = None
        url = None
        snippet = None
        if isinstance(obj, dict):
            title = obj.get("title") or obj.get("name")
            url = obj.get("url") or obj.get("link")
            snippet = (
                obj.get("snippet")
                or obj.get("content")
                or obj.get("text")
                or obj.get("description")
            )
            highlights = obj.get("highlights")
            if not snippet and isinstance(highlights, list) and highlights:
                snippet = " ... ".join(str(h) for h in highlights if h)
        elif isinstance(obj, str):
            snippet = obj[:280]
        else:
            # langchain_exa returns SearchResponse objects whose results are
            # plain objects with attributes rather than dicts.
            title = getattr(obj, "title", None)
            url = getattr(obj, "url", None)
            snippet = getattr(obj, "text", None) or getattr(obj, "summary", None)
            highlights = getattr(obj, "highlights", None)
            if not snippet and isinstance(highlights, list) and highlights:
                snippet = " ... ".join(str(h) for h in highlights if h)
            if title is None and url is None and snippet is None:
                snippet = str(obj)[:280]
        return SearchHit(title=title, url=url, snippet=snippet, source=provider, raw=obj)

    if isinstance(items, list):
        return [norm_one(it) for it in items]
    if isinstance(items, str):
        try:
            parsed = json.loads(items)
        except ValueError:
            return [norm_one(items)]
        return _normalize_list_result(parsed, provider)
    if isinstance(items, dict):
        for key in ("results", "data", "items", "hits"):
            v = items.get(key)
            if isinstance(v, list):
                return [norm_one(it) for it in v]
        return [norm_one(items)]
    results = getattr(items, "results", None)
    if isinstance(results, list):
        return [norm_one(it) for it in results]
    hits.append(norm_one(items))
    return hits


def _dedupe_by_url(hits: Sequence[SearchHit]) -> List[SearchHit]:
    seen: set[str] = set()
    out: List[SearchHit] = []
    for h in hits:
        key = (h.url or "").strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(h)
    return out


class ExaClient:
    def __init__(self, default_num_results: int = 6, **kwargs: Any):
        api_key = _api_key("exa")
        if not api_key:
            raise RuntimeError("EXA_API_KEY is not set")
        from langchain_exa import ExaSearchResults

        self.tool = ExaSearchResults(
            exa_api_key=api_key, max_results=default_num_results, **kwargs
        )

    def search(
        self,
        query: str,
        num_results: int = 6,
        text_contents_options: Any = None,
        highlights: bool = True,
        **kwargs: Any,
    ) -> SearchResponse:
        web_rate_limiter.wait("exa")
        if text_contents_options is None:
            text_contents_options = {"max_characters": 1500}
        payload = {
            "query": query,
            "num_results": clamp_int(num_results, lo=1, hi=25),
            "highlights": highlights,
            "text_contents_options": text_contents_options,
        }
        payload.update(kwargs)
        res = self.tool.invoke(payload)
        hits = _normalize_list_result(res, "exa")
        return SearchResponse(provider="exa", query=query, hits=_dedupe_by_url(hits))


class TavilyClient:
    def __init__(
        self,
        max_results: int = 6,
        topic: Literal["general", "news", "finance"] = "general",
        **kwargs: Any,
    ):
        api_key = _api_key("tavily")
        if not api_key:
            raise RuntimeError("TAVILY_API_KEY is not set")
        from langchain_tavily import TavilySearch

        self.tool = TavilySearch(
            max_results=max_results,
            topic=topic,
            include_answer=False,
            include_raw_content=False,
            tavily_api_key=api_key,
            **kwargs,
        )

    def search(self, query: str, **kwargs: Any) -> SearchResponse:
        web_rate_limiter.wait("tavily")
        res = self.tool.invoke({"query": query, **kwargs})
        hits = _normalize_list_result(res, "tavily")
        return SearchResponse(provider="tavily", query=query, hits=_dedupe_by_url(hits))


class WebConnector:
    """Search facade over the configured providers.

    `auto` picks the first configured provider in priority order. Selecting an
    unconfigured provider yields an empty response instead of raising.
    """

    def __init__(self, mode: Mode = "auto", *, num_results: int = 6) -> None:
        self.mode = mode
        self.num_results = num_results
        self.clients: dict[Provider, Any] = {}
        if _api_key("exa"):
            try:
                self.clients["exa"] = ExaClient(default_num_results=num_results)
            except ImportError as exc:
                logger.warning("Exa client disabled: %s", exc)
        if _api_key("tavily"):
            try:
                self.clients["tavily"] = TavilyClient(max_results=num_results)
            except ImportError as exc:
                logger.warning("Tavily client disabled: %s", exc)

    def _resolve_auto(self) -> Optional[Provider]:
        for p in DEFAULT_PROVIDER_PRIORITY:
            if p in self.clients:
                return p
        return None

    def search(self, query: str, *, num_results: Optional[int] = None) -> SearchResponse:
        provider = self._resolve_auto() if self.mode == "auto" else self.mode
        if provider is None:
            logger.warning("No search provider configured. Returning empty response.")
            return SearchResponse(
                provider="none", query=query, hits=[], meta={"status": "unconfigured"}
            )

        client = self.clients.get(provider)
        if client is None:
            logger.warning(
                "Provider '%s' not configured. Returning empty fallback response.", provider
            )
            return SearchResponse(
                provider=provider, query=query, hits=[], meta={"status": "unconfigured"}
            )

        num = num_results or self.num_results
        if provider == "exa":
            resp = client.search(query, num_results=num)
        else:
            resp = client.search(query)
        resp.hits = resp.hits[:num]
        return resp
