"""Clients for the external services quizcheck talks to."""

from .kahoot_connector import KahootClient
from .web_connector import SearchHit, SearchResponse, WebConnector

__all__ = ["KahootClient", "SearchHit", "SearchResponse", "WebConnector"]
