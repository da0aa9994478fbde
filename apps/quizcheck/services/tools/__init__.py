"""LLM-callable tools.

Import from this module to access the tools handed to the verification model.
"""

from __future__ import annotations

from ._tooling import FunctionTool, llm_tool
from .web_tools import search_web

__all__ = ["FunctionTool", "llm_tool", "search_web"]
