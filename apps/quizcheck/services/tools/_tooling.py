"""Shared utilities for LLM function tools.

Exports `llm_tool`, a decorator that turns a plain function plus a pydantic
argument model into a `FunctionTool` the chat-completions API can call.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Type

from pydantic import BaseModel, ValidationError


@dataclass(frozen=True)
class FunctionTool:
    name: str
    description: str
    args_schema: Type[BaseModel]
    func: Callable[..., str]

    def to_openai(self) -> dict[str, Any]:
        params = self.args_schema.model_json_schema()
        params.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": params,
            },
        }

    def invoke(self, arguments: str | dict[str, Any] | None) -> str:
        """Run the tool on raw model arguments; bad arguments become an error string."""
        try:
            if isinstance(arguments, str):
                data = json.loads(arguments or "{}")
            else:
                data = arguments or {}
            args = self.args_schema.model_validate(data)
        except (ValueError, ValidationError) as exc:
            return f"(error) invalid arguments for {self.name}: {exc}"
        return self.func(**args.model_dump())

    def __call__(self, *args: Any, **kwargs: Any) -> str:
        return self.func(*args, **kwargs)


def llm_tool(
    *, args_schema: Type[BaseModel], name: str | None = None
) -> Callable[[Callable[..., str]], FunctionTool]:
    """Decorate `func` as a tool; the first docstring paragraph is the description."""

    def _wrap(func: Callable[..., str]) -> FunctionTool:
        doc = (func.__doc__ or "").strip().split("\n\n")[0]
        return FunctionTool(
            name=name or func.__name__,
            description=" ".join(doc.split()),
            args_schema=args_schema,
            func=func,
        )

    return _wrap
