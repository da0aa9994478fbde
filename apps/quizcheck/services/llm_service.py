from __future__ import annotations

import copy
import logging
from typing import Any, Optional, Sequence, Type, TypeVar

import openai
from openai import OpenAI
from pydantic import BaseModel, ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from quizcheck.core.exceptions import ConfigurationError, RateLimitError, VerificationError
from quizcheck.core.settings import Settings, settings
from quizcheck.services.tools import FunctionTool

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)

FINALIZE_PROMPT = "Stop searching and give your final answer now in the required JSON format."


def strict_json_schema(schema: Type[BaseModel]) -> dict[str, Any]:
    """Return `schema`'s JSON schema in the strict form structured outputs accept.

    Local `$ref`s are inlined, every object forbids unknown keys and lists all
    of its properties as required.
    """
    json_schema = copy.deepcopy(schema.model_json_schema(by_alias=True))

    defs: dict[str, Any] = {}
    for key in ("$defs", "definitions"):
        if isinstance(json_schema.get(key), dict):
            defs = json_schema.pop(key)
            break

    def _deref(obj: Any) -> Any:
        if isinstance(obj, dict):
            ref = obj.get("$ref")
            if isinstance(ref, str) and ref.startswith(("#/$defs/", "#/definitions/")):
                return _deref(defs.get(ref.split("/")[-1], {}))
            return {k: _deref(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [_deref(x) for x in obj]
        return obj

    def _strictify(obj: Any) -> None:
        if isinstance(obj, dict):
            if obj.get("type") == "object":
                obj["additionalProperties"] = False
                props = obj.get("properties")
                if isinstance(props, dict):
                    obj["required"] = list(props.keys())
                    for v in props.values():
                        _strictify(v)
            for key in ("items", "allOf", "anyOf", "oneOf"):
                val = obj.get(key)
                if isinstance(val, list):
                    for it in val:
                        _strictify(it)
                elif isinstance(val, dict):
                    _strictify(val)

    json_schema = _deref(json_schema) if defs else json_schema
    _strictify(json_schema)
    return json_schema


def _assistant_message(message: Any) -> dict[str, Any]:
    return {
        "role": "assistant",
        "content": message.content or "",
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.function.name,
                    "arguments": call.function.arguments,
                },
            }
            for call in message.tool_calls
        ],
    }


class LLMService:
    """
    Access to an OpenAI-compatible chat-completions endpoint (OpenRouter by default).
    - Structured outputs validated against a Pydantic schema.
    - Optional function tools the model may call before answering.
    - Bounded retry with exponential backoff on transient provider faults.
    """

    def __init__(
        self,
        *,
        openai_client: Optional[OpenAI] = None,
        cfg: Optional[Settings] = None,
        retry_wait: Optional[wait_base] = None,
    ) -> None:
        self.cfg = cfg or settings
        self._openai_client: Optional[OpenAI] = openai_client
        self._retry_wait = retry_wait or wait_exponential_jitter(initial=1, max=30)

    # ---------- internal helpers ----------

    @property
    def openai_client(self) -> OpenAI:
        if self._openai_client is None:
            if not self.cfg.llm_api_key or not self.cfg.llm_api_key.get_secret_value():
                raise ConfigurationError(
                    "No LLM API key configured; set OPENROUTER_API_KEY or OPENAI_API_KEY",
                    code="missing_api_key",
                )
            kwargs: dict[str, Any] = {
                "api_key": self.cfg.llm_api_key.get_secret_value(),
                "timeout": self.cfg.llm_timeout_s,
                # Retries are handled by tenacity in `_create`.
                "max_retries": 0,
            }
            if self.cfg.llm_base_url:
                kwargs["base_url"] = self.cfg.llm_base_url
            self._openai_client = OpenAI(**kwargs)
        return self._openai_client

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.cfg.llm_max_retries),
            wait=self._retry_wait,
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _create(self, **kwargs: Any) -> Any:
        client = self.openai_client
        if self.cfg.llm_temperature is not None:
            kwargs.setdefault("temperature", self.cfg.llm_temperature)
        try:
            for attempt in self._retrying():
                with attempt:
                    resp = client.chat.completions.create(**kwargs)
        except openai.RateLimitError as exc:
            raise RateLimitError(f"LLM provider rate limit: {exc}") from exc
        except openai.APITimeoutError as exc:
            raise VerificationError(
                f"LLM request timed out after {self.cfg.llm_timeout_s}s", code="timeout"
            ) from exc
        except openai.OpenAIError as exc:
            raise VerificationError(f"LLM request failed: {exc}") from exc
        if not getattr(resp, "choices", None):
            raise VerificationError("LLM returned no choices", code="empty_response")
        return resp

    @staticmethod
    def _response_format(schema: Type[BaseModel]) -> dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": schema.__name__,
                "schema": strict_json_schema(schema),
                "strict": True,
            },
        }

    @staticmethod
    def _parse(schema: Type[T], message: Any) -> T:
        refusal = getattr(message, "refusal", None)
        if refusal:
            raise VerificationError(f"Model refused to answer: {refusal}", code="refusal")
        raw = message.content
        if not raw or not raw.strip():
            raise VerificationError("Model returned empty content", code="empty_response")
        try:
            return schema.model_validate_json(raw)
        except ValidationError as exc:
            raise VerificationError(
                f"Model reply does not match {schema.__name__}",
                code="schema_mismatch",
                details={"raw": raw, "errors": exc.errors(include_url=False)},
            ) from exc

    # ---------- Structured outputs ----------

    def structured(
        self,
        messages: list[dict[str, Any]],
        schema: Type[T],
        *,
        model: Optional[str] = None,
    ) -> T:
        """Single request whose reply must validate against `schema`."""
        resp = self._create(
            model=model or self.cfg.llm_model,
            messages=messages,
            response_format=self._response_format(schema),
        )
        return self._parse(schema, resp.choices[0].message)

    def structured_with_tools(
        self,
        messages: list[dict[str, Any]],
        schema: Type[T],
        tools: Sequence[FunctionTool],
        *,
        model: Optional[str] = None,
        max_tool_rounds: Optional[int] = None,
    ) -> T:
        """
        Structured output where the model may call `tools` first.

        Every tool call is executed locally and fed back as a `tool` message.
        After `max_tool_rounds` rounds the model is asked once more, without
        tools, for its final answer.
        """
        if not tools:
            return self.structured(messages, schema, model=model)

        model_name = model or self.cfg.llm_model
        rounds = self.cfg.llm_max_tool_rounds if max_tool_rounds is None else max_tool_rounds
        by_name = {t.name: t for t in tools}
        tool_specs = [t.to_openai() for t in tools]
        response_format = self._response_format(schema)
        convo: list[dict[str, Any]] = list(messages)

        for round_no in range(rounds + 1):
            resp = self._create(
                model=model_name,
                messages=convo,
                tools=tool_specs,
                response_format=response_format,
            )
            message = resp.choices[0].message
            calls = getattr(message, "tool_calls", None) or []
            if not calls:
                return self._parse(schema, message)
            if round_no == rounds:
                break

            convo.append(_assistant_message(message))
            for call in calls:
                tool = by_name.get(call.function.name)
                if tool is None:
                    output = f"(tool not found: {call.function.name})"
                else:
                    logger.debug("Tool call %s(%s)", call.function.name, call.function.arguments)
                    output = tool.invoke(call.function.arguments)
                convo.append({"role": "tool", "tool_call_id": call.id, "content": output})

        logger.info("Tool round limit (%d) reached; requesting final answer", rounds)
        convo.append({"role": "user", "content": FINALIZE_PROMPT})
        resp = self._create(model=model_name, messages=convo, response_format=response_format)
        return self._parse(schema, resp.choices[0].message)
