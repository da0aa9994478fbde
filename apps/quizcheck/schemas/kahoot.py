"""Subset of the Kahoot REST payload that the exporter needs."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class KahootChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    answer: str = ""
    correct: bool = False

    @field_validator("answer", "correct", mode="before")
    @classmethod
    def _none_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return "" if info.field_name == "answer" else False
        return v


class KahootQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    question: Optional[str] = None
    choices: list[KahootChoice] = Field(default_factory=list)

    @field_validator("choices", mode="before")
    @classmethod
    def _null_choices(cls, v: Any) -> Any:
        # Content slides carry "choices": null.
        return [] if v is None else v


class KahootQuiz(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uuid: Optional[str] = None
    title: Optional[str] = None
    questions: list[KahootQuestion] = Field(default_factory=list)
