"""Conversation messages and the chat endpoint wire format."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["user", "assistant"]
SourceId = Union[str, int]


@dataclass(frozen=True)
class Message:
    """A single conversation turn. Never edited once appended."""

    role: Role
    content: str
    sources: tuple[SourceId, ...] | None = None

    def to_history(self) -> HistoryEntry:
        """Return the ``{role, content}`` pair sent as request history."""
        return HistoryEntry(role=self.role, content=self.content)


class HistoryEntry(BaseModel):
    """One prior turn as transmitted to the backend (content sent verbatim)."""

    role: Role
    content: str


class ChatRequest(BaseModel):
    """Request body for ``POST /api/v1/chat``."""

    query: str
    conversation_id: str | None = None
    history: list[HistoryEntry] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Success response body; any other shape is treated as a failed attempt."""

    model_config = ConfigDict(extra="ignore")

    conversation_id: str | None = None
    answer: str
    source_ids: list[SourceId] = Field(default_factory=list)

    @field_validator("answer", mode="before")
    @classmethod
    def _validate_answer(cls, value: object) -> str:
        if not isinstance(value, str):
            raise ValueError("answer must be a string.")
        return value

    @field_validator("conversation_id", mode="before")
    @classmethod
    def _validate_conversation_id(cls, value: object) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("conversation_id must be a string or null.")
        return value

    @field_validator("source_ids", mode="before")
    @classmethod
    def _validate_source_ids(cls, value: object) -> list[SourceId]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("source_ids must be a list.")
        for item in value:
            # bool is an int subclass but never a meaningful source id.
            if isinstance(item, bool) or not isinstance(item, (str, int)):
                raise ValueError("source_ids entries must be strings or integers.")
        return list(value)


@dataclass(frozen=True)
class ExchangeResult:
    """Decoded outcome of one successful turn exchange."""

    conversation_id: str | None
    answer: str
    source_ids: tuple[SourceId, ...]
