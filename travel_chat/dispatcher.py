"""Single-attempt turn exchange with the travel-assistant chat endpoint."""

from __future__ import annotations

from collections.abc import Sequence
import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .exceptions import NetworkError
from .models import ChatRequest, ChatResponse, ExchangeResult, Message

LOGGER = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:8000/api/v1/chat"


class RequestDispatcher:
    """Issue one ``POST`` per turn and validate the response shape.

    Every failure mode (transport error, non-2xx status, undecodable body) is
    reported as :class:`NetworkError`. There is no retry and no timeout beyond
    the one the HTTP client was built with.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @staticmethod
    def build_request(
        query: str, conversation_id: str | None, history: Sequence[Message]
    ) -> ChatRequest:
        """Build the request body; history is sent verbatim, markup included."""
        return ChatRequest(
            query=query,
            conversation_id=conversation_id,
            history=[message.to_history() for message in history],
        )

    async def exchange(
        self,
        query: str,
        conversation_id: str | None,
        history: Sequence[Message],
    ) -> ExchangeResult:
        """Send one turn and return the decoded reply."""
        payload = self.build_request(query, conversation_id, history).model_dump()
        LOGGER.info(
            "dispatcher.exchange.start",
            extra={
                "event": "dispatcher.exchange.start",
                "endpoint": self.endpoint,
                "history_length": len(payload["history"]),
                "has_conversation_id": conversation_id is not None,
            },
        )

        try:
            response = await self._client.post(self.endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise self._failure("transport", exc) from exc

        if not response.is_success:
            raise self._failure(
                "status", f"HTTP error! status: {response.status_code}"
            )

        try:
            data: Any = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._failure("decode", exc) from exc

        try:
            decoded = ChatResponse.model_validate(data)
        except ValidationError as exc:
            raise self._failure("shape", exc) from exc

        LOGGER.info(
            "dispatcher.exchange.complete",
            extra={
                "event": "dispatcher.exchange.complete",
                "status": response.status_code,
                "source_count": len(decoded.source_ids),
            },
        )
        return ExchangeResult(
            conversation_id=decoded.conversation_id,
            answer=decoded.answer,
            source_ids=tuple(decoded.source_ids),
        )

    def _failure(self, reason: str, detail: object) -> NetworkError:
        LOGGER.warning(
            "dispatcher.exchange.failed",
            extra={
                "event": "dispatcher.exchange.failed",
                "endpoint": self.endpoint,
                "reason": reason,
                "error": str(detail),
            },
        )
        return NetworkError(f"Chat request to {self.endpoint} failed: {detail}")

    async def aclose(self) -> None:
        """Close the HTTP client when this dispatcher created it."""
        if self._owns_client:
            await self._client.aclose()
