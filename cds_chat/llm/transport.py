"""HTTP client for the chat completion endpoint, with response normalization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from cds_chat.config import settings
from cds_chat.errors import NormalizationError, TransportError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cds_chat.chat.message import Message
    from cds_chat.preferences import Preferences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedResponse:
    """Canonical completion result, whatever shape the backend replied with."""

    content: str


@dataclass
class CompletionResult:
    """Outcome of one completion request: a response or a transport error."""

    response: NormalizedResponse | None = None
    error: TransportError | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.response is not None

    @property
    def content(self) -> str | None:
        return self.response.content if self.response else None

    def unwrap(self) -> NormalizedResponse:
        """Return the response, or raise the stored error."""
        if self.error is not None:
            raise self.error
        if self.response is None:
            msg = "Completion produced neither a response nor an error"
            raise TransportError(msg)
        return self.response


def build_payload(messages: Sequence[Message], preferences: Preferences) -> dict[str, Any]:
    """Serialize the request body."""
    return {
        "model": preferences.model,
        "temperature": preferences.temperature,
        "messages": [m.to_api() for m in messages],
    }


def _choices_content(body: dict[str, Any]) -> str | None:
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def normalize_response(body: Any) -> NormalizedResponse:
    """Map a completion body to ``NormalizedResponse``.

    Tries the completion-API shape ``{"choices": [{"message": {"content"}}]}``
    first, then the legacy ``{"content": ...}`` shape.
    """
    if not isinstance(body, dict):
        msg = f"Expected a JSON object, got {type(body).__name__}"
        raise NormalizationError(msg)

    content = _choices_content(body)
    if content is not None:
        return NormalizedResponse(content=content)

    legacy = body.get("content")
    if isinstance(legacy, str):
        return NormalizedResponse(content=legacy)

    msg = f"Unrecognized completion response (keys: {sorted(body)})"
    raise NormalizationError(msg)


def _status_error(resp: httpx.Response) -> TransportError:
    """Build a TransportError from a non-success response, using its error body if any."""
    try:
        details = resp.json().get("error")
    except (ValueError, AttributeError):
        details = None

    if not isinstance(details, dict):
        logger.error("Chat API request failed: status=%d", resp.status_code)
        return TransportError(
            f"API request failed with status: {resp.status_code}",
            status_code=resp.status_code,
        )

    error_type = str(details.get("type") or "")
    error_code = str(details.get("code") or "")
    message = str(details.get("message") or "")
    logger.error(
        "Chat API request failed: status=%d type=%s code=%s message=%s",
        resp.status_code,
        error_type,
        error_code,
        message,
    )
    return TransportError(
        f"API error: {message} (code: {error_code}, type: {error_type})",
        status_code=resp.status_code,
        error_type=error_type,
        error_code=error_code,
    )


class ChatTransport:
    """Sends a conversation to the completion endpoint.

    One POST per call, no retries. Holds no conversation state; an
    ``httpx.AsyncClient`` may be injected (tests, connection reuse),
    otherwise a short-lived client is opened per request.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint or settings.chat_endpoint
        self.timeout = timeout if timeout is not None else settings.chat_timeout_seconds
        self._client = client

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._client is not None:
            return await self._client.post(self.endpoint, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.endpoint, json=payload, headers=headers)

    async def send(
        self, messages: Sequence[Message], preferences: Preferences
    ) -> NormalizedResponse:
        """POST the conversation and normalize the reply. Raises TransportError."""
        payload = build_payload(messages, preferences)
        logger.debug(
            "POST %s model=%s messages=%d", self.endpoint, preferences.model, len(messages)
        )

        try:
            resp = await self._post(payload)
        except httpx.HTTPError as e:
            logger.error("Chat API request failed (network error): %s", e)
            msg = f"Could not reach chat API: {e}"
            raise TransportError(msg) from e

        if not resp.is_success:
            raise _status_error(resp)

        try:
            body = resp.json()
        except ValueError as e:
            msg = "Chat API returned a non-JSON body"
            raise NormalizationError(msg, status_code=resp.status_code) from e

        return normalize_response(body)

    async def complete(
        self, messages: Sequence[Message], preferences: Preferences
    ) -> CompletionResult:
        """Like ``send`` but captures failures in the returned result."""
        try:
            response = await self.send(messages, preferences)
        except TransportError as e:
            return CompletionResult(error=e)
        return CompletionResult(response=response)
