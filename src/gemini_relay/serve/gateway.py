"""Inbound chat request validation and result mapping."""
from __future__ import annotations
import logging

from gemini_relay.common.config import MAX_MESSAGE_CHARS
from gemini_relay.common.schema import (
    ChatOut,
    ConfigurationError,
    ErrorOut,
    GatewayResponse,
    Resolved,
)
from gemini_relay.upstream.resolver import UpstreamResolver

LOGGER = logging.getLogger("gemini_relay.serve.gateway")

EMPTY_MESSAGE = "Message cannot be empty"
TOO_LONG_MESSAGE = f"Message is too long (max {MAX_MESSAGE_CHARS} characters)"
INVALID_TEXT_MESSAGE = "Message must be valid UTF-8 text"
EXHAUSTED_MESSAGE = "Failed to get response from the upstream model. Please try again later."
NOT_CONFIGURED_MESSAGE = "Server is not configured with an upstream API key."


def _encodable(text: str) -> bool:
    # JSON escapes can smuggle lone surrogates into a str.
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _error(status_code: int, message: str) -> GatewayResponse:
    return GatewayResponse(status_code=status_code, body=ErrorOut(error=message))


class RequestGateway:
    def __init__(self, resolver: UpstreamResolver, credential: str | None) -> None:
        self.resolver = resolver
        self._credential = credential

    def handle(self, raw_message: str) -> GatewayResponse:
        """
        Validate one chat message and relay it upstream.

        Only the validation messages reach the caller verbatim; upstream
        failures collapse to a fixed 500 message.
        """
        if not raw_message.strip():
            return _error(400, EMPTY_MESSAGE)
        # Raw length; surrounding whitespace counts.
        if len(raw_message) > MAX_MESSAGE_CHARS:
            return _error(400, TOO_LONG_MESSAGE)
        if not _encodable(raw_message):
            return _error(400, INVALID_TEXT_MESSAGE)

        result = self.resolver.resolve(raw_message, self._credential)
        if isinstance(result, Resolved):
            return GatewayResponse(status_code=200, body=ChatOut(response=result.text))
        if isinstance(result, ConfigurationError):
            LOGGER.error("Chat request rejected: %s", result.detail)
            return _error(500, NOT_CONFIGURED_MESSAGE)
        LOGGER.error("Chat request failed after %d upstream attempts", len(result.attempts))
        return _error(500, EXHAUSTED_MESSAGE)
