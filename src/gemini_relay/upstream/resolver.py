"""Gemini generateContent client with api-version/model fallback.

One resolution walks the configured candidates in priority order and
stops at the first one that yields text. Failed attempts are logged and
recorded, never returned to the caller individually.
"""
from __future__ import annotations
import logging

import httpx
from pydantic import ValidationError

from gemini_relay.common.config import Settings
from gemini_relay.common.schema import (
    Candidate,
    ConfigurationError,
    ExhaustedFailure,
    GenerateContentResponse,
    ParseError,
    Resolved,
    ResolutionResult,
    Success,
    TransportError,
    UpstreamError,
    UpstreamErrorBody,
    UpstreamOutcome,
    generation_payload,
)

LOGGER = logging.getLogger("gemini_relay.upstream.resolver")

MISSING_KEY_DETAIL = "GEMINI_API_KEY not found in environment variables"


class UpstreamResolver:
    """Resolve a message to generated text across a fixed candidate list."""

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self.candidates = settings.candidates
        self.base_url = settings.base_url
        self.timeout = settings.timeout_seconds
        self._transport = transport

    def endpoint(self, candidate: Candidate) -> str:
        return f"{self.base_url}/{candidate.api_version}/models/{candidate.model}:generateContent"

    def resolve(self, message: str, credential: str | None) -> ResolutionResult:
        """
        Generate text for `message`, trying candidates until one succeeds.

        Args:
            message: User text, forwarded unmodified.
            credential: Upstream API key.

        Returns:
            Resolved on the first success, ConfigurationError when no
            credential is given (no request is sent), ExhaustedFailure
            when every candidate failed.
        """
        if not credential:
            LOGGER.error("Cannot call upstream: %s", MISSING_KEY_DETAIL)
            return ConfigurationError(MISSING_KEY_DETAIL)

        payload = generation_payload(message)
        attempts: list[UpstreamOutcome] = []
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            for candidate in self.candidates:
                LOGGER.info("Trying %s", candidate)
                outcome = self._attempt(client, candidate, payload, credential)
                attempts.append(outcome)
                self._log_outcome(outcome)
                if isinstance(outcome, Success):
                    return Resolved(text=outcome.text, candidate=candidate, attempts=tuple(attempts))

        self._log_exhausted(attempts)
        return ExhaustedFailure(attempts=tuple(attempts))

    def _attempt(self, client: httpx.Client, candidate: Candidate, payload: dict, credential: str) -> UpstreamOutcome:
        try:
            r = client.post(self.endpoint(candidate), params={"key": credential}, json=payload)
        except (httpx.HTTPError, UnicodeEncodeError) as e:
            return TransportError(candidate, f"{type(e).__name__}: {e}")

        # Buffer the body once; every decode below works from this copy.
        raw = r.content
        if r.is_success:
            return _decode_success(candidate, raw)
        return _decode_error(candidate, r.status_code, r.reason_phrase, raw)

    def _log_outcome(self, outcome: UpstreamOutcome) -> None:
        if isinstance(outcome, Success):
            LOGGER.info("Success with %s", outcome.candidate)
        elif isinstance(outcome, TransportError):
            LOGGER.warning("Failed to send request to %s: %s", outcome.candidate, outcome.detail)
        elif isinstance(outcome, ParseError):
            LOGGER.warning("Failed to parse response from %s: %s", outcome.candidate, outcome.detail)
        else:
            LOGGER.warning(
                "API error from %s: %s (%s): %s",
                outcome.candidate,
                outcome.status,
                outcome.code,
                outcome.message,
            )

    def _log_exhausted(self, attempts: list[UpstreamOutcome]) -> None:
        summary = "; ".join(f"{a.candidate} -> {type(a).__name__}" for a in attempts)
        LOGGER.error("All %d candidates failed: %s", len(attempts), summary)


def _decode_success(candidate: Candidate, raw: bytes) -> UpstreamOutcome:
    try:
        data = GenerateContentResponse.model_validate_json(raw)
    except ValidationError as e:
        return ParseError(candidate, f"unexpected response body ({e.error_count()} errors): {e.errors()[0]['msg']}")
    text = data.first_text()
    if text is None:
        return ParseError(candidate, "response contained no generated text")
    return Success(candidate, text)


def _decode_error(candidate: Candidate, status_code: int, reason: str, raw: bytes) -> UpstreamError:
    try:
        err = UpstreamErrorBody.model_validate_json(raw).error
    except ValidationError:
        body = raw.decode("utf-8", errors="replace")
        return UpstreamError(candidate, status_code, reason or "HTTP error", body)
    return UpstreamError(candidate, err.code, err.status, err.message)
