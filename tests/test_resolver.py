from __future__ import annotations

import json
import logging

import httpx
import pytest

from upstream_fakes import (
    FakeUpstream,
    MODELS,
    VERSIONS,
    api_error,
    raw,
    refused,
    reply,
    success_body,
    timed_out,
)
from gemini_relay.common.schema import (
    ConfigurationError,
    ExhaustedFailure,
    ParseError,
    Resolved,
    Success,
    TransportError,
    UpstreamError,
)
from gemini_relay.upstream.resolver import UpstreamResolver

ALL_CANDIDATES = [(v, m) for v in VERSIONS for m in MODELS]


def _failing_everywhere() -> dict:
    return {key: raw(500, "boom") for key in ALL_CANDIDATES}


def test_first_success_stops_the_sweep(settings) -> None:
    upstream = FakeUpstream({("v1", "model-a"): reply("first")})
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    assert isinstance(result, Resolved)
    assert result.text == "first"
    assert upstream.calls == [("v1", "model-a")]


def test_falls_through_transport_and_parse_failures_in_order(settings) -> None:
    upstream = FakeUpstream({
        ("v1", "model-a"): refused,
        ("v1", "model-b"): raw(200, "this is not json"),
        ("v1", "model-c"): reply("third time lucky"),
    })
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    assert isinstance(result, Resolved)
    assert result.text == "third time lucky"
    assert (result.candidate.api_version, result.candidate.model) == ("v1", "model-c")
    assert upstream.calls == [("v1", "model-a"), ("v1", "model-b"), ("v1", "model-c")]
    assert [type(a) for a in result.attempts] == [TransportError, ParseError, Success]


def test_all_candidates_failing_exhausts_in_priority_order(settings) -> None:
    upstream = FakeUpstream(_failing_everywhere())
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    assert isinstance(result, ExhaustedFailure)
    assert upstream.calls == ALL_CANDIDATES
    assert len(result.attempts) == len(ALL_CANDIDATES)


def test_structured_quota_error_does_not_abort(settings) -> None:
    upstream = FakeUpstream({
        ("v1", "model-a"): api_error(429, "RESOURCE_EXHAUSTED", "quota"),
        ("v1", "model-b"): reply("ok"),
    })
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    assert isinstance(result, Resolved)
    assert result.text == "ok"
    first = result.attempts[0]
    assert isinstance(first, UpstreamError)
    assert (first.code, first.status, first.message) == (429, "RESOURCE_EXHAUSTED", "quota")


def test_unstructured_error_body_keeps_raw_status_and_text(settings) -> None:
    upstream = FakeUpstream({
        ("v1", "model-a"): raw(503, "<html>upstream down</html>"),
        ("v1", "model-b"): reply("ok"),
    })
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    first = result.attempts[0]
    assert isinstance(first, UpstreamError)
    assert first.code == 503
    assert first.status == "Service Unavailable"
    assert first.message == "<html>upstream down</html>"


@pytest.mark.parametrize(
    "body",
    [
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"promptFeedback": {"blockReason": "OTHER"}},
    ],
)
def test_success_status_without_text_is_a_parse_error(settings, body) -> None:
    upstream = FakeUpstream({
        ("v1", "model-a"): lambda request: httpx.Response(200, json=body),
        ("v1", "model-b"): reply("fallback"),
    })
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    assert isinstance(result.attempts[0], ParseError)
    assert result.text == "fallback"


def test_timeout_is_recorded_as_transport_error(settings) -> None:
    upstream = FakeUpstream({
        ("v1", "model-a"): timed_out,
        ("v1", "model-b"): reply("ok"),
    })
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    assert isinstance(result.attempts[0], TransportError)
    assert "ReadTimeout" in result.attempts[0].detail


@pytest.mark.parametrize("credential", [None, ""])
def test_missing_credential_makes_no_calls(settings, credential) -> None:
    upstream = FakeUpstream({})
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi", credential)

    assert isinstance(result, ConfigurationError)
    assert upstream.calls == []


def test_request_shape_and_verbatim_text(settings) -> None:
    message = "  Tell me a joke\n with \"quotes\" & ünïcode  "
    upstream = FakeUpstream({("v1", "model-a"): reply("  spaced\nreply  ")})
    result = UpstreamResolver(settings, transport=upstream.transport).resolve(message, "test-key")

    assert result.text == "  spaced\nreply  "
    request = upstream.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/models/model-a:generateContent"
    assert request.url.params["key"] == "test-key"
    assert json.loads(request.content) == {"contents": [{"parts": [{"text": message}]}]}


def test_attempts_are_logged_without_the_credential(settings, caplog) -> None:
    caplog.set_level(logging.INFO, logger="gemini_relay.upstream.resolver")
    upstream = FakeUpstream({
        ("v1", "model-a"): api_error(404, "NOT_FOUND", "model not found"),
        ("v1", "model-b"): lambda request: httpx.Response(200, json=success_body("done")),
    })
    UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    messages = [r.getMessage() for r in caplog.records]
    assert any("v1 / model-a" in m and "NOT_FOUND" in m for m in messages)
    assert any(m == "Success with v1 / model-b" for m in messages)
    assert not any("test-key" in m for m in messages)


def test_exhaustion_is_logged_per_candidate(settings, caplog) -> None:
    caplog.set_level(logging.INFO, logger="gemini_relay.upstream.resolver")
    upstream = FakeUpstream(_failing_everywhere())
    UpstreamResolver(settings, transport=upstream.transport).resolve("hi", "test-key")

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "All 8 candidates failed" in errors[0].getMessage()
    assert "v2 / model-d -> UpstreamError" in errors[0].getMessage()


def test_worst_case_sweep_latency_is_bounded(settings) -> None:
    assert settings.worst_case_latency == len(ALL_CANDIDATES) * 30.0


def test_unencodable_message_is_a_per_candidate_failure(settings) -> None:
    upstream = FakeUpstream({})
    result = UpstreamResolver(settings, transport=upstream.transport).resolve("hi \ud800", "test-key")

    assert isinstance(result, ExhaustedFailure)
    assert all(isinstance(a, TransportError) for a in result.attempts)
    assert "UnicodeEncodeError" in result.attempts[0].detail
    assert upstream.calls == []
