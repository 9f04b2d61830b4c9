"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel


# Inbound / outbound bodies of the local HTTP surface

class ChatIn(BaseModel):
    message: str

class ChatOut(BaseModel):
    response: str

class ErrorOut(BaseModel):
    error: str


# Upstream generateContent wire schemas

class Part(BaseModel):
    text: str

class Content(BaseModel):
    parts: list[Part]

class GenerationCandidate(BaseModel):
    content: Content

class GenerateContentResponse(BaseModel):
    candidates: list[GenerationCandidate]

    def first_text(self) -> str | None:
        """Text of the first part of the first generation, if present."""
        if not self.candidates or not self.candidates[0].content.parts:
            return None
        return self.candidates[0].content.parts[0].text

class UpstreamErrorDetail(BaseModel):
    code: int
    message: str
    status: str

class UpstreamErrorBody(BaseModel):
    error: UpstreamErrorDetail


def generation_payload(message: str) -> dict:
    """Single-turn generateContent body wrapping the message verbatim."""
    return {"contents": [{"parts": [{"text": message}]}]}


@dataclass(frozen=True)
class Candidate:
    """One (api version, model) pair tried against the upstream."""
    api_version: str
    model: str

    def __str__(self) -> str:
        return f"{self.api_version} / {self.model}"


# Outcome of a single candidate attempt

@dataclass(frozen=True)
class Success:
    candidate: Candidate
    text: str

@dataclass(frozen=True)
class TransportError:
    candidate: Candidate
    detail: str

@dataclass(frozen=True)
class ParseError:
    candidate: Candidate
    detail: str

@dataclass(frozen=True)
class UpstreamError:
    candidate: Candidate
    code: int
    status: str
    message: str

UpstreamOutcome = Union[Success, TransportError, ParseError, UpstreamError]


# Outcome of a full sweep over the candidates

@dataclass(frozen=True)
class Resolved:
    text: str
    candidate: Candidate
    attempts: tuple[UpstreamOutcome, ...] = ()

@dataclass(frozen=True)
class ExhaustedFailure:
    attempts: tuple[UpstreamOutcome, ...] = ()

@dataclass(frozen=True)
class ConfigurationError:
    detail: str

ResolutionResult = Union[Resolved, ExhaustedFailure, ConfigurationError]


@dataclass
class GatewayResponse:
    """Caller-facing result of one chat request."""
    status_code: int
    body: ChatOut | ErrorOut

    @property
    def ok(self) -> bool:
        return self.status_code == 200
