"""FastAPI chat relay in front of the Gemini generateContent API.

Endpoints:
- GET /, GET /health
- POST /chat  { "message": "..." }
"""
from __future__ import annotations
import logging
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from gemini_relay.common.config import Settings, load_settings
from gemini_relay.common.logging_setup import setup_logging
from gemini_relay.common.schema import ChatIn, ChatOut, ErrorOut
from gemini_relay.serve.gateway import RequestGateway
from gemini_relay.upstream.resolver import UpstreamResolver

LOGGER = logging.getLogger("gemini_relay.serve.app")
setup_logging()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_gateway() -> RequestGateway:
    settings = get_settings()
    return RequestGateway(UpstreamResolver(settings), settings.api_key)


app = FastAPI(title="Gemini chat relay")


@app.on_event("startup")
def _report_config_on_startup() -> None:
    """Log the candidate order and warn if the API key is missing."""
    settings = get_settings()
    if not settings.api_key:
        LOGGER.warning("GEMINI_API_KEY not found in environment variables; /chat will fail until it is set")
    LOGGER.info("Upstream candidates: %s", ", ".join(str(c) for c in settings.candidates))
    LOGGER.info(
        "Worst-case sweep latency: %.0fs (%d candidates x %.0fs timeout)",
        settings.worst_case_latency,
        len(settings.candidates),
        settings.timeout_seconds,
    )


@app.get("/", response_class=PlainTextResponse)
@app.get("/health", response_class=PlainTextResponse)
def health() -> str:
    return "OK"


@app.post(
    "/chat",
    response_model=ChatOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def chat(body: ChatIn, gateway: RequestGateway = Depends(get_gateway)) -> JSONResponse:
    result = gateway.handle(body.message)
    if not result.ok:
        LOGGER.info("Chat request answered with %d: %s", result.status_code, result.body.error)
    return JSONResponse(status_code=result.status_code, content=result.body.model_dump())
