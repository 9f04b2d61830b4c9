"""Runtime settings: environment, optional .env and YAML config file."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml
from dotenv import load_dotenv

from gemini_relay.common.schema import Candidate

DEFAULT_API_VERSIONS = ("v1beta", "v1")
# Priority order: earlier models are preferred, later ones more widely available.
DEFAULT_MODELS = (
    "gemini-2.5-flash",
    "gemini-flash-latest",
    "gemini-pro-latest",
    "gemini-2.0-flash",
)
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONFIG_PATH = "configs/relay.yaml"

MAX_MESSAGE_CHARS = 10_000


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    candidates: tuple[Candidate, ...]
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    host: str = "0.0.0.0"
    port: int = 3000
    backend_url: str = "http://localhost:3000"

    @property
    def worst_case_latency(self) -> float:
        """Upper bound in seconds for one sweep; there is no overall deadline."""
        return len(self.candidates) * self.timeout_seconds


def build_candidates(api_versions: Iterable[str], models: Iterable[str]) -> tuple[Candidate, ...]:
    """
    Build the ordered candidate matrix.

    Args:
        api_versions: Versions in priority order (outer loop).
        models: Models in priority order (inner loop).

    Returns:
        Every (version, model) pair, version varying slowest.
    """
    versions = [str(v).strip() for v in api_versions]
    names = [str(m).strip() for m in models]
    if not versions or not names:
        raise ValueError("At least one api version and one model are required")
    if not all(versions) or not all(names):
        raise ValueError("Api versions and models must be non-empty strings")
    return tuple(Candidate(v, m) for v in versions for m in names)


def load_cfg(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file; a missing file yields an empty config."""
    p = Path(path)
    if not p.exists():
        return {}
    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {p} must contain a mapping")
    return data


def _list_setting(cfg: dict[str, Any], key: str, default: tuple[str, ...]) -> list[str]:
    """A YAML list value, or the default when the key is absent."""
    if key not in cfg:
        return list(default)
    value = cfg[key]
    if not isinstance(value, list):
        raise ValueError(f"Config key '{key}' must be a list, got {type(value).__name__}")
    return value


def _clean_key(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def load_settings(cfg_path: str | Path | None = None) -> Settings:
    """
    Assemble settings from built-in defaults, the YAML file and the environment.

    Environment variables override the YAML file, which overrides defaults.
    A missing API key is not an error here; it surfaces per request.
    """
    load_dotenv()
    if cfg_path is None:
        cfg_path = os.getenv("RELAY_CONFIG", DEFAULT_CONFIG_PATH)
    cfg = load_cfg(cfg_path)

    candidates = build_candidates(
        _list_setting(cfg, "api_versions", DEFAULT_API_VERSIONS),
        _list_setting(cfg, "models", DEFAULT_MODELS),
    )
    timeout = float(os.getenv("UPSTREAM_TIMEOUT", cfg.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)))
    if timeout <= 0:
        raise ValueError("Upstream timeout must be positive")

    return Settings(
        api_key=_clean_key(os.getenv("GEMINI_API_KEY")),
        candidates=candidates,
        base_url=os.getenv("GEMINI_BASE_URL", cfg.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
        timeout_seconds=timeout,
        host=os.getenv("RELAY_HOST", "0.0.0.0"),
        port=int(os.getenv("RELAY_PORT", "3000")),
        backend_url=os.getenv("RELAY_BACKEND_URL", "http://localhost:3000").rstrip("/"),
    )
